"""
Wire schemas shared across routers. JSON field names are camelCase.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from brandsnap.models import AuthProvider


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserResponse(CamelModel):
    """Outbound user. The password hash is never part of it."""
    id: int
    username: str
    email: str
    provider: AuthProvider
    provider_id: Optional[str] = None
    created_at: Optional[datetime] = None

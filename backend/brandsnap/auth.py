"""
Authentication — bearer JWT issued by /api/auth/login or /api/auth/google.
Include: Authorization: Bearer <jwt>
"""

import logging
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap.database import get_db
from brandsnap.exceptions import NotFoundError, UnauthorizedError
from brandsnap.models import User
from brandsnap.services.auth_service import verify_access_token
from brandsnap.services.user_service import load_for_authentication

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Require a valid JWT and return its subject's User from the DB."""
    if not credentials:
        raise UnauthorizedError("Missing authorization. Include header: Authorization: Bearer <token>")

    subject = verify_access_token(credentials.credentials)

    try:
        return await load_for_authentication(db, subject)
    except NotFoundError:
        logger.warning(f"Valid token for unknown subject {subject!r}")
        raise UnauthorizedError("User not found")

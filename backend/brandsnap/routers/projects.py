"""
Projects Router — a user's projects.
"""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap.auth import get_current_user
from brandsnap.database import get_db
from brandsnap.exceptions import NotFoundError
from brandsnap.models import User
from brandsnap.schemas import CamelModel
from brandsnap.services import project_service

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Schemas ────────────────────────────────────────────────────────────

class ProjectCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1024)


class ProjectResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    user_id: int
    created_at: Optional[datetime] = None


def _require_self(user_id: int, current: User) -> None:
    if user_id != current.id:
        raise NotFoundError("User not found")


# ── Endpoints ───────────────────────────────────────────────────────────

@router.post("", response_model=ProjectResponse)
async def create_project(
    payload: ProjectCreate,
    user_id: int = Query(alias="userId"),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_self(user_id, current)
    project = await project_service.create_project(db, user_id, payload.title, payload.description)
    return ProjectResponse.model_validate(project)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    user_id: int = Query(alias="userId"),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_self(user_id, current)
    projects = await project_service.list_projects(db, user_id)
    return [ProjectResponse.model_validate(p) for p in projects]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.get_project(db, project_id, owner_id=current.id)
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: int,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a project with all of its campaigns and assets."""
    await project_service.delete_project(db, project_id, owner_id=current.id)
    return Response(status_code=204)

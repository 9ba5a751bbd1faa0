"""
Project Service — create/list/get/delete projects under their owning user.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap import gateway
from brandsnap.exceptions import NotFoundError
from brandsnap.models import Project, User

logger = logging.getLogger(__name__)


def _check_owner(project: Project, owner_id: Optional[int]) -> None:
    # Another tenant's project is reported exactly like a missing one
    if owner_id is not None and project.user_id != owner_id:
        raise NotFoundError("Project not found")


async def create_project(
    db: AsyncSession,
    user_id: int,
    title: str,
    description: Optional[str] = None,
) -> Project:
    await gateway.get_by_id(db, User, user_id)
    project = Project(title=title, description=description, user_id=user_id)
    await gateway.insert(db, project)
    await gateway.commit(db)
    logger.info(f"Created project {project.id} for user {user_id}")
    return project


async def list_projects(db: AsyncSession, user_id: int) -> list[Project]:
    await gateway.get_by_id(db, User, user_id)
    return await gateway.list_by_parent(db, Project, Project.user_id, user_id)


async def get_project(db: AsyncSession, project_id: int, owner_id: Optional[int] = None) -> Project:
    project = await gateway.get_by_id(db, Project, project_id)
    _check_owner(project, owner_id)
    return project


async def delete_project(db: AsyncSession, project_id: int, owner_id: Optional[int] = None) -> None:
    """Delete a project and its whole subtree. Missing ids are a no-op."""
    project = await gateway.find_by_id(db, Project, project_id)
    if project is None:
        return
    _check_owner(project, owner_id)
    await gateway.delete(db, project)
    await gateway.commit(db)
    logger.info(f"Deleted project {project_id} with its campaigns and assets")

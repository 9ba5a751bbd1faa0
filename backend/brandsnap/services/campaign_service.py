"""
Campaign Service — campaigns live inside a project.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap import gateway
from brandsnap.exceptions import NotFoundError
from brandsnap.models import Campaign
from brandsnap.services.project_service import get_project

logger = logging.getLogger(__name__)


async def create_campaign(
    db: AsyncSession,
    project_id: int,
    purpose: str,
    owner_id: Optional[int] = None,
) -> Campaign:
    await get_project(db, project_id, owner_id)
    campaign = Campaign(purpose=purpose, project_id=project_id)
    await gateway.insert(db, campaign)
    await gateway.commit(db)
    logger.info(f"Created campaign {campaign.id} in project {project_id}")
    return campaign


async def list_campaigns(db: AsyncSession, project_id: int, owner_id: Optional[int] = None) -> list[Campaign]:
    await get_project(db, project_id, owner_id)
    return await gateway.list_by_parent(db, Campaign, Campaign.project_id, project_id)


async def get_campaign(db: AsyncSession, campaign_id: int, owner_id: Optional[int] = None) -> Campaign:
    campaign = await gateway.get_by_id(db, Campaign, campaign_id)
    if owner_id is not None:
        try:
            await get_project(db, campaign.project_id, owner_id)
        except NotFoundError:
            raise NotFoundError("Campaign not found")
    return campaign

"""
Campaigns Router — campaigns inside a project.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap.auth import get_current_user
from brandsnap.database import get_db
from brandsnap.models import User
from brandsnap.schemas import CamelModel
from brandsnap.services import campaign_service

router = APIRouter()


class CampaignCreate(CamelModel):
    purpose: str = Field(min_length=1, max_length=255)


class CampaignResponse(CamelModel):
    id: int
    purpose: str
    project_id: int


@router.post("", response_model=CampaignResponse)
async def create_campaign(
    payload: CampaignCreate,
    project_id: int = Query(alias="projectId"),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    campaign = await campaign_service.create_campaign(db, project_id, payload.purpose, owner_id=current.id)
    return CampaignResponse.model_validate(campaign)


@router.get("", response_model=list[CampaignResponse])
async def list_campaigns(
    project_id: int = Query(alias="projectId"),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    campaigns = await campaign_service.list_campaigns(db, project_id, owner_id=current.id)
    return [CampaignResponse.model_validate(c) for c in campaigns]


@router.get("/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(
    campaign_id: int,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    campaign = await campaign_service.get_campaign(db, campaign_id, owner_id=current.id)
    return CampaignResponse.model_validate(campaign)

"""
Assets Router — generate, list, regenerate and delete campaign images.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap.auth import get_current_user
from brandsnap.database import get_db
from brandsnap.models import User
from brandsnap.schemas import CamelModel
from brandsnap.services import asset_service
from brandsnap.synthesizer import ImageSynthesizer, get_synthesizer

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Schemas ────────────────────────────────────────────────────────────

class AssetGenerateRequest(CamelModel):
    campaign_id: int
    prompt: str = Field(min_length=1)
    # Raw base64 or a data: URL
    input_image: Optional[str] = None


class AssetUpdateRequest(CamelModel):
    prompt: str = Field(min_length=1)


class AssetResponse(CamelModel):
    id: int
    image_data: str
    prompt: Optional[str] = None
    campaign_id: int


# ── Endpoints ───────────────────────────────────────────────────────────

@router.post("", response_model=AssetResponse)
async def generate_asset(
    payload: AssetGenerateRequest,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    synthesizer: ImageSynthesizer = Depends(get_synthesizer),
):
    """Generate an image for a campaign. Upstream failures yield a placeholder image."""
    asset = await asset_service.generate_asset(
        db,
        synthesizer,
        payload.campaign_id,
        payload.prompt,
        payload.input_image,
        owner_id=current.id,
    )
    return AssetResponse.model_validate(asset)


@router.get("", response_model=list[AssetResponse])
async def list_assets(
    campaign_id: int = Query(alias="campaignId"),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    assets = await asset_service.list_assets(db, campaign_id, owner_id=current.id)
    return [AssetResponse.model_validate(a) for a in assets]


@router.put("/{asset_id}", response_model=AssetResponse)
async def update_asset(
    asset_id: int,
    payload: AssetUpdateRequest,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    synthesizer: ImageSynthesizer = Depends(get_synthesizer),
):
    """Regenerate the image from a new prompt."""
    asset = await asset_service.update_asset(db, synthesizer, asset_id, payload.prompt, owner_id=current.id)
    return AssetResponse.model_validate(asset)


@router.delete("/{asset_id}")
async def delete_asset(
    asset_id: int,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete an asset. Always 200, whether or not it existed."""
    await asset_service.delete_asset(db, asset_id, owner_id=current.id)
    return Response(status_code=200)

"""
Asset Service — generate, list, regenerate and delete campaign assets.

generate() runs campaign lookup → synthesis → insert, in that order. The lookup
transaction is committed before the synthesizer call so no pooled connection is
held while waiting on upstream. If the request is cancelled while that call is in
flight, nothing is inserted; once the insert has been committed there is no rollback.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap import gateway
from brandsnap.exceptions import NotFoundError
from brandsnap.models import Asset
from brandsnap.services.campaign_service import get_campaign
from brandsnap.synthesizer import ImageSynthesizer

logger = logging.getLogger(__name__)


async def _get_owned_asset(db: AsyncSession, asset_id: int, owner_id: Optional[int]) -> Asset:
    asset = await gateway.get_by_id(db, Asset, asset_id)
    if owner_id is not None:
        try:
            await get_campaign(db, asset.campaign_id, owner_id)
        except NotFoundError:
            raise NotFoundError("Asset not found")
    return asset


async def generate_asset(
    db: AsyncSession,
    synthesizer: ImageSynthesizer,
    campaign_id: int,
    prompt: str,
    reference_image: Optional[str] = None,
    owner_id: Optional[int] = None,
) -> Asset:
    campaign = await get_campaign(db, campaign_id, owner_id)
    await gateway.commit(db)

    image_data = await synthesizer.synthesize(prompt, reference_image)

    asset = Asset(campaign_id=campaign.id, prompt=prompt, image_data=image_data)
    await gateway.insert(db, asset)
    await gateway.commit(db)
    logger.info(f"Created asset {asset.id} in campaign {campaign.id}")
    return asset


async def list_assets(db: AsyncSession, campaign_id: int, owner_id: Optional[int] = None) -> list[Asset]:
    await get_campaign(db, campaign_id, owner_id)
    return await gateway.list_by_parent(db, Asset, Asset.campaign_id, campaign_id)


async def update_asset(
    db: AsyncSession,
    synthesizer: ImageSynthesizer,
    asset_id: int,
    prompt: str,
    owner_id: Optional[int] = None,
) -> Asset:
    """Regenerate from the new prompt alone; the original reference image is not kept."""
    asset = await _get_owned_asset(db, asset_id, owner_id)
    await gateway.commit(db)

    image_data = await synthesizer.synthesize(prompt, None)

    asset.prompt = prompt
    asset.image_data = image_data
    await gateway.save(db, asset)
    await gateway.commit(db)
    logger.info(f"Regenerated asset {asset.id}")
    return asset


async def delete_asset(db: AsyncSession, asset_id: int, owner_id: Optional[int] = None) -> None:
    """Idempotent: missing (or foreign) assets are left alone without error."""
    try:
        asset = await _get_owned_asset(db, asset_id, owner_id)
    except NotFoundError:
        return
    await gateway.delete(db, asset)
    await gateway.commit(db)
    logger.info(f"Deleted asset {asset_id}")

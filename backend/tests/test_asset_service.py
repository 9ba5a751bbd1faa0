"""
Tests for project/campaign/asset services against a real (SQLite) database.
"""

import httpx
import pytest
from sqlalchemy import func, select

from brandsnap.exceptions import NotFoundError
from brandsnap.models import Asset, Campaign, Project
from brandsnap.services import asset_service, campaign_service, project_service, user_service
from brandsnap.synthesizer import PLACEHOLDER_IMAGE, ImageSynthesizer
from conftest import SYNTH_URL, image_response


@pytest.fixture
async def campaign(db):
    user = await user_service.register(db, "alice", "a@x", "p")
    project = await project_service.create_project(db, user.id, "Summer")
    return await campaign_service.create_campaign(db, project.id, "Launch")


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar()


@pytest.mark.anyio
async def test_generate_binds_asset_to_campaign(db, synthesizer, upstream, campaign):
    upstream.respond(200, image_response("image/png", "AAAA"))

    asset = await asset_service.generate_asset(db, synthesizer, campaign.id, "logo on beach")

    assert asset.id is not None
    assert asset.campaign_id == campaign.id
    assert asset.prompt == "logo on beach"
    assert asset.image_data == "data:image/png;base64,AAAA"


@pytest.mark.anyio
async def test_generate_forwards_reference_image(db, synthesizer, upstream, campaign):
    await asset_service.generate_asset(db, synthesizer, campaign.id, "p", "data:image/jpeg;base64,REF")
    parts = upstream.last_json["contents"][0]["parts"]
    assert parts[0]["inline_data"]["data"] == "REF"
    assert parts[1] == {"text": "p"}


@pytest.mark.anyio
@pytest.mark.parametrize("status_code,body", [
    (500, {"error": "boom"}),
    (200, {"candidates": {"x": 1}}),
])
async def test_generate_upstream_failure_stores_placeholder(db, synthesizer, upstream, campaign, status_code, body):
    upstream.respond(status_code, body)
    asset = await asset_service.generate_asset(db, synthesizer, campaign.id, "p")
    assert asset.image_data == PLACEHOLDER_IMAGE
    assert await _count(db, Asset) == 1


@pytest.mark.anyio
async def test_generate_for_missing_campaign_does_not_call_upstream(db, synthesizer, upstream):
    with pytest.raises(NotFoundError, match="Campaign not found"):
        await asset_service.generate_asset(db, synthesizer, 999, "p")
    assert upstream.requests == []


@pytest.mark.anyio
async def test_list_assets_in_insertion_order(db, synthesizer, campaign):
    first = await asset_service.generate_asset(db, synthesizer, campaign.id, "one")
    second = await asset_service.generate_asset(db, synthesizer, campaign.id, "two")
    assets = await asset_service.list_assets(db, campaign.id)
    assert [a.id for a in assets] == [first.id, second.id]

    with pytest.raises(NotFoundError):
        await asset_service.list_assets(db, 999)


@pytest.mark.anyio
async def test_update_regenerates_without_reference(db, synthesizer, upstream, campaign):
    asset = await asset_service.generate_asset(db, synthesizer, campaign.id, "beach", "REF")
    upstream.respond(200, image_response("image/png", "BBBB"))

    updated = await asset_service.update_asset(db, synthesizer, asset.id, "mountain")

    assert updated.id == asset.id
    assert updated.prompt == "mountain"
    assert updated.image_data == "data:image/png;base64,BBBB"
    assert upstream.last_json == {"contents": [{"parts": [{"text": "mountain"}]}]}


@pytest.mark.anyio
async def test_update_missing_asset(db, synthesizer):
    with pytest.raises(NotFoundError, match="Asset not found"):
        await asset_service.update_asset(db, synthesizer, 42, "p")


@pytest.mark.anyio
async def test_delete_asset_is_idempotent(db, synthesizer, campaign):
    asset = await asset_service.generate_asset(db, synthesizer, campaign.id, "p")
    await asset_service.delete_asset(db, asset.id)
    await asset_service.delete_asset(db, asset.id)
    assert await _count(db, Asset) == 0


@pytest.mark.anyio
async def test_other_tenant_cannot_reach_campaign(db, synthesizer, upstream, campaign):
    bob = await user_service.register(db, "bob", "b@x", "p")

    with pytest.raises(NotFoundError):
        await asset_service.generate_asset(db, synthesizer, campaign.id, "p", owner_id=bob.id)
    assert upstream.requests == []

    asset = await asset_service.generate_asset(db, synthesizer, campaign.id, "p")
    with pytest.raises(NotFoundError):
        await asset_service.update_asset(db, synthesizer, asset.id, "x", owner_id=bob.id)
    # Not an error, but nothing is deleted either
    await asset_service.delete_asset(db, asset.id, owner_id=bob.id)
    assert await _count(db, Asset) == 1


@pytest.mark.anyio
async def test_project_creation_requires_user(db):
    with pytest.raises(NotFoundError, match="User not found"):
        await project_service.create_project(db, 999, "Orphan")
    with pytest.raises(NotFoundError):
        await project_service.list_projects(db, 999)


@pytest.mark.anyio
async def test_campaign_creation_requires_project(db):
    with pytest.raises(NotFoundError, match="Project not found"):
        await campaign_service.create_campaign(db, 999, "Launch")


@pytest.mark.anyio
async def test_deleting_project_cascades(db, synthesizer, campaign):
    project_id = campaign.project_id
    await campaign_service.create_campaign(db, project_id, "Second")
    await asset_service.generate_asset(db, synthesizer, campaign.id, "one")
    await asset_service.generate_asset(db, synthesizer, campaign.id, "two")

    await project_service.delete_project(db, project_id)

    assert await _count(db, Project) == 0
    assert await _count(db, Campaign) == 0
    assert await _count(db, Asset) == 0


@pytest.mark.anyio
async def test_delete_missing_project_is_noop(db):
    await project_service.delete_project(db, 12345)


@pytest.mark.anyio
async def test_no_connection_held_while_synthesizing(engine, db, upstream, campaign):
    checked_out = []

    def handler(request):
        checked_out.append(engine.sync_engine.pool.checkedout())
        return upstream.handler(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        synth = ImageSynthesizer(client=http_client, api_key="k", url=SYNTH_URL)
        asset = await asset_service.generate_asset(db, synth, campaign.id, "p")
        await asset_service.update_asset(db, synth, asset.id, "q")

    assert checked_out == [0, 0]


@pytest.mark.anyio
async def test_update_of_asset_deleted_during_synthesis(session_factory, db, synthesizer, upstream, campaign):
    asset = await asset_service.generate_asset(db, synthesizer, campaign.id, "p")

    async def handler(request):
        async with session_factory() as other:
            await asset_service.delete_asset(other, asset.id)
        return upstream.handler(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        synth = ImageSynthesizer(client=http_client, api_key="k", url=SYNTH_URL)
        with pytest.raises(NotFoundError, match="Asset not found"):
            await asset_service.update_asset(db, synth, asset.id, "q")

    assert await _count(db, Asset) == 0

"""
Shared fixtures: a throwaway SQLite database per test, a stubbed upstream
image endpoint, and an HTTP client wired to the app with both overridden.
"""

import base64
import json
import os

# Must be in place before any brandsnap module reads settings
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["NANO_BANANA_API_KEY"] = "test-api-key"
os.environ["BCRYPT_ROUNDS"] = "4"

import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from brandsnap.database import Base, build_engine, get_db
from brandsnap.synthesizer import ImageSynthesizer, get_synthesizer
import brandsnap.models  # noqa: F401

SYNTH_URL = "https://synth.test/v1beta/models/image:generateContent"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine(anyio_backend, tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'brandsnap.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


class UpstreamStub:
    """Records outbound synthesizer requests and replays a canned response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: object = image_response("image/png", "AAAA")
        self.error: Exception | None = None

    def respond(self, status_code: int = 200, body: object = None):
        self.status_code = status_code
        self.body = body
        self.error = None

    def fail_with(self, error: Exception):
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


def image_response(mime_type: str, data: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"inlineData": {"mimeType": mime_type, "data": data}}]}}]}


def google_credential(**claims) -> str:
    """An unsigned Google-style ID token carrying the given claims."""
    def seg(obj) -> str:
        raw = json.dumps(obj, separators=(",", ":")).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")
    return f"{seg({'alg': 'RS256', 'typ': 'JWT'})}.{seg(claims)}.signature"


@pytest.fixture
def upstream():
    return UpstreamStub()


@pytest.fixture
async def synthesizer(anyio_backend, upstream):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    yield ImageSynthesizer(client=http_client, api_key="test-api-key", url=SYNTH_URL, timeout=5.0)
    await http_client.aclose()


@pytest.fixture
async def client(session_factory, synthesizer):
    from brandsnap.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_synthesizer] = lambda: synthesizer
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Register + log in a local user; returns {"id", "token", "headers"}."""
    async def _make(username: str, email: str, password: str = "p") -> dict:
        r = await client.post("/api/auth/register", json={"username": username, "email": email, "password": password})
        assert r.status_code == 200, r.text
        r = await client.post("/api/auth/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        data = r.json()
        return {"id": data["id"], "token": data["token"], "headers": {"Authorization": f"Bearer {data['token']}"}}
    return _make

"""
Auth Router — Register, login, Google sign-in, whoami.
"""

import logging
from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap.auth import get_current_user
from brandsnap.database import get_db
from brandsnap.exceptions import ConflictError, UnauthorizedError
from brandsnap.models import User
from brandsnap.schemas import CamelModel, UserResponse
from brandsnap.services import user_service
from brandsnap.services.auth_service import create_access_token, create_access_token_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# ── Schemas ────────────────────────────────────────────────────────────

class RegisterRequest(CamelModel):
    username: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class LoginRequest(CamelModel):
    username: str
    password: str


class GoogleLoginRequest(CamelModel):
    credential: str


class TokenResponse(CamelModel):
    token: str
    id: int
    username: str
    email: str
    roles: list[str]


# ── Endpoints ───────────────────────────────────────────────────────────

@router.post("/register", response_model=UserResponse)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a local (password) user."""
    user = await user_service.register(db, payload.username, payload.email, payload.password)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with username (or email) and password. Returns JWT."""
    user = await user_service.authenticate(db, payload.username, payload.password)
    token = create_access_token_for_user(user)
    return TokenResponse(
        token=token,
        id=user.id,
        username=user.username,
        email=user.email,
        roles=[],
    )


@router.post("/google", response_model=TokenResponse)
async def google_login(payload: GoogleLoginRequest, db: AsyncSession = Depends(get_db)):
    """Sign in with a Google ID token; first login creates the user."""
    identity = user_service.parse_google_credential(payload.credential)

    try:
        user = await user_service.find_or_create_federated(
            db, identity.email, identity.name, identity.subject
        )
    except ConflictError as e:
        logger.info(f"Google login rejected for {identity.email}: {e.message}")
        raise UnauthorizedError(f"Google authentication failed: {e.message}")

    token = create_access_token(user.email)
    return TokenResponse(
        token=token,
        id=user.id,
        username=user.username,
        email=user.email,
        roles=["ROLE_USER"],
    )


@router.get("/me", response_model=UserResponse)
async def whoami(user: User = Depends(get_current_user)):
    """Return current user. Requires JWT auth."""
    return UserResponse.model_validate(user)

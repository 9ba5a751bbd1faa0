"""
User Service — identity store for local (password) and Google (federated) users.
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brandsnap import gateway
from brandsnap.exceptions import (
    ConflictError,
    NotFoundError,
    ProviderConflictError,
    UnauthorizedError,
    ValidationError,
)
from brandsnap.models import AuthProvider, User
from brandsnap.services.auth_service import hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleIdentity:
    email: str
    name: Optional[str]
    subject: Optional[str]


async def find_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def find_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def register(db: AsyncSession, username: str, email: str, raw_password: str) -> User:
    """Create a LOCAL user. Raises ConflictError on a taken username or email."""
    if not raw_password:
        raise ValidationError("Password must not be empty")
    if await find_by_username(db, username):
        raise ConflictError("Username already exists")
    if await find_by_email(db, email):
        raise ConflictError("Email already exists")

    # bcrypt is CPU-bound; keep it off the event loop
    password_hash = await asyncio.to_thread(hash_password, raw_password)
    user = User(
        username=username,
        email=email,
        password=password_hash,
        provider=AuthProvider.LOCAL,
    )
    # The unique constraints settle concurrent registrations that pass the checks above
    await gateway.insert(db, user)
    await gateway.commit(db)
    logger.info(f"Registered local user {user.username} (id={user.id})")
    return user


async def load_for_authentication(db: AsyncSession, principal: str) -> User:
    """Resolve a token subject or login name: username first, then email."""
    user = await find_by_username(db, principal)
    if user is None:
        user = await find_by_email(db, principal)
    if user is None:
        raise NotFoundError(f"User not found: {principal}")
    return user


async def authenticate(db: AsyncSession, username: str, raw_password: str) -> User:
    """Password login; the login name is matched against usernames only."""
    user = await find_by_username(db, username)
    if user is None:
        raise UnauthorizedError("Invalid credentials")

    # passlib's verify compares in constant time
    ok = await asyncio.to_thread(verify_password, raw_password, user.password)
    if not ok:
        raise UnauthorizedError("Invalid credentials")
    return user


async def _rename_federated(db: AsyncSession, user: User, display_name: str) -> None:
    """Follow the Google display name unless another account already holds it."""
    email = user.email
    if await find_by_username(db, display_name) is not None:
        logger.warning(f"Keeping username {user.username!r} for {email}: {display_name!r} is taken")
        return

    user.username = display_name
    try:
        await gateway.save(db, user)
        await gateway.commit(db)
    except ConflictError:
        logger.warning(f"Keeping username for {email}: {display_name!r} was taken concurrently")
        # The rollback expired the instance; reload the committed row
        await db.refresh(user)


async def find_or_create_federated(
    db: AsyncSession,
    email: str,
    display_name: Optional[str],
    provider_subject: Optional[str],
) -> User:
    """
    Return the GOOGLE user for this email, creating it on first login.
    An email already held by a LOCAL user raises ProviderConflictError.
    """
    user = await find_by_email(db, email)

    if user is not None:
        if user.provider != AuthProvider.GOOGLE:
            raise ProviderConflictError(f"Email already registered with {user.provider.value}")
        if display_name and display_name != user.username:
            await _rename_federated(db, user, display_name)
        return user

    user = User(
        username=display_name or email.split("@")[0],
        email=email,
        password=None,  # No password for federated users
        provider=AuthProvider.GOOGLE,
        provider_id=provider_subject,
    )
    await gateway.insert(db, user)
    await gateway.commit(db)
    logger.info(f"Created Google user {user.username} (id={user.id})")
    return user


# ── Google credential parsing ──────────────────────────────────────────
# The signature is NOT verified; claims are read straight from the payload segment.

def _extract_claim(payload: str, key: str) -> Optional[str]:
    marker = f'"{key}":"'
    start = payload.find(marker)
    if start == -1:
        return None
    start += len(marker)
    end = payload.find('"', start)
    if end == -1:
        return None
    return payload[start:end]


def parse_google_credential(credential: str) -> GoogleIdentity:
    parts = (credential or "").split(".")
    if len(parts) < 2:
        raise ValidationError("Invalid credential format")

    segment = parts[1]
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
        payload = raw.decode("utf-8")
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid credential format")

    email = _extract_claim(payload, "email")
    if not email:
        raise ValidationError("Could not extract email from credential")

    return GoogleIdentity(
        email=email,
        name=_extract_claim(payload, "name"),
        subject=_extract_claim(payload, "sub"),
    )

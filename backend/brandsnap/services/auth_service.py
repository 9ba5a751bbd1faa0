"""
Auth Service — Password hashing and bearer JWT issue/verification.
"""

import logging
from datetime import datetime, timezone, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from brandsnap.config import get_settings
from brandsnap.exceptions import TokenExpiredError, TokenInvalidError
from brandsnap.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=get_settings().bcrypt_rounds
)

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    # Federated users have no hash and can never pass a password check
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(subject: str) -> str:
    """Mint a signed token for a username or email."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": now,
        "exp": now + timedelta(seconds=settings.jwt_expiry_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def create_access_token_for_user(user: User) -> str:
    return create_access_token(user.username)


def verify_access_token(token: str) -> str:
    """Return the token's subject; raise TokenExpiredError / TokenInvalidError otherwise."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError("Token has expired. Please log in again.")
    except JWTError:
        raise TokenInvalidError("Invalid token. Please log in again.")

    subject = payload.get("sub")
    if not subject:
        raise TokenInvalidError("Invalid token. Please log in again.")
    return subject

import logging
from pydantic_settings import BaseSettings
from pydantic import model_validator, ConfigDict
from functools import lru_cache
from sqlalchemy.engine import make_url

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "change-me-in-production"
GEMINI_IMAGE_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-2.5-flash-image:generateContent"
)


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment: "development" or "production"
    environment: str = "development"

    database_url: str = "postgresql+asyncpg://localhost/brandsnap"
    database_username: str = ""
    database_password: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fix_database_url_for_asyncpg(cls, values: dict) -> dict:
        """Hosted Postgres gives postgresql:// — we need postgresql+asyncpg:// for asyncpg."""
        if not isinstance(values, dict):
            return values
        url = values.get("database_url") or ""
        if url.startswith("postgresql://") and "+asyncpg" not in url:
            values["database_url"] = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return values

    # Image synthesizer ("Nano Banana")
    nano_banana_api_key: str = ""
    synthesizer_url: str = GEMINI_IMAGE_URL
    synthesizer_timeout_seconds: float = 60.0
    synthesizer_placeholder_on_failure: bool = True
    synthesizer_sniff_reference_mime: bool = False

    # Bearer tokens
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_expiry_seconds: int = 60 * 60 * 24
    bcrypt_rounds: int = 12

    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    csrf_cookie_name: str = "XSRF-TOKEN"
    csrf_header_name: str = "X-XSRF-TOKEN"

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "Settings":
        """Enforce that critical secrets are set when running in production."""
        if self.is_production:
            if self.jwt_secret == DEFAULT_JWT_SECRET:
                raise ValueError(
                    "JWT_SECRET must be set to a secure value in production. "
                    "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
                )
            if not self.nano_banana_api_key:
                raise ValueError("NANO_BANANA_API_KEY must be set in production.")
            if not self.database_url or "localhost" in self.database_url:
                logger.warning("DATABASE_URL appears to point at localhost in production.")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def sqlalchemy_url(self) -> str:
        """DATABASE_URL with DATABASE_USERNAME / DATABASE_PASSWORD applied when set."""
        if not self.database_username and not self.database_password:
            return self.database_url
        url = make_url(self.database_url)
        if self.database_username:
            url = url.set(username=self.database_username)
        if self.database_password:
            url = url.set(password=self.database_password)
        return url.render_as_string(hide_password=False)

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()

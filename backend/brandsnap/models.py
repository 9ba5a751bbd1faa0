"""
BrandSnap — Database Models
Users own Projects, Projects group Campaigns, Campaigns accumulate generated Assets.
Children store their parent's id; relationships run parent → children only.
"""

import enum
from datetime import datetime, timezone
from sqlalchemy import (
    String, Text, Integer, DateTime, ForeignKey, Index,
    Enum as SAEnum,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column, relationship
from brandsnap.database import Base


def _utcnow() -> datetime:
    """Naive UTC now — matches DB columns (TIMESTAMP WITHOUT TIME ZONE)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Data URLs of generated images can run to several MB
LongText = Text().with_variant(mysql.LONGTEXT(), "mysql")


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class AuthProvider(str, enum.Enum):
    LOCAL = "LOCAL"
    GOOGLE = "GOOGLE"


# ══════════════════════════════════════════════════════════════════════
#  USERS
# ══════════════════════════════════════════════════════════════════════

class User(Base):
    """App user. LOCAL users have a password hash; GOOGLE users never do."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    provider: Mapped[AuthProvider] = mapped_column(
        SAEnum(AuthProvider, name="auth_provider"), nullable=False, default=AuthProvider.LOCAL
    )
    provider_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    projects: Mapped[list["Project"]] = relationship(
        "Project", cascade="all, delete-orphan", order_by="Project.id"
    )


# ══════════════════════════════════════════════════════════════════════
#  PROJECTS → CAMPAIGNS → ASSETS
# ══════════════════════════════════════════════════════════════════════

class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    campaigns: Mapped[list["Campaign"]] = relationship(
        "Campaign", cascade="all, delete-orphan", order_by="Campaign.id"
    )

    __table_args__ = (
        Index("ix_projects_user_id", "user_id"),
    )


class Campaign(Base):
    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    purpose: Mapped[str] = mapped_column(String(255), nullable=False)
    project_id: Mapped[int] = mapped_column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)

    assets: Mapped[list["Asset"]] = relationship(
        "Asset", cascade="all, delete-orphan", order_by="Asset.id"
    )

    __table_args__ = (
        Index("ix_campaigns_project_id", "project_id"),
    )


class Asset(Base):
    """A generated image, stored inline as a data: URL."""
    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    image_data: Mapped[str] = mapped_column(LongText, nullable=False)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    campaign_id: Mapped[int] = mapped_column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        Index("ix_assets_campaign_id", "campaign_id"),
    )

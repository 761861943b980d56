"""Asset record: one curriculum/month educational package."""

from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from sqlalchemy import JSON, DateTime, String, UniqueConstraint
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base

# MySQL DATETIME drops sub-second digits unless fsp is set
Timestamp = DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), "mysql")


def new_asset_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class AssetRecord(Base):
    """
    Asset record mirrored on disk under ``asset/{curriculum}/{month}``.

    Attributes:
        id: Primary key, 32 hex characters
        curriculum: Educational track name
        month: Time bucket within the curriculum
        book_id: Resolved once from the mapping table at creation
        covers: Relative cover image paths
        subtitles: List of {page_num, sentence_num, text}
        youtube_links: List of {thumbnail_file, youtube_url, title}
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """
    __tablename__ = "assets"
    __table_args__ = (
        UniqueConstraint("curriculum", "month", name="uq_assets_curriculum_month"),
    )

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        default=new_asset_id
    )
    curriculum: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    month: Mapped[str] = mapped_column(String(50), nullable=False)
    book_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    covers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    subtitles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    youtube_links: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        Timestamp,
        nullable=False,
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp,
        nullable=False,
        default=utcnow
    )

    def to_document(self) -> Dict[str, Any]:
        """Render the record in its document-store shape."""
        return {
            "_id": self.id,
            "curriculum": self.curriculum,
            "month": self.month,
            "book_id": self.book_id,
            "covers": list(self.covers),
            "subtitles": [dict(s) for s in self.subtitles],
            "youtube_links": [dict(y) for y in self.youtube_links],
            "created_at": as_utc(self.created_at),
            "updated_at": as_utc(self.updated_at),
        }

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, UTCDateTime, utc_now


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Performance(Base):
    """
    Student performance shown on the home screen.
    Either an uploaded video URL or an external link (YouTube etc.).
    """
    __tablename__ = "performances"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    skill_level: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Media URLs
    video: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    video_link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    photo: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail: Mapped[str] = mapped_column(String(500), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Performance(name='{self.name}', title='{self.title}')>"


class AudienceReview(Base):
    """Video testimonial from a learner or parent."""
    __tablename__ = "audience_reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    skill_level: Mapped[str] = mapped_column(String(20), nullable=False)

    video: Mapped[str] = mapped_column(String(500), nullable=False)
    photo: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail: Mapped[str] = mapped_column(String(500), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<AudienceReview(name='{self.name}')>"


class MusicQuote(Base):
    __tablename__ = "music_quotes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    artist: Mapped[str] = mapped_column(String(200), nullable=False)
    genre: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<MusicQuote(artist='{self.artist}')>"

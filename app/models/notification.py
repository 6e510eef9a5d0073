"""Database models for in-app notifications."""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String, Text, Boolean, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, UTCDateTime, utc_now


class RecipientType(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"


class Notification(Base):
    """
    One inbox row per recipient per live-class event.
    user_id points at users or teachers depending on user_type.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        Index('ix_notifications_user_read', 'user_id', 'is_read'),
        Index('ix_notifications_dedup', 'user_id', 'live_class_id', 'notification_batch_id'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    user_id: Mapped[uuid.UUID] = mapped_column(UUIDType, nullable=False, index=True)
    user_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="student, teacher"
    )

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    live_class_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("live_classes.id", ondelete="SET NULL"),
        nullable=True
    )
    notification_batch_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<Notification(user={self.user_id}, title='{self.title}', read={self.is_read})>"

import uuid
from datetime import datetime
from typing import Optional, List

from sqlalchemy import String, Boolean, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, UTCDateTime, utc_now


class LiveClass(Base):
    """Scheduled live session run by one teacher for a set of students."""
    __tablename__ = "live_classes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    teacher_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("teachers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    meet_link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

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

    attendees: Mapped[List["LiveClassAttendee"]] = relationship(
        "LiveClassAttendee",
        back_populates="live_class",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    @property
    def user_ids(self) -> list[uuid.UUID]:
        return [attendee.user_id for attendee in self.attendees]

    def __repr__(self) -> str:
        return f"<LiveClass(title='{self.title}', start={self.start_time})>"


class LiveClassAttendee(Base):
    """Student enrolled in a live class."""
    __tablename__ = "live_class_attendees"
    __table_args__ = (
        UniqueConstraint('live_class_id', 'user_id', name='uq_live_class_attendee'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    live_class_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("live_classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    live_class: Mapped["LiveClass"] = relationship("LiveClass", back_populates="attendees")

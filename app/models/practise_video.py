import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, UTCDateTime, utc_now
from app.models.course import Lesson
from app.models.user import User


class PractiseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PractiseVideo(Base):
    """
    A student's practice recording for one lesson, reviewed by a teacher.
    One row per (lesson, user); re-uploading resets the review.
    """
    __tablename__ = "practise_videos"
    __table_args__ = (
        UniqueConstraint("lesson_id", "user_id", name="uq_practise_video_lesson_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    lesson_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    video_url: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=PractiseStatus.PENDING.value,
        nullable=False
    )
    rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

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

    lesson: Mapped["Lesson"] = relationship("Lesson", lazy="selectin")
    user: Mapped["User"] = relationship("User", lazy="selectin")

    @property
    def lesson_title(self) -> Optional[str]:
        return self.lesson.title if self.lesson else None

    @property
    def user_name(self) -> Optional[str]:
        return self.user.name if self.user else None

    def __repr__(self) -> str:
        return f"<PractiseVideo(lesson={self.lesson_id}, user={self.user_id}, status='{self.status}')>"

"""
Practice videos.

A student uploads one recording per lesson; a teacher approves or rejects it
with a 0-5 rating. A well-rated approval unlocks the next lesson of the course.
"""
from typing import List, Optional, Tuple
import uuid
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.db_types import utc_now
from app.models.course import Lesson
from app.models.practise_video import PractiseStatus, PractiseVideo
from app.models.user import User
from app.schemas.practise_video import PractiseVideoReview, PractiseVideoUpload

logger = logging.getLogger(__name__)

UNLOCK_MIN_RATING = 4
REVIEW_STATUSES = (PractiseStatus.APPROVED.value, PractiseStatus.REJECTED.value)


class PractiseService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, video_id: uuid.UUID) -> Optional[PractiseVideo]:
        result = await self.db.execute(
            select(PractiseVideo)
            .where(PractiseVideo.id == video_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _find(self, lesson_id: uuid.UUID, user_id: uuid.UUID) -> Optional[PractiseVideo]:
        result = await self.db.execute(
            select(PractiseVideo).where(
                PractiseVideo.lesson_id == lesson_id,
                PractiseVideo.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def upload(self, data: PractiseVideoUpload) -> Tuple[PractiseVideo, bool]:
        """
        Store the recording for (lesson, user).

        Returns (video, created). Uploading again replaces the video and puts
        it back in the review queue.
        """
        if data.lesson_id is None or data.user_id is None:
            raise ValidationError("Lesson ID and User ID are required")
        if await self.db.get(Lesson, data.lesson_id) is None:
            raise NotFoundError("Lesson not found")
        if await self.db.get(User, data.user_id) is None:
            raise NotFoundError("User not found")

        video = await self._find(data.lesson_id, data.user_id)
        created = video is None
        if created:
            video = PractiseVideo(
                lesson_id=data.lesson_id,
                user_id=data.user_id,
                video_url=data.video_url,
            )
            self.db.add(video)
        else:
            video.video_url = data.video_url
            video.status = PractiseStatus.PENDING.value
            video.rating = 0
            video.reviewed_at = None

        await self.db.flush()
        logger.info(
            f"Practice video {'uploaded' if created else 're-uploaded'}: "
            f"lesson={data.lesson_id} user={data.user_id}"
        )
        return await self._load(video.id), created

    async def review(self, video_id: uuid.UUID, data: PractiseVideoReview) -> PractiseVideo:
        if data.status not in REVIEW_STATUSES:
            raise ValidationError("Invalid status")

        video = await self._load(video_id)
        if video is None:
            raise NotFoundError("Practice video not found")

        video.status = data.status
        video.rating = data.rating
        video.reviewed_at = utc_now()

        if data.status == PractiseStatus.APPROVED.value and data.rating >= UNLOCK_MIN_RATING:
            await self._unlock_next_lesson(video.lesson)

        await self.db.flush()
        logger.info(f"Practice video {video.id} {data.status} with rating {data.rating}")
        return await self._load(video.id)

    async def _unlock_next_lesson(self, lesson: Lesson) -> Optional[Lesson]:
        result = await self.db.execute(
            select(Lesson)
            .where(
                Lesson.course_id == lesson.course_id,
                Lesson.position > lesson.position,
            )
            .order_by(Lesson.position, Lesson.id)
            .limit(1)
        )
        next_lesson = result.scalar_one_or_none()
        if next_lesson is not None and next_lesson.is_locked:
            next_lesson.is_locked = False
            logger.info(f"Lesson {next_lesson.id} unlocked")
        return next_lesson

    async def get_status(self, lesson_id: uuid.UUID, user_id: uuid.UUID) -> PractiseVideo:
        video = await self._find(lesson_id, user_id)
        if video is None:
            raise NotFoundError("Practice video not found")
        return video

    async def get_all(self, status: Optional[PractiseStatus] = None) -> List[PractiseVideo]:
        """Review queue, newest first."""
        stmt = select(PractiseVideo).order_by(PractiseVideo.created_at.desc(), PractiseVideo.id)
        if status is not None:
            stmt = stmt.where(PractiseVideo.status == status.value)
        return list((await self.db.execute(stmt)).scalars().all())

"""Live class scheduling. Notification fan-out runs after every create/update."""
from typing import List, Optional
import uuid
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models.live_class import LiveClass, LiveClassAttendee
from app.models.teacher import Teacher
from app.models.user import User
from app.schemas.live_class import LiveClassCreate, LiveClassUpdate
from app.services.notification_service import LiveClassEvent, NotificationService
from app.services.push_gateway import FirebasePushGateway

logger = logging.getLogger(__name__)


class LiveClassService:

    def __init__(self, db: AsyncSession, gateway: Optional[FirebasePushGateway] = None):
        self.db = db
        self.notifications = NotificationService(db, gateway)

    async def _check_users(self, user_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        user_ids = list(dict.fromkeys(user_ids))
        if not user_ids:
            return []
        found = set((await self.db.execute(
            select(User.id).where(User.id.in_(user_ids))
        )).scalars().all())
        missing = [str(uid) for uid in user_ids if uid not in found]
        if missing:
            raise NotFoundError("Some users were not found", errors=missing)
        return user_ids

    async def _notify(self, live_class: LiveClass, event: LiveClassEvent) -> None:
        """
        Best effort: the live class is committed first, so a failed fan-out
        only loses its own notification rows.
        """
        live_class_id = live_class.id
        await self.db.commit()
        try:
            await self.notifications.notify_live_class(live_class, event)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception(f"Notification fan-out failed for live class {live_class_id}")

    async def get_live_classes(
        self,
        teacher_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        include_inactive: bool = False,
    ) -> List[LiveClass]:
        stmt = select(LiveClass).order_by(LiveClass.start_time)
        if not include_inactive:
            stmt = stmt.where(LiveClass.is_active == True)  # noqa: E712
        if teacher_id:
            stmt = stmt.where(LiveClass.teacher_id == teacher_id)
        if user_id:
            stmt = stmt.where(LiveClass.attendees.any(LiveClassAttendee.user_id == user_id))
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_live_class(self, live_class_id: uuid.UUID) -> LiveClass:
        stmt = (
            select(LiveClass)
            .where(LiveClass.id == live_class_id)
            .execution_options(populate_existing=True)
        )
        live_class = (await self.db.execute(stmt)).scalar_one_or_none()
        if live_class is None:
            raise NotFoundError("Live class not found")
        return live_class

    async def create_live_class(self, data: LiveClassCreate) -> LiveClass:
        if await self.db.get(Teacher, data.teacher) is None:
            raise NotFoundError("Teacher not found")
        user_ids = await self._check_users(data.users)

        live_class = LiveClass(
            title=data.title,
            description=data.description,
            teacher_id=data.teacher,
            start_time=data.start_time,
            end_time=data.end_time,
            meet_link=data.meet_link,
            attendees=[LiveClassAttendee(user_id=uid) for uid in user_ids],
        )
        self.db.add(live_class)
        await self.db.flush()
        logger.info(f"Live class created: {live_class.id} ({len(user_ids)} students)")

        live_class_id = live_class.id
        await self._notify(await self.get_live_class(live_class_id), LiveClassEvent.CREATED)
        return await self.get_live_class(live_class_id)

    async def update_live_class(self, live_class_id: uuid.UUID, data: LiveClassUpdate) -> LiveClass:
        live_class = await self.get_live_class(live_class_id)
        values = data.model_dump(exclude_unset=True)

        user_ids = values.pop("users", None)
        if user_ids is not None:
            user_ids = await self._check_users(user_ids)
            current = {a.user_id: a for a in live_class.attendees}
            live_class.attendees = [
                current.get(uid) or LiveClassAttendee(user_id=uid) for uid in user_ids
            ]

        for field, value in values.items():
            setattr(live_class, field, value)
        if live_class.end_time and live_class.end_time <= live_class.start_time:
            raise ValidationError("endTime must be after startTime")

        await self.db.flush()
        live_class = await self.get_live_class(live_class_id)
        await self._notify(live_class, LiveClassEvent.UPDATED)
        return await self.get_live_class(live_class_id)

    async def delete_live_class(self, live_class_id: uuid.UUID) -> None:
        live_class = await self.get_live_class(live_class_id)
        await self.db.delete(live_class)
        await self.db.flush()
        logger.info(f"Live class deleted: {live_class_id}")

"""
Live class notification fan-out and the in-app inbox.

A live class create/update produces:
- one inbox row per enrolled student plus one for the teacher
- one FCM push per distinct registered device token, sent in chunks

Every row and push of a single event shares a notification_batch_id, which
also serves as the push collapse key.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import NotFoundError
from app.db_types import utc_now
from app.models.live_class import LiveClass
from app.models.notification import Notification, RecipientType
from app.models.teacher import Teacher
from app.models.user import User
from app.services.push_gateway import FirebasePushGateway, PushMessage

logger = logging.getLogger(__name__)


class LiveClassEvent(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


PUSH_TYPES = {
    LiveClassEvent.CREATED: "live_class",
    LiveClassEvent.UPDATED: "live_class_update",
}


def format_start_time(value: datetime) -> str:
    return value.strftime("%d %b %Y, %I:%M %p UTC")


def inbox_texts(live_class: LiveClass, event: LiveClassEvent) -> dict:
    """Inbox (title, message) for students and for the teacher."""
    title = live_class.title
    when = format_start_time(live_class.start_time)
    if event == LiveClassEvent.CREATED:
        return {
            RecipientType.STUDENT: (
                f"New Live Class Scheduled: {title}",
                f'Join the live class "{title}" on {when}.',
            ),
            RecipientType.TEACHER: (
                f"Your Live Class Scheduled: {title}",
                f'You have a live class "{title}" scheduled on {when}.',
            ),
        }
    return {
        RecipientType.STUDENT: (
            f"Live Class Updated: {title}",
            f'The live class "{title}" has been updated. It now starts on {when}.',
        ),
        RecipientType.TEACHER: (
            f"Your Live Class Updated: {title}",
            f'Your live class "{title}" has been updated. It now starts on {when}.',
        ),
    }


@dataclass
class FanOutResult:
    batch_id: uuid.UUID
    notifications_created: int = 0
    push_sent: int = 0
    push_failed: int = 0
    invalid_tokens: List[str] = field(default_factory=list)


class NotificationService:
    """Inbox persistence plus push delivery for live class events."""

    def __init__(self, db: AsyncSession, gateway: Optional[FirebasePushGateway] = None):
        self.db = db
        self.gateway = gateway

    # ==================== FAN-OUT ====================

    async def notify_live_class(self, live_class: LiveClass, event: LiveClassEvent) -> FanOutResult:
        """
        Write inbox rows and push to every registered device of the class.

        Push failures never raise: invalid tokens are cleared, a failed chunk
        is logged and the remaining chunks are still sent.
        """
        result = FanOutResult(batch_id=uuid.uuid4())
        texts = inbox_texts(live_class, event)

        student_ids = list(dict.fromkeys(live_class.user_ids))
        students: List[User] = []
        if student_ids:
            students = list((await self.db.execute(
                select(User).where(User.id.in_(student_ids))
            )).scalars().all())
        teacher = await self.db.get(Teacher, live_class.teacher_id)

        recipients: List[Tuple[uuid.UUID, RecipientType]] = [
            (student.id, RecipientType.STUDENT) for student in students
        ]
        if teacher is not None:
            recipients.append((teacher.id, RecipientType.TEACHER))

        for recipient_id, recipient_type in recipients:
            title, message = texts[recipient_type]
            if await self._create_once(live_class, recipient_id, recipient_type, title, message, result.batch_id):
                result.notifications_created += 1
        await self.db.flush()

        tokens = [s.fcm_token for s in students if s.fcm_token]
        if teacher is not None and teacher.fcm_token:
            tokens.append(teacher.fcm_token)
        tokens = list(dict.fromkeys(tokens))

        if tokens and self.gateway is not None:
            await self._push(live_class, event, tokens, result)

        logger.info(
            f"Live class {live_class.id} {event.value}: {result.notifications_created} notifications, "
            f"{result.push_sent} pushes sent, {result.push_failed} failed (batch {result.batch_id})"
        )
        return result

    async def _create_once(
        self,
        live_class: LiveClass,
        recipient_id: uuid.UUID,
        recipient_type: RecipientType,
        title: str,
        message: str,
        batch_id: uuid.UUID,
    ) -> bool:
        existing = await self.db.execute(
            select(Notification.id).where(
                Notification.user_id == recipient_id,
                Notification.live_class_id == live_class.id,
                Notification.title == title,
                Notification.notification_batch_id == batch_id,
            ).limit(1)
        )
        if existing.first() is not None:
            return False

        self.db.add(Notification(
            user_id=recipient_id,
            user_type=recipient_type.value,
            title=title,
            message=message,
            live_class_id=live_class.id,
            notification_batch_id=batch_id,
        ))
        return True

    def _build_messages(
        self,
        live_class: LiveClass,
        event: LiveClassEvent,
        tokens: List[str],
        batch_id: uuid.UUID,
    ) -> List[PushMessage]:
        data = {
            "live_class_id": str(live_class.id),
            "title": live_class.title,
            "start_time": live_class.start_time.isoformat(),
            "type": PUSH_TYPES[event],
            "click_action": "FLUTTER_NOTIFICATION_CLICK",
            "notification_batch_id": str(batch_id),
        }
        body = f'A live class "{live_class.title}" is scheduled for {format_start_time(live_class.start_time)}'
        return [
            PushMessage(
                token=token,
                title=f"Live Class: {live_class.title}",
                body=body,
                data=dict(data),
                collapse_key=str(batch_id),
            )
            for token in tokens
        ]

    async def _push(
        self,
        live_class: LiveClass,
        event: LiveClassEvent,
        tokens: List[str],
        result: FanOutResult,
    ) -> None:
        messages = self._build_messages(live_class, event, tokens, result.batch_id)
        size = max(1, settings.PUSH_BATCH_SIZE)

        for start in range(0, len(messages), size):
            chunk = messages[start:start + size]
            try:
                responses = await self.gateway.send_each(chunk)
            except Exception:
                logger.exception(
                    f"Push chunk {start // size + 1} failed for live class {live_class.id}"
                )
                result.push_failed += len(chunk)
                continue

            for response in responses:
                if response.success:
                    result.push_sent += 1
                    continue
                result.push_failed += 1
                logger.warning(f"Push to token ...{response.token[-8:]} failed: {response.error}")
                if response.is_invalid_token:
                    result.invalid_tokens.append(response.token)

        if result.invalid_tokens:
            await self.clear_tokens(result.invalid_tokens)

    async def clear_tokens(self, tokens: List[str]) -> None:
        """Drop device tokens FCM reported as invalid from every account."""
        for model in (User, Teacher):
            await self.db.execute(
                update(model)
                .where(model.fcm_token.in_(tokens))
                .values(fcm_token=None, fcm_token_updated_at=utc_now())
                .execution_options(synchronize_session=False)
            )
        logger.info(f"Cleared {len(tokens)} invalid FCM token(s)")

    # ==================== INBOX ====================

    async def get_notifications(
        self,
        user_id: uuid.UUID,
        user_type: Optional[str] = None,
        unread_only: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Notification], int]:
        """Newest first. Returns (page of notifications, total matching)."""
        filters = [Notification.user_id == user_id]
        if user_type:
            filters.append(Notification.user_type == user_type)
        if unread_only:
            filters.append(Notification.is_read == False)  # noqa: E712

        total = (await self.db.execute(
            select(func.count(Notification.id)).where(*filters)
        )).scalar() or 0

        stmt = (
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        notifications = list((await self.db.execute(stmt)).scalars().all())
        return notifications, total

    async def get_unread_count(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
        )
        return result.scalar() or 0

    async def get_notification(self, notification_id: uuid.UUID) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    async def mark_as_read(self, notification_id: uuid.UUID) -> Notification:
        notification = await self.get_notification(notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
            await self.db.flush()
        return notification

    async def mark_all_as_read(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
            .values(is_read=True, read_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_notification(self, notification_id: uuid.UUID) -> None:
        notification = await self.get_notification(notification_id)
        await self.db.delete(notification)
        await self.db.flush()

    async def cleanup_read(self, days: int = 30) -> int:
        """Delete read notifications older than `days`."""
        cutoff = utc_now() - timedelta(days=days)
        result = await self.db.execute(
            delete(Notification).where(
                Notification.is_read == True,  # noqa: E712
                Notification.created_at < cutoff,
            )
        )
        logger.info(f"Deleted {result.rowcount} read notifications older than {days} days")
        return result.rowcount

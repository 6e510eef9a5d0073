"""In-app notification inbox for students and teachers."""
import uuid

from fastapi import APIRouter, Query

from app.api.deps import DB
from app.models.notification import RecipientType
from app.schemas.base import DataResponse, MessageResponse, PaginationMeta
from app.schemas.notification import (
    NotificationResponse,
    NotificationListResponse,
    UnreadCountResponse,
    CleanupResponse,
)
from app.services.notification_service import NotificationService

router = APIRouter(tags=["Notifications"])


async def _inbox(
    db,
    owner_id: uuid.UUID,
    user_type: str,
    unread_only: bool,
    page: int,
    limit: int,
) -> NotificationListResponse:
    service = NotificationService(db)
    notifications, total = await service.get_notifications(
        owner_id, user_type=user_type, unread_only=unread_only, page=page, limit=limit
    )
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=await service.get_unread_count(owner_id),
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.get("/notifications/user/{user_id}", response_model=NotificationListResponse)
async def get_user_notifications(
    user_id: uuid.UUID,
    db: DB,
    unread_only: bool = Query(False, alias="unreadOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """A student's notifications, newest first."""
    return await _inbox(db, user_id, RecipientType.STUDENT.value, unread_only, page, limit)


@router.get("/notifications/teacher/{teacher_id}", response_model=NotificationListResponse)
async def get_teacher_notifications(
    teacher_id: uuid.UUID,
    db: DB,
    unread_only: bool = Query(False, alias="unreadOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """A teacher's notifications, newest first."""
    return await _inbox(db, teacher_id, RecipientType.TEACHER.value, unread_only, page, limit)


@router.get("/notifications/user/{user_id}/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(user_id: uuid.UUID, db: DB):
    count = await NotificationService(db).get_unread_count(user_id)
    return UnreadCountResponse(unread_count=count)


@router.put("/notifications/user/{user_id}/read-all", response_model=MessageResponse)
async def mark_all_as_read(user_id: uuid.UUID, db: DB):
    count = await NotificationService(db).mark_all_as_read(user_id)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.put("/notifications/{notification_id}/read", response_model=DataResponse[NotificationResponse])
async def mark_as_read(notification_id: uuid.UUID, db: DB):
    notification = await NotificationService(db).mark_as_read(notification_id)
    return DataResponse(
        message="Notification marked as read",
        data=NotificationResponse.model_validate(notification),
    )


@router.delete("/notifications/cleanup", response_model=CleanupResponse)
async def cleanup_notifications(db: DB, days: int = Query(30, ge=1, le=365)):
    """Purge read notifications older than `days` (admin)."""
    deleted = await NotificationService(db).cleanup_read(days)
    return CleanupResponse(
        message=f"Deleted read notifications older than {days} days",
        deleted_count=deleted,
    )


@router.delete("/notifications/{notification_id}", response_model=MessageResponse)
async def delete_notification(notification_id: uuid.UUID, db: DB):
    await NotificationService(db).delete_notification(notification_id)
    return MessageResponse(message="Notification deleted successfully")

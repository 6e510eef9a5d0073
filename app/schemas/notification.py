from datetime import datetime
from typing import Optional, List
import uuid

from pydantic import BaseModel

from app.schemas.base import BaseResponseSchema, PaginationMeta


class NotificationResponse(BaseResponseSchema):
    id: uuid.UUID
    user_id: uuid.UUID
    user_type: str
    title: str
    message: str
    live_class_id: Optional[uuid.UUID] = None
    notification_batch_id: Optional[uuid.UUID] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    success: bool = True
    data: List[NotificationResponse]
    unread_count: int
    pagination: PaginationMeta


class UnreadCountResponse(BaseModel):
    success: bool = True
    unread_count: int


class CleanupResponse(BaseModel):
    success: bool = True
    message: str
    deleted_count: int

from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, Field

from app.schemas.base import BaseCreateSchema, BaseResponseSchema


class PractiseVideoUpload(BaseCreateSchema):
    """Both ids are checked by the service so the error names them together."""
    lesson_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    video_url: str = Field(..., min_length=1, max_length=500)


class PractiseVideoReview(BaseCreateSchema):
    """Teacher verdict; status is checked by the service."""
    status: str
    rating: int = Field(0, ge=0, le=5)


class PractiseVideoResponse(BaseResponseSchema):
    id: uuid.UUID
    lesson_id: uuid.UUID
    user_id: uuid.UUID
    video_url: str
    status: str
    rating: int
    reviewed_at: Optional[datetime] = None
    lesson_title: Optional[str] = None
    user_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PractiseVideoStatus(BaseModel):
    success: bool = True
    status: str
    rating: int

from datetime import datetime
from typing import Optional, List
import uuid

from pydantic import Field, model_validator

from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema, UTCDatetime


class LiveClassCreate(BaseCreateSchema):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    teacher: uuid.UUID
    users: List[uuid.UUID] = Field(default_factory=list)
    start_time: UTCDatetime
    end_time: Optional[UTCDatetime] = None
    meet_link: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time and self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class LiveClassUpdate(BaseUpdateSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    users: Optional[List[uuid.UUID]] = None
    start_time: Optional[UTCDatetime] = None
    end_time: Optional[UTCDatetime] = None
    meet_link: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class LiveClassResponse(BaseResponseSchema):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    teacher_id: uuid.UUID
    user_ids: List[uuid.UUID]
    start_time: datetime
    end_time: Optional[datetime] = None
    meet_link: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
import uuid

from pydantic import Field

from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


class LessonCreate(BaseCreateSchema):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    video_urls: List[str] = Field(default_factory=list)
    position: Optional[int] = Field(None, ge=0)
    is_locked: bool = False


class LessonUpdate(BaseUpdateSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    video_urls: Optional[List[str]] = None
    position: Optional[int] = Field(None, ge=0)
    is_locked: Optional[bool] = None


class LessonResponse(BaseResponseSchema):
    id: uuid.UUID
    course_id: uuid.UUID
    title: str
    description: Optional[str] = None
    video_urls: List[str]
    position: int
    is_locked: bool
    created_at: datetime


class CourseCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    instructor: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = Field(None, max_length=500)
    category_id: Optional[uuid.UUID] = None


class CourseUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    instructor: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = Field(None, max_length=500)
    category_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class CourseResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: float
    instructor: Optional[str] = None
    image: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CourseDetailResponse(CourseResponse):
    lessons: List[LessonResponse] = []

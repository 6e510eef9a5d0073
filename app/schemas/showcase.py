"""Home-screen content: performances, audience reviews and music quotes."""
from datetime import datetime
from typing import Optional
import uuid

from pydantic import Field, model_validator

from app.models.showcase import SkillLevel
from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


# ==================== Performances ====================

class PerformanceCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1, max_length=200)
    skill_level: SkillLevel
    video: Optional[str] = Field(None, max_length=500)
    video_link: Optional[str] = Field(None, max_length=500)
    photo: str = Field(..., min_length=1, max_length=500)
    thumbnail: str = Field(..., min_length=1, max_length=500)

    @model_validator(mode="after")
    def check_video_source(self) -> "PerformanceCreate":
        if not self.video and not self.video_link:
            raise ValueError("Either video or videoLink is required")
        return self


class PerformanceUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    skill_level: Optional[SkillLevel] = None
    video: Optional[str] = Field(None, max_length=500)
    video_link: Optional[str] = Field(None, max_length=500)
    photo: Optional[str] = Field(None, min_length=1, max_length=500)
    thumbnail: Optional[str] = Field(None, min_length=1, max_length=500)


class PerformanceResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    title: str
    skill_level: str
    video: Optional[str] = None
    video_link: Optional[str] = None
    photo: str
    thumbnail: str
    created_at: datetime
    updated_at: datetime


# ==================== Audience reviews ====================

class AudienceReviewCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    skill_level: SkillLevel
    video: str = Field(..., min_length=1, max_length=500)
    photo: str = Field(..., min_length=1, max_length=500)
    thumbnail: str = Field(..., min_length=1, max_length=500)


class AudienceReviewUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    skill_level: Optional[SkillLevel] = None
    video: Optional[str] = Field(None, min_length=1, max_length=500)
    photo: Optional[str] = Field(None, min_length=1, max_length=500)
    thumbnail: Optional[str] = Field(None, min_length=1, max_length=500)


class AudienceReviewResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    description: str
    skill_level: str
    video: str
    photo: str
    thumbnail: str
    created_at: datetime
    updated_at: datetime


# ==================== Music quotes ====================

class MusicQuoteCreate(BaseCreateSchema):
    text: str = Field(..., min_length=1)
    artist: str = Field(..., min_length=1, max_length=200)
    genre: Optional[str] = Field(None, max_length=100)
    source: Optional[str] = Field(None, max_length=200)


class MusicQuoteUpdate(BaseUpdateSchema):
    text: Optional[str] = Field(None, min_length=1)
    artist: Optional[str] = Field(None, min_length=1, max_length=200)
    genre: Optional[str] = Field(None, max_length=100)
    source: Optional[str] = Field(None, max_length=200)


class MusicQuoteResponse(BaseResponseSchema):
    id: uuid.UUID
    text: str
    artist: str
    genre: Optional[str] = None
    source: Optional[str] = None
    created_at: datetime
    updated_at: datetime

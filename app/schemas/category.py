from pydantic import Field

from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema
from typing import Optional, List
from datetime import datetime
import uuid


class CategoryCreate(BaseCreateSchema):
    """Category creation schema."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    sub_categories: List[str] = Field(default_factory=list)
    is_trending: bool = False


class CategoryUpdate(BaseUpdateSchema):
    """Category update schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    sub_categories: Optional[List[str]] = None
    is_trending: Optional[bool] = None
    is_active: Optional[bool] = None


class CategoryResponse(BaseResponseSchema):
    """Category response schema."""
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    sub_categories: List[str]
    is_trending: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

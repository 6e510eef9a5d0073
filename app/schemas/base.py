"""
Base Schema Classes for Pydantic Models

RULE: All response schemas that use `from_attributes=True` MUST inherit from BaseResponseSchema.
Input schemas accept both camelCase (mobile app) and snake_case keys.
"""

from datetime import datetime
from math import ceil
from typing import Annotated, Generic, Optional, TypeVar
from uuid import UUID
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.db_types import ensure_utc


T = TypeVar("T")


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Usage:
        class InstrumentResponse(BaseResponseSchema):
            id: UUID
            name: str
            category_id: Optional[UUID] = None
    """
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.

    ``customerModel`` and ``customer_model`` both populate ``customer_model``.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        # Allow extra fields to be ignored (forward compatibility)
        extra='ignore',
    )


class BaseUpdateSchema(BaseCreateSchema):
    """
    Base class for update/patch schemas.

    All fields are optional by default for partial updates; services apply
    ``model_dump(exclude_unset=True)``.
    """


class PaginationMeta(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    limit: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        pages = ceil(total / limit) if total > 0 else 0
        return cls(
            current_page=page,
            total_pages=pages,
            total_items=total,
            limit=limit,
            has_next_page=page < pages,
            has_prev_page=page > 1,
        )


class DataResponse(BaseModel, Generic[T]):
    """Standard success envelope."""
    success: bool = True
    message: Optional[str] = None
    data: T


class PaginatedResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: list[T]
    pagination: PaginationMeta


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# Type aliases for common UUID patterns
OptionalUUID = Optional[UUID]

# Naive input datetimes are taken to be UTC
UTCDatetime = Annotated[datetime, AfterValidator(ensure_utc)]

"""Offer / coupon schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

from pydantic import BaseModel, Field, model_validator

from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema, UTCDatetime


class OfferCreate(BaseCreateSchema):
    coupon_code: str = Field(..., min_length=1, max_length=50)
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    discount_percentage: Optional[Decimal] = Field(None, gt=0, le=100)
    discount_amount: Optional[Decimal] = Field(None, gt=0)
    is_active: bool = True
    valid_from: Optional[UTCDatetime] = None
    valid_until: UTCDatetime
    usage_limit: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_discount_and_window(self):
        if self.discount_percentage is None and self.discount_amount is None:
            raise ValueError("Either discountPercentage or discountAmount is required")
        if self.valid_from and self.valid_from > self.valid_until:
            raise ValueError("validFrom must be before validUntil")
        return self


class OfferUpdate(BaseUpdateSchema):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    discount_percentage: Optional[Decimal] = Field(None, gt=0, le=100)
    discount_amount: Optional[Decimal] = Field(None, gt=0)
    is_active: Optional[bool] = None
    valid_from: Optional[UTCDatetime] = None
    valid_until: Optional[UTCDatetime] = None
    usage_limit: Optional[int] = Field(None, ge=1)


class OfferResponse(BaseResponseSchema):
    id: uuid.UUID
    coupon_code: str
    title: Optional[str] = None
    description: Optional[str] = None
    discount_percentage: Optional[float] = None
    discount_amount: Optional[float] = None
    is_active: bool
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = None
    used_count: int
    created_at: datetime


class CouponValidateRequest(BaseCreateSchema):
    coupon_code: str = Field(..., min_length=1, max_length=50)
    amount: Decimal = Field(..., gt=0)


class CouponValidateResponse(BaseModel):
    success: bool = True
    message: str
    coupon_code_applied: Optional[str] = None
    offer_id: Optional[uuid.UUID] = None
    discount_amount: float
    final_amount: float

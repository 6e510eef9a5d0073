from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

from pydantic import Field

from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


class InstrumentCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    category_id: Optional[uuid.UUID] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(..., ge=0)
    gst: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    delivery_fee: Decimal = Field(Decimal("0"), ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    in_stock: bool = True


class InstrumentUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    category_id: Optional[uuid.UUID] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0)
    gst: Optional[Decimal] = Field(None, ge=0)
    tax: Optional[Decimal] = Field(None, ge=0)
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    discount: Optional[Decimal] = Field(None, ge=0)
    in_stock: Optional[bool] = None
    is_active: Optional[bool] = None


class InstrumentResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    category_name: Optional[str] = None
    subcategory: Optional[str] = None
    price: float
    gst: float
    tax: float
    delivery_fee: float
    discount: float
    in_stock: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

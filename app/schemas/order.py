"""
Order schemas.

OrderCreate is deliberately loose: the order service reports every missing or
malformed field at once, so neither required-ness nor numeric types are
enforced here.
"""
from datetime import datetime
from typing import Any, Optional, List, Union
import uuid

from pydantic import BaseModel, Field

from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema, UTCDatetime


class OrderItemInput(BaseCreateSchema):
    instrument_id: Optional[Any] = None
    quantity: Optional[Any] = None
    price: Optional[Any] = None


class OrderCreate(BaseCreateSchema):
    customer: Optional[Any] = None
    customer_model: Optional[Any] = None
    items: Optional[List[OrderItemInput]] = None
    total: Optional[Any] = None
    address: Optional[Any] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class OrderUpdate(BaseUpdateSchema):
    status: Optional[str] = None
    address: Optional[Union[dict[str, Any], str]] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    tracking_number: Optional[str] = Field(None, max_length=100)
    estimated_delivery: Optional[UTCDatetime] = None
    updated_by: Optional[str] = Field(None, max_length=100)


class OrderItemResponse(BaseResponseSchema):
    id: uuid.UUID
    instrument_id: uuid.UUID
    instrument_name: str
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    quantity: int
    price: float
    gst: float
    tax: float
    delivery_fee: float
    discount: float
    item_total: float


class OrderStatusHistoryResponse(BaseResponseSchema):
    status: str
    changed_at: datetime
    changed_by: Optional[str] = None
    notes: Optional[str] = None


class OrderResponse(BaseResponseSchema):
    id: uuid.UUID
    order_number: str
    customer_id: uuid.UUID
    customer_model: str
    customer: Optional[dict[str, Any]] = None
    items: List[OrderItemResponse]
    total: float
    status: str
    address: Union[dict[str, Any], str]
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    status_history: List[OrderStatusHistoryResponse]
    is_active: bool
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ==================== Statistics ====================

class StatusStat(BaseModel):
    status: str
    count: int
    total_amount: float
    average_amount: float


class TrendPoint(BaseModel):
    period: str
    count: int
    total_amount: float


class CategoryStat(BaseModel):
    category: Optional[str] = None
    quantity: int
    revenue: float


class CustomerTypeStat(BaseModel):
    customer_model: str
    count: int
    total_amount: float


class OrderStats(BaseModel):
    total_orders: int
    total_revenue: float
    by_status: List[StatusStat]
    trend: List[TrendPoint]
    top_categories: List[CategoryStat]
    by_customer_type: List[CustomerTypeStat]

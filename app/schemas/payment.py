"""Payment schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, List, Union
import uuid

from pydantic import BaseModel, Field, field_validator

from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


def mask_payment_details(details: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Card number reduced to its last four digits, cvv removed."""
    masked = dict(details or {})
    masked.pop("cvv", None)
    card_number = masked.get("card_number")
    if card_number:
        masked["card_number"] = "**** **** **** " + str(card_number)[-4:]
    return masked


class PaymentDetailsInput(BaseCreateSchema):
    """Method-specific fields; which are required depends on the payment method."""
    card_number: Optional[str] = None
    card_holder_name: Optional[str] = None
    expiry_month: Optional[Union[str, int]] = None
    expiry_year: Optional[Union[str, int]] = None
    cvv: Optional[str] = None
    upi_id: Optional[str] = None
    bank_name: Optional[str] = None
    wallet_type: Optional[str] = None


class BreakdownRequest(BaseCreateSchema):
    coupon_code: Optional[str] = None


class PaymentBreakdown(BaseModel):
    course_name: str
    original_base_amount: float
    base_amount: float
    discount_amount: float
    coupon_code_applied: Optional[str] = None
    tax_amount: float
    gst_amount: float
    total_amount: float
    tax_rate: float
    gst_rate: float


class ProcessPaymentRequest(BaseCreateSchema):
    course_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    payment_method: Optional[str] = None
    payment_details: Optional[PaymentDetailsInput] = None
    coupon_code: Optional[str] = None


class PaymentStatusUpdate(BaseCreateSchema):
    status: str


class PaymentAmountsUpdate(BaseUpdateSchema):
    base_amount: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    gst_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    discount_applied: Optional[Decimal] = None
    coupon_code_applied: Optional[str] = Field(None, max_length=50)
    payment_method: Optional[str] = None
    status: Optional[str] = None


class CourseSummary(BaseResponseSchema):
    id: uuid.UUID
    name: str
    instructor: Optional[str] = None
    image: Optional[str] = None
    price: float


class UserSummary(BaseResponseSchema):
    id: uuid.UUID
    name: str
    email: Optional[str] = None
    mobile: str


class PaymentResponse(BaseResponseSchema):
    id: uuid.UUID
    transaction_id: str
    course_id: uuid.UUID
    user_id: uuid.UUID
    course: Optional[CourseSummary] = None
    user: Optional[UserSummary] = None
    base_amount: float
    discount_applied: float
    coupon_code_applied: Optional[str] = None
    tax_rate: float
    gst_rate: float
    tax_amount: float
    gst_amount: float
    total_amount: float
    payment_method: str
    payment_details: dict[str, Any]
    status: str
    payment_date: datetime
    created_at: datetime

    @field_validator("payment_details", mode="after")
    @classmethod
    def mask_details(cls, v: dict[str, Any]) -> dict[str, Any]:
        return mask_payment_details(v)


class PaymentProcessedResponse(BaseModel):
    success: bool = True
    message: str
    payment: PaymentResponse


class PurchasedCourse(BaseModel):
    course: CourseSummary
    transaction_id: str
    total_amount: float
    payment_date: datetime


class MethodBreakdown(BaseModel):
    count: int
    total_amount: float


class PaymentReport(BaseModel):
    total_payments: int
    total_base_amount: float
    total_tax_amount: float
    total_gst_amount: float
    total_amount: float
    total_discount_applied: float
    payment_method_breakdown: dict[str, MethodBreakdown]
    payments: List[PaymentResponse]

"""
Course payment API endpoints.

Checkout prices the course server-side (coupon, 10% tax, 18% GST) and
records a completed payment. Card numbers are masked on every read path.
"""
from datetime import datetime
from typing import List, Optional
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB
from app.core.enum_utils import enum_values, to_enum
from app.core.exceptions import ValidationError
from app.models.payment import PaymentStatus
from app.schemas.base import DataResponse
from app.schemas.payment import (
    BreakdownRequest,
    PaymentBreakdown,
    ProcessPaymentRequest,
    PaymentProcessedResponse,
    PaymentResponse,
    PaymentStatusUpdate,
    PaymentAmountsUpdate,
    PaymentReport,
    PurchasedCourse,
    CourseSummary,
)
from app.services.payment_service import PaymentService

router = APIRouter(tags=["Payments"])


def _check_status_filter(value: Optional[str]) -> Optional[str]:
    if value and to_enum(value, PaymentStatus) is None:
        raise ValidationError(
            "Invalid status value.",
            errors=[f"status must be one of: {', '.join(enum_values(PaymentStatus))}"],
        )
    return value


@router.post("/calculate-breakdown/{course_id}", response_model=DataResponse[PaymentBreakdown])
async def calculate_breakdown(
    course_id: uuid.UUID,
    db: DB,
    data: Optional[BreakdownRequest] = None,
):
    """Price preview for a course, optionally with a coupon. Nothing is redeemed."""
    coupon_code = data.coupon_code if data else None
    breakdown = await PaymentService(db).calculate_breakdown(course_id, coupon_code)
    return DataResponse(data=PaymentBreakdown(**breakdown.to_dict()))


@router.post(
    "/process-payment",
    response_model=PaymentProcessedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def process_payment(data: ProcessPaymentRequest, db: DB):
    """
    Purchase a course.

    - 400 when required fields or method-specific details are missing
    - 400 when the user already owns the course or the coupon is unusable
    - 404 when the course does not exist
    """
    payment = await PaymentService(db).process_payment(
        course_id=data.course_id,
        user_id=data.user_id,
        payment_method=data.payment_method,
        payment_details=data.payment_details,
        coupon_code=data.coupon_code,
    )
    return PaymentProcessedResponse(
        message="Payment processed successfully.",
        payment=PaymentResponse.model_validate(payment),
    )


@router.get("/history/{user_id}", response_model=DataResponse[List[PaymentResponse]])
async def payment_history(user_id: uuid.UUID, db: DB):
    payments = await PaymentService(db).get_user_history(user_id)
    return DataResponse(data=[PaymentResponse.model_validate(p) for p in payments])


@router.get("/purchased-courses/{user_id}", response_model=DataResponse[List[PurchasedCourse]])
async def purchased_courses(user_id: uuid.UUID, db: DB):
    payments = await PaymentService(db).get_purchased_courses(user_id)
    return DataResponse(data=[
        PurchasedCourse(
            course=CourseSummary.model_validate(p.course),
            transaction_id=p.transaction_id,
            total_amount=float(p.total_amount),
            payment_date=p.payment_date,
        )
        for p in payments
    ])


@router.get("/payments", response_model=DataResponse[List[PaymentResponse]])
async def list_payments(
    db: DB,
    status_filter: Optional[str] = Query(None, alias="status"),
    payment_method: Optional[str] = Query(None, alias="paymentMethod"),
):
    """All payments, newest first (admin)."""
    payments = await PaymentService(db).get_payments(
        status=_check_status_filter(status_filter),
        payment_method=payment_method,
    )
    return DataResponse(data=[PaymentResponse.model_validate(p) for p in payments])


@router.get("/payments/report", response_model=DataResponse[PaymentReport])
async def payment_report(
    db: DB,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    status_filter: Optional[str] = Query(None, alias="status"),
    payment_method: Optional[str] = Query(None, alias="paymentMethod"),
):
    """Totals and per-method breakdown; all zeros when nothing matches."""
    report = await PaymentService(db).generate_report(
        status=_check_status_filter(status_filter),
        payment_method=payment_method,
        date_from=start_date,
        date_to=end_date,
    )
    report["payments"] = [PaymentResponse.model_validate(p) for p in report["payments"]]
    return DataResponse(data=PaymentReport(**report))


@router.put("/payments/{payment_id}/status", response_model=DataResponse[PaymentResponse])
async def update_payment_status(payment_id: uuid.UUID, data: PaymentStatusUpdate, db: DB):
    payment = await PaymentService(db).update_status(payment_id, data.status)
    return DataResponse(
        message="Payment status updated successfully.",
        data=PaymentResponse.model_validate(payment),
    )


@router.put("/payments/{payment_id}", response_model=DataResponse[PaymentResponse])
async def update_payment(payment_id: uuid.UUID, data: PaymentAmountsUpdate, db: DB):
    """Admin correction; base - discount + tax + GST must equal the total."""
    payment = await PaymentService(db).update_details(payment_id, data)
    return DataResponse(
        message="Payment updated successfully.",
        data=PaymentResponse.model_validate(payment),
    )

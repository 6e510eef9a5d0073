"""
Course purchase pricing and payment records.

Amounts: the stored base_amount is the course price; tax and GST are charged
on the discounted price:

    taxable = price - discount
    tax     = round(taxable * 10%)
    gst     = round(taxable * 18%)
    total   = taxable + tax + gst
"""
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import time
import uuid
import logging

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.enum_utils import enum_values, to_enum
from app.core.exceptions import ValidationError, NotFoundError, ConflictError
from app.core.security import random_base36
from app.db_types import ensure_utc, utc_now
from app.models.course import Course
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.schemas.payment import PaymentDetailsInput, PaymentAmountsUpdate
from app.services.coupon_service import CouponService, CouponResult, round_currency

logger = logging.getLogger(__name__)

TAX_RATE = Decimal("10")
GST_RATE = Decimal("18")
AMOUNT_TOLERANCE = Decimal("0.01")

CARD_METHODS = {PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD}


class PriceBreakdown:
    """Derived amounts for one course purchase."""

    def __init__(self, course: Course, coupon: CouponResult):
        self.course = course
        self.coupon = coupon
        self.original_base_amount = Decimal(course.price)
        self.discount_amount = coupon.discount_amount
        self.base_amount = self.original_base_amount - self.discount_amount
        self.tax_amount = round_currency(self.base_amount * TAX_RATE / 100)
        self.gst_amount = round_currency(self.base_amount * GST_RATE / 100)
        self.total_amount = self.base_amount + self.tax_amount + self.gst_amount

    def to_dict(self) -> dict:
        return {
            "course_name": self.course.name,
            "original_base_amount": float(self.original_base_amount),
            "base_amount": float(self.base_amount),
            "discount_amount": float(self.discount_amount),
            "coupon_code_applied": self.coupon.coupon_code_applied,
            "tax_amount": float(self.tax_amount),
            "gst_amount": float(self.gst_amount),
            "total_amount": float(self.total_amount),
            "tax_rate": float(TAX_RATE),
            "gst_rate": float(GST_RATE),
        }


def generate_transaction_id() -> str:
    """TXN-<epoch ms>-<13 random lowercase base36 chars>"""
    return f"TXN-{int(time.time() * 1000)}-{random_base36(13)}"


def validate_payment_details(method: PaymentMethod, details: Optional[PaymentDetailsInput]) -> None:
    """Raise ValidationError unless the fields the method needs are present."""
    if details is None:
        raise ValidationError("Payment details are required.")

    if method in CARD_METHODS:
        if not all([
            details.card_number,
            details.card_holder_name,
            details.expiry_month,
            details.expiry_year,
            details.cvv,
        ]):
            raise ValidationError(
                "Card number, holder name, expiry date, and CVV are required for card payments."
            )
    elif method == PaymentMethod.UPI:
        if not details.upi_id:
            raise ValidationError("UPI ID is required for UPI payments.")
    elif method == PaymentMethod.NET_BANKING:
        if not details.bank_name:
            raise ValidationError("Bank name is required for net banking.")
    elif method == PaymentMethod.WALLET:
        if not details.wallet_type:
            raise ValidationError("Wallet type is required for wallet payments.")


def sanitize_payment_details(method: PaymentMethod, details: PaymentDetailsInput) -> dict:
    """Fields persisted for a payment. CVV is never stored."""
    stored = details.model_dump(exclude_none=True, exclude={"cvv"})
    if method in CARD_METHODS:
        stored["card_number"] = "".join(str(details.card_number).split())
        stored["expiry_month"] = str(details.expiry_month)
        stored["expiry_year"] = str(details.expiry_year)
    return stored


class PaymentService:
    """Course purchases: breakdown, checkout, history and admin reporting."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.coupons = CouponService(db)

    async def _get_course(self, course_id: uuid.UUID) -> Course:
        course = await self.db.get(Course, course_id)
        if course is None:
            raise NotFoundError("Course not found.")
        return course

    async def calculate_breakdown(
        self,
        course_id: uuid.UUID,
        coupon_code: Optional[str] = None
    ) -> PriceBreakdown:
        course = await self._get_course(course_id)
        coupon = await self.coupons.apply_coupon(coupon_code, Decimal(course.price))
        return PriceBreakdown(course, coupon)

    async def has_completed_purchase(self, user_id: uuid.UUID, course_id: uuid.UUID) -> bool:
        stmt = select(Payment.id).where(
            Payment.user_id == user_id,
            Payment.course_id == course_id,
            Payment.status == PaymentStatus.COMPLETED.value,
        ).limit(1)
        return (await self.db.execute(stmt)).first() is not None

    async def process_payment(
        self,
        course_id: Optional[uuid.UUID],
        user_id: Optional[uuid.UUID],
        payment_method: Optional[str],
        payment_details: Optional[PaymentDetailsInput],
        coupon_code: Optional[str] = None,
    ) -> Payment:
        """
        Price and record a completed course purchase.

        The duplicate check gives the friendly error; the partial unique index
        on (user_id, course_id) for completed payments is what actually holds
        under concurrent requests.
        """
        if not course_id or not user_id or not payment_method:
            raise ValidationError("Course ID, User ID, and Payment Method are required.")

        if await self.has_completed_purchase(user_id, course_id):
            logger.info("Course %s already purchased by user %s", course_id, user_id)
            raise ConflictError("Course already purchased by this user.")

        course = await self._get_course(course_id)

        method = to_enum(payment_method, PaymentMethod)
        if method is None:
            raise ValidationError("Invalid payment method.")
        validate_payment_details(method, payment_details)

        breakdown = PriceBreakdown(
            course,
            await self.coupons.apply_coupon(coupon_code, Decimal(course.price)),
        )

        payment = Payment(
            course_id=course.id,
            user_id=user_id,
            base_amount=breakdown.original_base_amount,
            discount_applied=breakdown.discount_amount,
            coupon_code_applied=breakdown.coupon.coupon_code_applied,
            offer_id=breakdown.coupon.offer_id,
            tax_rate=TAX_RATE,
            gst_rate=GST_RATE,
            tax_amount=breakdown.tax_amount,
            gst_amount=breakdown.gst_amount,
            total_amount=breakdown.total_amount,
            payment_method=method.value,
            payment_details=sanitize_payment_details(method, payment_details),
            status=PaymentStatus.COMPLETED.value,
            transaction_id=generate_transaction_id(),
            payment_date=utc_now(),
        )

        try:
            if breakdown.coupon.offer_id:
                await self.coupons.redeem(breakdown.coupon.offer_id)
            self.db.add(payment)
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Duplicate purchase rejected by constraint for user {user_id}: {e}")
            raise ConflictError("Course already purchased by this user.")

        logger.info(
            f"Payment {payment.transaction_id} completed: course {course.id}, user {user_id}, "
            f"total {breakdown.total_amount}"
        )
        return await self.get_payment(payment.id)

    # ==================== READ ====================

    async def get_payment(self, payment_id: uuid.UUID) -> Payment:
        stmt = (
            select(Payment)
            .where(Payment.id == payment_id)
            .execution_options(populate_existing=True)
        )
        payment = (await self.db.execute(stmt)).scalar_one_or_none()
        if payment is None:
            raise NotFoundError("Payment not found.")
        return payment

    async def get_user_history(self, user_id: uuid.UUID) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.user_id == user_id)
            .order_by(Payment.payment_date.desc())
        )
        payments = list((await self.db.execute(stmt)).scalars().all())
        if not payments:
            raise NotFoundError("No payment history found for this user.")
        return payments

    async def get_purchased_courses(self, user_id: uuid.UUID) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(
                Payment.user_id == user_id,
                Payment.status == PaymentStatus.COMPLETED.value,
            )
            .order_by(Payment.payment_date.desc())
        )
        payments = list((await self.db.execute(stmt)).scalars().all())
        if not payments:
            raise NotFoundError("No purchased courses found for this user.")
        return payments

    async def get_payments(
        self,
        status: Optional[str] = None,
        payment_method: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Payment]:
        filters = []
        if status:
            filters.append(Payment.status == status)
        if payment_method:
            filters.append(Payment.payment_method == payment_method)
        if date_from:
            filters.append(Payment.payment_date >= ensure_utc(date_from))
        if date_to:
            filters.append(Payment.payment_date <= ensure_utc(date_to))

        stmt = select(Payment).order_by(Payment.payment_date.desc())
        if filters:
            stmt = stmt.where(and_(*filters))
        return list((await self.db.execute(stmt)).scalars().all())

    async def generate_report(
        self,
        status: Optional[str] = None,
        payment_method: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> dict:
        """Totals and a per-method breakdown over the filtered payments."""
        payments = await self.get_payments(status, payment_method, date_from, date_to)

        breakdown = defaultdict(lambda: {"count": 0, "total_amount": Decimal("0")})
        for payment in payments:
            entry = breakdown[payment.payment_method]
            entry["count"] += 1
            entry["total_amount"] += payment.total_amount

        def total_of(field: str) -> float:
            return float(sum((getattr(p, field) for p in payments), Decimal("0")))

        return {
            "total_payments": len(payments),
            "total_base_amount": total_of("base_amount"),
            "total_tax_amount": total_of("tax_amount"),
            "total_gst_amount": total_of("gst_amount"),
            "total_amount": total_of("total_amount"),
            "total_discount_applied": total_of("discount_applied"),
            "payment_method_breakdown": {
                method: {"count": entry["count"], "total_amount": float(entry["total_amount"])}
                for method, entry in breakdown.items()
            },
            "payments": payments,
        }

    # ==================== ADMIN UPDATES ====================

    async def update_status(self, payment_id: uuid.UUID, status: str) -> Payment:
        new_status = to_enum(status, PaymentStatus)
        if new_status is None:
            raise ValidationError("Invalid status value.")

        payment = await self.get_payment(payment_id)
        payment.status = new_status.value
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Course already purchased by this user.")
        logger.info(f"Payment {payment.transaction_id} status set to {new_status.value}")
        return await self.get_payment(payment_id)

    async def update_details(self, payment_id: uuid.UUID, data: PaymentAmountsUpdate) -> Payment:
        """Admin correction of amounts. The amounts must still add up."""
        for field, label in (
            ("base_amount", "Base amount"),
            ("tax_amount", "Tax amount"),
            ("gst_amount", "GST amount"),
            ("total_amount", "Total amount"),
        ):
            value = getattr(data, field)
            if value is None or value < 0:
                raise ValidationError(f"{label} is required and must be non-negative.")

        method = to_enum(data.payment_method, PaymentMethod)
        if method is None:
            raise ValidationError(
                "Invalid payment method.",
                errors=[f"Allowed: {', '.join(enum_values(PaymentMethod))}"],
            )
        status = to_enum(data.status, PaymentStatus)
        if status is None:
            raise ValidationError("Invalid status.")

        discount = data.discount_applied or Decimal("0")
        expected_total = data.base_amount - discount + data.tax_amount + data.gst_amount
        if abs(expected_total - data.total_amount) > AMOUNT_TOLERANCE:
            raise ValidationError(
                "Total amount does not match calculated sum (base - discount + tax + GST)."
            )

        payment = await self.get_payment(payment_id)
        payment.base_amount = data.base_amount
        payment.tax_amount = data.tax_amount
        payment.gst_amount = data.gst_amount
        payment.total_amount = data.total_amount
        payment.discount_applied = discount
        payment.coupon_code_applied = data.coupon_code_applied or None
        payment.payment_method = method.value
        payment.status = status.value

        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Course already purchased by this user.")
        return await self.get_payment(payment_id)

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, ForeignKey, Numeric, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, JSONType, UTCDateTime, utc_now
from app.models.course import Course
from app.models.user import User


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    UPI = "upi"
    NET_BANKING = "net_banking"
    WALLET = "wallet"


class Payment(Base):
    """
    Course purchase.
    base_amount is the course price before discount;
    total_amount = base_amount - discount_applied + tax_amount + gst_amount.
    """
    __tablename__ = "payments"
    __table_args__ = (
        # At most one completed purchase of a course per user
        Index(
            'uq_payment_completed_user_course',
            'user_id',
            'course_id',
            unique=True,
            postgresql_where=text("status = 'completed'"),
            sqlite_where=text("status = 'completed'"),
        ),
        Index('ix_payment_method_date', 'payment_method', 'payment_date'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    course_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("courses.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Amounts
    base_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_applied: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False
    )
    coupon_code_applied: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    offer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("offers.id", ondelete="SET NULL"),
        nullable=True
    )
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    gst_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    payment_method: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="credit_card, debit_card, upi, net_banking, wallet"
    )
    payment_details: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)

    status: Mapped[str] = mapped_column(
        String(50),
        default=PaymentStatus.PENDING.value,
        nullable=False,
        index=True,
        comment="pending, completed, failed"
    )
    transaction_id: Mapped[str] = mapped_column(
        String(60),
        unique=True,
        nullable=False,
        index=True
    )

    payment_date: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    course: Mapped["Course"] = relationship("Course", lazy="selectin")
    user: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Payment(txn='{self.transaction_id}', status='{self.status}')>"

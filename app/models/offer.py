"""
Offer Model

Coupon codes redeemable against course purchases.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Boolean, Integer, Text, Numeric, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, UTCDateTime, utc_now


class Offer(Base):
    """
    Coupon/offer. Exactly one of discount_percentage / discount_amount is
    expected; percentage wins when both are set.
    """
    __tablename__ = "offers"
    __table_args__ = (
        CheckConstraint(
            "usage_limit IS NULL OR used_count <= usage_limit",
            name="ck_offer_used_within_limit"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    coupon_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Exact-match coupon code"
    )

    title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    discount_percentage: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(5, 2),
        nullable=True
    )
    discount_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Validity Period
    valid_from: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utc_now
    )
    valid_until: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False
    )

    # Usage Limits
    usage_limit: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Total redemptions allowed (null = unlimited)"
    )
    used_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
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

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def is_within_window(self, now: datetime) -> bool:
        return self.valid_from <= now <= self.valid_until

    def __repr__(self) -> str:
        return f"<Offer(code='{self.coupon_code}', used={self.used_count}/{self.usage_limit})>"

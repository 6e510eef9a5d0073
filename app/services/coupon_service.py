"""
Coupon / offer evaluation and redemption.

apply_coupon() only reads. The usage counter moves solely through redeem(),
a conditional UPDATE that cannot push used_count past usage_limit even when
two purchases race for the last redemption.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
import uuid
import logging

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    InvalidCouponError,
    CouponExpiredError,
    CouponUsageExceededError,
)
from app.db_types import utc_now
from app.models.offer import Offer
from app.schemas.offer import OfferCreate, OfferUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponResult:
    discount_amount: Decimal
    coupon_code_applied: Optional[str] = None
    offer_id: Optional[uuid.UUID] = None


NO_COUPON = CouponResult(discount_amount=Decimal("0"))


def round_currency(value: Decimal) -> Decimal:
    """Round half-up to a whole currency unit."""
    return Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def compute_discount(offer: Offer, base_amount: Decimal) -> Decimal:
    """Percentage (or flat) discount, never more than the base amount."""
    base_amount = Decimal(base_amount)
    if offer.discount_percentage:
        discount = base_amount * Decimal(offer.discount_percentage) / Decimal("100")
    elif offer.discount_amount:
        discount = Decimal(offer.discount_amount)
    else:
        discount = Decimal("0")
    return round_currency(min(discount, base_amount))


class CouponService:
    """Offer CRUD plus the coupon evaluator used by payments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== EVALUATION ====================

    async def apply_coupon(
        self,
        code: Optional[str],
        base_amount: Decimal,
        now: Optional[datetime] = None,
    ) -> CouponResult:
        """
        Evaluate a coupon against a base amount.

        Raises:
            InvalidCouponError: no active offer has this exact code
            CouponUsageExceededError: usage_limit reached (checked before dates)
            CouponExpiredError: now outside [valid_from, valid_until]
        """
        if not code:
            return NO_COUPON

        stmt = select(Offer).where(
            Offer.coupon_code == code,
            Offer.is_active == True,  # noqa: E712
        )
        offer = (await self.db.execute(stmt)).scalar_one_or_none()
        if offer is None:
            raise InvalidCouponError()

        if offer.is_exhausted:
            raise CouponUsageExceededError()

        if not offer.is_within_window(now or utc_now()):
            raise CouponExpiredError()

        return CouponResult(
            discount_amount=compute_discount(offer, base_amount),
            coupon_code_applied=offer.coupon_code,
            offer_id=offer.id,
        )

    async def redeem(self, offer_id: uuid.UUID) -> None:
        """
        Atomically count one use of an offer.

        Must run in the same transaction as the purchase it belongs to.
        """
        stmt = (
            update(Offer)
            .where(
                Offer.id == offer_id,
                or_(Offer.usage_limit.is_(None), Offer.used_count < Offer.usage_limit),
            )
            .values(used_count=Offer.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            logger.warning("Offer %s could not be redeemed: usage limit reached", offer_id)
            raise CouponUsageExceededError()

    # ==================== CRUD ====================

    async def get_offers(self, active_only: bool = False) -> List[Offer]:
        stmt = select(Offer).order_by(Offer.created_at.desc())
        if active_only:
            stmt = stmt.where(Offer.is_active == True)  # noqa: E712
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_offer(self, offer_id: uuid.UUID) -> Offer:
        offer = await self.db.get(Offer, offer_id)
        if offer is None:
            raise NotFoundError("Offer not found")
        return offer

    async def create_offer(self, data: OfferCreate) -> Offer:
        values = data.model_dump(exclude_none=True)
        offer = Offer(**values)
        self.db.add(offer)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Coupon code '{data.coupon_code}' already exists")
        await self.db.refresh(offer)
        logger.info("Offer %s created", offer.coupon_code)
        return offer

    async def update_offer(self, offer_id: uuid.UUID, data: OfferUpdate) -> Offer:
        offer = await self.get_offer(offer_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(offer, field, value)

        if offer.valid_from > offer.valid_until:
            raise ConflictError("validFrom must be before validUntil")
        if offer.usage_limit is not None and offer.used_count > offer.usage_limit:
            raise ConflictError("usageLimit cannot be lower than the current used count")

        await self.db.flush()
        await self.db.refresh(offer)
        return offer

    async def delete_offer(self, offer_id: uuid.UUID) -> None:
        offer = await self.get_offer(offer_id)
        await self.db.delete(offer)
        await self.db.flush()
        logger.info("Offer %s deleted", offer.coupon_code)

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
import time
import uuid
import logging

from sqlalchemy import select, func, and_, extract
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.enum_utils import enum_values, to_enum
from app.core.exceptions import ValidationError, NotFoundError, ConflictError
from app.core.security import random_base36
from app.db_types import utc_now, ensure_utc
from app.models.instrument import Instrument
from app.models.order import (
    Order, OrderItem, OrderStatus, OrderStatusHistory, CustomerModel
)
from app.models.teacher import Teacher
from app.models.user import User
from app.schemas.order import OrderCreate, OrderUpdate, OrderItemInput

logger = logging.getLogger(__name__)

TOTAL_TOLERANCE = Decimal("0.01")
CENT = Decimal("0.01")

SORTABLE_FIELDS = {"created_at", "updated_at", "total", "status", "order_number"}
PATCHABLE_FIELDS = ("address", "notes", "payment_method", "tracking_number", "estimated_delivery")

# Every CustomerModel maps to exactly one account table
CUSTOMER_TABLES: Dict[CustomerModel, Union[type[User], type[Teacher]]] = {
    CustomerModel.USER: User,
    CustomerModel.TEACHER: Teacher,
}


@dataclass(frozen=True)
class CustomerRef:
    """Tagged reference to the account that placed an order."""
    model: CustomerModel
    id: uuid.UUID

    @classmethod
    def of(cls, order: Order) -> "CustomerRef":
        return cls(CustomerModel(order.customer_model), order.customer_id)


def customer_summary(ref: CustomerRef, account: Union[User, Teacher]) -> dict:
    if isinstance(account, Teacher):
        mobile = account.mobile_number
    else:
        mobile = account.mobile
    return {
        "id": str(account.id),
        "model": ref.model.value,
        "name": account.name,
        "mobile": mobile,
        "image": account.image,
    }


def _parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Numeric JSON value (or numeric string) as a Decimal; None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _month_periods(now: datetime, count: int) -> List[Tuple[int, int]]:
    """The last `count` calendar months ending with the current one, oldest first."""
    periods = []
    year, month = now.year, now.month
    for _ in range(count):
        periods.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(periods))


class OrderService:
    """Checkout pricing, order lifecycle and order analytics."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== ORDER NUMBER GENERATION ====================

    @staticmethod
    def generate_order_number() -> str:
        """ORD-<epoch ms>-<9 random uppercase base36 chars>"""
        return f"ORD-{int(time.time() * 1000)}-{random_base36(9).upper()}"

    # ==================== VALIDATION ====================

    @staticmethod
    def validate_structure(data: OrderCreate) -> List[str]:
        """Top-level field checks. Returns every violated rule."""
        errors = []
        if not data.customer:
            errors.append("Customer is required")
        elif _parse_uuid(data.customer) is None:
            errors.append("Customer must be a valid ID")
        if to_enum(data.customer_model, CustomerModel) is None:
            errors.append(
                f"Customer model must be one of: {', '.join(enum_values(CustomerModel))}"
            )
        if not data.items:
            errors.append("Order must contain at least one item")
        total = _to_decimal(data.total)
        if total is None or total <= 0:
            errors.append("Total must be greater than 0")
        if not data.address:
            errors.append("Address is required")
        elif not isinstance(data.address, (dict, str)):
            errors.append("Address must be an object or a string")
        return errors

    @staticmethod
    def validate_items(items: List[OrderItemInput]) -> List[str]:
        """Per-line checks, numbered from 1."""
        errors = []
        for index, item in enumerate(items, start=1):
            if not item.instrument_id:
                errors.append(f"Item {index}: instrumentId is required")
            elif _parse_uuid(item.instrument_id) is None:
                errors.append(f"Item {index}: instrumentId is invalid")
            if item.quantity is not None:
                quantity = _to_decimal(item.quantity)
                if quantity is None or quantity <= 0 or quantity != quantity.to_integral_value():
                    errors.append(f"Item {index}: quantity must be a positive integer")
            if item.price is not None:
                price = _to_decimal(item.price)
                if price is None or price < 0:
                    errors.append(f"Item {index}: price must be a non-negative number")
        return errors

    # ==================== CUSTOMERS ====================

    async def get_customer(self, ref: CustomerRef) -> Optional[Union[User, Teacher]]:
        return await self.db.get(CUSTOMER_TABLES[ref.model], ref.id)

    async def get_customer_summaries(self, orders: List[Order]) -> Dict[CustomerRef, dict]:
        """Customer display data for a batch of orders, one query per account table."""
        refs = {CustomerRef.of(order) for order in orders}
        summaries: Dict[CustomerRef, dict] = {}
        for model, table in CUSTOMER_TABLES.items():
            ids = [ref.id for ref in refs if ref.model == model]
            if not ids:
                continue
            result = await self.db.execute(select(table).where(table.id.in_(ids)))
            for account in result.scalars().all():
                ref = CustomerRef(model, account.id)
                summaries[ref] = customer_summary(ref, account)
        return summaries

    # ==================== CHECKOUT ====================

    async def _build_item(self, line_number: int, item: OrderItemInput) -> OrderItem:
        instrument_id = uuid.UUID(str(item.instrument_id))
        instrument = await self.db.get(Instrument, instrument_id)
        if instrument is None:
            raise NotFoundError(f"Instrument not found: {instrument_id}")
        if not instrument.is_active:
            raise ValidationError(f"Instrument is not available: {instrument.name}")
        if not instrument.in_stock:
            raise ValidationError(f"Instrument is out of stock: {instrument.name}")

        quantity = int(_to_decimal(item.quantity)) if item.quantity is not None else 1
        price = _to_decimal(item.price) if item.price is not None else instrument.price
        gst = instrument.gst or Decimal("0")
        tax = instrument.tax or Decimal("0")
        delivery_fee = instrument.delivery_fee or Decimal("0")
        discount = instrument.discount or Decimal("0")
        item_total = (price * quantity + gst + tax + delivery_fee - discount).quantize(CENT)

        return OrderItem(
            line_number=line_number,
            instrument_id=instrument.id,
            instrument_name=instrument.name,
            description=instrument.description,
            image=instrument.image,
            category=instrument.category_name,
            subcategory=instrument.subcategory,
            quantity=quantity,
            price=price,
            gst=gst,
            tax=tax,
            delivery_fee=delivery_fee,
            discount=discount,
            item_total=item_total,
        )

    async def create_order(self, data: OrderCreate) -> Order:
        """
        Price a cart and persist it as an order.

        Raises:
            ValidationError: malformed payload (itemized), unavailable instrument
            NotFoundError: unknown customer or instrument
            ConflictError: client total differs from the computed total
        """
        errors = self.validate_structure(data)
        if errors:
            raise ValidationError("Validation failed", errors=errors)

        errors = self.validate_items(data.items)
        if errors:
            raise ValidationError("Invalid order items", errors=errors)

        ref = CustomerRef(CustomerModel(data.customer_model), uuid.UUID(str(data.customer)))
        if await self.get_customer(ref) is None:
            raise NotFoundError(f"{ref.model.value} not found")

        items = [
            await self._build_item(line_number, item)
            for line_number, item in enumerate(data.items, start=1)
        ]

        calculated_total = sum((item.item_total for item in items), Decimal("0"))
        provided_total = _to_decimal(data.total)
        if abs(calculated_total - provided_total) > TOTAL_TOLERANCE:
            logger.info(
                "Rejected order for %s %s: calculated %s, provided %s",
                ref.model.value, ref.id, calculated_total, provided_total
            )
            raise ConflictError(
                "Total amount mismatch",
                details={
                    "calculated_total": float(calculated_total),
                    "provided_total": float(provided_total),
                },
            )

        order = Order(
            order_number=self.generate_order_number(),
            customer_id=ref.id,
            customer_model=ref.model.value,
            total=calculated_total,
            status=OrderStatus.PROCESSING.value,
            address=data.address,
            payment_method=data.payment_method,
            notes=data.notes,
            items=items,
            status_history=[
                OrderStatusHistory(
                    status=OrderStatus.PROCESSING.value,
                    changed_by=str(ref.id),
                    notes="Order placed",
                )
            ],
        )
        self.db.add(order)

        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(f"Database integrity error creating order: {e}")
            raise ConflictError("Order creation failed: Invalid data reference")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error creating order: {e}")
            raise

        logger.info(f"Order {order.order_number} created for {ref.model.value} {ref.id}")
        return await self.get_order(order.id)

    # ==================== READ ====================

    async def get_order(self, order_id: uuid.UUID) -> Order:
        stmt = (
            select(Order)
            .options(
                selectinload(Order.items),
                selectinload(Order.status_history),
            )
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = (await self.db.execute(stmt)).scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def get_orders(
        self,
        customer_id: Optional[uuid.UUID] = None,
        customer_model: Optional[CustomerModel] = None,
        status: Optional[OrderStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        include_inactive: bool = False,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Order], int]:
        """Get paginated orders with filters."""
        filters = []

        if customer_id:
            filters.append(Order.customer_id == customer_id)

        if customer_model:
            filters.append(Order.customer_model == customer_model.value)

        if status:
            filters.append(Order.status == status.value)

        if date_from:
            filters.append(Order.created_at >= ensure_utc(date_from))

        if date_to:
            filters.append(Order.created_at <= ensure_utc(date_to))

        if not include_inactive:
            filters.append(Order.is_active == True)  # noqa: E712

        count_stmt = select(func.count(Order.id))
        stmt = select(Order).options(
            selectinload(Order.items),
            selectinload(Order.status_history),
        )
        if filters:
            count_stmt = count_stmt.where(and_(*filters))
            stmt = stmt.where(and_(*filters))

        total = (await self.db.execute(count_stmt)).scalar() or 0

        sort_column = getattr(Order, sort_by if sort_by in SORTABLE_FIELDS else "created_at")
        if sort_order == "asc":
            stmt = stmt.order_by(sort_column.asc(), Order.id)
        else:
            stmt = stmt.order_by(sort_column.desc(), Order.id)

        stmt = stmt.offset((page - 1) * limit).limit(limit)
        orders = (await self.db.execute(stmt)).scalars().unique().all()
        return list(orders), total

    # ==================== UPDATE ====================

    async def update_order(self, order_id: uuid.UUID, data: OrderUpdate) -> Order:
        """Patch an order. History grows only when the status really changes."""
        order = await self.get_order(order_id)
        patch = data.model_dump(exclude_unset=True)
        actor = patch.pop("updated_by", None) or "admin"

        if "status" in patch:
            new_status = to_enum(patch.pop("status"), OrderStatus)
            if new_status is None:
                raise ValidationError(
                    "Invalid status",
                    errors=[f"Status must be one of: {', '.join(enum_values(OrderStatus))}"],
                )
            if new_status.value != order.status:
                logger.info(
                    f"Order {order.order_number} status {order.status} -> {new_status.value} by {actor}"
                )
                if new_status == OrderStatus.CANCELLED:
                    order.is_active = False
                    order.cancelled_at = utc_now()
                    order.cancelled_by = actor
                elif order.status == OrderStatus.CANCELLED.value:
                    # Reopened: back in the default listings
                    order.is_active = True
                    order.cancelled_at = None
                    order.cancelled_by = None
                order.status = new_status.value
                order.status_history.append(
                    OrderStatusHistory(status=new_status.value, changed_by=actor)
                )

        for field in PATCHABLE_FIELDS:
            if field in patch:
                setattr(order, field, patch[field])

        order.updated_at = utc_now()
        await self.db.flush()
        return await self.get_order(order_id)

    async def cancel_order(self, order_id: uuid.UUID, cancelled_by: Optional[str] = None) -> Order:
        """Soft delete: the order and its lines are kept, only flagged."""
        order = await self.get_order(order_id)
        actor = cancelled_by or "admin"
        now = utc_now()

        if order.status != OrderStatus.CANCELLED.value:
            order.status_history.append(
                OrderStatusHistory(status=OrderStatus.CANCELLED.value, changed_by=actor, changed_at=now)
            )
        order.status = OrderStatus.CANCELLED.value
        order.is_active = False
        order.cancelled_at = now
        order.cancelled_by = actor
        order.updated_at = now

        await self.db.flush()
        logger.info(f"Order {order.order_number} cancelled by {actor}")
        return await self.get_order(order_id)

    # ==================== STATISTICS ====================

    async def get_order_stats(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        group_by: str = "month",
    ) -> dict:
        """Aggregates recomputed from the order tables on every call."""
        base_filter = []
        if date_from:
            base_filter.append(Order.created_at >= ensure_utc(date_from))
        if date_to:
            base_filter.append(Order.created_at <= ensure_utc(date_to))

        # By status
        status_stmt = (
            select(
                Order.status,
                func.count(Order.id),
                func.coalesce(func.sum(Order.total), 0),
                func.coalesce(func.avg(Order.total), 0),
            )
            .where(*base_filter)
            .group_by(Order.status)
            .order_by(func.count(Order.id).desc())
        )
        by_status = [
            {
                "status": status,
                "count": count,
                "total_amount": round(float(total), 2),
                "average_amount": round(float(average), 2),
            }
            for status, count, total, average in (await self.db.execute(status_stmt)).all()
        ]

        # Top categories by units sold
        category_stmt = (
            select(
                OrderItem.category,
                func.sum(OrderItem.quantity),
                func.coalesce(func.sum(OrderItem.item_total), 0),
            )
            .join(Order, OrderItem.order_id == Order.id)
            .where(*base_filter)
            .group_by(OrderItem.category)
            .order_by(func.sum(OrderItem.quantity).desc())
            .limit(10)
        )
        top_categories = [
            {"category": category, "quantity": int(quantity or 0), "revenue": round(float(revenue), 2)}
            for category, quantity, revenue in (await self.db.execute(category_stmt)).all()
        ]

        # By customer type
        customer_stmt = (
            select(
                Order.customer_model,
                func.count(Order.id),
                func.coalesce(func.sum(Order.total), 0),
            )
            .where(*base_filter)
            .group_by(Order.customer_model)
        )
        by_customer_type = [
            {"customer_model": model, "count": count, "total_amount": round(float(total), 2)}
            for model, count, total in (await self.db.execute(customer_stmt)).all()
        ]

        return {
            "total_orders": sum(row["count"] for row in by_status),
            "total_revenue": round(sum(row["total_amount"] for row in by_status), 2),
            "by_status": by_status,
            "trend": await self._get_trend(base_filter, group_by),
            "top_categories": top_categories,
            "by_customer_type": by_customer_type,
        }

    async def _get_trend(self, base_filter: list, group_by: str) -> List[dict]:
        """Last 12 calendar months, or last 30 days when group_by == "day"; empty periods are zero."""
        now = utc_now()
        year_col = extract("year", Order.created_at)
        month_col = extract("month", Order.created_at)

        if group_by == "day":
            day_col = extract("day", Order.created_at)
            start = (now - timedelta(days=29)).replace(hour=0, minute=0, second=0, microsecond=0)
            keys = [(start + timedelta(days=offset)) for offset in range(30)]
            periods = [(d.year, d.month, d.day) for d in keys]
            group_cols = [year_col, month_col, day_col]
        else:
            periods = _month_periods(now, 12)
            first_year, first_month = periods[0]
            start = now.replace(
                year=first_year, month=first_month, day=1,
                hour=0, minute=0, second=0, microsecond=0
            )
            group_cols = [year_col, month_col]

        stmt = (
            select(*group_cols, func.count(Order.id), func.coalesce(func.sum(Order.total), 0))
            .where(Order.created_at >= start, *base_filter)
            .group_by(*group_cols)
        )
        buckets: Dict[tuple, Tuple[int, float]] = {}
        for row in (await self.db.execute(stmt)).all():
            key = tuple(int(part) for part in row[:-2])
            buckets[key] = (row[-2], float(row[-1]))

        trend = []
        for key in periods:
            count, total = buckets.get(key, (0, 0.0))
            label = "-".join(f"{part:02d}" if i else str(part) for i, part in enumerate(key))
            trend.append({"period": label, "count": count, "total_amount": round(total, 2)})
        return trend

"""Instrument shop orders."""
from datetime import datetime
from typing import Dict, Optional
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB
from app.core.enum_utils import enum_values, to_enum
from app.core.exceptions import ValidationError
from app.models.order import CustomerModel, Order, OrderStatus
from app.schemas.base import DataResponse, PaginatedResponse, PaginationMeta
from app.schemas.order import OrderCreate, OrderResponse, OrderStats, OrderUpdate
from app.services.order_service import CustomerRef, OrderService

router = APIRouter(tags=["Orders"])


def build_order_response(order: Order, summaries: Dict[CustomerRef, dict]) -> OrderResponse:
    response = OrderResponse.model_validate(order)
    response.customer = summaries.get(CustomerRef.of(order))
    return response


async def order_with_customer(service: OrderService, order: Order) -> OrderResponse:
    summaries = await service.get_customer_summaries([order])
    return build_order_response(order, summaries)


@router.post("", response_model=DataResponse[OrderResponse], status_code=status.HTTP_201_CREATED)
async def create_order(data: OrderCreate, db: DB):
    """
    Place an order.

    Lines are priced from the instrument catalog; the client's total must
    match the computed total to within 0.01.
    """
    service = OrderService(db)
    order = await service.create_order(data)
    return DataResponse(
        message="Order created successfully",
        data=await order_with_customer(service, order),
    )


@router.get("", response_model=PaginatedResponse[OrderResponse])
async def list_orders(
    db: DB,
    customer: Optional[uuid.UUID] = Query(None),
    customer_model: Optional[str] = Query(None, alias="customerModel"),
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
):
    """Paginated order list, newest first by default."""
    model = None
    if customer_model:
        model = to_enum(customer_model, CustomerModel)
        if model is None:
            raise ValidationError(
                "Invalid customer model",
                errors=[f"customerModel must be one of: {', '.join(enum_values(CustomerModel))}"],
            )

    order_status = None
    if status_filter:
        order_status = to_enum(status_filter, OrderStatus)
        if order_status is None:
            raise ValidationError(
                "Invalid status",
                errors=[f"status must be one of: {', '.join(enum_values(OrderStatus))}"],
            )

    service = OrderService(db)
    orders, total = await service.get_orders(
        customer_id=customer,
        customer_model=model,
        status=order_status,
        date_from=start_date,
        date_to=end_date,
        include_inactive=include_inactive,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    summaries = await service.get_customer_summaries(orders)

    return PaginatedResponse(
        data=[build_order_response(o, summaries) for o in orders],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.get("/stats/overview", response_model=DataResponse[OrderStats])
async def order_stats(
    db: DB,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    group_by: str = Query("month", alias="groupBy", pattern="^(month|day)$"),
):
    """Order analytics, recomputed on every request."""
    service = OrderService(db)
    stats = await service.get_order_stats(start_date, end_date, group_by)
    return DataResponse(data=OrderStats(**stats))


@router.get("/{order_id}", response_model=DataResponse[OrderResponse])
async def get_order(order_id: uuid.UUID, db: DB):
    service = OrderService(db)
    order = await service.get_order(order_id)
    return DataResponse(data=await order_with_customer(service, order))


@router.put("/{order_id}", response_model=DataResponse[OrderResponse])
async def update_order(order_id: uuid.UUID, data: OrderUpdate, db: DB):
    """Update status, address, notes or shipping details."""
    service = OrderService(db)
    order = await service.update_order(order_id, data)
    return DataResponse(
        message="Order updated successfully",
        data=await order_with_customer(service, order),
    )


@router.delete("/{order_id}", response_model=DataResponse[OrderResponse])
async def cancel_order(
    order_id: uuid.UUID,
    db: DB,
    cancelled_by: Optional[str] = Query(None, alias="cancelledBy"),
):
    """Cancel (soft delete) an order."""
    service = OrderService(db)
    order = await service.cancel_order(order_id, cancelled_by)
    return DataResponse(
        message="Order cancelled successfully",
        data=await order_with_customer(service, order),
    )

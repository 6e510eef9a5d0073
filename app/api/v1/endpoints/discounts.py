"""
Offers and coupon codes.

Coupons are redeemed only by course payments; /validate is a read-only
preview of what a code would take off a given amount.
"""
from typing import List
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB
from app.schemas.base import DataResponse, MessageResponse
from app.schemas.offer import (
    OfferCreate,
    OfferUpdate,
    OfferResponse,
    CouponValidateRequest,
    CouponValidateResponse,
)
from app.services.coupon_service import CouponService

router = APIRouter(tags=["Offers"])


@router.post("/validate", response_model=CouponValidateResponse)
async def validate_coupon(data: CouponValidateRequest, db: DB):
    """
    Preview a coupon against an amount.
    Unknown, expired and exhausted codes answer 400 with the reason.
    """
    result = await CouponService(db).apply_coupon(data.coupon_code, data.amount)
    return CouponValidateResponse(
        message="Coupon applied successfully.",
        coupon_code_applied=result.coupon_code_applied,
        offer_id=result.offer_id,
        discount_amount=float(result.discount_amount),
        final_amount=float(data.amount - result.discount_amount),
    )


@router.get("/offers", response_model=DataResponse[List[OfferResponse]])
async def list_offers(db: DB, active_only: bool = Query(False, alias="activeOnly")):
    offers = await CouponService(db).get_offers(active_only)
    return DataResponse(data=[OfferResponse.model_validate(o) for o in offers])


@router.get("/offers/{offer_id}", response_model=DataResponse[OfferResponse])
async def get_offer(offer_id: uuid.UUID, db: DB):
    offer = await CouponService(db).get_offer(offer_id)
    return DataResponse(data=OfferResponse.model_validate(offer))


@router.post("/offers", response_model=DataResponse[OfferResponse], status_code=status.HTTP_201_CREATED)
async def create_offer(data: OfferCreate, db: DB):
    offer = await CouponService(db).create_offer(data)
    return DataResponse(
        message="Offer created successfully",
        data=OfferResponse.model_validate(offer),
    )


@router.put("/offers/{offer_id}", response_model=DataResponse[OfferResponse])
async def update_offer(offer_id: uuid.UUID, data: OfferUpdate, db: DB):
    offer = await CouponService(db).update_offer(offer_id, data)
    return DataResponse(
        message="Offer updated successfully",
        data=OfferResponse.model_validate(offer),
    )


@router.delete("/offers/{offer_id}", response_model=MessageResponse)
async def delete_offer(offer_id: uuid.UUID, db: DB):
    await CouponService(db).delete_offer(offer_id)
    return MessageResponse(message="Offer deleted successfully")

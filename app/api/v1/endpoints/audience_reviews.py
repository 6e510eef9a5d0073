from typing import List, Optional
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB
from app.models.showcase import AudienceReview, SkillLevel
from app.schemas.base import DataResponse, MessageResponse
from app.schemas.showcase import AudienceReviewCreate, AudienceReviewUpdate, AudienceReviewResponse
from app.services.showcase_service import ShowcaseService

router = APIRouter(tags=["Showcase"])


@router.get("", response_model=DataResponse[List[AudienceReviewResponse]])
async def list_audience_reviews(
    db: DB,
    skill_level: Optional[SkillLevel] = Query(None, alias="skillLevel"),
):
    reviews = await ShowcaseService(db).get_all(AudienceReview, skill_level)
    return DataResponse(data=[AudienceReviewResponse.model_validate(r) for r in reviews])


@router.get("/{review_id}", response_model=DataResponse[AudienceReviewResponse])
async def get_audience_review(review_id: uuid.UUID, db: DB):
    review = await ShowcaseService(db).get(AudienceReview, review_id)
    return DataResponse(data=AudienceReviewResponse.model_validate(review))


@router.post("", response_model=DataResponse[AudienceReviewResponse], status_code=status.HTTP_201_CREATED)
async def create_audience_review(data: AudienceReviewCreate, db: DB):
    review = await ShowcaseService(db).create(AudienceReview, data)
    return DataResponse(
        message="Audience review created successfully",
        data=AudienceReviewResponse.model_validate(review),
    )


@router.put("/{review_id}", response_model=DataResponse[AudienceReviewResponse])
async def update_audience_review(review_id: uuid.UUID, data: AudienceReviewUpdate, db: DB):
    review = await ShowcaseService(db).update(AudienceReview, review_id, data)
    return DataResponse(
        message="Audience review updated successfully",
        data=AudienceReviewResponse.model_validate(review),
    )


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_audience_review(review_id: uuid.UUID, db: DB):
    await ShowcaseService(db).delete(AudienceReview, review_id)
    return MessageResponse(message="Audience review deleted successfully")

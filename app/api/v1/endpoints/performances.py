from typing import List, Optional
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB
from app.models.showcase import Performance, SkillLevel
from app.schemas.base import DataResponse, MessageResponse
from app.schemas.showcase import PerformanceCreate, PerformanceUpdate, PerformanceResponse
from app.services.showcase_service import ShowcaseService

router = APIRouter(tags=["Showcase"])


@router.get("", response_model=DataResponse[List[PerformanceResponse]])
async def list_performances(
    db: DB,
    skill_level: Optional[SkillLevel] = Query(None, alias="skillLevel"),
):
    """Student performances for the home screen, newest first."""
    performances = await ShowcaseService(db).get_all(Performance, skill_level)
    return DataResponse(data=[PerformanceResponse.model_validate(p) for p in performances])


@router.get("/{performance_id}", response_model=DataResponse[PerformanceResponse])
async def get_performance(performance_id: uuid.UUID, db: DB):
    performance = await ShowcaseService(db).get(Performance, performance_id)
    return DataResponse(data=PerformanceResponse.model_validate(performance))


@router.post("", response_model=DataResponse[PerformanceResponse], status_code=status.HTTP_201_CREATED)
async def create_performance(data: PerformanceCreate, db: DB):
    performance = await ShowcaseService(db).create(Performance, data)
    return DataResponse(
        message="Performance created successfully",
        data=PerformanceResponse.model_validate(performance),
    )


@router.put("/{performance_id}", response_model=DataResponse[PerformanceResponse])
async def update_performance(performance_id: uuid.UUID, data: PerformanceUpdate, db: DB):
    performance = await ShowcaseService(db).update(Performance, performance_id, data)
    return DataResponse(
        message="Performance updated successfully",
        data=PerformanceResponse.model_validate(performance),
    )


@router.delete("/{performance_id}", response_model=MessageResponse)
async def delete_performance(performance_id: uuid.UUID, db: DB):
    await ShowcaseService(db).delete(Performance, performance_id)
    return MessageResponse(message="Performance deleted successfully")

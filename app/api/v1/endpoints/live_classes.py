"""
Live classes.

Creating or updating a class notifies its students and teacher (inbox rows
plus FCM push). Notification problems are logged, never returned.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB, PushGateway
from app.schemas.base import DataResponse, MessageResponse
from app.schemas.live_class import LiveClassCreate, LiveClassUpdate, LiveClassResponse
from app.services.live_class_service import LiveClassService

router = APIRouter(tags=["Live Classes"])


@router.post("/live-classes", response_model=DataResponse[LiveClassResponse], status_code=status.HTTP_201_CREATED)
async def create_live_class(data: LiveClassCreate, db: DB, gateway: PushGateway):
    live_class = await LiveClassService(db, gateway).create_live_class(data)
    return DataResponse(
        message="Live class created successfully",
        data=LiveClassResponse.model_validate(live_class),
    )


@router.get("/live-classes", response_model=DataResponse[List[LiveClassResponse]])
async def list_live_classes(
    db: DB,
    teacher_id: Optional[uuid.UUID] = Query(None, alias="teacherId"),
    user_id: Optional[uuid.UUID] = Query(None, alias="userId"),
    include_inactive: bool = Query(False, alias="includeInactive"),
):
    live_classes = await LiveClassService(db).get_live_classes(teacher_id, user_id, include_inactive)
    return DataResponse(data=[LiveClassResponse.model_validate(lc) for lc in live_classes])


@router.get("/live-classes/{live_class_id}", response_model=DataResponse[LiveClassResponse])
async def get_live_class(live_class_id: uuid.UUID, db: DB):
    live_class = await LiveClassService(db).get_live_class(live_class_id)
    return DataResponse(data=LiveClassResponse.model_validate(live_class))


@router.put("/live-classes/{live_class_id}", response_model=DataResponse[LiveClassResponse])
async def update_live_class(
    live_class_id: uuid.UUID,
    data: LiveClassUpdate,
    db: DB,
    gateway: PushGateway,
):
    live_class = await LiveClassService(db, gateway).update_live_class(live_class_id, data)
    return DataResponse(
        message="Live class updated successfully",
        data=LiveClassResponse.model_validate(live_class),
    )


@router.delete("/live-classes/{live_class_id}", response_model=MessageResponse)
async def delete_live_class(live_class_id: uuid.UUID, db: DB):
    await LiveClassService(db).delete_live_class(live_class_id)
    return MessageResponse(message="Live class deleted successfully")

"""Practice video uploads and teacher review."""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Query, Response, status

from app.api.deps import DB
from app.models.practise_video import PractiseStatus
from app.schemas.base import DataResponse
from app.schemas.practise_video import (
    PractiseVideoUpload,
    PractiseVideoReview,
    PractiseVideoResponse,
    PractiseVideoStatus,
)
from app.services.practise_service import PractiseService

router = APIRouter(tags=["Practice Videos"])


@router.post("/upload", response_model=DataResponse[PractiseVideoResponse], status_code=status.HTTP_201_CREATED)
async def upload_practise_video(data: PractiseVideoUpload, db: DB, response: Response):
    """
    Upload the practice recording for a lesson.
    A second upload for the same lesson replaces the first and answers 200.
    """
    video, created = await PractiseService(db).upload(data)
    if not created:
        response.status_code = status.HTTP_200_OK
    return DataResponse(
        message=(
            "Practice video uploaded successfully" if created
            else "Practice video re-uploaded successfully"
        ),
        data=PractiseVideoResponse.model_validate(video),
    )


@router.put("/approve-reject/{video_id}", response_model=DataResponse[PractiseVideoResponse])
async def review_practise_video(video_id: uuid.UUID, data: PractiseVideoReview, db: DB):
    video = await PractiseService(db).review(video_id, data)
    return DataResponse(
        message=f"Practice video {video.status}",
        data=PractiseVideoResponse.model_validate(video),
    )


@router.get("/status/{lesson_id}/{user_id}", response_model=PractiseVideoStatus)
async def get_practise_status(lesson_id: uuid.UUID, user_id: uuid.UUID, db: DB):
    video = await PractiseService(db).get_status(lesson_id, user_id)
    return PractiseVideoStatus(status=video.status, rating=video.rating)


@router.get("/all", response_model=DataResponse[List[PractiseVideoResponse]])
async def list_practise_videos(
    db: DB,
    status_filter: Optional[PractiseStatus] = Query(None, alias="status"),
):
    """Review queue with lesson and student names."""
    videos = await PractiseService(db).get_all(status_filter)
    return DataResponse(data=[PractiseVideoResponse.model_validate(v) for v in videos])

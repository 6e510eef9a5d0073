"""Courses and their lessons."""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB
from app.schemas.base import DataResponse, MessageResponse
from app.schemas.course import (
    CourseCreate,
    CourseUpdate,
    CourseResponse,
    CourseDetailResponse,
    LessonCreate,
    LessonUpdate,
    LessonResponse,
)
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["Courses"])


@router.post("/courses", response_model=DataResponse[CourseDetailResponse], status_code=status.HTTP_201_CREATED)
async def create_course(data: CourseCreate, db: DB):
    course = await CatalogService(db).create_course(data)
    return DataResponse(
        message="Course created successfully",
        data=CourseDetailResponse.model_validate(course),
    )


@router.get("/courses", response_model=DataResponse[List[CourseResponse]])
async def list_courses(
    db: DB,
    category_id: Optional[uuid.UUID] = Query(None, alias="categoryId"),
    include_inactive: bool = Query(False, alias="includeInactive"),
):
    courses = await CatalogService(db).get_courses(category_id, include_inactive)
    return DataResponse(data=[CourseResponse.model_validate(c) for c in courses])


@router.get("/courses/{course_id}", response_model=DataResponse[CourseDetailResponse])
async def get_course(course_id: uuid.UUID, db: DB):
    """Course with its lessons in order."""
    course = await CatalogService(db).get_course(course_id)
    return DataResponse(data=CourseDetailResponse.model_validate(course))


@router.put("/courses/{course_id}", response_model=DataResponse[CourseDetailResponse])
async def update_course(course_id: uuid.UUID, data: CourseUpdate, db: DB):
    course = await CatalogService(db).update_course(course_id, data)
    return DataResponse(
        message="Course updated successfully",
        data=CourseDetailResponse.model_validate(course),
    )


@router.delete("/courses/{course_id}", response_model=MessageResponse)
async def delete_course(course_id: uuid.UUID, db: DB):
    await CatalogService(db).delete_course(course_id)
    return MessageResponse(message="Course deleted successfully")


# ==================== Lessons ====================

@router.post(
    "/courses/{course_id}/lessons",
    response_model=DataResponse[LessonResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_lesson(course_id: uuid.UUID, data: LessonCreate, db: DB):
    lesson = await CatalogService(db).add_lesson(course_id, data)
    return DataResponse(
        message="Lesson added successfully",
        data=LessonResponse.model_validate(lesson),
    )


@router.put("/lessons/{lesson_id}", response_model=DataResponse[LessonResponse])
async def update_lesson(lesson_id: uuid.UUID, data: LessonUpdate, db: DB):
    lesson = await CatalogService(db).update_lesson(lesson_id, data)
    return DataResponse(
        message="Lesson updated successfully",
        data=LessonResponse.model_validate(lesson),
    )


@router.delete("/lessons/{lesson_id}", response_model=MessageResponse)
async def delete_lesson(lesson_id: uuid.UUID, db: DB):
    await CatalogService(db).delete_lesson(lesson_id)
    return MessageResponse(message="Lesson deleted successfully")

"""Catalog: categories, instruments, courses and their lessons."""
from typing import List, Optional, Tuple
import uuid
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app.core.exceptions import ConflictError, NotFoundError
from app.models.category import Category
from app.models.course import Course, Lesson
from app.models.instrument import Instrument
from app.schemas.category import CategoryCreate, CategoryUpdate
from app.schemas.course import CourseCreate, CourseUpdate, LessonCreate, LessonUpdate
from app.schemas.instrument import InstrumentCreate, InstrumentUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """CRUD for everything a student can browse or buy."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _flush_or_conflict(self, message: str) -> None:
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(message)

    # ==================== CATEGORIES ====================

    async def get_categories(
        self,
        include_inactive: bool = False,
        trending_only: bool = False,
    ) -> List[Category]:
        stmt = select(Category).order_by(Category.name)
        if not include_inactive:
            stmt = stmt.where(Category.is_active == True)  # noqa: E712
        if trending_only:
            stmt = stmt.where(Category.is_trending == True)  # noqa: E712
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_category(self, category_id: uuid.UUID) -> Category:
        category = await self.db.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def create_category(self, data: CategoryCreate) -> Category:
        category = Category(**data.model_dump())
        self.db.add(category)
        await self._flush_or_conflict(f"Category '{data.name}' already exists")
        await self.db.refresh(category)
        logger.info(f"Category created: {category.name}")
        return category

    async def update_category(self, category_id: uuid.UUID, data: CategoryUpdate) -> Category:
        category = await self.get_category(category_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
        await self._flush_or_conflict(f"Category '{category.name}' already exists")
        await self.db.refresh(category)
        return category

    async def delete_category(self, category_id: uuid.UUID) -> None:
        category = await self.get_category(category_id)
        await self.db.delete(category)
        await self.db.flush()
        logger.info(f"Category deleted: {category.name}")

    # ==================== INSTRUMENTS ====================

    async def get_instruments(
        self,
        category_id: Optional[uuid.UUID] = None,
        subcategory: Optional[str] = None,
        search: Optional[str] = None,
        include_inactive: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Instrument], int]:
        filters = []
        if not include_inactive:
            filters.append(Instrument.is_active == True)  # noqa: E712
        if category_id:
            filters.append(Instrument.category_id == category_id)
        if subcategory:
            filters.append(Instrument.subcategory == subcategory)
        if search:
            filters.append(Instrument.name.ilike(f"%{search}%"))

        total = (await self.db.execute(
            select(func.count(Instrument.id)).where(*filters)
        )).scalar() or 0

        stmt = (
            select(Instrument)
            .where(*filters)
            .order_by(Instrument.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list((await self.db.execute(stmt)).scalars().all()), total

    async def get_instrument(self, instrument_id: uuid.UUID) -> Instrument:
        instrument = await self.db.get(Instrument, instrument_id)
        if instrument is None:
            raise NotFoundError("Instrument not found")
        return instrument

    async def create_instrument(self, data: InstrumentCreate) -> Instrument:
        if data.category_id:
            await self.get_category(data.category_id)
        instrument = Instrument(**data.model_dump())
        self.db.add(instrument)
        await self.db.flush()
        await self.db.refresh(instrument)
        logger.info(f"Instrument created: {instrument.name}")
        return instrument

    async def update_instrument(self, instrument_id: uuid.UUID, data: InstrumentUpdate) -> Instrument:
        instrument = await self.get_instrument(instrument_id)
        values = data.model_dump(exclude_unset=True)
        if values.get("category_id"):
            await self.get_category(values["category_id"])
        for field, value in values.items():
            setattr(instrument, field, value)
        await self.db.flush()
        await self.db.refresh(instrument)
        return instrument

    async def delete_instrument(self, instrument_id: uuid.UUID) -> None:
        """Instruments referenced by orders are deactivated instead of deleted."""
        instrument = await self.get_instrument(instrument_id)
        try:
            await self.db.delete(instrument)
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Instrument is referenced by existing orders; deactivate it instead")
        logger.info(f"Instrument deleted: {instrument.name}")

    # ==================== COURSES ====================

    async def get_courses(
        self,
        category_id: Optional[uuid.UUID] = None,
        include_inactive: bool = False,
    ) -> List[Course]:
        stmt = select(Course).order_by(Course.created_at.desc())
        if not include_inactive:
            stmt = stmt.where(Course.is_active == True)  # noqa: E712
        if category_id:
            stmt = stmt.where(Course.category_id == category_id)
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_course(self, course_id: uuid.UUID) -> Course:
        stmt = (
            select(Course)
            .options(selectinload(Course.lessons))
            .where(Course.id == course_id)
            .execution_options(populate_existing=True)
        )
        course = (await self.db.execute(stmt)).scalar_one_or_none()
        if course is None:
            raise NotFoundError("Course not found")
        return course

    async def create_course(self, data: CourseCreate) -> Course:
        if data.category_id:
            await self.get_category(data.category_id)
        course = Course(**data.model_dump())
        self.db.add(course)
        await self.db.flush()
        logger.info(f"Course created: {course.name}")
        return await self.get_course(course.id)

    async def update_course(self, course_id: uuid.UUID, data: CourseUpdate) -> Course:
        course = await self.get_course(course_id)
        values = data.model_dump(exclude_unset=True)
        if values.get("category_id"):
            await self.get_category(values["category_id"])
        for field, value in values.items():
            setattr(course, field, value)
        await self.db.flush()
        return await self.get_course(course_id)

    async def delete_course(self, course_id: uuid.UUID) -> None:
        course = await self.get_course(course_id)
        try:
            await self.db.delete(course)
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Course has payments; deactivate it instead")
        logger.info(f"Course deleted: {course.name}")

    # ==================== LESSONS ====================

    async def add_lesson(self, course_id: uuid.UUID, data: LessonCreate) -> Lesson:
        course = await self.get_course(course_id)
        values = data.model_dump()
        if values.get("position") is None:
            values["position"] = len(course.lessons)
        lesson = Lesson(course_id=course.id, **values)
        self.db.add(lesson)
        await self.db.flush()
        await self.db.refresh(lesson)
        return lesson

    async def get_lesson(self, lesson_id: uuid.UUID) -> Lesson:
        lesson = await self.db.get(Lesson, lesson_id)
        if lesson is None:
            raise NotFoundError("Lesson not found")
        return lesson

    async def update_lesson(self, lesson_id: uuid.UUID, data: LessonUpdate) -> Lesson:
        lesson = await self.get_lesson(lesson_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(lesson, field, value)
        await self.db.flush()
        await self.db.refresh(lesson)
        return lesson

    async def delete_lesson(self, lesson_id: uuid.UUID) -> None:
        lesson = await self.get_lesson(lesson_id)
        await self.db.delete(lesson)
        await self.db.flush()

"""Home-screen content: performances, audience reviews and music quotes."""
from typing import List, Optional, Type, TypeVar
import uuid
import logging

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.showcase import AudienceReview, MusicQuote, Performance, SkillLevel

logger = logging.getLogger(__name__)

M = TypeVar("M", Performance, AudienceReview, MusicQuote)

NOT_FOUND_MESSAGES = {
    Performance: "Performance not found",
    AudienceReview: "Audience review not found",
    MusicQuote: "Quote not found",
}


class ShowcaseService:
    """
    CRUD shared by the three content types.
    Media fields are URLs; uploading the files is out of scope.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(self, model: Type[M], skill_level: Optional[SkillLevel] = None) -> List[M]:
        """Newest first."""
        stmt = select(model).order_by(model.created_at.desc(), model.id)
        if skill_level is not None and hasattr(model, "skill_level"):
            stmt = stmt.where(model.skill_level == skill_level.value)
        return list((await self.db.execute(stmt)).scalars().all())

    async def get(self, model: Type[M], item_id: uuid.UUID) -> M:
        item = await self.db.get(model, item_id)
        if item is None:
            raise NotFoundError(NOT_FOUND_MESSAGES[model])
        return item

    async def create(self, model: Type[M], data: BaseModel) -> M:
        item = model(**data.model_dump(mode="json"))
        self.db.add(item)
        await self.db.flush()
        await self.db.refresh(item)
        logger.info(f"{model.__name__} created: {item.id}")
        return item

    async def update(self, model: Type[M], item_id: uuid.UUID, data: BaseModel) -> M:
        item = await self.get(model, item_id)
        for field, value in data.model_dump(mode="json", exclude_unset=True).items():
            setattr(item, field, value)
        await self.db.flush()
        await self.db.refresh(item)
        return item

    async def delete(self, model: Type[M], item_id: uuid.UUID) -> None:
        item = await self.get(model, item_id)
        await self.db.delete(item)
        await self.db.flush()
        logger.info(f"{model.__name__} deleted: {item_id}")

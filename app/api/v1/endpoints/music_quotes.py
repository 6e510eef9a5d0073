from typing import List
import uuid

from fastapi import APIRouter, status

from app.api.deps import DB
from app.models.showcase import MusicQuote
from app.schemas.base import DataResponse, MessageResponse
from app.schemas.showcase import MusicQuoteCreate, MusicQuoteUpdate, MusicQuoteResponse
from app.services.showcase_service import ShowcaseService

router = APIRouter(tags=["Showcase"])


@router.get("", response_model=DataResponse[List[MusicQuoteResponse]])
async def list_quotes(db: DB):
    quotes = await ShowcaseService(db).get_all(MusicQuote)
    return DataResponse(data=[MusicQuoteResponse.model_validate(q) for q in quotes])


@router.post("", response_model=DataResponse[MusicQuoteResponse], status_code=status.HTTP_201_CREATED)
async def create_quote(data: MusicQuoteCreate, db: DB):
    quote = await ShowcaseService(db).create(MusicQuote, data)
    return DataResponse(
        message="Quote created successfully",
        data=MusicQuoteResponse.model_validate(quote),
    )


@router.put("/{quote_id}", response_model=DataResponse[MusicQuoteResponse])
async def update_quote(quote_id: uuid.UUID, data: MusicQuoteUpdate, db: DB):
    quote = await ShowcaseService(db).update(MusicQuote, quote_id, data)
    return DataResponse(
        message="Quote updated successfully",
        data=MusicQuoteResponse.model_validate(quote),
    )


@router.delete("/{quote_id}", response_model=MessageResponse)
async def delete_quote(quote_id: uuid.UUID, db: DB):
    await ShowcaseService(db).delete(MusicQuote, quote_id)
    return MessageResponse(message="Quote deleted successfully")

from typing import Optional
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB
from app.schemas.base import DataResponse, MessageResponse, PaginatedResponse, PaginationMeta
from app.schemas.instrument import InstrumentCreate, InstrumentUpdate, InstrumentResponse
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["Instruments"])


@router.get("", response_model=PaginatedResponse[InstrumentResponse])
async def list_instruments(
    db: DB,
    category_id: Optional[uuid.UUID] = Query(None, alias="categoryId"),
    subcategory: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False, alias="includeInactive"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """Paginated instrument catalog."""
    instruments, total = await CatalogService(db).get_instruments(
        category_id=category_id,
        subcategory=subcategory,
        search=search,
        include_inactive=include_inactive,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return PaginatedResponse(
        data=[InstrumentResponse.model_validate(i) for i in instruments],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.get("/{instrument_id}", response_model=DataResponse[InstrumentResponse])
async def get_instrument(instrument_id: uuid.UUID, db: DB):
    instrument = await CatalogService(db).get_instrument(instrument_id)
    return DataResponse(data=InstrumentResponse.model_validate(instrument))


@router.post("", response_model=DataResponse[InstrumentResponse], status_code=status.HTTP_201_CREATED)
async def create_instrument(data: InstrumentCreate, db: DB):
    instrument = await CatalogService(db).create_instrument(data)
    return DataResponse(
        message="Instrument created successfully",
        data=InstrumentResponse.model_validate(instrument),
    )


@router.put("/{instrument_id}", response_model=DataResponse[InstrumentResponse])
async def update_instrument(instrument_id: uuid.UUID, data: InstrumentUpdate, db: DB):
    instrument = await CatalogService(db).update_instrument(instrument_id, data)
    return DataResponse(
        message="Instrument updated successfully",
        data=InstrumentResponse.model_validate(instrument),
    )


@router.delete("/{instrument_id}", response_model=MessageResponse)
async def delete_instrument(instrument_id: uuid.UUID, db: DB):
    await CatalogService(db).delete_instrument(instrument_id)
    return MessageResponse(message="Instrument deleted successfully")

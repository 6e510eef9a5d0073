from typing import List
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import DB
from app.schemas.base import DataResponse, MessageResponse
from app.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["Categories"])


@router.get("", response_model=DataResponse[List[CategoryResponse]])
async def list_categories(
    db: DB,
    include_inactive: bool = Query(False, alias="includeInactive"),
    trending: bool = Query(False),
):
    """
    Get all categories.
    Public endpoint for browsing the catalog.
    """
    categories = await CatalogService(db).get_categories(include_inactive, trending)
    return DataResponse(data=[CategoryResponse.model_validate(c) for c in categories])


@router.get("/{category_id}", response_model=DataResponse[CategoryResponse])
async def get_category(category_id: uuid.UUID, db: DB):
    category = await CatalogService(db).get_category(category_id)
    return DataResponse(data=CategoryResponse.model_validate(category))


@router.post("", response_model=DataResponse[CategoryResponse], status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, db: DB):
    category = await CatalogService(db).create_category(data)
    return DataResponse(
        message="Category created successfully",
        data=CategoryResponse.model_validate(category),
    )


@router.put("/{category_id}", response_model=DataResponse[CategoryResponse])
async def update_category(category_id: uuid.UUID, data: CategoryUpdate, db: DB):
    category = await CatalogService(db).update_category(category_id, data)
    return DataResponse(
        message="Category updated successfully",
        data=CategoryResponse.model_validate(category),
    )


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(category_id: uuid.UUID, db: DB):
    await CatalogService(db).delete_category(category_id)
    return MessageResponse(message="Category deleted successfully")

"""Catalog API

Read-only product and category endpoints. Bodies are ApiResponse
envelopes: ``{"success": true, "data": ...}`` or
``{"success": false, "error": {...}}``.
"""
from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import envelope_response, from_result
from repositories import catalog
from repositories.catalog import ProductPage

router = APIRouter()


class CategoryResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: str | None
    image: str | None
    is_featured: bool

    class Config:
        from_attributes = True


class CategorySummary(BaseModel):
    name: str
    slug: str

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: str | None
    price: float
    image: str | None
    rating: float | None
    stock: int | None
    is_best_seller: bool
    category: CategorySummary | None
    created_at: datetime

    class Config:
        from_attributes = True


def _page_to_dict(page: ProductPage) -> dict:
    return {
        "items": [ProductResponse.model_validate(p) for p in page.items],
        "total": page.total,
        "page": page.page,
        "page_size": page.page_size,
        "pages": page.pages,
    }


@router.get("/products")
async def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    category: str | None = Query(None, description="Category slug"),
    search: str | None = Query(None, max_length=100),
    best_sellers: bool = False,
    sort: Literal["new", "price_asc", "price_desc", "rating"] = "new",
    db: AsyncSession = Depends(get_db),
):
    """Paginated product listing with optional filters."""
    result = await catalog.list_products(
        db,
        page=page,
        page_size=page_size,
        category=category,
        search=search,
        best_sellers=best_sellers,
        sort=sort,
    )
    return envelope_response(from_result(result.map(_page_to_dict)))


@router.get("/products/{id_or_slug}")
async def get_product(id_or_slug: str, db: AsyncSession = Depends(get_db)):
    result = await catalog.get_product(db, id_or_slug)
    return envelope_response(from_result(result.map(ProductResponse.model_validate)))


@router.get("/categories")
async def list_categories(featured: bool = False, db: AsyncSession = Depends(get_db)):
    result = await catalog.list_categories(db, featured=featured)
    return envelope_response(
        from_result(result.map(lambda rows: [CategoryResponse.model_validate(c) for c in rows]))
    )

"""Catalog Repository

Read-only queries over categories and products. Inactive products are
never listed or returned.
"""
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.errors import with_repository, not_found
from core.logging import catalog_logger
from models.catalog import Category, Product

log = catalog_logger()

PRODUCT_SORTS = {
    "new": Product.created_at.desc(),
    "price_asc": Product.price.asc(),
    "price_desc": Product.price.desc(),
    "rating": Product.rating.desc(),
}


@dataclass(frozen=True, slots=True)
class ProductPage:
    items: list[Product]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size


@with_repository("catalog.list_products")
async def list_products(
    session: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    category: str | None = None,
    search: str | None = None,
    best_sellers: bool = False,
    sort: str = "new",
) -> ProductPage:
    """One page of active products.

    ``category`` is a category slug; ``search`` matches the product name or
    description, case-insensitively.
    """
    query = select(Product).where(Product.is_active.is_(True))

    if category:
        query = query.join(Product.category).where(Category.slug == category)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if best_sellers:
        query = query.where(Product.is_best_seller.is_(True))

    total = (await session.execute(
        select(func.count()).select_from(query.subquery())
    )).scalar_one()

    order = PRODUCT_SORTS.get(sort, PRODUCT_SORTS["new"])
    rows = await session.execute(
        query.options(selectinload(Product.category))
        .order_by(order, Product.name)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = list(rows.scalars().all())
    log.debug("products_listed", total=total, page=page, category=category, search=search)
    return ProductPage(items=items, total=total, page=page, page_size=page_size)


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


@with_repository("catalog.get_product")
async def get_product(session: AsyncSession, id_or_slug: str):
    """Look a product up by UUID or slug. Absence is ``Err(NOT_FOUND)``."""
    product_id = _parse_uuid(id_or_slug)
    condition = Product.id == product_id if product_id else Product.slug == id_or_slug

    result = await session.execute(
        select(Product)
        .options(selectinload(Product.category))
        .where(condition, Product.is_active.is_(True))
    )
    product = result.scalar_one_or_none()
    if product is None:
        return not_found("Product", id_or_slug, origin="catalog.get_product")
    return product


@with_repository("catalog.list_categories")
async def list_categories(session: AsyncSession, featured: bool = False) -> list[Category]:
    query = select(Category).order_by(Category.name)
    if featured:
        query = query.where(Category.is_featured.is_(True))
    result = await session.execute(query)
    return list(result.scalars().all())

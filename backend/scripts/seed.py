#!/usr/bin/env python3
"""Seed the development database from data/seed.yaml.

Clears catalog and user data, then inserts categories, products and
verified demo users (passwords are hashed on the way in).

Run with: python3 -m scripts.seed
"""
import asyncio
import re
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import yaml
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db_session, engine, Base
from core.logging import configure_logging, get_logger
from core.security import hash_password, utcnow
from models import Category, Product, User, VerificationToken

SEED_FILE = Path(__file__).parent.parent.parent / "data" / "seed.yaml"

log = get_logger("storefront.seed")


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().replace("'", ""))
    return slug.strip("-")[:200]


def load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


async def clear_data(session: AsyncSession):
    await session.execute(delete(Product))
    await session.execute(delete(Category))
    await session.execute(delete(VerificationToken))
    await session.execute(delete(User))
    await session.flush()
    log.info("seed_cleared")


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return utcnow()


async def seed(session: AsyncSession, data: dict) -> dict[str, int]:
    """Insert everything in ``data``. Returns row counts per kind."""
    categories: dict[str, Category] = {}
    for item in data.get("categories", []):
        category = Category(
            name=item["name"],
            slug=item.get("slug") or slugify(item["name"]),
            description=item.get("description"),
            image=item.get("image"),
            is_featured=item.get("featured", False),
        )
        session.add(category)
        categories[category.slug] = category
    await session.flush()

    products = 0
    for item in data.get("products", []):
        category_slug = item.get("category")
        if category_slug and category_slug not in categories:
            log.warning("seed_unknown_category", product=item["name"], category=category_slug)
        session.add(Product(
            name=item["name"],
            slug=item.get("slug") or slugify(item["name"]),
            description=item.get("description"),
            price=Decimal(str(item["price"])),
            image=item.get("image"),
            rating=item.get("rating", 0.0),
            stock=item.get("stock", 0),
            is_best_seller=item.get("best_seller", False),
            category=categories.get(category_slug),
            created_at=_as_datetime(item.get("created")),
        ))
        products += 1

    users = 0
    for item in data.get("users", []):
        session.add(User(
            name=item.get("name"),
            email=item["email"].lower(),
            password=hash_password(item["password"]),
            role=item.get("role", "USER"),
            email_verified=utcnow(),
        ))
        users += 1

    await session.flush()
    return {"categories": len(categories), "products": products, "users": users}


async def main():
    configure_logging(level="INFO")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    data = load_yaml(SEED_FILE)
    if not data:
        log.warning("seed_file_missing", path=str(SEED_FILE))
        return

    async with get_db_session() as session:
        await clear_data(session)
        counts = await seed(session, data)
        await session.commit()

    log.info("seed_complete", **counts)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

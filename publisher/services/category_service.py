"""
Category service: category listing (optionally with article counts)
and creation.

Categories are never removed as a side effect of article writes; only
their links to articles are.
"""
import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from publisher.cache import cache
from publisher.config import settings
from publisher.database import after_commit
from publisher.repositories import CategoryRepository
from publisher.schemas import UserClaims
from publisher.services.auth_service import ensure_admin
from publisher.services.validation import validate_category_payload

logger = logging.getLogger(__name__)


async def list_categories(db: AsyncSession, count: bool = False) -> list[dict]:
    """
    Return every category ordered by id.

    With *count*, each entry also carries the number of articles linked
    to it (zero included), as used by sidebars and filters.
    """
    cache_key = f"categories:list:{int(count)}"
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    repo = CategoryRepository(db)
    if count:
        categories = [
            {"id": c.id, "name": c.name, "count": n} for c, n in await repo.list_with_counts()
        ]
    else:
        categories = [{"id": c.id, "name": c.name} for c in await repo.list()]

    await cache.set(cache_key, categories, ttl=settings.CACHE_TTL_LIST)
    return categories


async def create_category(db: AsyncSession, payload: Any, claims: Optional[UserClaims]) -> dict:
    ensure_admin(claims)
    data = validate_category_payload(payload)
    category = await CategoryRepository(db).create(name=data.name)

    after_commit(db, cache.invalidate_categories)
    logger.info("Category created: category_id=%d", category.id)
    return {"id": category.id, "name": category.name}

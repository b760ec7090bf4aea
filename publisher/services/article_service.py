"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Reads go through the cache-aside layer (Redis, falling back to the
  database).  Cache keys encode every argument that changes the result.
- Every write runs the guards first (admin role, existence, then
  payload validation) so a rejected request never touches storage.
  Article and category caches are invalidated once the request's
  transaction has committed.
- Functions return plain dicts so the same value can be cached and
  returned to the router.
"""
import logging
from functools import partial
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from publisher.cache import cache
from publisher.config import settings
from publisher.database import after_commit
from publisher.errors import BadRequest
from publisher.models import Article
from publisher.repositories import ArticleRepository
from publisher.schemas import ArticlePayload, UserClaims
from publisher.services.auth_service import ensure_admin
from publisher.services.comment_service import comment_to_dict
from publisher.services.validation import (
    ensure_article_exists,
    parse_identifier,
    validate_article_payload,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def article_to_dict(article: Article, with_comments: bool = False) -> dict:
    data = {
        "id": article.id,
        "title": article.title,
        "announce": article.announce,
        "full_text": article.full_text,
        "published_at": article.published_at.isoformat(),
        "image": article.image,
        "user_id": article.user_id,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "categories": [{"id": c.id, "name": c.name} for c in article.categories],
    }
    if with_comments:
        data["comments"] = [comment_to_dict(c) for c in article.comments]
    return data


def _fields(data: ArticlePayload) -> dict[str, Any]:
    return {
        "title": data.title,
        "announce": data.announce,
        "full_text": data.full_text,
        "published_at": data.published_at,
        "image": data.image or None,
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def list_articles(
    db: AsyncSession,
    comments: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
    category_id: Optional[int] = None,
) -> dict:
    """
    Return ``{"count": total, "articles": page}``, newest first.

    ``count`` is the number of matching articles regardless of *limit*
    and *offset*, so callers can compute the number of pages.  Without a
    *limit* every article from *offset* on is returned.
    """
    if limit is not None and limit < 0:
        raise BadRequest("limit must not be negative", details={"field": "limit"})
    if offset < 0:
        raise BadRequest("offset must not be negative", details={"field": "offset"})

    cache_key = f"articles:list:{int(comments)}:{limit}:{offset}:{category_id}"
    cached = await cache.get(cache_key)
    if cached:
        return cached

    total, articles = await ArticleRepository(db).find_page(
        limit=limit, offset=offset, with_comments=comments, category_id=category_id
    )
    page = {
        "count": total,
        "articles": [article_to_dict(a, with_comments=comments) for a in articles],
    }
    await cache.set(cache_key, page, ttl=settings.CACHE_TTL_LIST)
    return page


async def get_article(db: AsyncSession, article_id: Any, comments: bool = False) -> dict:
    article_id = parse_identifier(article_id, "article_id")

    cache_key = f"articles:detail:{article_id}:{int(comments)}"
    cached = await cache.get(cache_key)
    if cached:
        return cached

    article = await ensure_article_exists(db, article_id, with_comments=comments)
    data = article_to_dict(article, with_comments=comments)
    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, payload: Any, claims: Optional[UserClaims]) -> dict:
    """
    Validate *payload* and insert the article with its category links.

    Nothing is written when validation fails.  The article and its links
    are flushed in the request's transaction, so they commit or roll
    back together.
    """
    claims = ensure_admin(claims)
    data = await validate_article_payload(db, payload)

    fields = _fields(data)
    fields["user_id"] = claims.id
    article = await ArticleRepository(db).create_with_categories(fields, data.categories)

    after_commit(db, cache.invalidate_article)
    logger.info("Article created: article_id=%d categories=%s", article.id, data.categories)
    return article_to_dict(article)


async def update_article(
    db: AsyncSession, article_id: Any, payload: Any, claims: Optional[UserClaims]
) -> dict:
    """
    Replace the article's fields and category links.

    Existence is checked before the payload, so a missing article is
    reported as such even when the payload is also invalid.  Concurrent
    updates are not locked: the last write wins.
    """
    ensure_admin(claims)
    article = await ensure_article_exists(db, article_id)
    data = await validate_article_payload(db, payload)

    repo = ArticleRepository(db)
    await repo.update(article, **_fields(data))
    await repo.replace_categories(article, data.categories)
    article = await repo.get(article.id)

    after_commit(db, partial(cache.invalidate_article, article.id))
    logger.info("Article updated: article_id=%d", article.id)
    return article_to_dict(article)


async def delete_article(db: AsyncSession, article_id: Any, claims: Optional[UserClaims]) -> dict:
    """
    Delete the article and its comments and return it as it was.

    Category links are removed; the categories themselves stay.
    """
    ensure_admin(claims)
    article = await ensure_article_exists(db, article_id)
    data = article_to_dict(article)

    await ArticleRepository(db).delete_cascade(article)

    after_commit(db, partial(cache.invalidate_article, data["id"]))
    logger.info("Article deleted: article_id=%d", data["id"])
    return data

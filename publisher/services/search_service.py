from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from publisher.errors import BadRequest
from publisher.repositories import ArticleRepository
from publisher.services.article_service import article_to_dict


async def search(db: AsyncSession, query: Optional[str]) -> list[dict]:
    """
    Articles whose title or full text contains *query*, ignoring case.

    An empty or missing query is a ``BadRequest``; no match is an empty
    list.
    """
    if query is None or not query.strip():
        raise BadRequest("Search query is required", details={"field": "query"})

    articles = await ArticleRepository(db).search(query.strip())
    return [article_to_dict(a) for a in articles]

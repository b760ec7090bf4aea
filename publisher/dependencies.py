import json
from typing import Annotated, Any, Optional

from fastapi import Depends, Header, Query, Request

from publisher.config import settings
from publisher.errors import BadRequest
from publisher.schemas import MAX_ID, UserClaims
from publisher.services.auth_service import verify_token


class PaginationParams:
    """
    Reusable FastAPI dependency that parses limit / offset pagination.

    Usage in a router::

        @router.get("/articles")
        async def list_articles(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    limit:
        Page size, clamped to ``settings.MAX_PAGE_SIZE``.  ``None`` means
        "no limit" and returns every article from *offset* on.
    offset:
        Number of articles to skip.
    """

    def __init__(
        self,
        limit: Optional[int] = Query(
            None,
            ge=1,
            description="Number of articles per page.",
        ),
        offset: int = Query(
            0,
            ge=0,
            le=MAX_ID,
            description="Number of articles to skip.",
        ),
    ) -> None:
        self.limit = min(limit, settings.MAX_PAGE_SIZE) if limit is not None else None
        self.offset = offset


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    """Accept both ``Bearer <jwt>`` and a bare ``<jwt>``."""
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer":
        return credentials.strip() or None
    return authorization.strip()


async def require_user(
    authorization: Annotated[Optional[str], Header()] = None,
) -> UserClaims:
    """
    Verify the request's access token and return its claims.

    Declared as a route dependency it runs before the handler body, so an
    unauthenticated write fails with 401 before any lookup happens.
    """
    return verify_token(_extract_token(authorization))


CurrentUser = Annotated[UserClaims, Depends(require_user)]


async def json_body(request: Request) -> Any:
    """
    The request body decoded as JSON, or None when it is empty.

    Read as a dependency rather than a ``Body()`` parameter so that a
    route declaring ``CurrentUser`` first rejects a missing token before
    the body is looked at.
    """
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise BadRequest("Request body is not valid JSON", details={"field": "body"})


JsonBody = Annotated[Any, Depends(json_body)]

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from publisher.database import get_db
from publisher.dependencies import CurrentUser, JsonBody, PaginationParams
from publisher.errors import PayloadInvalid
from publisher.flash import flash
from publisher.schemas import MAX_ID, ArticlePage, ArticleResponse, CommentResponse
from publisher.services import article_service, comment_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

SessionId = Annotated[Optional[str], Header(alias="X-Session-Id")]


async def _flash_rejected_draft(session_id: Optional[str], payload: Any, exc: PayloadInvalid) -> None:
    """Keep the rejected draft and its violations for the client's next read."""
    if session_id:
        await flash.put(session_id, {"article": payload, "violations": exc.violations})


@router.get("", response_model=ArticlePage, response_model_exclude_unset=True)
async def list_articles(
    pagination: PaginationParams = Depends(),
    comments: bool = False,
    category: Optional[int] = Query(None, ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_articles(
        db, comments, pagination.limit, pagination.offset, category
    )

@router.get("/{article_id}", response_model=ArticleResponse, response_model_exclude_unset=True)
async def get_article(article_id: str, comments: bool = False, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article(db, article_id, comments)

@router.post("", status_code=201, response_model=ArticleResponse, response_model_exclude_unset=True)
async def create_article(
    user: CurrentUser,
    payload: JsonBody,
    session_id: SessionId = None,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await article_service.create_article(db, payload, user)
    except PayloadInvalid as exc:
        await _flash_rejected_draft(session_id, payload, exc)
        raise

@router.put("/{article_id}", response_model=ArticleResponse, response_model_exclude_unset=True)
async def update_article(
    article_id: str,
    user: CurrentUser,
    payload: JsonBody,
    session_id: SessionId = None,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await article_service.update_article(db, article_id, payload, user)
    except PayloadInvalid as exc:
        await _flash_rejected_draft(session_id, payload, exc)
        raise

@router.delete("/{article_id}", response_model=ArticleResponse, response_model_exclude_unset=True)
async def delete_article(article_id: str, user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await article_service.delete_article(db, article_id, user)

# ---------------------------------------------------------------------------
# Comments, addressed through their article
# ---------------------------------------------------------------------------

@router.get("/{article_id}/comments", response_model=list[CommentResponse])
async def list_comments(article_id: str, db: AsyncSession = Depends(get_db)):
    return await comment_service.list_comments(db, article_id)

@router.get("/{article_id}/comments/{comment_id}", response_model=CommentResponse)
async def get_comment(article_id: str, comment_id: str, db: AsyncSession = Depends(get_db)):
    return await comment_service.get_comment(db, article_id, comment_id)

@router.post("/{article_id}/comments", status_code=201, response_model=CommentResponse)
async def create_comment(
    article_id: str,
    user: CurrentUser,
    payload: JsonBody,
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.create_comment(db, article_id, payload, user)

@router.delete("/{article_id}/comments/{comment_id}")
async def delete_comment(
    article_id: str,
    comment_id: str,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> bool:
    return await comment_service.delete_comment(db, article_id, comment_id, user)

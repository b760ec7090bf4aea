"""
Comment service: comments addressed through their owning article.

A comment is only reachable as ``(article_id, comment_id)``: every
operation resolves the article first, and a comment id that belongs to
another article is treated as missing.

Writes check, in order: caller identity, identifier syntax, existence,
payload.  The first failing check raises; nothing is written before all
of them pass.  Any signed-in user may comment; a comment can be deleted
by its author or by the admin.
"""
import logging
from functools import partial
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from publisher.cache import cache
from publisher.database import after_commit
from publisher.errors import Forbidden
from publisher.models import Comment
from publisher.repositories import CommentRepository
from publisher.schemas import UserClaims
from publisher.services.auth_service import ensure_authenticated, is_admin
from publisher.services.validation import (
    ensure_article_exists,
    ensure_comment_exists,
    validate_comment_payload,
)

logger = logging.getLogger(__name__)


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "text": comment.text,
        "article_id": comment.article_id,
        "user_id": comment.user_id,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }


async def list_comments(db: AsyncSession, article_id: Any) -> list[dict]:
    """Comments of the article, oldest first."""
    article = await ensure_article_exists(db, article_id)
    comments = await CommentRepository(db).list_for_article(article.id)
    return [comment_to_dict(c) for c in comments]


async def get_comment(db: AsyncSession, article_id: Any, comment_id: Any) -> dict:
    return comment_to_dict(await ensure_comment_exists(db, article_id, comment_id))


async def create_comment(
    db: AsyncSession, article_id: Any, payload: Any, claims: Optional[UserClaims]
) -> dict:
    """
    Attach a new comment to the article.

    A missing article is reported as ``NotFound`` even when the payload
    is invalid too.
    """
    claims = ensure_authenticated(claims)
    article = await ensure_article_exists(db, article_id)
    data = validate_comment_payload(payload)

    comment = await CommentRepository(db).create(
        text=data.text,
        article_id=article.id,
        user_id=claims.id,
    )

    after_commit(db, partial(cache.invalidate_article, article.id))
    logger.info("Comment created: comment_id=%d article_id=%d", comment.id, article.id)
    return comment_to_dict(comment)


async def delete_comment(
    db: AsyncSession, article_id: Any, comment_id: Any, claims: Optional[UserClaims]
) -> bool:
    claims = ensure_authenticated(claims)
    comment = await ensure_comment_exists(db, article_id, comment_id)
    if not is_admin(claims) and comment.user_id != claims.id:
        raise Forbidden("Only the comment's author or the admin can delete it")
    comment_id, article_id = comment.id, comment.article_id

    await CommentRepository(db).delete(comment)

    after_commit(db, partial(cache.invalidate_article, article_id))
    logger.info("Comment deleted: comment_id=%d article_id=%d", comment_id, article_id)
    return True

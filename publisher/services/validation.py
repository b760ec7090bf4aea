"""
Validation pipeline: identifier parsing, payload validation and
existence guards that run before any write.

Guards raise as soon as they fail (``BadRequest`` / ``NotFound``).
Payload validators collect every violation first and raise a single
``PayloadInvalid``.  Nothing here writes to the database.
"""
from typing import Any

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from publisher.errors import BadRequest, NotFound, PayloadInvalid
from publisher.models import Article, Comment
from publisher.repositories import ArticleRepository, CategoryRepository, CommentRepository, UserRepository
from publisher.schemas import MAX_ID, ArticlePayload, CategoryCreate, CommentPayload, RecordId, UserPayload

_ID_LIST = TypeAdapter(list[RecordId])


def _violations(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]) or "body",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


def _parse(model, payload: Any):
    """Return ``(instance_or_None, violations)`` for *payload*."""
    try:
        return model.model_validate(payload), []
    except ValidationError as exc:
        return None, _violations(exc)


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def parse_identifier(raw: Any, name: str = "id") -> int:
    """
    Turn a path identifier into an int.

    A malformed identifier (``"id"``, ``"1.5"``, ``""``) or one past the
    range of the id columns is a ``BadRequest``; a well-formed one that
    matches nothing is left for the existence guards to report as
    ``NotFound``.
    """
    value = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif (
        isinstance(raw, str)
        and raw.isascii()
        and raw.isdigit()
        and len(raw.lstrip("0")) <= len(str(MAX_ID))
    ):
        value = int(raw)
    if value is not None and 0 <= value <= MAX_ID:
        return value
    raise BadRequest(f"Invalid {name}: {raw!r}", details={"field": name})


# ---------------------------------------------------------------------------
# Existence guards
# ---------------------------------------------------------------------------

async def ensure_article_exists(
    db: AsyncSession, article_id: Any, with_comments: bool = False
) -> Article:
    article_id = parse_identifier(article_id, "article_id")
    article = await ArticleRepository(db).get(article_id, with_comments=with_comments)
    if article is None:
        raise NotFound("Article", article_id)
    return article


async def ensure_comment_exists(db: AsyncSession, article_id: Any, comment_id: Any) -> Comment:
    """
    Resolve both identifiers together.  A comment that exists under a
    different article is reported as missing.
    """
    article = await ensure_article_exists(db, article_id)
    comment_id = parse_identifier(comment_id, "comment_id")
    comment = await CommentRepository(db).get_in_article(article.id, comment_id)
    if comment is None:
        raise NotFound("Comment", comment_id)
    return comment


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

async def validate_article_payload(db: AsyncSession, payload: Any) -> ArticlePayload:
    """
    Check the article fields and that every category id resolves.

    Schema violations and unknown categories are reported together.
    """
    article, violations = _parse(ArticlePayload, payload)

    if article is not None:
        category_ids = article.categories
    else:
        raw = payload.get("categories") if isinstance(payload, dict) else None
        try:
            category_ids = _ID_LIST.validate_python(raw)
        except ValidationError:
            category_ids = []

    known = await CategoryRepository(db).existing_ids(category_ids)
    for category_id in dict.fromkeys(category_ids):
        if category_id not in known:
            violations.append({
                "field": "categories",
                "message": f"Category {category_id} does not exist",
            })

    if violations:
        raise PayloadInvalid(violations)
    return article


def validate_comment_payload(payload: Any) -> CommentPayload:
    comment, violations = _parse(CommentPayload, payload)
    if violations:
        raise PayloadInvalid(violations)
    return comment


def validate_category_payload(payload: Any) -> CategoryCreate:
    category, violations = _parse(CategoryCreate, payload)
    if violations:
        raise PayloadInvalid(violations)
    return category


async def validate_user_payload(db: AsyncSession, payload: Any) -> UserPayload:
    """Field checks, password confirmation and email uniqueness, reported together."""
    user, violations = _parse(UserPayload, payload)
    raw = payload if isinstance(payload, dict) else {}

    password = raw.get("password")
    repeated = raw.get("repeated_password")
    if isinstance(password, str) and isinstance(repeated, str) and password != repeated:
        violations.append({"field": "repeated_password", "message": "Passwords do not match"})

    email = raw.get("email")
    if isinstance(email, str) and await UserRepository(db).email_exists(email):
        violations.append({"field": "email", "message": "Email is already registered"})

    if violations:
        raise PayloadInvalid(violations)
    return user

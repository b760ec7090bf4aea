"""
Repositories: the only code that issues SQL.

Each repository wraps the request's ``AsyncSession``.  Methods flush but
never commit; ``publisher.database.get_db`` owns the transaction, so a
failure anywhere in a request rolls back everything it wrote.

Relationships on the models are ``lazy="noload"``, so anything a caller
needs (categories, comments) is eager-loaded here with ``selectinload``.
"""
from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from publisher.database import Base
from publisher.models import Article, ArticleCategory, Category, Comment, User

ModelType = TypeVar("ModelType", bound=Base)


class Repository(Generic[ModelType]):
    """Generic CRUD over one mapped class with an integer ``id``."""

    model: Type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, record_id: int) -> Optional[ModelType]:
        result = await self.session.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def list(self, *, offset: int = 0, limit: Optional[int] = None) -> list[ModelType]:
        q = select(self.model).order_by(self.model.id).offset(offset)
        if limit is not None:
            q = q.limit(limit)
        result = await self.session.execute(q)
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()

    async def create(self, **fields: Any) -> ModelType:
        instance = self.model(**fields)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, instance: ModelType, **fields: Any) -> ModelType:
        for name, value in fields.items():
            setattr(instance, name, value)
        await self.session.flush()
        return instance

    async def delete(self, instance: ModelType) -> bool:
        await self.session.delete(instance)
        await self.session.flush()
        return True


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------

class ArticleRepository(Repository[Article]):
    model = Article

    @staticmethod
    def _load_options(with_comments: bool) -> list:
        options = [selectinload(Article.categories)]
        if with_comments:
            options.append(selectinload(Article.comments))
        return options

    async def get(self, record_id: int, with_comments: bool = False) -> Optional[Article]:
        q = (
            select(Article)
            .where(Article.id == record_id)
            .options(*self._load_options(with_comments))
            # Re-populate relationships on an instance already in the identity map.
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(q)
        return result.scalar_one_or_none()

    async def find_page(
        self,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
        with_comments: bool = False,
        category_id: Optional[int] = None,
    ) -> tuple[int, list[Article]]:
        """
        Return ``(total, page)``.  *total* counts every matching article
        regardless of *limit* / *offset*.
        """
        count_q = select(func.count()).select_from(Article)
        page_q = select(Article)
        if category_id is not None:
            in_category = Article.id.in_(
                select(ArticleCategory.article_id).where(ArticleCategory.category_id == category_id)
            )
            count_q = count_q.where(in_category)
            page_q = page_q.where(in_category)

        total: int = (await self.session.execute(count_q)).scalar_one()

        page_q = (
            page_q.options(*self._load_options(with_comments))
            .order_by(desc(Article.published_at), desc(Article.id))
            .offset(offset)
        )
        if limit is not None:
            page_q = page_q.limit(limit)
        result = await self.session.execute(page_q)
        return total, list(result.scalars().all())

    async def search(self, query: str) -> list[Article]:
        """Case-insensitive substring match on title or full text."""
        escaped = query.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        q = (
            select(Article)
            .where(
                or_(
                    func.lower(Article.title).like(pattern, escape="\\"),
                    func.lower(Article.full_text).like(pattern, escape="\\"),
                )
            )
            .options(*self._load_options(False))
            .order_by(desc(Article.published_at), desc(Article.id))
        )
        result = await self.session.execute(q)
        return list(result.scalars().all())

    async def create_with_categories(
        self, fields: dict[str, Any], category_ids: Sequence[int]
    ) -> Article:
        """
        Insert the article and one ArticleCategory row per category.

        Both go out in the caller's transaction: if any link fails the
        article is rolled back with it.
        """
        article = Article(**fields)
        self.session.add(article)
        await self.session.flush()
        self.session.add_all(
            ArticleCategory(article_id=article.id, category_id=category_id)
            for category_id in dict.fromkeys(category_ids)
        )
        await self.session.flush()
        return await self.get(article.id)

    async def replace_categories(self, article: Article, category_ids: Sequence[int]) -> None:
        """Drop the article's links and recreate them; Category rows are untouched."""
        await self.session.execute(
            delete(ArticleCategory).where(ArticleCategory.article_id == article.id)
        )
        self.session.add_all(
            ArticleCategory(article_id=article.id, category_id=category_id)
            for category_id in dict.fromkeys(category_ids)
        )
        await self.session.flush()

    async def delete_cascade(self, article: Article) -> bool:
        """Delete the article's comments and category links, then the article."""
        await self.session.execute(delete(Comment).where(Comment.article_id == article.id))
        await self.session.execute(
            delete(ArticleCategory).where(ArticleCategory.article_id == article.id)
        )
        return await self.delete(article)


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------

class CategoryRepository(Repository[Category]):
    model = Category

    async def list_with_counts(self) -> list[tuple[Category, int]]:
        """Every category with the number of articles linked to it (0 included)."""
        q = (
            select(Category, func.count(ArticleCategory.article_id))
            .outerjoin(ArticleCategory, ArticleCategory.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.id)
        )
        result = await self.session.execute(q)
        return [(category, count) for category, count in result.all()]

    async def existing_ids(self, ids: Sequence[int]) -> set[int]:
        if not ids:
            return set()
        result = await self.session.execute(select(Category.id).where(Category.id.in_(set(ids))))
        return set(result.scalars().all())


# ---------------------------------------------------------------------------
# Comment
# ---------------------------------------------------------------------------

class CommentRepository(Repository[Comment]):
    model = Comment

    async def list_for_article(self, article_id: int) -> list[Comment]:
        q = (
            select(Comment)
            .where(Comment.article_id == article_id)
            .order_by(Comment.created_at, Comment.id)
        )
        result = await self.session.execute(q)
        return list(result.scalars().all())

    async def get_in_article(self, article_id: int, comment_id: int) -> Optional[Comment]:
        """The comment, only if it belongs to *article_id*."""
        q = select(Comment).where(Comment.id == comment_id, Comment.article_id == article_id)
        result = await self.session.execute(q)
        return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------

class UserRepository(Repository[User]):
    model = User

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

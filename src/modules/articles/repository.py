"""Article repository for database operations."""

from datetime import UTC, date, datetime, timedelta
from uuid import UUID

import structlog

from src.infrastructure.database import Database
from src.modules.articles.models import Article
from src.modules.common.clock import iso
from src.modules.common.validation import unique_violations

logger = structlog.get_logger()

_FIELDS = (
    "id",
    "column_id",
    "title",
    "body",
    "byline",
    "image",
    "author_id",
    "editor_id",
    "reviewer_id",
    "movie_id",
    "status",
    "draft",
    "finalized",
    "reviewed",
    "published",
    "rejected",
    "date",
    "edited_at",
    "responded_at",
    "finalized_at",
    "reviewed_at",
    "published_at",
    "created_at",
    "updated_at",
)


def _optional_id(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


def _values(article: Article) -> dict[str, object]:
    return {
        "id": str(article.id),
        "column_id": str(article.column_id),
        "title": article.title,
        "body": article.body,
        "byline": article.byline,
        "image": article.image,
        "author_id": _optional_id(article.author_id),
        "editor_id": _optional_id(article.editor_id),
        "reviewer_id": _optional_id(article.reviewer_id),
        "movie_id": _optional_id(article.movie_id),
        "status": article.status.value,
        "draft": int(article.draft),
        "finalized": int(article.finalized),
        "reviewed": int(article.reviewed),
        "published": int(article.published),
        "rejected": int(article.rejected),
        "date": iso(article.date),
        "edited_at": iso(article.edited_at),
        "responded_at": iso(article.responded_at),
        "finalized_at": iso(article.finalized_at),
        "reviewed_at": iso(article.reviewed_at),
        "published_at": iso(article.published_at),
        "created_at": article.created_at.isoformat(),
        "updated_at": article.updated_at.isoformat(),
    }


class ArticleRepository:
    """Repository for Article CRUD operations and public listings.

    Counter caches on columns and users are kept in step with inserts,
    deletes and column or author changes.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    async def insert(self, article: Article) -> Article:
        columns = ", ".join(_FIELDS)
        placeholders = ", ".join(f":{field}" for field in _FIELDS)
        with unique_violations():
            async with self._db.transaction():
                await self._db.execute(
                    f"INSERT INTO articles ({columns}) VALUES ({placeholders})",  # nosec B608
                    _values(article),
                )
                await self._adjust_counts(article.column_id, article.author_id, 1)

        logger.info(
            "article_created",
            article_id=str(article.id),
            status=article.status.value,
        )
        return article

    async def update(self, article: Article, previous: Article) -> Article:
        """Persist ``article``; ``previous`` is its state before the edit."""
        article.updated_at = datetime.now(UTC)
        assignments = ", ".join(f"{field} = :{field}" for field in _FIELDS if field != "id")
        with unique_violations():
            async with self._db.transaction():
                await self._db.execute(
                    f"UPDATE articles SET {assignments} WHERE id = :id",  # nosec B608
                    _values(article),
                )
                if previous.column_id != article.column_id:
                    await self._adjust_column(previous.column_id, -1)
                    await self._adjust_column(article.column_id, 1)
                if previous.author_id != article.author_id:
                    await self._adjust_author(previous.author_id, -1)
                    await self._adjust_author(article.author_id, 1)

        logger.info(
            "article_updated",
            article_id=str(article.id),
            status=article.status.value,
        )
        return article

    async def delete(self, article: Article) -> bool:
        async with self._db.transaction():
            cursor = await self._db.execute(
                "DELETE FROM articles WHERE id = ?",
                (str(article.id),),
            )
            deleted = cursor.rowcount > 0
            if deleted:
                await self._adjust_counts(article.column_id, article.author_id, -1)

        if deleted:
            logger.info("article_deleted", article_id=str(article.id))
        return deleted

    async def get_by_id(self, article_id: UUID) -> Article | None:
        row = await self._db.fetch_one(
            "SELECT * FROM articles WHERE id = ?",
            (str(article_id),),
        )
        return Article.from_row(dict(row)) if row else None

    async def get_by_movie(self, movie_id: UUID) -> Article | None:
        """The review of a movie."""
        row = await self._db.fetch_one(
            "SELECT * FROM articles WHERE movie_id = ?",
            (str(movie_id),),
        )
        return Article.from_row(dict(row)) if row else None

    async def list_all(self) -> list[Article]:
        """Every article in workflow order for the back-office."""
        rows = await self._db.fetch_all(
            "SELECT * FROM articles ORDER BY status, date, created_at"
        )
        return [Article.from_row(dict(row)) for row in rows]

    async def public(
        self,
        today: date,
        *,
        limit: int | None = None,
        column_id: UUID | None = None,
        author_id: UUID | None = None,
    ) -> list[Article]:
        """Published articles dated up to ``today``, newest first."""
        conditions = ["published = 1", "date IS NOT NULL", "date <= ?"]
        params: list[object] = [today.isoformat()]
        if column_id is not None:
            conditions.append("column_id = ?")
            params.append(str(column_id))
        if author_id is not None:
            conditions.append("author_id = ?")
            params.append(str(author_id))

        sql = (
            f"SELECT * FROM articles WHERE {' AND '.join(conditions)} "  # nosec B608
            "ORDER BY date DESC, published_at DESC"
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = await self._db.fetch_all(sql, tuple(params))
        return [Article.from_row(dict(row)) for row in rows]

    async def public_counts_by_author(self, today: date) -> dict[UUID, int]:
        """Number of public articles per author."""
        rows = await self._db.fetch_all(
            """
            SELECT author_id, COUNT(*) AS total FROM articles
            WHERE published = 1 AND date IS NOT NULL AND date <= ?
              AND author_id IS NOT NULL
            GROUP BY author_id
            """,
            (today.isoformat(),),
        )
        return {UUID(str(row["author_id"])): int(row["total"]) for row in rows}

    async def next_date(self, start_date: date) -> date:
        """Publishing date for the next article: the day after the latest one."""
        latest = await self._db.fetch_value("SELECT MAX(date) FROM articles")
        if latest is None:
            return start_date
        return date.fromisoformat(str(latest)) + timedelta(days=1)

    async def _adjust_counts(
        self, column_id: UUID, author_id: UUID | None, delta: int
    ) -> None:
        await self._adjust_column(column_id, delta)
        await self._adjust_author(author_id, delta)

    async def _adjust_column(self, column_id: UUID, delta: int) -> None:
        await self._db.execute(
            "UPDATE columns SET articles_count = articles_count + ? WHERE id = ?",
            (delta, str(column_id)),
        )

    async def _adjust_author(self, author_id: UUID | None, delta: int) -> None:
        if author_id is None:
            return
        await self._db.execute(
            "UPDATE users SET articles_count = articles_count + ? WHERE id = ?",
            (delta, str(author_id)),
        )

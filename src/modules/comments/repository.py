"""Comment and vote repository."""

from uuid import UUID

import structlog

from src.infrastructure.database import Database
from src.modules.comments.models import Comment

logger = structlog.get_logger()


class CommentRepository:
    """Repository for comments and their votes."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def insert(self, comment: Comment) -> Comment:
        await self._db.execute(
            """
            INSERT INTO comments (id, article_id, parent_id, user_id, body, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                str(comment.id),
                str(comment.article_id),
                str(comment.parent_id) if comment.parent_id else None,
                str(comment.user_id),
                comment.body,
                comment.created_at.isoformat(),
            ),
        )
        logger.info(
            "comment_created",
            comment_id=str(comment.id),
            article_id=str(comment.article_id),
        )
        return comment

    async def get_by_id(self, comment_id: UUID) -> Comment | None:
        row = await self._db.fetch_one("SELECT * FROM comments WHERE id = ?", (str(comment_id),))
        return Comment.from_row(dict(row)) if row else None

    async def delete(self, comment_id: UUID) -> bool:
        cursor = await self._db.execute("DELETE FROM comments WHERE id = ?", (str(comment_id),))
        return cursor.rowcount > 0

    async def list_all(self) -> list[Comment]:
        rows = await self._db.fetch_all("SELECT * FROM comments ORDER BY created_at DESC")
        return [Comment.from_row(dict(row)) for row in rows]

    async def roots(self, article_id: UUID, limit: int) -> list[Comment]:
        """Top level comments, newest first."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM comments
            WHERE article_id = ? AND parent_id IS NULL
            ORDER BY created_at DESC
            LIMIT ?
            """,
            (str(article_id), limit),
        )
        return [Comment.from_row(dict(row)) for row in rows]

    async def count_roots(self, article_id: UUID) -> int:
        value = await self._db.fetch_value(
            "SELECT COUNT(*) FROM comments WHERE article_id = ? AND parent_id IS NULL",
            (str(article_id),),
        )
        return int(value or 0)  # type: ignore[call-overload]

    async def replies(self, article_id: UUID) -> list[Comment]:
        """Every reply on an article, oldest first."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM comments
            WHERE article_id = ? AND parent_id IS NOT NULL
            ORDER BY created_at
            """,
            (str(article_id),),
        )
        return [Comment.from_row(dict(row)) for row in rows]

    async def set_vote(self, comment_id: UUID, user_id: UUID, value: int) -> None:
        """Record a user's vote, replacing an earlier one."""
        await self._db.execute(
            """
            INSERT INTO comment_votes (comment_id, user_id, value) VALUES (?, ?, ?)
            ON CONFLICT(comment_id, user_id) DO UPDATE SET value = excluded.value
            """,
            (str(comment_id), str(user_id), value),
        )

    async def scores(self, article_id: UUID) -> dict[UUID, int]:
        """Vote totals of an article's comments."""
        rows = await self._db.fetch_all(
            """
            SELECT v.comment_id AS comment_id, SUM(v.value) AS score
            FROM comment_votes v JOIN comments c ON c.id = v.comment_id
            WHERE c.article_id = ?
            GROUP BY v.comment_id
            """,
            (str(article_id),),
        )
        return {UUID(str(row["comment_id"])): int(row["score"]) for row in rows}

    async def score(self, comment_id: UUID) -> int:
        value = await self._db.fetch_value(
            "SELECT COALESCE(SUM(value), 0) FROM comment_votes WHERE comment_id = ?",
            (str(comment_id),),
        )
        return int(value or 0)  # type: ignore[call-overload]

    async def votes_by(self, article_id: UUID, user_id: UUID) -> dict[UUID, int]:
        rows = await self._db.fetch_all(
            """
            SELECT v.comment_id AS comment_id, v.value AS value
            FROM comment_votes v JOIN comments c ON c.id = v.comment_id
            WHERE c.article_id = ? AND v.user_id = ?
            """,
            (str(article_id), str(user_id)),
        )
        return {UUID(str(row["comment_id"])): int(row["value"]) for row in rows}

"""Column repository for database operations."""

from datetime import UTC, date, datetime
from uuid import UUID

import structlog

from src.infrastructure.database import Database
from src.modules.columns.models import Column
from src.modules.common.validation import unique_violations

logger = structlog.get_logger()


class ColumnRepository:
    """Repository for Column CRUD operations."""

    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    async def insert(self, column: Column) -> Column:
        with unique_violations():
            await self._db.execute(
                """
                INSERT INTO columns (id, name, short_name, columnist_id, description,
                                     publish_days, start_date, image, articles_count,
                                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    str(column.id),
                    column.name,
                    column.short_name,
                    str(column.columnist_id) if column.columnist_id else None,
                    column.description,
                    column.publish_days,
                    column.start_date.isoformat(),
                    column.image,
                    column.created_at.isoformat(),
                    column.updated_at.isoformat(),
                ),
            )
        logger.info("column_created", column_id=str(column.id), short_name=column.short_name)
        return column

    async def update(self, column: Column) -> Column:
        column.updated_at = datetime.now(UTC)
        with unique_violations():
            await self._db.execute(
                """
                UPDATE columns
                SET name = ?, short_name = ?, columnist_id = ?, description = ?,
                    publish_days = ?, start_date = ?, image = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    column.name,
                    column.short_name,
                    str(column.columnist_id) if column.columnist_id else None,
                    column.description,
                    column.publish_days,
                    column.start_date.isoformat(),
                    column.image,
                    column.updated_at.isoformat(),
                    str(column.id),
                ),
            )
        logger.info("column_updated", column_id=str(column.id))
        return column

    async def delete(self, column_id: UUID) -> bool:
        cursor = await self._db.execute(
            "DELETE FROM columns WHERE id = ?",
            (str(column_id),),
        )
        return cursor.rowcount > 0

    async def get_by_id(self, column_id: UUID) -> Column | None:
        row = await self._db.fetch_one(
            "SELECT * FROM columns WHERE id = ?",
            (str(column_id),),
        )
        return Column.from_row(dict(row)) if row else None

    async def get_by_short_name(self, short_name: str) -> Column | None:
        """Find a column by short name. The column compares without case."""
        row = await self._db.fetch_one(
            "SELECT * FROM columns WHERE short_name = ?",
            (short_name,),
        )
        return Column.from_row(dict(row)) if row else None

    async def list_all(self) -> list[Column]:
        rows = await self._db.fetch_all("SELECT * FROM columns ORDER BY name")
        return [Column.from_row(dict(row)) for row in rows]

    async def live(self, today: date) -> list[Column]:
        """Columns that have started running, ordered by name."""
        rows = await self._db.fetch_all(
            "SELECT * FROM columns WHERE start_date <= ? ORDER BY name",
            (today.isoformat(),),
        )
        return [Column.from_row(dict(row)) for row in rows]

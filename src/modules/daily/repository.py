"""Repositories for daily items and thing categories."""

from datetime import UTC, date, datetime, timedelta
from typing import Generic, TypeVar
from uuid import UUID

import structlog

from src.infrastructure.database import Database
from src.modules.common.clock import iso
from src.modules.common.validation import unique_violations
from src.modules.daily.models import DailyItem, ThingCategory

logger = structlog.get_logger()

ItemT = TypeVar("ItemT", bound=DailyItem)

_SHARED_FIELDS = (
    "id",
    "creator_id",
    "reviewer_id",
    "reviewed",
    "reviewed_at",
    "published",
    "date",
    "notes",
    "created_at",
    "updated_at",
)


def _to_db(value: object) -> object:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (date, datetime)):
        return iso(value)
    return value


class DailyItemRepository(Generic[ItemT]):
    """CRUD and calendar queries for one daily item type."""

    def __init__(self, database: Database, model: type[ItemT]) -> None:
        self._db = database
        self._model = model
        self._fields = (*_SHARED_FIELDS, *model.content_fields())

    @property
    def database(self) -> Database:
        return self._db

    @property
    def model(self) -> type[ItemT]:
        return self._model

    @property
    def table(self) -> str:
        return self._model.TABLE

    def _values(self, item: ItemT) -> dict[str, object]:
        return {name: _to_db(getattr(item, name)) for name in self._fields}

    async def insert(self, item: ItemT) -> ItemT:
        columns = ", ".join(self._fields)
        placeholders = ", ".join(f":{name}" for name in self._fields)
        with unique_violations():
            await self._db.execute(
                f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})",  # nosec B608
                self._values(item),
            )
        logger.info("daily_item_created", model=self._model.MODEL, item_id=str(item.id))
        return item

    async def update(self, item: ItemT) -> ItemT:
        item.updated_at = datetime.now(UTC)
        assignments = ", ".join(f"{name} = :{name}" for name in self._fields if name != "id")
        with unique_violations():
            await self._db.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = :id",  # nosec B608
                self._values(item),
            )
        logger.info("daily_item_updated", model=self._model.MODEL, item_id=str(item.id))
        return item

    async def delete(self, item_id: UUID) -> bool:
        cursor = await self._db.execute(
            f"DELETE FROM {self.table} WHERE id = ?",  # nosec B608
            (str(item_id),),
        )
        return cursor.rowcount > 0

    async def get_by_id(self, item_id: UUID) -> ItemT | None:
        row = await self._db.fetch_one(
            f"SELECT * FROM {self.table} WHERE id = ?",  # nosec B608
            (str(item_id),),
        )
        return self._model.from_row(dict(row)) if row else None

    async def list_all(self) -> list[ItemT]:
        """Back-office order: scheduled items by date, then unscheduled by age."""
        rows = await self._db.fetch_all(
            f"SELECT * FROM {self.table} "  # nosec B608
            "ORDER BY date IS NULL, date, reviewed, created_at"
        )
        return [self._model.from_row(dict(row)) for row in rows]

    async def of_the_day(self, today: date) -> ItemT | None:
        row = await self._db.fetch_one(
            f"SELECT * FROM {self.table} WHERE published = 1 AND date = ?",  # nosec B608
            (today.isoformat(),),
        )
        return self._model.from_row(dict(row)) if row else None

    async def next_date(self, start_date: date) -> date:
        """The day after the latest scheduled item, or ``start_date``."""
        latest = await self._db.fetch_value(
            f"SELECT MAX(date) FROM {self.table}"  # nosec B608
        )
        if latest is None:
            return start_date
        return date.fromisoformat(str(latest)) + timedelta(days=1)


class ThingCategoryRepository:
    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    async def insert(self, category: ThingCategory) -> ThingCategory:
        with unique_violations():
            await self._db.execute(
                "INSERT INTO thing_categories (id, category) VALUES (?, ?)",
                (str(category.id), category.category),
            )
        return category

    async def update(self, category: ThingCategory) -> ThingCategory:
        with unique_violations():
            await self._db.execute(
                "UPDATE thing_categories SET category = ? WHERE id = ?",
                (category.category, str(category.id)),
            )
        return category

    async def delete(self, category_id: UUID) -> bool:
        cursor = await self._db.execute(
            "DELETE FROM thing_categories WHERE id = ?", (str(category_id),)
        )
        return cursor.rowcount > 0

    async def get_by_id(self, category_id: UUID) -> ThingCategory | None:
        row = await self._db.fetch_one(
            "SELECT * FROM thing_categories WHERE id = ?", (str(category_id),)
        )
        return ThingCategory.from_row(dict(row)) if row else None

    async def list_all(self) -> list[ThingCategory]:
        rows = await self._db.fetch_all("SELECT * FROM thing_categories ORDER BY category")
        return [ThingCategory.from_row(dict(row)) for row in rows]

    async def is_used(self, category_id: UUID) -> bool:
        row = await self._db.fetch_one(
            "SELECT 1 FROM things WHERE category_id = ? LIMIT 1", (str(category_id),)
        )
        return row is not None

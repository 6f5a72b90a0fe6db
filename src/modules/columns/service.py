"""Column service for business logic."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

import structlog

from src.modules.audit import AuditRepository, diff
from src.modules.auth.models import User
from src.modules.auth.permissions import authorize
from src.modules.auth.repository import UserRepository
from src.modules.columns.models import CINEMA, GUYDE, Column
from src.modules.columns.repository import ColumnRepository
from src.modules.columns.schemas import ColumnInput
from src.modules.common.clock import site_today
from src.modules.common.exceptions import NotFoundError
from src.modules.common.fields import url_text
from src.modules.common.validation import ValidationError, Validator

logger = structlog.get_logger()


class ColumnService:
    """Creates, edits and looks up editorial columns."""

    def __init__(
        self,
        repository: ColumnRepository,
        users: UserRepository,
        audit: AuditRepository,
    ) -> None:
        self._repo = repository
        self._users = users
        self._audit = audit

    async def get(self, column_id: UUID) -> Column:
        column = await self._repo.get_by_id(column_id)
        if column is None:
            raise NotFoundError("Column", column_id)
        return column

    async def get_by_slug(self, slug: str) -> Column:
        column = await self._repo.get_by_short_name(slug)
        if column is None:
            raise NotFoundError("Column", slug)
        return column

    async def list_all(self) -> list[Column]:
        return await self._repo.list_all()

    async def live(self) -> list[Column]:
        return await self._repo.live(site_today())

    async def movie(self) -> Column | None:
        """The column that holds movie reviews."""
        return await self._repo.get_by_short_name(CINEMA)

    async def guyde(self) -> Column | None:
        return await self._repo.get_by_short_name(GUYDE)

    async def create(self, data: ColumnInput, actor: User) -> Column:
        """Create a column.

        Raises:
            AccessDenied: If the actor may not manage columns.
            ValidationError: If any field is invalid.
        """
        authorize(actor, "create", "Column")

        now = datetime.now(UTC)
        column = Column(
            id=uuid4(),
            name="",
            short_name="",
            columnist_id=None,
            description="",
            publish_days="",
            start_date=site_today(),
            image=None,
            articles_count=0,
            created_at=now,
            updated_at=now,
        )
        await self._apply(column, data)
        await self._repo.insert(column)
        await self._audit.record("Column", column.id, "create", actor.id)
        return column

    async def update(self, column_id: UUID, data: ColumnInput, actor: User) -> Column:
        column = await self.get(column_id)
        authorize(actor, "update", "Column", column)

        before = _snapshot(column)
        await self._apply(column, data)
        await self._repo.update(column)
        await self._audit.record(
            "Column", column.id, "update", actor.id, diff(before, _snapshot(column))
        )
        return column

    async def delete(self, column_id: UUID, actor: User) -> None:
        column = await self.get(column_id)
        authorize(actor, "destroy", "Column", column)

        if column.articles_count > 0:
            raise ValidationError.single("base", "Cannot delete a column with articles")

        await self._repo.delete(column_id)
        await self._audit.record("Column", column_id, "delete", actor.id)
        logger.info("column_deleted", column_id=str(column_id))

    async def _apply(self, column: Column, data: ColumnInput) -> None:
        """Check uniqueness and references, then copy input onto ``column``."""
        db = self._repo.database
        v = Validator()

        await v.unique(db, "columns", "name", data.name, exclude_id=column.id)
        await v.unique(db, "columns", "short_name", data.short_name, exclude_id=column.id)
        await v.unique(db, "columns", "description", data.description, exclude_id=column.id)
        await v.unique(db, "columns", "publish_days", data.publish_days, exclude_id=column.id)

        if data.columnist_id is not None:
            if await self._users.get_by_id(data.columnist_id) is None:
                v.add("columnist", "is invalid")

        v.check()

        column.name = data.name
        column.short_name = data.short_name
        column.description = data.description
        column.publish_days = data.publish_days
        column.columnist_id = data.columnist_id
        column.image = url_text(data.image)
        column.start_date = data.start_date


def _snapshot(column: Column) -> dict[str, object]:
    return {
        "name": column.name,
        "short_name": column.short_name,
        "columnist_id": str(column.columnist_id) if column.columnist_id else None,
        "description": column.description,
        "publish_days": column.publish_days,
        "start_date": column.start_date.isoformat(),
        "image": column.image,
    }

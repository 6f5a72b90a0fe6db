"""Change history for back-office edits."""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

import structlog

from src.infrastructure.database import Database

logger = structlog.get_logger()

AuditAction = Literal["create", "update", "delete"]


@dataclass
class AuditEntry:
    """One recorded change."""

    id: UUID
    model: str
    object_id: str
    action: str
    user_id: UUID | None
    changes: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AuditEntry":
        return cls(
            id=UUID(str(row["id"])),
            model=str(row["model"]),
            object_id=str(row["object_id"]),
            action=str(row["action"]),
            user_id=UUID(str(row["user_id"])) if row["user_id"] else None,
            changes=json.loads(row["changes"]) if row["changes"] else {},
            created_at=datetime.fromisoformat(str(row["created_at"])),
        )


def diff(before: dict[str, Any], after: dict[str, Any]) -> dict[str, list[Any]]:
    """Fields whose value changed, as ``{field: [old, new]}``."""
    changes: dict[str, list[Any]] = {}
    for key in sorted(set(before) | set(after)):
        old, new = before.get(key), after.get(key)
        if old != new:
            changes[key] = [old, new]
    return changes


class AuditRepository:
    """Stores and lists audit entries."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def record(
        self,
        model: str,
        object_id: UUID | str,
        action: AuditAction,
        user_id: UUID | None,
        changes: dict[str, Any] | None = None,
    ) -> AuditEntry:
        """Append an entry to the history of one record."""
        entry = AuditEntry(
            id=uuid4(),
            model=model,
            object_id=str(object_id),
            action=action,
            user_id=user_id,
            changes=changes or {},
            created_at=datetime.now(UTC),
        )
        await self._db.execute(
            """
            INSERT INTO audit_log (id, model, object_id, action, user_id, changes, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(entry.id),
                entry.model,
                entry.object_id,
                entry.action,
                str(user_id) if user_id else None,
                json.dumps(entry.changes, default=str),
                entry.created_at.isoformat(),
            ),
        )
        logger.debug(
            "audit_recorded",
            model=model,
            object_id=str(object_id),
            action=action,
        )
        return entry

    async def history(self, model: str, object_id: UUID | str) -> list[AuditEntry]:
        """Entries for one record, newest first."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM audit_log
            WHERE model = ? AND object_id = ?
            ORDER BY created_at DESC
            """,
            (model, str(object_id)),
        )
        return [AuditEntry.from_row(dict(row)) for row in rows]

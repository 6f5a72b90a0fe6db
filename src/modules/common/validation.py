"""Validation errors shared by the content modules.

Input schemas check the shape of each field; the services add the rules
that need the database (uniqueness, references) and raise everything
together, so forms can show all problems at once.
"""

import re
import sqlite3
from collections import defaultdict
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from uuid import UUID

from pydantic import ValidationError as SchemaError

from src.infrastructure.database import Database


class ValidationError(Exception):
    """Raised when a record fails validation.

    Attributes:
        errors: Field name to list of messages.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = dict(errors)
        super().__init__(
            "; ".join(
                f"{field} {message}"
                for field, messages in self.errors.items()
                for message in messages
            )
        )

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        """Create an error for one field."""
        return cls({field: [message]})

    @classmethod
    def from_schema(
        cls,
        error: SchemaError,
        field_name: Callable[[tuple[int | str, ...]], str] | None = None,
    ) -> "ValidationError":
        """Collect the messages of a failed input schema per field.

        Nested locations read ``ratings[0].rating`` unless ``field_name``
        maps them.
        """
        errors: dict[str, list[str]] = defaultdict(list)
        for item in error.errors():
            loc = tuple(item["loc"])
            name = field_name(loc) if field_name else _dotted(loc)
            errors[name].append(item["msg"])
        return cls(errors)


def _dotted(loc: tuple[int | str, ...]) -> str:
    if not loc:
        return "base"
    name = str(loc[0])
    for part in loc[1:]:
        name += f"[{part}]" if isinstance(part, int) else f".{part}"
    return name


class Validator:
    """Accumulates validation errors for a single record."""

    def __init__(self) -> None:
        self.errors: dict[str, list[str]] = defaultdict(list)

    def add(self, field: str, message: str) -> None:
        self.errors[field].append(message)

    async def unique(
        self,
        db: Database,
        table: str,
        field: str,
        value: object,
        *,
        exclude_id: UUID | None = None,
        scope: dict[str, object] | None = None,
        error_field: str | None = None,
    ) -> None:
        """Require that no other row in ``table`` has the same value.

        Args:
            db: Database to query.
            table: Table name.
            field: Column to check.
            value: Value to look for. Blank values are skipped.
            exclude_id: ID of the record being updated.
            scope: Extra column equality conditions.
            error_field: Field to report the error on (defaults to ``field``).
        """
        if value is None or value == "":
            return

        conditions = [f"{field} = ?"]
        params: list[object] = [value]
        for column, scoped_value in (scope or {}).items():
            conditions.append(f"{column} = ?")
            params.append(scoped_value)
        if exclude_id is not None:
            conditions.append("id != ?")
            params.append(str(exclude_id))

        row = await db.fetch_one(
            f"SELECT 1 FROM {table} WHERE {' AND '.join(conditions)} LIMIT 1",  # nosec B608
            tuple(params),
        )
        if row is not None:
            self.add(error_field or field, "has already been taken")

    @property
    def valid(self) -> bool:
        return not self.errors

    def check(self) -> None:
        """Raise ValidationError if any rule failed."""
        if self.errors:
            raise ValidationError(self.errors)


# SQLite reports "UNIQUE constraint failed: table.column[, table.column]"
_UNIQUE_FAILED = re.compile(r"UNIQUE constraint failed: \w+\.(?P<field>\w+)")


@contextmanager
def unique_violations() -> Iterator[None]:
    """Turn a UNIQUE constraint failure into a field error.

    Validators check uniqueness before saving; this catches the rows that
    slip in between the check and the write.
    """
    try:
        yield
    except sqlite3.IntegrityError as e:
        match = _UNIQUE_FAILED.search(str(e))
        if match is None:
            raise
        raise ValidationError.single(match.group("field"), "has already been taken") from e

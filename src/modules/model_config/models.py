"""Per content type settings."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from src.modules.common.clock import parse_date

# Content types that can be configured
CONFIGURABLE_MODELS = [
    "Article",
    "DailyVideo",
    "Position",
    "Rating",
    "Thing",
    "Tip",
]


@dataclass
class ModelConfig:
    """Owner and scheduling settings for one content type.

    Attributes:
        model: Content type name, e.g. "Article".
        owner_id: User who edits new items of this type.
        backup_editor_id: Editor for items the owner creates.
        start_date: First publishing date for the type.
    """

    model: str
    owner_id: UUID | None
    backup_editor_id: UUID | None
    start_date: date | None

    @property
    def id(self) -> str:
        return self.model

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "ModelConfig":
        return cls(
            model=str(row["model"]),
            owner_id=UUID(str(row["owner_id"])) if row["owner_id"] else None,
            backup_editor_id=(
                UUID(str(row["backup_editor_id"])) if row["backup_editor_id"] else None
            ),
            start_date=parse_date(row["start_date"]),
        )

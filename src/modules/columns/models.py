"""Column domain model."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from src.modules.common.clock import parse_date

# Column that holds movie reviews
CINEMA = "Cinema"
# Column for guides
GUYDE = "Guyde"


@dataclass
class Column:
    """An editorial section grouping articles (e.g. "Cinema").

    Attributes:
        publish_days: Weekdays the column runs, as digits 1 (Monday) to 7.
        articles_count: Counter cache of the column's articles.
    """

    id: UUID
    name: str
    short_name: str
    columnist_id: UUID | None
    description: str
    publish_days: str
    start_date: date
    image: str | None
    articles_count: int
    created_at: datetime
    updated_at: datetime

    @property
    def slug(self) -> str:
        """URL parameter for the column page."""
        return self.short_name.lower()

    @property
    def default_image(self) -> str | None:
        return self.image

    @property
    def is_movie_column(self) -> bool:
        return self.short_name == CINEMA

    def is_live(self, today: date) -> bool:
        return self.start_date <= today

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Column":
        return cls(
            id=UUID(str(row["id"])),
            name=str(row["name"]),
            short_name=str(row["short_name"]),
            columnist_id=UUID(str(row["columnist_id"])) if row["columnist_id"] else None,
            description=str(row["description"]),
            publish_days=str(row["publish_days"]),
            start_date=parse_date(row["start_date"]) or date.min,
            image=str(row["image"]) if row["image"] else None,
            articles_count=int(row["articles_count"] or 0),
            created_at=datetime.fromisoformat(str(row["created_at"])),
            updated_at=datetime.fromisoformat(str(row["updated_at"])),
        )

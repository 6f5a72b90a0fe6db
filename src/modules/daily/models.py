"""Daily item domain models.

Tips, things, positions and daily videos share the review and publishing
fields of ``DailyItem``; each published item owns one calendar date.
"""

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, ClassVar
from uuid import UUID

from markupsafe import Markup, escape

from src.modules.common.clock import parse_date, parse_datetime


@dataclass
class DailyItem:
    """Fields shared by every daily item."""

    MODEL: ClassVar[str] = ""
    TABLE: ClassVar[str] = ""
    LABEL_FIELD: ClassVar[str] = ""

    id: UUID
    creator_id: UUID | None
    reviewer_id: UUID | None
    reviewed: bool
    reviewed_at: datetime | None
    published: bool
    date: date | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def label(self) -> str:
        return str(getattr(self, self.LABEL_FIELD))

    def is_of_the_day(self, today: date) -> bool:
        return self.published and self.date == today

    @classmethod
    def content_fields(cls) -> list[str]:
        """Type specific columns, in declaration order."""
        shared = {f.name for f in dataclasses.fields(DailyItem)}
        return [f.name for f in dataclasses.fields(cls) if f.name not in shared]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Any:
        values: dict[str, Any] = {
            "id": UUID(str(row["id"])),
            "creator_id": UUID(str(row["creator_id"])) if row["creator_id"] else None,
            "reviewer_id": UUID(str(row["reviewer_id"])) if row["reviewer_id"] else None,
            "reviewed": bool(row["reviewed"]),
            "reviewed_at": parse_datetime(row["reviewed_at"]),
            "published": bool(row["published"]),
            "date": parse_date(row["date"]),
            "notes": str(row["notes"]) if row["notes"] else None,
            "created_at": datetime.fromisoformat(str(row["created_at"])),
            "updated_at": datetime.fromisoformat(str(row["updated_at"])),
        }
        for name in cls.content_fields():
            value = row[name]
            if name.endswith("_id"):
                values[name] = UUID(str(value)) if value else None
            else:
                values[name] = str(value) if value is not None else None
        return cls(**values)


@dataclass
class Tip(DailyItem):
    MODEL: ClassVar[str] = "Tip"
    TABLE: ClassVar[str] = "tips"
    LABEL_FIELD: ClassVar[str] = "tip"

    tip: str


@dataclass
class ThingCategory:
    id: UUID
    category: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ThingCategory":
        return cls(id=UUID(str(row["id"])), category=str(row["category"]))


@dataclass
class Thing(DailyItem):
    MODEL: ClassVar[str] = "Thing"
    TABLE: ClassVar[str] = "things"
    LABEL_FIELD: ClassVar[str] = "thing"

    thing: str
    description: str
    category_id: UUID
    image: str | None


@dataclass
class Position(DailyItem):
    MODEL: ClassVar[str] = "Position"
    TABLE: ClassVar[str] = "positions"
    LABEL_FIELD: ClassVar[str] = "position"

    position: str
    description: str
    image: str

    @property
    def image_html(self) -> Markup:
        """The image as an ``<img>`` tag with escaped attributes."""
        return Markup('<img src="{}" alt="{}">').format(
            escape(self.image), escape(self.position)
        )


@dataclass
class DailyVideo(DailyItem):
    MODEL: ClassVar[str] = "DailyVideo"
    TABLE: ClassVar[str] = "daily_videos"
    LABEL_FIELD: ClassVar[str] = "title"

    title: str
    source: str


@dataclass
class DailyDose:
    """The items of the day shown beside the pages."""

    video: DailyVideo | None
    thing: Thing | None
    tip: Tip | None
    position: Position | None
    category: ThingCategory | None = None

    @property
    def is_empty(self) -> bool:
        return not any((self.video, self.thing, self.tip, self.position))

"""Article domain models."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from src.modules.auth.models import User
from src.modules.columns.models import Column
from src.modules.common.clock import parse_date, parse_datetime


class ArticleStatus(str, Enum):
    """Editorial workflow stage.

    Values sort in workflow order, so ordering by the stored label lists
    articles by stage.
    """

    DRAFT = "0 - Draft"
    CREATED = "1 - Created"
    EDITED = "2 - Edited"
    REWRITE = "2 - Rewrite"
    RESPONDED = "3 - Responded"
    FINALIZED = "4 - Finalized"
    REVIEWED = "5 - Reviewed"
    PUBLISHED = "6 - Published"
    REJECTED = "7 - Rejected"

    @property
    def label(self) -> str:
        return self.value.split(" - ", 1)[1]


@dataclass
class Article:
    """An article in a column, possibly the review of a movie."""

    id: UUID
    column_id: UUID
    title: str
    body: str
    byline: str | None
    image: str | None
    author_id: UUID | None
    editor_id: UUID | None
    reviewer_id: UUID | None
    movie_id: UUID | None
    status: ArticleStatus
    draft: bool
    finalized: bool
    reviewed: bool
    published: bool
    rejected: bool
    date: date | None
    edited_at: datetime | None
    responded_at: datetime | None
    finalized_at: datetime | None
    reviewed_at: datetime | None
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @property
    def is_review(self) -> bool:
        return self.movie_id is not None

    def has_status(self, status: ArticleStatus | str) -> bool:
        return self.status == ArticleStatus(status)

    def is_public(self, today: date) -> bool:
        """Published and dated today or earlier."""
        return self.published and self.date is not None and self.date <= today

    @property
    def display_date(self) -> str:
        return self.date.strftime("%B %d, %Y") if self.date else ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Article":
        return cls(
            id=UUID(str(row["id"])),
            column_id=UUID(str(row["column_id"])),
            title=str(row["title"]),
            body=str(row["body"]),
            byline=str(row["byline"]) if row["byline"] else None,
            image=str(row["image"]) if row["image"] else None,
            author_id=UUID(str(row["author_id"])) if row["author_id"] else None,
            editor_id=UUID(str(row["editor_id"])) if row["editor_id"] else None,
            reviewer_id=UUID(str(row["reviewer_id"])) if row["reviewer_id"] else None,
            movie_id=UUID(str(row["movie_id"])) if row["movie_id"] else None,
            status=ArticleStatus(str(row["status"])),
            draft=bool(row["draft"]),
            finalized=bool(row["finalized"]),
            reviewed=bool(row["reviewed"]),
            published=bool(row["published"]),
            rejected=bool(row["rejected"]),
            date=parse_date(row["date"]),
            edited_at=parse_datetime(row["edited_at"]),
            responded_at=parse_datetime(row["responded_at"]),
            finalized_at=parse_datetime(row["finalized_at"]),
            reviewed_at=parse_datetime(row["reviewed_at"]),
            published_at=parse_datetime(row["published_at"]),
            created_at=datetime.fromisoformat(str(row["created_at"])),
            updated_at=datetime.fromisoformat(str(row["updated_at"])),
        )


@dataclass
class ArticleView:
    """An article together with the records its pages display."""

    article: Article
    column: Column
    author: User | None
    editor: User | None

    @property
    def type_label(self) -> str:
        return self.column.short_name.upper()

    @property
    def display_image(self) -> str | None:
        return self.article.image or self.column.default_image

    @property
    def display_byline(self) -> str | None:
        if self.article.byline:
            return self.article.byline
        return self.author.byline if self.author else None

    @property
    def author_and_date(self) -> str:
        name = self.author.name if self.author else "Dudefest"
        return f"By {name} on {self.article.display_date}"

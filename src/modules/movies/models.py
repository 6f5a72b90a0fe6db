"""Movie, genre and rating domain models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from src.modules.articles.models import Article, ArticleView
from src.modules.auth.models import User
from src.modules.common.clock import parse_date, parse_datetime, site_midnight

RATING_STEP = 0.5
MAX_RATING = 10.0


def rating_enum() -> list[float]:
    """Allowed ratings, highest first: 10.0, 9.5, ..., 0.0."""
    steps = int(MAX_RATING / RATING_STEP)
    return [(steps - i) * RATING_STEP for i in range(steps + 1)]


def format_rating(value: float) -> str:
    """``8.0`` -> ``"8"``, ``7.5`` -> ``"7.5"``."""
    return str(int(value)) if value == int(value) else str(value)


@dataclass
class Genre:
    id: UUID
    name: str
    movies_count: int
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Genre":
        return cls(
            id=UUID(str(row["id"])),
            name=str(row["name"]),
            movies_count=int(row["movies_count"] or 0),
            created_at=datetime.fromisoformat(str(row["created_at"])),
        )


@dataclass
class Movie:
    """A reviewed movie.

    Attributes:
        ratings_count: Counter cache of all ratings.
        total_rating: Sum of reviewed ratings.
        reviewed_ratings: Number of reviewed ratings.
        genre_ids: Genres, loaded with the movie.
    """

    id: UUID
    title: str
    release_date: date
    creator_id: UUID | None
    ratings_count: int
    total_rating: float
    reviewed_ratings: int
    created_at: datetime
    updated_at: datetime
    genre_ids: list[UUID] = field(default_factory=list)

    @property
    def average_rating(self) -> float | None:
        if self.reviewed_ratings > 0:
            return self.total_rating / self.reviewed_ratings
        return None

    @property
    def display_average(self) -> str | None:
        average = self.average_rating
        return format_rating(round(average, 1)) if average is not None else None

    @property
    def title_with_year(self) -> str:
        return f"{self.title.upper()} ({self.release_date.year})"

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Movie":
        return cls(
            id=UUID(str(row["id"])),
            title=str(row["title"]),
            release_date=parse_date(row["release_date"]) or date.min,
            creator_id=UUID(str(row["creator_id"])) if row["creator_id"] else None,
            ratings_count=int(row["ratings_count"] or 0),
            total_rating=float(row["total_rating"] or 0),
            reviewed_ratings=int(row["reviewed_ratings"] or 0),
            created_at=datetime.fromisoformat(str(row["created_at"])),
            updated_at=datetime.fromisoformat(str(row["updated_at"])),
        )


class RatingStatus(str, Enum):
    """Back-office list status, in list order."""

    NEEDS_WORK = "Needs Work"
    UNREVIEWED = "Unreviewed"
    REVIEWED = "Reviewed"


@dataclass
class Rating:
    """One writer's score and blurb for a movie."""

    id: UUID
    movie_id: UUID
    creator_id: UUID | None
    body: str
    rating: float
    reviewed: bool
    reviewer_id: UUID | None
    reviewed_at: datetime | None
    needs_work: bool
    notes: str | None
    weekly_output: int | None
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @property
    def display_rating(self) -> str:
        return format_rating(self.rating)

    @property
    def status(self) -> RatingStatus:
        if self.needs_work:
            return RatingStatus.NEEDS_WORK
        if not self.reviewed:
            return RatingStatus.UNREVIEWED
        return RatingStatus.REVIEWED

    def label(self, creator: User | None) -> str:
        if creator is None:
            return "New Rating"
        return f"{creator.username} - {self.display_rating}"

    def compute_published_at(self, review: Article | None) -> datetime | None:
        """When the rating goes public: once reviewed and the review is out.

        The later of the review's date (at midnight) and the sign-off.
        """
        if not self.reviewed or review is None or not review.published:
            return None
        candidates = [
            moment
            for moment in (
                site_midnight(review.date) if review.date else None,
                self.reviewed_at,
            )
            if moment is not None
        ]
        return max(candidates) if candidates else None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Rating":
        return cls(
            id=UUID(str(row["id"])),
            movie_id=UUID(str(row["movie_id"])),
            creator_id=UUID(str(row["creator_id"])) if row["creator_id"] else None,
            body=str(row["body"]),
            rating=float(row["rating"]),
            reviewed=bool(row["reviewed"]),
            reviewer_id=UUID(str(row["reviewer_id"])) if row["reviewer_id"] else None,
            reviewed_at=parse_datetime(row["reviewed_at"]),
            needs_work=bool(row["needs_work"]),
            notes=str(row["notes"]) if row["notes"] else None,
            weekly_output=int(row["weekly_output"]) if row["weekly_output"] else None,
            published_at=parse_datetime(row["published_at"]),
            created_at=datetime.fromisoformat(str(row["created_at"])),
            updated_at=datetime.fromisoformat(str(row["updated_at"])),
        )


@dataclass
class RatingView:
    rating: Rating
    movie: Movie
    creator: User | None

    @property
    def label(self) -> str:
        return self.rating.label(self.creator)


@dataclass
class MovieView:
    """A movie with its review, genres and ratings for display."""

    movie: Movie
    review: ArticleView | None
    genres: list[Genre]
    ratings: list[RatingView]

    @property
    def author_and_date(self) -> str:
        if self.review is None or self.review.author is None:
            return ""
        return f"Reviewed by {self.review.author.name} on {self.review.article.display_date}"

    @property
    def reviewed_ratings(self) -> list[RatingView]:
        return [view for view in self.ratings if view.rating.reviewed]

"""Movie, genre and rating input schemas."""

from datetime import date
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints

from src.modules.articles.schemas import ArticleBody
from src.modules.common.fields import OptionalRichText, OptionalUrl, StripHtml
from src.modules.movies.models import MAX_RATING, RATING_STEP

RatingScore = Annotated[float, Field(ge=0, le=MAX_RATING, multiple_of=RATING_STEP)]


class GenreInput(BaseModel):
    name: Annotated[str, StringConstraints(min_length=1), StripHtml]


class RatingInput(BaseModel):
    """A rating as entered in the back-office."""

    body: Annotated[str, StringConstraints(min_length=10, max_length=500), StripHtml]
    rating: RatingScore
    reviewed: bool = False
    needs_work: bool = False
    notes: Annotated[str | None, StringConstraints(strip_whitespace=True)] = None
    weekly_output: Annotated[int, Field(ge=1, le=2)] | None = None


class ReviewInput(BaseModel):
    """The review written together with a new movie."""

    body: ArticleBody
    byline: OptionalRichText = None
    image: OptionalUrl = None
    draft: bool = False


class MovieInput(BaseModel):
    """A movie with its genres. New movies also carry a review and ratings."""

    title: Annotated[str, StringConstraints(min_length=4, max_length=60), StripHtml]
    release_date: date
    genre_ids: list[UUID] = Field(min_length=1)
    review: ReviewInput | None = None
    ratings: list[RatingInput] = Field(default_factory=list)

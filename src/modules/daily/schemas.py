"""Daily item input schemas. Uniqueness is checked by the services."""

from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, HttpUrl, StringConstraints

from src.modules.common.fields import ImageUrl, OptionalUrl, StripHtml


class DailyItemInput(BaseModel):
    reviewed: bool = False
    published: bool = False
    notes: Annotated[str | None, StringConstraints(strip_whitespace=True)] = None


class TipInput(DailyItemInput):
    tip: Annotated[str, StringConstraints(min_length=10, max_length=200), StripHtml]


class ThingInput(DailyItemInput):
    thing: Annotated[str, StringConstraints(min_length=3, max_length=26), StripHtml]
    description: Annotated[str, StringConstraints(min_length=150, max_length=500), StripHtml]
    category_id: UUID
    image: OptionalUrl = None


class PositionInput(DailyItemInput):
    position: Annotated[str, StringConstraints(min_length=3, max_length=32), StripHtml]
    description: Annotated[str, StringConstraints(min_length=100, max_length=500), StripHtml]
    image: ImageUrl


class DailyVideoInput(DailyItemInput):
    title: Annotated[str, StringConstraints(min_length=3, max_length=80), StripHtml]
    source: HttpUrl


class ThingCategoryInput(BaseModel):
    category: Annotated[str, StringConstraints(min_length=1), StripHtml]

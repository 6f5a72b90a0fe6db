"""Column input schema."""

from datetime import date
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, StringConstraints

from src.modules.common.fields import DaysOfWeek, OptionalUrl, StripHtml


class ColumnInput(BaseModel):
    """Editable column fields. Uniqueness is checked by the service."""

    name: Annotated[str, StringConstraints(min_length=4, max_length=50), StripHtml]
    short_name: Annotated[str, StringConstraints(min_length=3, max_length=10), StripHtml]
    columnist_id: UUID | None = None
    description: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    publish_days: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=7), DaysOfWeek
    ]
    start_date: date
    image: OptionalUrl = None

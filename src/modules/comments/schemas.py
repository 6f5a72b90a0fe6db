"""Comment input schema."""

from typing import Annotated

from pydantic import BaseModel, StringConstraints

from src.modules.common.fields import StripHtml


class CommentInput(BaseModel):
    body: Annotated[str, StringConstraints(min_length=1, max_length=1000), StripHtml]

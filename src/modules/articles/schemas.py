"""Article input schema."""

from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, StringConstraints

from src.modules.common.fields import OptionalRichText, OptionalUrl, RichText, StripHtml

ArticleTitle = Annotated[str, StringConstraints(min_length=10, max_length=70), StripHtml]
ArticleBody = Annotated[str, StringConstraints(min_length=300, max_length=10000), RichText]


class ArticleInput(BaseModel):
    """Editable article fields submitted from the back-office.

    Workflow flags are requests; the service decides whether the actor may
    set them.
    """

    column_id: UUID | None = None
    title: ArticleTitle
    body: ArticleBody
    byline: OptionalRichText = None
    image: OptionalUrl = None
    draft: bool = False
    finalized: bool = False
    reviewed: bool = False
    published: bool = False
    rejected: bool = False

"""Reusable pieces for the input schemas.

Text is sanitized before pydantic checks its constraints, so lengths are
measured on what will be stored.
"""

from typing import Annotated

from pydantic import AfterValidator, BeforeValidator, HttpUrl
from pydantic_core import PydanticCustomError

from src.modules.common.sanitize import clean_rich_text, strip_html


def _plain(value: object) -> object:
    return strip_html(value) if isinstance(value, str) else value


def _rich(value: object) -> object:
    return clean_rich_text(value) if isinstance(value, str) else value


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _days_of_week(value: str) -> str:
    if not set(value) <= set("1234567"):
        raise PydanticCustomError("days_of_week", "must be days of the week")
    return value


def _image_url(value: HttpUrl) -> HttpUrl:
    if not (value.path or "").lower().endswith((".png", ".jpg", ".jpeg")):
        raise PydanticCustomError("image_extension", "must be .png, .jpg, or .jpeg")
    return value


# Place after StringConstraints so they run first
StripHtml = BeforeValidator(_plain)
RichText = BeforeValidator(_rich)
BlankToNone = BeforeValidator(_blank_to_none)

DaysOfWeek = AfterValidator(_days_of_week)

OptionalUrl = Annotated[HttpUrl | None, BlankToNone]
ImageUrl = Annotated[HttpUrl, AfterValidator(_image_url)]
OptionalRichText = Annotated[str | None, BlankToNone, RichText]


def url_text(url: HttpUrl | None) -> str | None:
    """A validated URL as stored in the database."""
    return str(url) if url is not None else None

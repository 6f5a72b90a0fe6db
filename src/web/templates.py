"""Jinja2 templates configuration."""

from datetime import date, datetime
from pathlib import Path

import bleach
import markdown as md
from fastapi.templating import Jinja2Templates
from markupsafe import Markup

from src.modules.common.sanitize import clean_rich_text
from src.modules.movies import format_rating
from src.web.flash import read_flash

_templates_path = Path(__file__).parent / "templates"
templates: Jinja2Templates = Jinja2Templates(directory=_templates_path)

# Allowed HTML tags for comment markdown (safe subset)
ALLOWED_TAGS = [
    "p",
    "br",
    "strong",
    "em",
    "code",
    "ul",
    "ol",
    "li",
    "a",
    "blockquote",
]

# Allowed attributes for HTML tags
ALLOWED_ATTRIBUTES = {
    "a": ["href", "title"],
}


def markdown_filter(text: str) -> Markup:
    """Convert comment markdown to HTML with sanitization.

    Newlines become line breaks. The output is cleaned with bleach so only
    a small set of inline tags and links survives.

    Args:
        text: The markdown text to convert.

    Returns:
        Sanitized HTML markup safe for rendering in Jinja2 templates.
    """
    html = md.markdown(text, extensions=["nl2br"], output_format="html")

    clean_html = bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True,  # Strip disallowed tags instead of escaping them
    )
    linked = bleach.linkify(clean_html, parse_email=False)

    return Markup(linked)  # nosec B704 - sanitized by bleach.clean()


def rich_text_filter(text: str | None) -> Markup:
    """Render stored article HTML after re-sanitizing it."""
    return Markup(clean_rich_text(text) or "")  # nosec B704 - sanitized by bleach.clean()


def rating_filter(value: float | None) -> str:
    return format_rating(value) if value is not None else "-"


def date_filter(value: date | datetime | None, fmt: str = "%Y-%m-%d") -> str:
    return value.strftime(fmt) if value is not None else ""


templates.env.filters["markdown"] = markdown_filter
templates.env.filters["rich_text"] = rich_text_filter
templates.env.filters["rating"] = rating_filter
templates.env.filters["date"] = date_filter
templates.env.globals["read_flash"] = read_flash

"""HTML sanitization for user-submitted content."""

import html

import bleach

# Tags kept in rich article bodies coming from the editor
RICH_TEXT_TAGS = [
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "s",
    "blockquote",
    "h2",
    "h3",
    "h4",
    "ul",
    "ol",
    "li",
    "a",
    "img",
    "hr",
    "span",
    "sub",
    "sup",
]

RICH_TEXT_ATTRIBUTES = {
    "a": ["href", "title", "target"],
    "img": ["src", "alt", "title", "width", "height"],
    "span": ["class"],
}

RICH_TEXT_PROTOCOLS = ["http", "https", "mailto"]


def strip_html(text: str | None) -> str | None:
    """Remove every tag from ``text`` and return plain text.

    Entities produced by the cleaner are decoded again so the stored value is
    plain text; templates escape it on output.
    """
    if text is None:
        return None
    cleaned = bleach.clean(text, tags=[], attributes={}, strip=True)
    return html.unescape(cleaned).strip()


def clean_rich_text(text: str | None) -> str | None:
    """Reduce editor HTML to a safe subset of tags and attributes."""
    if text is None:
        return None
    return bleach.clean(
        text,
        tags=RICH_TEXT_TAGS,
        attributes=RICH_TEXT_ATTRIBUTES,
        protocols=RICH_TEXT_PROTOCOLS,
        strip=True,
    ).strip()

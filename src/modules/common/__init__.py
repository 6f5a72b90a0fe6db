"""Helpers shared by the content modules."""

from src.modules.common.clock import site_today, utcnow
from src.modules.common.exceptions import NotFoundError
from src.modules.common.review import apply_review, is_read_only, reviewable
from src.modules.common.sanitize import clean_rich_text, strip_html
from src.modules.common.validation import ValidationError, Validator

__all__ = [
    "NotFoundError",
    "ValidationError",
    "Validator",
    "apply_review",
    "clean_rich_text",
    "is_read_only",
    "reviewable",
    "site_today",
    "strip_html",
    "utcnow",
]

"""Articles and their editorial workflow."""

from src.modules.articles.mailer import NOTIFICATIONS, ArticleMailer
from src.modules.articles.models import Article, ArticleStatus, ArticleView
from src.modules.articles.repository import ArticleRepository
from src.modules.articles.schemas import ArticleInput
from src.modules.articles.service import ArticleService, review_title
from src.modules.articles.workflow import (
    WorkflowContext,
    can_publish,
    can_request_rewrite,
    can_review,
    determine_status,
    is_finalizable,
)

__all__ = [
    "NOTIFICATIONS",
    "Article",
    "ArticleInput",
    "ArticleMailer",
    "ArticleRepository",
    "ArticleService",
    "ArticleStatus",
    "ArticleView",
    "WorkflowContext",
    "can_publish",
    "can_request_rewrite",
    "can_review",
    "determine_status",
    "is_finalizable",
    "review_title",
]

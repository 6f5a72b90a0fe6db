"""Editorial workflow for articles.

An article moves through draft, created, edited, responded, finalized,
reviewed and published. The stage is derived from the record's flags and
from who is saving it; ``determine_status`` runs before every save.
"""

from dataclasses import dataclass
from datetime import date, datetime

from src.modules.articles.models import Article, ArticleStatus
from src.modules.auth.models import User
from src.modules.auth.roles import Role


@dataclass(frozen=True)
class WorkflowContext:
    """Everything the workflow needs to know besides the article.

    Attributes:
        actor: The user saving the article.
        owner: Owner of the Article content type; edits new articles.
        backup_editor: Editor for articles the owner writes.
        now: Timestamp for the transition.
        next_date: Publishing date for an article published now.
    """

    actor: User
    owner: User | None
    backup_editor: User | None
    now: datetime
    next_date: date


def assign_editor(ctx: WorkflowContext) -> User | None:
    """Editor for a new article: the owner, or the backup when the owner writes."""
    if ctx.owner is not None and ctx.actor.id == ctx.owner.id:
        return ctx.backup_editor
    return ctx.owner


def determine_status(article: Article, ctx: WorkflowContext, *, is_new: bool) -> None:
    """Set the article's status and workflow fields for this save."""
    actor_id = ctx.actor.id

    if is_new:
        article.finalized = article.reviewed = article.published = False
        article.rejected = False
        article.author_id = actor_id
        editor = assign_editor(ctx)
        article.editor_id = editor.id if editor else None
        article.status = ArticleStatus.DRAFT if article.draft else ArticleStatus.CREATED
        return

    if article.rejected:
        article.status = ArticleStatus.REJECTED
        return

    if article.published:
        article.status = ArticleStatus.PUBLISHED
        if article.published_at is None:
            article.published_at = ctx.now
            article.date = ctx.next_date
        return

    if article.reviewed:
        article.status = ArticleStatus.REVIEWED
        if article.reviewed_at is None:
            article.reviewed_at = ctx.now
            article.reviewer_id = actor_id
        return

    if article.finalized:
        article.status = ArticleStatus.FINALIZED
        if article.finalized_at is None:
            article.finalized_at = ctx.now
        return

    if article.status is ArticleStatus.DRAFT:
        if not article.draft and actor_id == article.author_id:
            article.status = ArticleStatus.CREATED
        return

    owner_id = ctx.owner.id if ctx.owner else None
    if actor_id == article.editor_id or actor_id == owner_id:
        article.status = ArticleStatus.EDITED
        if article.editor_id is None:
            article.editor_id = actor_id
        article.edited_at = ctx.now
    elif (
        article.status in (ArticleStatus.EDITED, ArticleStatus.REWRITE)
        and actor_id == article.author_id
    ):
        article.status = ArticleStatus.RESPONDED
        article.responded_at = ctx.now


def is_editor_or_admin(article: Article, actor: User | None) -> bool:
    if actor is None:
        return False
    return article.editor_id == actor.id or actor.has_role(Role.ADMIN)


def is_finalizable(article: Article, actor: User | None) -> bool:
    """Whether ``actor`` may finalize the article now."""
    if article.editor_id is None:
        return False
    return is_editor_or_admin(article, actor) and not article.finalized


def can_review(article: Article, actor: User | None) -> bool:
    """Reviewers sign off finalized articles they did not write."""
    if actor is None or not article.finalized or article.reviewed:
        return False
    if actor.is_admin:
        return True
    return actor.has_role(Role.REVIEWER) and actor.id != article.author_id


def can_publish(article: Article, actor: User | None) -> bool:
    if actor is None or not article.finalized:
        return False
    return is_editor_or_admin(article, actor) or actor.has_role(Role.EDITOR)


def can_request_rewrite(article: Article, actor: User | None) -> bool:
    if article.finalized or article.published or article.rejected:
        return False
    return is_editor_or_admin(article, actor)


# Status reached -> mail sent
NOTIFIED_STATUSES = frozenset(
    {
        ArticleStatus.CREATED,
        ArticleStatus.EDITED,
        ArticleStatus.RESPONDED,
        ArticleStatus.REJECTED,
        ArticleStatus.REWRITE,
        ArticleStatus.FINALIZED,
        ArticleStatus.REVIEWED,
    }
)


def notification_for(
    previous: ArticleStatus | None, current: ArticleStatus
) -> ArticleStatus | None:
    """The status to notify about after a save, if any."""
    if previous == current or current not in NOTIFIED_STATUSES:
        return None
    return current

"""Article service: editing, workflow transitions and public listings."""

import copy
from collections.abc import Awaitable, Callable
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import structlog

from src.infrastructure.observability import annotate, traced
from src.modules.articles.mailer import ArticleMailer
from src.modules.articles.models import Article, ArticleStatus, ArticleView
from src.modules.articles.repository import ArticleRepository
from src.modules.articles.schemas import ArticleInput
from src.modules.articles.workflow import (
    WorkflowContext,
    can_publish,
    can_request_rewrite,
    can_review,
    determine_status,
    is_editor_or_admin,
    is_finalizable,
    notification_for,
)
from src.modules.audit import AuditRepository, diff
from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied, authorize
from src.modules.auth.repository import UserRepository
from src.modules.columns.models import CINEMA, Column
from src.modules.columns.repository import ColumnRepository
from src.modules.common.clock import site_today
from src.modules.common.exceptions import NotFoundError
from src.modules.common.fields import url_text
from src.modules.common.validation import ValidationError, Validator
from src.modules.model_config import ModelConfigService

logger = structlog.get_logger()

MODEL = "Article"

PublishListener = Callable[[Article], Awaitable[None]]


class ArticleService:
    """Creates and edits articles and moves them through the workflow.

    Every save runs the workflow (see ``determine_status``), validates the
    record, stores it, records the change and mails whoever is next.
    """

    def __init__(
        self,
        repository: ArticleRepository,
        columns: ColumnRepository,
        users: UserRepository,
        configs: ModelConfigService,
        audit: AuditRepository,
        mailer: ArticleMailer | None = None,
    ) -> None:
        self._repo = repository
        self._columns = columns
        self._users = users
        self._configs = configs
        self._audit = audit
        self._mailer = mailer
        self._publish_listeners: list[PublishListener] = []

    @property
    def repository(self) -> ArticleRepository:
        return self._repo

    def on_publish(self, listener: PublishListener) -> None:
        """Call ``listener`` whenever an article is first published."""
        self._publish_listeners.append(listener)

    # Lookups

    async def get(self, article_id: UUID) -> Article:
        article = await self._repo.get_by_id(article_id)
        if article is None:
            raise NotFoundError(MODEL, article_id)
        return article

    async def get_public(self, article_id: UUID, today: date | None = None) -> Article:
        """An article visitors may read.

        Raises:
            NotFoundError: If the article does not exist or is not public yet.
        """
        article = await self._repo.get_by_id(article_id)
        if article is None or not article.is_public(today or site_today()):
            raise NotFoundError(MODEL, article_id)
        return article

    async def review_of(self, movie_id: UUID) -> Article | None:
        return await self._repo.get_by_movie(movie_id)

    async def list_all(self) -> list[Article]:
        return await self._repo.list_all()

    async def public(
        self,
        *,
        limit: int | None = None,
        column_id: UUID | None = None,
        author_id: UUID | None = None,
    ) -> list[Article]:
        return await self._repo.public(
            site_today(), limit=limit, column_id=column_id, author_id=author_id
        )

    async def views(self, articles: list[Article]) -> list[ArticleView]:
        """Attach columns and people to articles for display."""
        columns = {column.id: column for column in await self._columns.list_all()}
        people = await self._users.get_many(
            {
                user_id
                for article in articles
                for user_id in (article.author_id, article.editor_id)
                if user_id is not None
            }
        )
        return [
            ArticleView(
                article=article,
                column=columns[article.column_id],
                author=people.get(article.author_id) if article.author_id else None,
                editor=people.get(article.editor_id) if article.editor_id else None,
            )
            for article in articles
        ]

    async def view(self, article: Article) -> ArticleView:
        return (await self.views([article]))[0]

    # Editing

    @traced(span_name="articles.create")
    async def create(self, data: ArticleInput, actor: User) -> Article:
        """Create an article in a regular column.

        Raises:
            AccessDenied: If the actor may not write articles.
            ValidationError: If any field is invalid.
        """
        authorize(actor, "create", MODEL)
        annotate(column_id=data.column_id, actor_role=actor.role)

        article = _blank_article(data.column_id)
        article.draft = data.draft
        await self._apply(article, data, is_review=False)
        await self._save_new(article, actor)
        return article

    async def create_review(
        self,
        movie_id: UUID,
        movie_title: str,
        data: ArticleInput,
        actor: User,
    ) -> Article:
        """Create the review article of a newly added movie.

        The review always lives in the Cinema column and is titled after
        the movie.
        """
        authorize(actor, "create", MODEL)

        cinema = await self._columns.get_by_short_name(CINEMA)
        if cinema is None:
            raise ValidationError.single("column", "Cinema column is missing")

        article = _blank_article(cinema.id)
        article.movie_id = movie_id
        article.draft = data.draft
        review_data = data.model_copy(
            update={"column_id": cinema.id, "title": review_title(movie_title)}
        )
        await self._apply(article, review_data, is_review=True)
        await self._save_new(article, actor)
        return article

    async def retitle_review(self, movie_id: UUID, movie_title: str) -> None:
        """Keep a review's title in step with its movie."""
        article = await self._repo.get_by_movie(movie_id)
        if article is None:
            return
        title = review_title(movie_title)
        if article.title != title:
            previous = copy.copy(article)
            article.title = title
            await self._repo.update(article, previous)

    @traced(span_name="articles.update")
    async def update(self, article_id: UUID, data: ArticleInput, actor: User) -> Article:
        """Save edits and workflow flags.

        Raises:
            AccessDenied: If the actor may not edit the article or set a flag.
            ValidationError: If any field is invalid.
        """
        article = await self.get(article_id)
        authorize(actor, "update", MODEL, article)
        annotate(article_id=article.id, status=article.status, actor_role=actor.role)
        previous = copy.copy(article)

        self._apply_flags(article, data, actor)
        if article.is_review:
            # Column and title of reviews follow the movie
            data = data.model_copy(
                update={"column_id": article.column_id, "title": article.title}
            )
        await self._apply(article, data, is_review=article.is_review)
        await self._save_existing(article, previous, actor)
        return article

    async def request_rewrite(self, article_id: UUID, actor: User) -> Article:
        """Send an article back to its author."""
        article = await self.get(article_id)
        if not can_request_rewrite(article, actor):
            raise AccessDenied("Only the editor can request a rewrite.")

        previous = copy.copy(article)
        article.status = ArticleStatus.REWRITE
        await self._repo.update(article, previous)
        await self._after_save(article, previous, actor)
        return article

    async def reject(self, article_id: UUID, actor: User) -> Article:
        article = await self.get(article_id)
        if article.published or not is_editor_or_admin(article, actor):
            raise AccessDenied("Only the editor can reject an article.")

        previous = copy.copy(article)
        article.rejected = True
        await self._save_existing(article, previous, actor)
        return article

    async def delete(self, article_id: UUID, actor: User) -> None:
        article = await self.get(article_id)
        authorize(actor, "destroy", MODEL, article)
        if article.is_review and not actor.is_admin:
            raise AccessDenied("Reviews are removed with their movie.")

        await self._repo.delete(article)
        await self._audit.record(MODEL, article.id, "delete", actor.id)

    async def delete_review(self, movie_id: UUID) -> None:
        """Remove a movie's review, keeping counters in step."""
        article = await self._repo.get_by_movie(movie_id)
        if article is not None:
            await self._repo.delete(article)

    # Internals

    async def _context(self, actor: User) -> WorkflowContext:
        owner = await self._configs.owner(MODEL)
        backup_editor = await self._configs.backup_editor(MODEL, owner)
        start_date = await self._configs.start_date(MODEL)
        return WorkflowContext(
            actor=actor,
            owner=owner,
            backup_editor=backup_editor,
            now=datetime.now(UTC),
            next_date=await self._repo.next_date(start_date),
        )

    async def _save_new(self, article: Article, actor: User) -> None:
        determine_status(article, await self._context(actor), is_new=True)
        await self._repo.insert(article)
        await self._audit.record(MODEL, article.id, "create", actor.id)
        await self._notify(None, article)

    async def _save_existing(self, article: Article, previous: Article, actor: User) -> None:
        determine_status(article, await self._context(actor), is_new=False)
        await self._repo.update(article, previous)
        await self._after_save(article, previous, actor)

    async def _after_save(self, article: Article, previous: Article, actor: User) -> None:
        await self._audit.record(
            MODEL,
            article.id,
            "update",
            actor.id,
            diff(_snapshot(previous), _snapshot(article)),
        )
        await self._notify(previous.status, article)

        if article.published and not previous.published:
            logger.info(
                "article_published",
                article_id=str(article.id),
                date=article.date.isoformat() if article.date else None,
            )
            for listener in self._publish_listeners:
                await listener(article)

    async def _notify(self, previous: ArticleStatus | None, article: Article) -> None:
        status = notification_for(previous, article.status)
        if status is not None and self._mailer is not None:
            await self._mailer.notify(status, article)

    def _apply_flags(self, article: Article, data: ArticleInput, actor: User) -> None:
        """Copy requested workflow flags the actor is allowed to change."""
        if data.draft != article.draft:
            if actor.id != article.author_id and not actor.is_admin:
                raise AccessDenied("Only the author can change the draft flag.")
            article.draft = data.draft

        if data.finalized and not article.finalized:
            if not is_finalizable(article, actor):
                raise AccessDenied("Only the editor can finalize an article.")
            article.finalized = True

        if data.reviewed and not article.reviewed:
            if not can_review(article, actor):
                raise AccessDenied("You cannot review this article.")
            article.reviewed = True

        if data.published and not article.published:
            if not can_publish(article, actor):
                raise AccessDenied("Only finalized articles can be published.")
            article.published = True

        if data.rejected and not article.rejected:
            if article.published or not is_editor_or_admin(article, actor):
                raise AccessDenied("Only the editor can reject an article.")
            article.rejected = True

        if actor.is_admin:
            # Admins may take any step back
            article.finalized = article.finalized and data.finalized
            article.reviewed = article.reviewed and data.reviewed
            article.published = article.published and data.published
            article.rejected = article.rejected and data.rejected

    async def _apply(self, article: Article, data: ArticleInput, *, is_review: bool) -> None:
        """Check the column and uniqueness, then copy input onto ``article``."""
        db = self._repo.database
        v = Validator()

        column = await self._columns.get_by_id(data.column_id) if data.column_id else None
        if data.column_id is None:
            v.add("column", "can't be blank")
        elif column is None:
            v.add("column", "is invalid")
        elif column.is_movie_column and not is_review:
            v.add("column", "is reserved for movie reviews")

        await v.unique(db, "articles", "title", data.title, exclude_id=article.id)
        await v.unique(db, "articles", "body", data.body, exclude_id=article.id)

        v.check()
        if column is None:
            raise ValidationError.single("column", "is invalid")

        article.column_id = column.id
        article.title = data.title
        article.body = data.body
        article.byline = data.byline
        article.image = url_text(data.image)


def review_title(movie_title: str) -> str:
    return f"Review of {movie_title}"


def _blank_article(column_id: UUID | None) -> Article:
    now = datetime.now(UTC)
    return Article(
        id=uuid4(),
        column_id=column_id or uuid4(),
        title="",
        body="",
        byline=None,
        image=None,
        author_id=None,
        editor_id=None,
        reviewer_id=None,
        movie_id=None,
        status=ArticleStatus.CREATED,
        draft=False,
        finalized=False,
        reviewed=False,
        published=False,
        rejected=False,
        date=None,
        edited_at=None,
        responded_at=None,
        finalized_at=None,
        reviewed_at=None,
        published_at=None,
        created_at=now,
        updated_at=now,
    )


def _snapshot(article: Article) -> dict[str, object]:
    return {
        "column_id": str(article.column_id),
        "title": article.title,
        "body": article.body,
        "byline": article.byline,
        "image": article.image,
        "editor_id": str(article.editor_id) if article.editor_id else None,
        "status": article.status.value,
        "draft": article.draft,
        "finalized": article.finalized,
        "reviewed": article.reviewed,
        "published": article.published,
        "rejected": article.rejected,
        "date": article.date.isoformat() if article.date else None,
    }

"""Tests for the article service, its workflow and notification mail."""

from collections.abc import Awaitable, Callable
from datetime import date
from uuid import uuid4

import pytest

from src.infrastructure.mail import OutboxTransport
from src.modules.articles import ArticleInput
from src.modules.articles.models import Article, ArticleStatus
from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied
from src.modules.auth.roles import Role
from src.modules.columns import Column, ColumnInput
from src.modules.common.exceptions import NotFoundError
from src.modules.common.validation import ValidationError
from src.modules.site import Services

UserFactory = Callable[..., Awaitable[User]]

BODY = (
    "Yeah, well, you know, that's just, like, your opinion, man. "
    "The Dude abides, and so does this article, which needs enough words "
    "to clear the minimum body length that the editors insist upon. "
    "So here is some more text about bowling, rugs that really tie the room "
    "together, and the general importance of taking it easy for all us sinners."
)


async def create_column(
    services: Services, actor: User, short_name: str = "Abide", days: str = "1"
) -> Column:
    return await services.columns.create(
        ColumnInput(
            name=f"The {short_name} Column",
            short_name=short_name,
            description=f"All about {short_name}",
            publish_days=days,
            start_date=date(2020, 1, 1),
        ),
        actor,
    )


def article_input(column: Column, title: str = "Abiding in the Valley", **flags: bool) -> ArticleInput:
    return ArticleInput(column_id=column.id, title=title, body=BODY, **flags)


class Newsroom:
    """The people and column used by the workflow tests."""

    def __init__(
        self, admin: User, editor: User, reviewer: User, writer: User, column: Column
    ) -> None:
        self.admin = admin
        self.editor = editor
        self.reviewer = reviewer
        self.writer = writer
        self.column = column


@pytest.fixture
async def newsroom(services: Services, make_user: UserFactory) -> Newsroom:
    # The first user owns every content type
    admin = await make_user(Role.ADMIN, "walter")
    editor = await make_user(Role.EDITOR, "maude")
    reviewer = await make_user(Role.REVIEWER, "donny")
    writer = await make_user(Role.WRITER, "thedude")
    column = await create_column(services, admin)
    return Newsroom(admin, editor, reviewer, writer, column)


async def move_to_finalized(services: Services, room: Newsroom) -> Article:
    article = await services.articles.create(article_input(room.column), room.writer)
    await services.articles.update(article.id, article_input(room.column), room.admin)
    await services.articles.update(article.id, article_input(room.column), room.writer)
    return await services.articles.update(
        article.id, article_input(room.column, finalized=True), room.admin
    )


class TestCreateArticle:
    """Tests for ArticleService.create."""

    @pytest.mark.asyncio
    async def test_create_assigns_owner_as_editor(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should create the article with the owner as its editor."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)

        assert article.status is ArticleStatus.CREATED
        assert article.author_id == newsroom.writer.id
        assert article.editor_id == newsroom.admin.id

    @pytest.mark.asyncio
    async def test_owner_article_goes_to_backup_editor(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should assign another editor when the owner writes."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.admin)

        assert article.editor_id == newsroom.editor.id

    @pytest.mark.asyncio
    async def test_configured_owner(self, services: Services, newsroom: Newsroom) -> None:
        """Should use the configured owner for new articles."""
        await services.configs.save(
            "Article", owner_id=newsroom.editor.id, backup_editor_id=None, start_date=None
        )

        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)

        assert article.editor_id == newsroom.editor.id

    @pytest.mark.asyncio
    async def test_create_updates_counters(self, services: Services, newsroom: Newsroom) -> None:
        """Should count the article on its column and author."""
        await services.articles.create(article_input(newsroom.column), newsroom.writer)

        column = await services.columns.get(newsroom.column.id)
        writer = await services.users.get_by_id(newsroom.writer.id)
        assert column.articles_count == 1
        assert writer is not None and writer.articles_count == 1

    @pytest.mark.asyncio
    async def test_create_requires_a_column(self, services: Services, newsroom: Newsroom) -> None:
        """Should refuse an article without a known column."""
        with pytest.raises(ValidationError) as exc_info:
            await services.articles.create(
                ArticleInput(title="Abiding in the Valley", body=BODY), newsroom.writer
            )
        assert exc_info.value.errors == {"column": ["can't be blank"]}

        with pytest.raises(ValidationError) as exc_info:
            await services.articles.create(
                ArticleInput(column_id=uuid4(), title="Abiding in the Valley", body=BODY),
                newsroom.writer,
            )
        assert exc_info.value.errors == {"column": ["is invalid"]}

    @pytest.mark.asyncio
    async def test_create_strips_markup_from_title(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should store the title as plain text and the body as safe HTML."""
        article = await services.articles.create(
            ArticleInput(
                column_id=newsroom.column.id,
                title="<b>Abiding in the Valley</b>",
                body=f"<p>{BODY}</p><script>alert('x')</script>",
            ),
            newsroom.writer,
        )

        assert article.title == "Abiding in the Valley"
        assert "<script>" not in article.body
        assert article.body.startswith("<p>")

    @pytest.mark.asyncio
    async def test_titles_are_unique(self, services: Services, newsroom: Newsroom) -> None:
        """Should refuse a duplicate title."""
        await services.articles.create(article_input(newsroom.column), newsroom.writer)

        with pytest.raises(ValidationError, match="title has already been taken"):
            await services.articles.create(article_input(newsroom.column), newsroom.writer)

    @pytest.mark.asyncio
    async def test_movie_column_is_reserved(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should keep regular articles out of the movie column."""
        cinema = await create_column(services, newsroom.admin, "Cinema", "5")

        with pytest.raises(ValidationError, match="reserved for movie reviews"):
            await services.articles.create(article_input(cinema), newsroom.writer)

    @pytest.mark.asyncio
    async def test_readers_cannot_write(
        self, services: Services, newsroom: Newsroom, make_user: UserFactory
    ) -> None:
        """Should refuse readers."""
        reader = await make_user(Role.READER)

        with pytest.raises(AccessDenied):
            await services.articles.create(article_input(newsroom.column), reader)


class TestArticleWorkflow:
    """Tests for moving an article through the workflow."""

    @pytest.mark.asyncio
    async def test_full_workflow(
        self, services: Services, newsroom: Newsroom, outbox: OutboxTransport
    ) -> None:
        """Should go from created to published, mailing each step."""
        article = await move_to_finalized(services, newsroom)
        assert article.status is ArticleStatus.FINALIZED

        article = await services.articles.update(
            article.id,
            article_input(newsroom.column, finalized=True, reviewed=True),
            newsroom.reviewer,
        )
        assert article.status is ArticleStatus.REVIEWED
        assert article.reviewer_id == newsroom.reviewer.id

        article = await services.articles.update(
            article.id,
            article_input(newsroom.column, finalized=True, reviewed=True, published=True),
            newsroom.admin,
        )
        assert article.status is ArticleStatus.PUBLISHED
        assert article.date is not None

        subjects = [message.subject for message in outbox.messages]
        assert subjects == [
            "You got an article to edit, brah!",
            "You got some edits to respond to, brah!",
            "You got some responses to your edits, brah!",
            "Your article was finalized, brah!",
            "Your article was reviewed, brah!",
        ]

    @pytest.mark.asyncio
    async def test_published_article_is_public(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should list the first published article on today's pages."""
        article = await move_to_finalized(services, newsroom)
        await services.articles.update(
            article.id,
            article_input(newsroom.column, finalized=True, published=True),
            newsroom.admin,
        )

        public = await services.articles.public()
        assert [item.id for item in public] == [article.id]
        assert (await services.articles.get_public(article.id)).published

    @pytest.mark.asyncio
    async def test_next_article_waits_a_day(self, services: Services, newsroom: Newsroom) -> None:
        """Should date each newly published article a day after the latest."""
        first = await move_to_finalized(services, newsroom)
        await services.articles.update(
            first.id, article_input(newsroom.column, finalized=True, published=True), newsroom.admin
        )
        second = await services.articles.create(
            article_input(newsroom.column, title="Another Abiding Story"), newsroom.writer
        )
        await services.articles.update(
            second.id,
            article_input(newsroom.column, title="Another Abiding Story", finalized=True),
            newsroom.admin,
        )
        published = await services.articles.update(
            second.id,
            article_input(
                newsroom.column, title="Another Abiding Story", finalized=True, published=True
            ),
            newsroom.admin,
        )

        first_date = (await services.articles.get(first.id)).date
        assert first_date is not None and published.date is not None
        assert (published.date - first_date).days == 1
        with pytest.raises(NotFoundError):
            await services.articles.get_public(second.id)

    @pytest.mark.asyncio
    async def test_unpublished_articles_are_hidden(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should not show unpublished articles to visitors."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)

        with pytest.raises(NotFoundError):
            await services.articles.get_public(article.id)

    @pytest.mark.asyncio
    async def test_writer_cannot_finalize(self, services: Services, newsroom: Newsroom) -> None:
        """Should only let the editor finalize."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)

        with pytest.raises(AccessDenied, match="finalize"):
            await services.articles.update(
                article.id, article_input(newsroom.column, finalized=True), newsroom.writer
            )

    @pytest.mark.asyncio
    async def test_author_cannot_review_own_article(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should refuse a review by the author."""
        article = await move_to_finalized(services, newsroom)

        with pytest.raises(AccessDenied, match="cannot review"):
            await services.articles.update(
                article.id,
                article_input(newsroom.column, finalized=True, reviewed=True),
                newsroom.writer,
            )

    @pytest.mark.asyncio
    async def test_unfinalized_article_cannot_be_published(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should require a finalized article before publishing."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)

        with pytest.raises(AccessDenied, match="finalized"):
            await services.articles.update(
                article.id, article_input(newsroom.column, published=True), newsroom.admin
            )

    @pytest.mark.asyncio
    async def test_request_rewrite(
        self, services: Services, newsroom: Newsroom, outbox: OutboxTransport
    ) -> None:
        """Should send the article back to its author."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)

        with pytest.raises(AccessDenied):
            await services.articles.request_rewrite(article.id, newsroom.writer)

        article = await services.articles.request_rewrite(article.id, newsroom.admin)

        assert article.status is ArticleStatus.REWRITE
        assert outbox.messages[-1].subject == "You got an article to rewrite, brah!"
        assert any("thedude@" in to for to in outbox.messages[-1].recipients)

    @pytest.mark.asyncio
    async def test_reject(self, services: Services, newsroom: Newsroom) -> None:
        """Should let the editor reject an article."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)

        article = await services.articles.reject(article.id, newsroom.admin)

        assert article.rejected
        assert article.status is ArticleStatus.REJECTED

    @pytest.mark.asyncio
    async def test_draft_flag_belongs_to_author(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should only let the author take an article out of draft."""
        article = await services.articles.create(
            article_input(newsroom.column, draft=True), newsroom.writer
        )
        assert article.status is ArticleStatus.DRAFT

        with pytest.raises(AccessDenied, match="draft"):
            await services.articles.update(
                article.id, article_input(newsroom.column), newsroom.editor
            )

        article = await services.articles.update(
            article.id, article_input(newsroom.column), newsroom.writer
        )
        assert article.status is ArticleStatus.CREATED

    @pytest.mark.asyncio
    async def test_changes_are_audited(self, services: Services, newsroom: Newsroom) -> None:
        """Should record creation and each update, newest first."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)
        await services.articles.update(article.id, article_input(newsroom.column), newsroom.admin)

        history = await services.audit.history("Article", article.id)

        assert [entry.action for entry in history] == ["update", "create"]
        assert history[0].changes["status"] == [
            ArticleStatus.CREATED.value,
            ArticleStatus.EDITED.value,
        ]
        assert history[0].user_id == newsroom.admin.id


class TestDeleteArticle:
    """Tests for ArticleService.delete."""

    @pytest.mark.asyncio
    async def test_author_deletes_unpublished_article(
        self, services: Services, newsroom: Newsroom
    ) -> None:
        """Should delete the article and its counters."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)

        await services.articles.delete(article.id, newsroom.writer)

        column = await services.columns.get(newsroom.column.id)
        assert column.articles_count == 0
        with pytest.raises(NotFoundError):
            await services.articles.get(article.id)

    @pytest.mark.asyncio
    async def test_others_cannot_delete(
        self, services: Services, newsroom: Newsroom, make_user: UserFactory
    ) -> None:
        """Should refuse other writers."""
        article = await services.articles.create(article_input(newsroom.column), newsroom.writer)
        other = await make_user(Role.WRITER, "bunny")

        with pytest.raises(AccessDenied):
            await services.articles.delete(article.id, other)


class TestArticleMail:
    """Tests for notification recipients."""

    @pytest.mark.asyncio
    async def test_created_mail_goes_to_editor_and_admins(
        self, services: Services, newsroom: Newsroom, outbox: OutboxTransport
    ) -> None:
        """Should mail the editor and every admin once."""
        await services.articles.create(article_input(newsroom.column), newsroom.writer)

        message = outbox.messages[-1]
        assert message.recipients == ("Dude Walter <walter@example.com>",)
        assert "Dude Thedude just wrote a new article" in message.body

    @pytest.mark.asyncio
    async def test_finalized_mail_goes_to_reviewers(
        self, services: Services, newsroom: Newsroom, outbox: OutboxTransport
    ) -> None:
        """Should mail the reviewers and the author once finalized."""
        article = await move_to_finalized(services, newsroom)

        message = outbox.messages[-1]
        assert message.subject == "Your article was finalized, brah!"
        recipients = message.to_header
        for username in ("walter", "maude", "donny", "thedude"):
            assert f"{username}@example.com" in recipients
        assert f"/admin/article/{article.id}/edit" in message.body

    @pytest.mark.asyncio
    async def test_mail_disabled(
        self, newsroom: Newsroom, services: Services
    ) -> None:
        """Should send nothing when no mailer is configured."""
        from src.config import Settings
        from src.modules.site import build_services

        quiet_outbox = OutboxTransport()
        quiet = build_services(
            services.database,
            Settings(mail_enabled=False),
            mail=quiet_outbox,
        )

        await quiet.articles.create(article_input(newsroom.column), newsroom.writer)

        assert quiet_outbox.messages == []

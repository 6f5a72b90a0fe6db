"""Tests for comment threads and voting."""

from collections.abc import Awaitable, Callable
from datetime import date
from uuid import uuid4

import pytest

from src.modules.articles import ArticleInput
from src.modules.articles.models import Article
from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied
from src.modules.auth.roles import Role
from src.modules.columns import ColumnInput
from src.modules.common.exceptions import NotFoundError
from src.modules.common.validation import ValidationError
from src.modules.site import Services

UserFactory = Callable[..., Awaitable[User]]

BODY = (
    "Obviously you're not a golfer. Bowling is the only sport for a man of "
    "leisure, and this article explains why at great and leisurely length, "
    "covering lanes, shoes, rented and otherwise, league nights, the Jesus, "
    "and the proper way to hold a White Russian while waiting on your frame "
    "to come around again, which it always does if you just take it easy."
)


class Lanes:
    def __init__(self, admin: User, writer: User, reader: User, article: Article) -> None:
        self.admin = admin
        self.writer = writer
        self.reader = reader
        self.article = article


@pytest.fixture
async def lanes(services: Services, make_user: UserFactory) -> Lanes:
    admin = await make_user(Role.ADMIN, "walter")
    writer = await make_user(Role.WRITER, "thedude")
    reader = await make_user(Role.READER, "bunny")
    column = await services.columns.create(
        ColumnInput(
            name="The Bowling Column",
            short_name="Bowl",
            description="All about bowling",
            publish_days="1",
            start_date=date(2020, 1, 1),
        ),
        admin,
    )

    def data(**flags: bool) -> ArticleInput:
        return ArticleInput(column_id=column.id, title="League Night", body=BODY, **flags)

    article = await services.articles.create(data(), writer)
    await services.articles.update(article.id, data(finalized=True), admin)
    article = await services.articles.update(
        article.id, data(finalized=True, published=True), admin
    )
    return Lanes(admin, writer, reader, article)


class TestPost:
    """Tests for CommentService.post."""

    @pytest.mark.asyncio
    async def test_post_to_public_article(self, services: Services, lanes: Lanes) -> None:
        """Should store a comment by the reader."""
        comment = await services.comments.post(lanes.article.id, "Far out.", lanes.reader)

        assert comment.article_id == lanes.article.id
        assert comment.user_id == lanes.reader.id
        assert comment.is_root

    @pytest.mark.asyncio
    async def test_strips_markup(self, services: Services, lanes: Lanes) -> None:
        """Should keep only the text of the comment."""
        comment = await services.comments.post(
            lanes.article.id, "<b>Mark it zero</b>", lanes.reader
        )

        assert comment.body == "Mark it zero"

    @pytest.mark.asyncio
    async def test_rejects_blank_and_long(self, services: Services, lanes: Lanes) -> None:
        """Should validate the body length."""
        with pytest.raises(ValidationError):
            await services.comments.post(lanes.article.id, "   ", lanes.reader)
        with pytest.raises(ValidationError, match="at most 1000 characters"):
            await services.comments.post(lanes.article.id, "x" * 1001, lanes.reader)

    @pytest.mark.asyncio
    async def test_hidden_article(self, services: Services, lanes: Lanes) -> None:
        """Should refuse comments on articles visitors cannot see."""
        draft = await services.articles.create(
            ArticleInput(
                column_id=lanes.article.column_id, title="Unfinished", body=BODY, draft=True
            ),
            lanes.writer,
        )

        with pytest.raises(NotFoundError):
            await services.comments.post(draft.id, "Nice.", lanes.reader)
        with pytest.raises(NotFoundError):
            await services.comments.post(uuid4(), "Nice.", lanes.reader)

    @pytest.mark.asyncio
    async def test_reply(self, services: Services, lanes: Lanes) -> None:
        """Should nest replies under their parent."""
        root = await services.comments.post(lanes.article.id, "Shut up, Donny.", lanes.admin)
        reply = await services.comments.post(
            lanes.article.id, "I'm throwing rocks tonight.", lanes.reader, parent_id=root.id
        )

        thread = await services.comments.thread(lanes.article.id)

        assert thread.total == 1
        assert [node.comment.id for node in thread.nodes] == [root.id]
        assert [node.comment.id for node in thread.nodes[0].replies] == [reply.id]
        assert thread.nodes[0].replies[0].user is not None
        assert thread.nodes[0].replies[0].user.username == "bunny"


class TestThread:
    """Tests for CommentService.thread."""

    @pytest.mark.asyncio
    async def test_limits_roots(self, services: Services, lanes: Lanes) -> None:
        """Should page root comments."""
        for number in range(3):
            await services.comments.post(lanes.article.id, f"Comment {number}", lanes.reader)

        thread = await services.comments.thread(lanes.article.id, limit=2)

        assert len(thread.nodes) == 2
        assert thread.total == 3
        assert thread.has_more

    @pytest.mark.asyncio
    async def test_empty(self, services: Services, lanes: Lanes) -> None:
        """Should return an empty thread."""
        thread = await services.comments.thread(lanes.article.id)

        assert thread.nodes == []
        assert not thread.has_more


class TestVote:
    """Tests for CommentService.vote."""

    @pytest.mark.asyncio
    async def test_scores_votes(self, services: Services, lanes: Lanes) -> None:
        """Should sum votes and replace a voter's earlier vote."""
        comment = await services.comments.post(lanes.article.id, "Far out.", lanes.writer)

        assert await services.comments.vote(comment.id, 1, lanes.reader) == 1
        assert await services.comments.vote(comment.id, 1, lanes.admin) == 2
        assert await services.comments.vote(comment.id, -1, lanes.reader) == 0

        thread = await services.comments.thread(lanes.article.id, viewer=lanes.reader)
        assert thread.nodes[0].score == 0
        assert thread.nodes[0].my_vote == -1

    @pytest.mark.asyncio
    async def test_rejects_other_values(self, services: Services, lanes: Lanes) -> None:
        """Should only accept up and down votes."""
        comment = await services.comments.post(lanes.article.id, "Far out.", lanes.writer)

        with pytest.raises(ValidationError, match="not included"):
            await services.comments.vote(comment.id, 5, lanes.reader)


class TestDelete:
    """Tests for CommentService.delete."""

    @pytest.mark.asyncio
    async def test_own_comment(self, services: Services, lanes: Lanes) -> None:
        """Should let readers delete their own comments."""
        comment = await services.comments.post(lanes.article.id, "Oops.", lanes.reader)

        await services.comments.delete(comment.id, lanes.reader)

        with pytest.raises(NotFoundError):
            await services.comments.get(comment.id)

    @pytest.mark.asyncio
    async def test_others_comment(self, services: Services, lanes: Lanes) -> None:
        """Should stop readers deleting comments of others."""
        comment = await services.comments.post(lanes.article.id, "Mine.", lanes.writer)

        with pytest.raises(AccessDenied):
            await services.comments.delete(comment.id, lanes.reader)

        await services.comments.delete(comment.id, lanes.admin)
        assert await services.comments.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_is_audited(self, services: Services, lanes: Lanes) -> None:
        """Should record who removed the comment."""
        comment = await services.comments.post(lanes.article.id, "Mark it eight.", lanes.writer)

        await services.comments.delete(comment.id, lanes.admin)

        [entry] = await services.audit.history("Comment", comment.id)
        assert entry.action == "delete"
        assert entry.user_id == lanes.admin.id

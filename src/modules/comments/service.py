"""Comment threads and voting."""

from collections import defaultdict
from datetime import UTC, datetime
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError as SchemaError

from src.infrastructure.observability import annotate, traced
from src.modules.articles import ArticleService
from src.modules.audit import AuditRepository
from src.modules.auth.models import User
from src.modules.auth.permissions import authorize
from src.modules.auth.repository import UserRepository
from src.modules.comments.models import Comment, CommentNode, CommentThread
from src.modules.comments.repository import CommentRepository
from src.modules.comments.schemas import CommentInput
from src.modules.common.exceptions import NotFoundError
from src.modules.common.validation import ValidationError

logger = structlog.get_logger()

VOTE_VALUES = (1, -1)


class CommentService:
    """Posts, threads and scores comments on public articles."""

    def __init__(
        self,
        repository: CommentRepository,
        articles: ArticleService,
        users: UserRepository,
        audit: AuditRepository,
    ) -> None:
        self._repo = repository
        self._articles = articles
        self._users = users
        self._audit = audit

    async def get(self, comment_id: UUID) -> Comment:
        comment = await self._repo.get_by_id(comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def list_all(self) -> list[Comment]:
        return await self._repo.list_all()

    async def thread(
        self,
        article_id: UUID,
        *,
        limit: int = 10,
        viewer: User | None = None,
    ) -> CommentThread:
        """The newest ``limit`` root comments with all of their replies."""
        roots = await self._repo.roots(article_id, limit)
        replies = await self._repo.replies(article_id)
        scores = await self._repo.scores(article_id)
        my_votes = (
            await self._repo.votes_by(article_id, viewer.id) if viewer is not None else {}
        )
        users = await self._users.get_many(
            {comment.user_id for comment in [*roots, *replies]}
        )

        children: dict[UUID, list[Comment]] = defaultdict(list)
        for reply in replies:
            if reply.parent_id is not None:
                children[reply.parent_id].append(reply)

        def build(comment: Comment) -> CommentNode:
            return CommentNode(
                comment=comment,
                user=users.get(comment.user_id),
                score=scores.get(comment.id, 0),
                my_vote=my_votes.get(comment.id),
                replies=[build(child) for child in children.get(comment.id, [])],
            )

        return CommentThread(
            nodes=[build(root) for root in roots],
            total=await self._repo.count_roots(article_id),
            limit=limit,
        )

    @traced(span_name="comments.post")
    async def post(
        self,
        article_id: UUID,
        body: str,
        actor: User,
        *,
        parent_id: UUID | None = None,
    ) -> Comment:
        """Comment on a public article, or reply to a comment on it.

        Raises:
            NotFoundError: If the article is not public or the parent is missing.
            ValidationError: If the body is blank or too long.
        """
        authorize(actor, "create", "Comment")
        article = await self._articles.get_public(article_id)
        annotate(article_id=article.id, reply=parent_id is not None)

        if parent_id is not None:
            parent = await self.get(parent_id)
            if parent.article_id != article.id:
                raise ValidationError.single("parent", "is invalid")

        try:
            data = CommentInput(body=body)
        except SchemaError as e:
            raise ValidationError.from_schema(e) from e

        comment = Comment(
            id=uuid4(),
            article_id=article.id,
            parent_id=parent_id,
            user_id=actor.id,
            body=data.body,
            created_at=datetime.now(UTC),
        )
        return await self._repo.insert(comment)

    async def vote(self, comment_id: UUID, value: int, actor: User) -> int:
        """Up or down vote a comment, replacing the actor's earlier vote.

        Returns:
            The comment's new score.
        """
        if value not in VOTE_VALUES:
            raise ValidationError.single("value", "is not included in the list")
        comment = await self.get(comment_id)
        authorize(actor, "create", "Comment")

        await self._repo.set_vote(comment.id, actor.id, value)
        score = await self._repo.score(comment.id)
        logger.info("comment_voted", comment_id=str(comment.id), score=score)
        return score

    async def delete(self, comment_id: UUID, actor: User) -> None:
        comment = await self.get(comment_id)
        authorize(actor, "destroy", "Comment", comment)
        await self._repo.delete(comment_id)
        await self._audit.record("Comment", comment_id, "delete", actor.id)
        logger.info("comment_deleted", comment_id=str(comment_id))

"""Comment domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from src.modules.auth.models import User


@dataclass
class Comment:
    """A reader's comment on an article; ``parent_id`` makes it a reply."""

    id: UUID
    article_id: UUID
    parent_id: UUID | None
    user_id: UUID
    body: str
    created_at: datetime

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Comment":
        return cls(
            id=UUID(str(row["id"])),
            article_id=UUID(str(row["article_id"])),
            parent_id=UUID(str(row["parent_id"])) if row["parent_id"] else None,
            user_id=UUID(str(row["user_id"])),
            body=str(row["body"]),
            created_at=datetime.fromisoformat(str(row["created_at"])),
        )


@dataclass
class CommentNode:
    """A comment in a rendered thread.

    Attributes:
        score: Sum of votes.
        my_vote: The viewer's vote, if any.
        replies: Direct replies, oldest first.
    """

    comment: Comment
    user: User | None
    score: int = 0
    my_vote: int | None = None
    replies: list["CommentNode"] = field(default_factory=list)


@dataclass
class CommentThread:
    """Root comments of an article, newest first, with paging info."""

    nodes: list[CommentNode]
    total: int
    limit: int

    @property
    def has_more(self) -> bool:
        return self.total > len(self.nodes)

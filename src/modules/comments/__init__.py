"""Threaded comments on articles."""

from src.modules.comments.models import Comment, CommentNode, CommentThread
from src.modules.comments.repository import CommentRepository
from src.modules.comments.schemas import CommentInput
from src.modules.comments.service import VOTE_VALUES, CommentService

__all__ = [
    "VOTE_VALUES",
    "Comment",
    "CommentNode",
    "CommentInput",
    "CommentRepository",
    "CommentService",
    "CommentThread",
]

"""Review sign-off shared by ratings and daily items.

A reviewable item records its creator, and a reviewer who is somebody else
marks it reviewed. Once reviewed, only admins may change it.
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied
from src.modules.auth.roles import Role


class Reviewable(Protocol):
    creator_id: UUID | None
    reviewer_id: UUID | None
    reviewed: bool
    reviewed_at: datetime | None


def reviewable(item: Reviewable, actor: User | None) -> bool:
    """Whether ``actor`` may mark ``item`` reviewed."""
    if actor is None:
        return False
    if actor.is_admin:
        return True
    return actor.has_role(Role.REVIEWER) and actor.id != item.creator_id


def is_read_only(item: Reviewable, actor: User | None) -> bool:
    """Reviewed items are frozen for everybody but admins."""
    return item.reviewed and not (actor is not None and actor.is_admin)


def apply_review(item: Reviewable, requested: bool, actor: User, now: datetime) -> None:
    """Set or clear the reviewed flag as requested by ``actor``.

    Raises:
        AccessDenied: If the actor may not change the flag.
    """
    if requested == item.reviewed:
        return

    if requested:
        if not reviewable(item, actor):
            raise AccessDenied("You cannot review your own work.")
        item.reviewed = True
        item.reviewer_id = actor.id
        item.reviewed_at = now
        return

    if not actor.is_admin:
        raise AccessDenied("Only admins can undo a review.")
    item.reviewed = False
    item.reviewer_id = None
    item.reviewed_at = None

"""Role-based authorization.

``Ability`` decides what an actor (or an anonymous visitor) may do with a
content type or a specific record. Records are matched on ownership
attributes: ``creator_id``, ``author_id``, ``editor_id`` and ``user_id``.
"""

from typing import TYPE_CHECKING, Literal

from src.modules.auth.roles import Role

if TYPE_CHECKING:
    from src.modules.auth.models import User

Action = Literal["read", "create", "update", "destroy", "manage"]

DEFAULT_DENIED_MESSAGE = "You are not authorized to access this page."

# Content writers produce and own
CONTENT_MODELS = frozenset(
    {"Article", "Movie", "Rating", "Tip", "Thing", "Position", "DailyVideo"}
)

# Content a reviewer may mark as reviewed
REVIEWABLE_MODELS = frozenset(
    {"Article", "Rating", "Tip", "Thing", "Position", "DailyVideo"}
)

# Everything an editor manages
EDITORIAL_MODELS = CONTENT_MODELS | {"Column", "Genre", "ThingCategory", "Comment"}

# Visible to anonymous visitors (public pages only)
PUBLIC_MODELS = EDITORIAL_MODELS

# Back-office only
RESTRICTED_MODELS = frozenset({"User", "ModelConfig", "AuditLog"})


class AccessDenied(Exception):
    """Raised when the actor may not perform an action."""

    def __init__(self, message: str = DEFAULT_DENIED_MESSAGE) -> None:
        self.message = message
        super().__init__(message)


def _owner_ids(obj: object) -> set[object]:
    ids = set()
    for attribute in ("creator_id", "author_id", "editor_id", "user_id"):
        value = getattr(obj, attribute, None)
        if value is not None:
            ids.add(value)
    return ids


def _is_creator(actor: "User", obj: object) -> bool:
    creator = getattr(obj, "creator_id", None) or getattr(obj, "author_id", None)
    return creator == actor.id


class Ability:
    """What a given actor can do."""

    def __init__(self, actor: "User | None") -> None:
        self.actor = actor

    def can_access_admin(self) -> bool:
        """The back-office is open to writers and above."""
        return self.actor is not None and self.actor.has_role(Role.WRITER)

    def can(self, action: Action, model: str, obj: object | None = None) -> bool:
        """Whether the actor may perform ``action`` on ``model`` (or ``obj``).

        Args:
            action: One of read, create, update, destroy, manage.
            model: Content type name, e.g. "Article".
            obj: Optional record; ownership rules apply when given.
        """
        actor = self.actor

        if actor is None:
            return action == "read" and model in PUBLIC_MODELS

        if actor.is_admin:
            return True

        if model == "User":
            if action == "read":
                return actor.has_role(Role.WRITER)
            return action == "update" and obj is not None and getattr(obj, "id", None) == actor.id

        if model in RESTRICTED_MODELS:
            return action == "read" and actor.has_role(Role.EDITOR)

        if action == "read":
            return True

        if model == "Comment":
            if action == "create":
                return True
            if actor.has_role(Role.EDITOR):
                return True
            return obj is not None and getattr(obj, "user_id", None) == actor.id

        if actor.has_role(Role.EDITOR) and model in EDITORIAL_MODELS:
            return True

        if not actor.has_role(Role.WRITER) or model not in CONTENT_MODELS:
            return False

        if action == "create":
            return True

        if action == "update":
            if obj is None:
                return True
            if actor.id in _owner_ids(obj):
                return True
            return actor.has_role(Role.REVIEWER) and model in REVIEWABLE_MODELS

        if action == "destroy":
            if obj is None:
                return False
            settled = bool(getattr(obj, "reviewed", False)) or bool(
                getattr(obj, "published", False)
            )
            return _is_creator(actor, obj) and not settled

        return False

    def cannot(self, action: Action, model: str, obj: object | None = None) -> bool:
        return not self.can(action, model, obj)


def authorize(
    actor: "User | None",
    action: Action,
    model: str,
    obj: object | None = None,
    *,
    message: str = DEFAULT_DENIED_MESSAGE,
) -> None:
    """Raise AccessDenied unless the actor may perform the action."""
    if Ability(actor).cannot(action, model, obj):
        raise AccessDenied(message)

"""User roles, most privileged first."""

from enum import Enum


class Role(str, Enum):
    """Site roles.

    Roles are ordered: a user holds every role at or below their own, so an
    editor is also a reviewer, a writer and a reader.
    """

    ADMIN = "admin"
    EDITOR = "editor"
    REVIEWER = "reviewer"
    WRITER = "writer"
    READER = "reader"

    @property
    def rank(self) -> int:
        """Position in the hierarchy; 0 is the most privileged."""
        return ROLES.index(self)

    def includes(self, base: "Role | str") -> bool:
        """Whether this role carries the privileges of ``base``."""
        return Role(base).rank >= self.rank

    def at_least(self) -> list["Role"]:
        """This role and every more privileged role."""
        return ROLES[: self.rank + 1]


ROLES: list[Role] = list(Role)

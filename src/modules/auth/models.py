"""User domain model."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.modules.auth.roles import Role


@dataclass
class User:
    """User domain model.

    Represents a site member: a reader who comments, or a writer, reviewer,
    editor or admin who works in the back-office.

    Attributes:
        id: Unique user identifier.
        username: Login name shown in the back-office.
        name: Display name used in bylines and mail headers.
        email: User's email address.
        hashed_password: Bcrypt-hashed password.
        role: Highest role held.
        bio: Optional biography.
        byline: Default byline for the user's articles.
        is_active: Whether the user account is active.
        articles_count: Counter cache of authored articles.
        created_at: When the user was created.
        updated_at: When the user was last updated.
    """

    id: UUID
    username: str
    name: str
    email: str
    hashed_password: str
    role: Role
    bio: str | None
    byline: str | None
    is_active: bool
    articles_count: int
    created_at: datetime
    updated_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def has_role(self, base: Role | str) -> bool:
        """Whether the user holds ``base`` or a more privileged role."""
        return self.role.includes(base)

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "User":
        """Create a User from a database row.

        Args:
            row: Database row as a dictionary.

        Returns:
            User instance.
        """
        return cls(
            id=UUID(str(row["id"])),
            username=str(row["username"]),
            name=str(row["name"]),
            email=str(row["email"]),
            hashed_password=str(row["hashed_password"]),
            role=Role(str(row["role"])),
            bio=str(row["bio"]) if row["bio"] else None,
            byline=str(row["byline"]) if row["byline"] else None,
            is_active=bool(row["is_active"]),
            articles_count=int(row["articles_count"] or 0),  # type: ignore[call-overload]
            created_at=datetime.fromisoformat(str(row["created_at"])),
            updated_at=datetime.fromisoformat(str(row["updated_at"])),
        )

    def __eq__(self, other: object) -> bool:
        return isinstance(other, User) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

"""User repository for database operations."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

import structlog

from src.infrastructure.database import Database
from src.modules.auth.models import User
from src.modules.auth.roles import Role

logger = structlog.get_logger()


class UserRepository:
    """Repository for User CRUD operations.

    Handles all database interactions for the User model.
    """

    def __init__(self, database: Database) -> None:
        """Initialize the repository.

        Args:
            database: Database connection.
        """
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    async def create(
        self,
        username: str,
        name: str,
        email: str,
        hashed_password: str,
        *,
        role: Role = Role.READER,
        bio: str | None = None,
        byline: str | None = None,
    ) -> User:
        """Create a new user.

        Args:
            username: Login name.
            name: Display name.
            email: User's email address.
            hashed_password: Bcrypt-hashed password.
            role: Role to grant.
            bio: Optional biography.
            byline: Optional default byline.

        Returns:
            The created User.

        Raises:
            ValueError: If the username or email already exists.
        """
        user_id = uuid4()
        now = datetime.now(UTC).isoformat()

        try:
            await self._db.execute(
                """
                INSERT INTO users (id, username, name, email, hashed_password,
                                   role, bio, byline, is_active, articles_count,
                                   created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, 0, ?, ?)
                """,
                (
                    str(user_id),
                    username,
                    name,
                    email,
                    hashed_password,
                    role.value,
                    bio,
                    byline,
                    now,
                    now,
                ),
            )
        except Exception as e:
            if "UNIQUE constraint failed" in str(e):
                raise ValueError(
                    f"User with username {username} or email {email} already exists"
                ) from e
            raise

        logger.info("user_created", user_id=str(user_id), username=username)

        return User(
            id=user_id,
            username=username,
            name=name,
            email=email,
            hashed_password=hashed_password,
            role=role,
            bio=bio,
            byline=byline,
            is_active=True,
            articles_count=0,
            created_at=datetime.fromisoformat(now),
            updated_at=datetime.fromisoformat(now),
        )

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID.

        Args:
            user_id: The user's UUID.

        Returns:
            User if found, None otherwise.
        """
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE id = ?",
            (str(user_id),),
        )

        if row is None:
            return None

        return User.from_row(dict(row))

    async def get_by_login(self, login: str) -> User | None:
        """Get a user by username or email.

        Args:
            login: Username or email address.

        Returns:
            User if found, None otherwise.
        """
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE username = ? OR email = ?",
            (login, login.lower()),
        )

        if row is None:
            return None

        return User.from_row(dict(row))

    async def update(self, user: User) -> User:
        """Update a user.

        Args:
            user: User with updated fields.

        Returns:
            The updated User.

        Raises:
            ValueError: If the new username or email is taken.
        """
        now = datetime.now(UTC).isoformat()

        try:
            await self._db.execute(
                """
                UPDATE users
                SET username = ?, name = ?, email = ?, hashed_password = ?,
                    role = ?, bio = ?, byline = ?, is_active = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    user.username,
                    user.name,
                    user.email,
                    user.hashed_password,
                    user.role.value,
                    user.bio,
                    user.byline,
                    int(user.is_active),
                    now,
                    str(user.id),
                ),
            )
        except Exception as e:
            if "UNIQUE constraint failed" in str(e):
                raise ValueError("Username or email already taken") from e
            raise

        logger.info("user_updated", user_id=str(user.id))

        user.updated_at = datetime.fromisoformat(now)
        return user

    async def delete(self, user_id: UUID) -> bool:
        """Delete a user.

        Args:
            user_id: The user's UUID.

        Returns:
            True if deleted, False if not found.
        """
        cursor = await self._db.execute(
            "DELETE FROM users WHERE id = ?",
            (str(user_id),),
        )

        deleted = cursor.rowcount > 0

        if deleted:
            logger.info("user_deleted", user_id=str(user_id))

        return deleted

    async def list_all(self, *, include_inactive: bool = False) -> list[User]:
        """List users ordered by username.

        Args:
            include_inactive: Whether to include inactive users.

        Returns:
            List of users.
        """
        if include_inactive:
            rows = await self._db.fetch_all("SELECT * FROM users ORDER BY username")
        else:
            rows = await self._db.fetch_all(
                "SELECT * FROM users WHERE is_active = 1 ORDER BY username"
            )

        return [User.from_row(dict(row)) for row in rows]

    async def with_role(self, role: Role) -> list[User]:
        """Active users holding ``role`` or a more privileged one."""
        roles = [r.value for r in role.at_least()]
        placeholders = ", ".join("?" for _ in roles)
        rows = await self._db.fetch_all(
            f"SELECT * FROM users WHERE is_active = 1 AND role IN ({placeholders}) "  # nosec B608
            "ORDER BY username",
            tuple(roles),
        )
        return [User.from_row(dict(row)) for row in rows]

    async def first(self) -> User | None:
        """The earliest created user."""
        row = await self._db.fetch_one(
            "SELECT * FROM users ORDER BY created_at, username LIMIT 1"
        )
        return User.from_row(dict(row)) if row else None

    async def get_many(self, user_ids: set[UUID]) -> dict[UUID, User]:
        """Load several users at once, keyed by ID."""
        if not user_ids:
            return {}
        ids = [str(user_id) for user_id in user_ids]
        placeholders = ", ".join("?" for _ in ids)
        rows = await self._db.fetch_all(
            f"SELECT * FROM users WHERE id IN ({placeholders})",  # nosec B608
            tuple(ids),
        )
        users = [User.from_row(dict(row)) for row in rows]
        return {user.id: user for user in users}

    async def content_counts(self, user_id: UUID) -> dict[str, int]:
        """Number of items the user created, per content type."""
        counts: dict[str, int] = {}
        for label, table, column in (
            ("tips", "tips", "creator_id"),
            ("daily_videos", "daily_videos", "creator_id"),
            ("positions", "positions", "creator_id"),
            ("things", "things", "creator_id"),
            ("articles", "articles", "author_id"),
            ("movies", "movies", "creator_id"),
            ("ratings", "ratings", "creator_id"),
        ):
            value = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM {table} WHERE {column} = ?",  # nosec B608
                (str(user_id),),
            )
            counts[label] = int(value or 0)  # type: ignore[call-overload]
        return counts

    async def count(self) -> int:
        """Count total users.

        Returns:
            Number of users.
        """
        row = await self._db.fetch_one("SELECT COUNT(*) as count FROM users")
        return int(row["count"]) if row else 0

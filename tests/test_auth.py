"""Tests for authentication module."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from src.infrastructure.database import Database
from src.modules.auth import (
    AuthenticationError,
    AuthService,
    hash_password,
    verify_password,
)
from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied
from src.modules.auth.repository import UserRepository
from src.modules.auth.roles import Role
from src.modules.auth.schemas import AccountUpdate, UserAdminUpdate, UserCreate


@pytest.fixture
async def repository(database: Database) -> UserRepository:
    """Create a user repository with test database."""
    return UserRepository(database)


def _user(role: Role = Role.READER) -> User:
    now = datetime.now(UTC)
    return User(
        id=uuid4(),
        username="thedude",
        name="Jeffrey Lebowski",
        email="dude@example.com",
        hashed_password="hashed",
        role=role,
        bio=None,
        byline=None,
        is_active=True,
        articles_count=0,
        created_at=now,
        updated_at=now,
    )


class TestUserModel:
    """Tests for User model."""

    def test_user_creation(self) -> None:
        """Should create a user with all fields."""
        user = _user()
        assert user.email == "dude@example.com"
        assert user.is_active
        assert not user.is_admin

    def test_user_from_row(self) -> None:
        """Should create user from database row."""
        now = datetime.now(UTC).isoformat()
        row = {
            "id": str(uuid4()),
            "username": "walter",
            "name": "Walter Sobchak",
            "email": "walter@example.com",
            "hashed_password": "hashed",
            "role": "editor",
            "bio": "",
            "byline": "Shomer Shabbos",
            "is_active": 1,
            "articles_count": 3,
            "created_at": now,
            "updated_at": now,
        }
        user = User.from_row(row)
        assert user.role is Role.EDITOR
        assert user.bio is None
        assert user.byline == "Shomer Shabbos"
        assert user.articles_count == 3

    def test_admin_holds_every_role(self) -> None:
        """Should treat the admin as holding every lower role."""
        user = _user(Role.ADMIN)
        assert user.is_admin
        for role in Role:
            assert user.has_role(role)

    def test_role_hierarchy(self) -> None:
        """Should include lower roles but not higher ones."""
        user = _user(Role.REVIEWER)
        assert user.has_role(Role.WRITER)
        assert user.has_role("reader")
        assert not user.has_role(Role.EDITOR)
        assert Role.EDITOR.at_least() == [Role.ADMIN, Role.EDITOR]


class TestUserRepository:
    """Tests for UserRepository."""

    @pytest.mark.asyncio
    async def test_create_user(self, repository: UserRepository) -> None:
        """Should create a new reader by default."""
        user = await repository.create(
            "thedude", "Jeffrey Lebowski", "dude@example.com", "hashed_password"
        )

        assert user.username == "thedude"
        assert user.role is Role.READER
        assert user.is_active
        assert user.articles_count == 0

    @pytest.mark.asyncio
    async def test_create_duplicate_username_fails(self, repository: UserRepository) -> None:
        """Should fail when creating user with duplicate username."""
        await repository.create("thedude", "Jeffrey Lebowski", "dude@example.com", "hashed")

        with pytest.raises(ValueError, match="already exists"):
            await repository.create("thedude", "Another Dude", "other@example.com", "hashed")

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, repository: UserRepository) -> None:
        """Should return None for non-existent ID."""
        assert await repository.get_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_by_login(self, repository: UserRepository) -> None:
        """Should find a user by username or email."""
        created = await repository.create(
            "thedude", "Jeffrey Lebowski", "dude@example.com", "hashed"
        )

        by_name = await repository.get_by_login("thedude")
        by_email = await repository.get_by_login("DUDE@example.com")

        assert by_name is not None and by_name.id == created.id
        assert by_email is not None and by_email.id == created.id

    @pytest.mark.asyncio
    async def test_update_user(self, repository: UserRepository) -> None:
        """Should update user fields."""
        user = await repository.create(
            "thedude", "Jeffrey Lebowski", "dude@example.com", "hashed"
        )

        user.role = Role.WRITER
        await repository.update(user)

        found = await repository.get_by_id(user.id)
        assert found is not None
        assert found.role is Role.WRITER

    @pytest.mark.asyncio
    async def test_delete_user(self, repository: UserRepository) -> None:
        """Should delete user."""
        user = await repository.create(
            "thedude", "Jeffrey Lebowski", "dude@example.com", "hashed"
        )

        assert await repository.delete(user.id)
        assert await repository.get_by_id(user.id) is None
        assert not await repository.delete(user.id)

    @pytest.mark.asyncio
    async def test_with_role(self, repository: UserRepository) -> None:
        """Should list active users holding a role or a higher one."""
        await repository.create("reader", "Reader Person", "r@example.com", "h")
        await repository.create(
            "editor", "Editor Person", "e@example.com", "h", role=Role.EDITOR
        )
        await repository.create(
            "admin", "Admin Person", "a@example.com", "h", role=Role.ADMIN
        )

        reviewers = await repository.with_role(Role.REVIEWER)

        assert [u.username for u in reviewers] == ["admin", "editor"]

    @pytest.mark.asyncio
    async def test_list_all_hides_inactive(self, repository: UserRepository) -> None:
        """Should hide inactive users unless asked."""
        await repository.create("active", "Active Person", "a@example.com", "h")
        gone = await repository.create("inactive", "Inactive Person", "i@example.com", "h")
        gone.is_active = False
        await repository.update(gone)

        assert len(await repository.list_all()) == 1
        assert len(await repository.list_all(include_inactive=True)) == 2

    @pytest.mark.asyncio
    async def test_content_counts(self, repository: UserRepository) -> None:
        """Should report zero counts for a user without content."""
        user = await repository.create("newbie", "Newbie Person", "n@example.com", "h")

        counts = await repository.content_counts(user.id)

        assert set(counts) >= {"articles", "movies", "ratings", "tips"}
        assert sum(counts.values()) == 0

    @pytest.mark.asyncio
    async def test_count(self, repository: UserRepository) -> None:
        """Should count users."""
        assert await repository.count() == 0
        await repository.create("thedude", "Jeffrey Lebowski", "dude@example.com", "h")
        assert await repository.count() == 1


class TestPasswordHashing:
    """Tests for password hashing utilities."""

    def test_hash_password(self) -> None:
        """Should hash password."""
        hashed = hash_password("secure_password123")

        assert hashed != "secure_password123"
        assert hashed.startswith("$2")  # bcrypt prefix

    def test_verify_password(self) -> None:
        """Should verify the right password and reject a wrong one."""
        hashed = hash_password("correct_password")

        assert verify_password("correct_password", hashed)
        assert not verify_password("wrong_password", hashed)

    def test_different_hashes_for_same_password(self) -> None:
        """Should generate different hashes due to salt."""
        assert hash_password("same_password") != hash_password("same_password")


class TestAuthService:
    """Tests for AuthService."""

    @pytest.fixture
    async def auth_service(self, repository: UserRepository) -> AuthService:
        """Create an auth service with test repository."""
        return AuthService(
            repository,
            jwt_secret="test-secret-key-for-testing-only",
            jwt_expire_hours=24,
        )

    @staticmethod
    def _data(**overrides: object) -> UserCreate:
        values: dict[str, object] = {
            "username": "thedude",
            "name": "Jeffrey Lebowski",
            "email": "Dude@Example.com",
            "password": "password123",
        }
        values.update(overrides)
        return UserCreate(**values)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_register_user(self, auth_service: AuthService) -> None:
        """Should register a reader with a lowercased email."""
        user = await auth_service.register(self._data())

        assert user.email == "dude@example.com"
        assert user.role is Role.READER

    @pytest.mark.asyncio
    async def test_register_with_role(self, auth_service: AuthService) -> None:
        """Should register a user with the requested role."""
        user = await auth_service.register(self._data(role=Role.EDITOR))
        assert user.role is Role.EDITOR

    @pytest.mark.asyncio
    async def test_authenticate_by_username_or_email(self, auth_service: AuthService) -> None:
        """Should authenticate with either login."""
        await auth_service.register(self._data())

        assert (await auth_service.authenticate("thedude", "password123")).username == "thedude"
        assert (
            await auth_service.authenticate("dude@example.com", "password123")
        ).username == "thedude"

    @pytest.mark.asyncio
    async def test_authenticate_wrong_password(self, auth_service: AuthService) -> None:
        """Should fail with wrong password."""
        await auth_service.register(self._data())

        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            await auth_service.authenticate("thedude", "wrong_password")

    @pytest.mark.asyncio
    async def test_authenticate_nonexistent_user(self, auth_service: AuthService) -> None:
        """Should fail for non-existent user."""
        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            await auth_service.authenticate("nobody", "password")

    @pytest.mark.asyncio
    async def test_authenticate_inactive_user(
        self, auth_service: AuthService, repository: UserRepository
    ) -> None:
        """Should refuse a deactivated account."""
        user = await auth_service.register(self._data())
        user.is_active = False
        await repository.update(user)

        with pytest.raises(AuthenticationError, match="deactivated"):
            await auth_service.authenticate("thedude", "password123")

    @pytest.mark.asyncio
    async def test_create_and_verify_token(self, auth_service: AuthService) -> None:
        """Should create and verify JWT token."""
        user = await auth_service.register(self._data(role=Role.WRITER))

        response = auth_service.create_token(user)
        assert response.token_type == "bearer"
        assert response.user.username == "thedude"

        payload = auth_service.verify_token(response.access_token)
        assert payload.sub == str(user.id)
        assert payload.role is Role.WRITER

    def test_verify_invalid_token(self, auth_service: AuthService) -> None:
        """Should reject invalid token."""
        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth_service.verify_token("invalid.token.here")

    @pytest.mark.asyncio
    async def test_get_user_by_id(self, auth_service: AuthService) -> None:
        """Should return active users and ignore malformed IDs."""
        user = await auth_service.register(self._data())

        found = await auth_service.get_user_by_id(str(user.id))
        assert found is not None and found.id == user.id
        assert await auth_service.get_user_by_id("not-a-uuid") is None

    @pytest.mark.asyncio
    async def test_update_account_requires_current_password(
        self, auth_service: AuthService
    ) -> None:
        """Should require the current password to change the password."""
        user = await auth_service.register(self._data())

        with pytest.raises(AuthenticationError, match="Current password"):
            await auth_service.update_account(user, AccountUpdate(password="newpassword1"))

        updated = await auth_service.update_account(
            user,
            AccountUpdate(password="newpassword1", current_password="password123"),
        )
        assert verify_password("newpassword1", updated.hashed_password)

    @pytest.mark.asyncio
    async def test_update_account_profile(self, auth_service: AuthService) -> None:
        """Should change profile fields without the password."""
        user = await auth_service.register(self._data())

        updated = await auth_service.update_account(
            user, AccountUpdate(name="The Big Lebowski", byline="The Dude")
        )

        assert updated.name == "The Big Lebowski"
        assert updated.byline == "The Dude"

    @pytest.mark.asyncio
    async def test_change_role_requires_admin(self, auth_service: AuthService) -> None:
        """Should only let admins change roles."""
        admin = await auth_service.register(self._data(username="admin", email="a@example.com", role=Role.ADMIN))
        editor = await auth_service.register(self._data(username="editor", email="e@example.com", role=Role.EDITOR))
        target = await auth_service.register(self._data())

        with pytest.raises(AccessDenied):
            await auth_service.change_role(editor, target.id, Role.WRITER)

        changed = await auth_service.change_role(admin, target.id, Role.WRITER)
        assert changed.role is Role.WRITER

    @pytest.mark.asyncio
    async def test_update_user_own_record(self, auth_service: AuthService) -> None:
        """Should let a writer edit their record but not their role."""
        writer = await auth_service.register(self._data(role=Role.WRITER))

        saved = await auth_service.update_user(
            writer,
            writer.id,
            UserAdminUpdate(name="Jeffrey The Dude", email="dude@example.com"),
        )
        assert saved.name == "Jeffrey The Dude"

        with pytest.raises(AccessDenied):
            await auth_service.update_user(
                writer,
                writer.id,
                UserAdminUpdate(name="Jeffrey The Dude", email="dude@example.com", role=Role.ADMIN),
            )

    @pytest.mark.asyncio
    async def test_update_user_other_record(self, auth_service: AuthService) -> None:
        """Should let only admins edit another user's record."""
        admin = await auth_service.register(self._data(username="admin", email="a@example.com", role=Role.ADMIN))
        writer = await auth_service.register(self._data(username="writer", email="w@example.com", role=Role.WRITER))
        target = await auth_service.register(self._data())
        data = UserAdminUpdate(name="Jeffrey Lebowski", email="dude@example.com", is_active=False)

        with pytest.raises(AccessDenied):
            await auth_service.update_user(writer, target.id, data)

        saved = await auth_service.update_user(admin, target.id, data)
        assert not saved.is_active

"""Shared fixtures: a temporary database, wired services and user factories."""

import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.api.rate_limit import limiter
from src.config import Settings
from src.infrastructure.database import Database
from src.infrastructure.mail import OutboxTransport
from src.main import app
from src.modules.auth.models import User
from src.modules.auth.password import hash_password
from src.modules.auth.roles import Role
from src.modules.auth.routes import set_auth_service as set_api_auth_service
from src.modules.auth.service import AuthService
from src.modules.site import Services, build_services
from src.web.auth_routes import AUTH_COOKIE_NAME
from src.web.auth_routes import set_auth_service as set_web_auth_service
from src.web.dependencies import get_services, set_services

UserFactory = Callable[..., Awaitable[User]]

PASSWORD = "password123"


@pytest.fixture
async def database() -> AsyncGenerator[Database]:
    """Create a temporary test database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db = Database(Path(tmpdir) / "test.db")
        await db.connect()
        yield db
        await db.disconnect()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret_key="test-secret-key-for-testing-only",  # type: ignore[arg-type]
        mail_enabled=True,
        site_url="https://dudefest.test",
    )


@pytest.fixture
def outbox() -> OutboxTransport:
    return OutboxTransport()


@pytest.fixture
def services(database: Database, settings: Settings, outbox: OutboxTransport) -> Services:
    return build_services(database, settings, mail=outbox)


@pytest.fixture
def make_user(services: Services) -> UserFactory:
    """Create users; the username also seeds name and email."""
    counter = 0

    async def factory(role: Role = Role.WRITER, username: str | None = None) -> User:
        nonlocal counter
        counter += 1
        username = username or f"{role.value}{counter}"
        return await services.users.create(
            username=username,
            name=f"Dude {username.title()}",
            email=f"{username}@example.com",
            hashed_password=hash_password(PASSWORD),
            role=role,
        )

    return factory


@pytest.fixture
def auth_service(services: Services, settings: Settings) -> AuthService:
    assert settings.jwt_secret_key is not None
    return AuthService(
        services.users,
        jwt_secret=settings.jwt_secret_key.get_secret_value(),
        jwt_expire_hours=24,
    )


@pytest.fixture
def client(services: Services, auth_service: AuthService) -> Generator[TestClient]:
    """The site wired to the temporary database, without the startup hook."""
    app.dependency_overrides.clear()
    app.dependency_overrides[get_services] = lambda: services
    set_services(services)
    set_web_auth_service(auth_service)
    set_api_auth_service(auth_service)
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()
    set_services(None)
    set_web_auth_service(None)
    set_api_auth_service(None)


@pytest.fixture
def sign_in(client: TestClient, auth_service: AuthService) -> Callable[[User], None]:
    """Sign a user in by handing the client a session cookie."""

    def sign(user: User) -> None:
        token = auth_service.create_token(user).access_token
        client.cookies.set(AUTH_COOKIE_NAME, token)

    return sign

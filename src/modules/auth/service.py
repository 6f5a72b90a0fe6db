"""Authentication service for user management."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
import structlog

from src.modules.auth.models import User
from src.modules.auth.password import hash_password, verify_password
from src.modules.auth.permissions import AccessDenied, authorize
from src.modules.auth.repository import UserRepository
from src.modules.auth.roles import Role
from src.modules.auth.schemas import (
    AccountUpdate,
    LoginResponse,
    TokenPayload,
    UserAdminUpdate,
    UserCreate,
    UserResponse,
)

logger = structlog.get_logger()


class AuthenticationError(Exception):
    """Raised when authentication fails."""

    pass


class AuthService:
    """Service for authentication operations.

    Handles user registration, login, token management and account changes.
    """

    def __init__(
        self,
        repository: UserRepository,
        *,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        jwt_expire_hours: int = 24,
    ) -> None:
        """Initialize the auth service.

        Args:
            repository: User repository for database operations.
            jwt_secret: Secret key for JWT signing.
            jwt_algorithm: Algorithm for JWT signing.
            jwt_expire_hours: Hours until token expiration.
        """
        self._repo = repository
        self._jwt_secret = jwt_secret
        self._jwt_algorithm = jwt_algorithm
        self._jwt_expire_hours = jwt_expire_hours

    @property
    def repository(self) -> UserRepository:
        return self._repo

    async def register(self, data: UserCreate) -> User:
        """Register a new user.

        Args:
            data: User creation data.

        Returns:
            The created User.

        Raises:
            ValueError: If the username or email already exists.
        """
        hashed = hash_password(data.password)

        user = await self._repo.create(
            username=data.username,
            name=data.name,
            email=data.email.lower(),
            hashed_password=hashed,
            role=data.role,
            bio=data.bio,
            byline=data.byline,
        )

        logger.info(
            "user_registered",
            user_id=str(user.id),
            username=user.username,
            role=user.role.value,
        )
        return user

    async def authenticate(self, login: str, password: str) -> User:
        """Authenticate a user by username or email and password.

        Args:
            login: Username or email address.
            password: Plain text password.

        Returns:
            The authenticated User.

        Raises:
            AuthenticationError: If authentication fails.
        """
        user = await self._repo.get_by_login(login.strip())

        if user is None:
            logger.warning("auth_failed_user_not_found", login=login)
            raise AuthenticationError("Invalid username or password")

        if not user.is_active:
            logger.warning("auth_failed_user_inactive", login=login)
            raise AuthenticationError("Account is deactivated")

        if not verify_password(password, user.hashed_password):
            logger.warning("auth_failed_invalid_password", login=login)
            raise AuthenticationError("Invalid username or password")

        logger.info("user_authenticated", user_id=str(user.id), username=user.username)
        return user

    def create_token(self, user: User) -> LoginResponse:
        """Create a JWT token for a user.

        Args:
            user: The user to create a token for.

        Returns:
            LoginResponse with token and user info.
        """
        now = datetime.now(UTC)
        expires = now + timedelta(hours=self._jwt_expire_hours)

        # JWT requires integer timestamps for exp and iat
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role.value,
            "exp": int(expires.timestamp()),
            "iat": int(now.timestamp()),
        }

        token = jwt.encode(
            payload,
            self._jwt_secret,
            algorithm=self._jwt_algorithm,
        )

        return LoginResponse(
            access_token=token,
            token_type="bearer",  # nosec B106 - OAuth2 token type, not a password
            expires_in=self._jwt_expire_hours * 3600,
            user=UserResponse(
                id=user.id,
                username=user.username,
                name=user.name,
                email=user.email,
                role=user.role,
                is_active=user.is_active,
                created_at=user.created_at,
            ),
        )

    def verify_token(self, token: str) -> TokenPayload:
        """Verify and decode a JWT token.

        Args:
            token: JWT token string.

        Returns:
            Decoded token payload.

        Raises:
            AuthenticationError: If token is invalid or expired.
        """
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[self._jwt_algorithm],
            )
            return TokenPayload(
                sub=payload["sub"],
                username=payload["username"],
                role=Role(payload["role"]),
                exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
                iat=datetime.fromtimestamp(payload["iat"], tz=UTC),
            )

        except jwt.ExpiredSignatureError as e:
            logger.warning("token_expired")
            raise AuthenticationError("Token has expired") from e

        except (jwt.InvalidTokenError, KeyError, ValueError) as e:
            logger.warning("token_invalid", error=str(e))
            raise AuthenticationError("Invalid token") from e

    async def get_user_by_id(self, user_id: str) -> User | None:
        """Get an active user by ID.

        Args:
            user_id: User's UUID as string.

        Returns:
            User if found and active, None otherwise.
        """
        try:
            uuid = UUID(user_id)
        except ValueError:
            return None

        user = await self._repo.get_by_id(uuid)

        if user is None or not user.is_active:
            return None

        return user

    async def login(self, login: str, password: str) -> LoginResponse:
        """Authenticate user and create token.

        Args:
            login: Username or email address.
            password: Plain text password.

        Returns:
            LoginResponse with token and user info.

        Raises:
            AuthenticationError: If authentication fails.
        """
        user = await self.authenticate(login, password)
        return self.create_token(user)

    async def update_account(self, user: User, data: AccountUpdate) -> User:
        """Apply a user's changes to their own account.

        Changing the email or password requires the current password.

        Raises:
            AuthenticationError: If the current password is missing or wrong.
            ValueError: If the new email is taken.
        """
        sensitive = data.password is not None or (
            data.email is not None and data.email.lower() != user.email
        )
        if sensitive and (
            data.current_password is None
            or not verify_password(data.current_password, user.hashed_password)
        ):
            raise AuthenticationError("Current password is incorrect")

        if data.name is not None:
            user.name = data.name
        if data.email is not None:
            user.email = data.email.lower()
        if data.bio is not None:
            user.bio = data.bio or None
        if data.byline is not None:
            user.byline = data.byline or None
        if data.password is not None:
            user.hashed_password = hash_password(data.password)

        updated = await self._repo.update(user)
        logger.info("account_updated", user_id=str(user.id))
        return updated

    async def change_role(self, actor: User, user_id: UUID, role: Role) -> User:
        """Grant ``role`` to a user. Only admins may change roles.

        Raises:
            AccessDenied: If the actor is not an admin.
            ValueError: If the user does not exist.
        """
        if not actor.is_admin:
            raise AccessDenied("You are not authorized to change roles.")

        user = await self._repo.get_by_id(user_id)
        if user is None:
            raise ValueError(f"User not found: {user_id}")

        previous = user.role
        user.role = role
        updated = await self._repo.update(user)
        logger.info(
            "user_role_changed",
            user_id=str(user_id),
            previous=previous.value,
            role=role.value,
            changed_by=str(actor.id),
        )
        return updated

    async def update_user(self, actor: User, user_id: UUID, data: UserAdminUpdate) -> User:
        """Save a user's profile from the back-office.

        Writers may edit their own record; only admins may change roles or
        deactivate accounts.

        Raises:
            AccessDenied: If the actor may not make the change.
            ValueError: If the user does not exist or the email is taken.
        """
        user = await self._repo.get_by_id(user_id)
        if user is None:
            raise ValueError(f"User not found: {user_id}")
        authorize(actor, "update", "User", user)

        role = data.role if data.role is not None else user.role
        if (role is not user.role or data.is_active != user.is_active) and not actor.is_admin:
            raise AccessDenied("You are not authorized to change roles.")

        user.name = data.name
        user.email = data.email.lower()
        user.bio = data.bio or None
        user.byline = data.byline or None
        user.role = role
        user.is_active = data.is_active

        updated = await self._repo.update(user)
        logger.info("user_saved", user_id=str(user.id), changed_by=str(actor.id))
        return updated

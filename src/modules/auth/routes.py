"""Authentication API routes."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, status

from src.modules.auth.schemas import LoginRequest, LoginResponse, UserResponse
from src.modules.auth.service import AuthenticationError, AuthService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["authentication"])


# Dependency placeholder - configured during app startup
_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get the auth service instance.

    This is a placeholder that should be configured during app startup.
    """
    if _auth_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service not configured",
        )
    return _auth_service


def set_auth_service(service: AuthService | None) -> None:
    """Set the auth service instance.

    Called during app startup to configure the service.
    """
    global _auth_service
    _auth_service = service


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login with username or email and password",
    description="Authenticate and receive a JWT token.",
)
async def login(
    data: LoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> LoginResponse:
    """Authenticate user and return JWT token."""
    try:
        return await auth_service.login(data.login, data.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
    description="Return the user identified by the bearer token.",
)
async def me(
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> UserResponse:
    """Resolve the bearer token to a user."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not authorization or not authorization.lower().startswith("bearer "):
        raise unauthorized

    try:
        payload = auth_service.verify_token(authorization.split(" ", 1)[1])
    except AuthenticationError as e:
        raise unauthorized from e

    user = await auth_service.get_user_by_id(payload.sub)
    if user is None:
        raise unauthorized

    return UserResponse(
        id=user.id,
        username=user.username,
        name=user.name,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
    )

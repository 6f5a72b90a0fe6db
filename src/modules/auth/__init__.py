"""Authentication module for users, roles and sessions."""

from src.modules.auth.models import User
from src.modules.auth.password import hash_password, verify_password
from src.modules.auth.permissions import Ability, AccessDenied, authorize
from src.modules.auth.repository import UserRepository
from src.modules.auth.roles import ROLES, Role
from src.modules.auth.schemas import (
    AccountUpdate,
    LoginRequest,
    LoginResponse,
    TokenPayload,
    UserAdminUpdate,
    UserCreate,
    UserResponse,
)
from src.modules.auth.service import AuthenticationError, AuthService

__all__ = [
    "ROLES",
    "Ability",
    "AccessDenied",
    "AccountUpdate",
    "AuthService",
    "AuthenticationError",
    "LoginRequest",
    "LoginResponse",
    "Role",
    "TokenPayload",
    "User",
    "UserAdminUpdate",
    "UserCreate",
    "UserRepository",
    "UserResponse",
    "authorize",
    "hash_password",
    "verify_password",
]

"""Web authentication routes: login, logout, sign up and account."""

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError as SchemaError

from src.api.rate_limit import get_rate_limit_string, limiter
from src.modules.auth.models import User
from src.modules.auth.schemas import AccountUpdate, UserCreate
from src.modules.auth.service import AuthenticationError, AuthService
from src.modules.common.validation import ValidationError
from src.web.flash import set_flash
from src.web.templates import templates

logger = structlog.get_logger()

router = APIRouter()

# Cookie configuration
AUTH_COOKIE_NAME = "auth_token"
AUTH_COOKIE_MAX_AGE = 14 * 24 * 60 * 60  # two weeks in seconds

# Dependency placeholder - configured during app startup
_auth_service: AuthService | None = None


def get_auth_service() -> AuthService | None:
    """Get the auth service instance, or None if not configured."""
    return _auth_service


def set_auth_service(service: AuthService | None) -> None:
    """Set the auth service instance during app startup."""
    global _auth_service
    _auth_service = service


def get_current_user_from_cookie(request: Request) -> dict[str, Any] | None:
    """Extract and verify the token payload from the auth cookie.

    Args:
        request: FastAPI request object.

    Returns:
        Token payload as dict if valid, None otherwise.
    """
    auth_service = get_auth_service()
    if auth_service is None:
        return None

    token = request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        return None

    try:
        payload = auth_service.verify_token(token)
        return {
            "user_id": payload.sub,
            "username": payload.username,
            "role": payload.role.value,
        }
    except AuthenticationError:
        return None


async def load_cookie_user(request: Request) -> User | None:
    """The active user behind the auth cookie, if any."""
    payload = get_current_user_from_cookie(request)
    auth_service = get_auth_service()
    if payload is None or auth_service is None:
        return None
    return await auth_service.get_user_by_id(payload["user_id"])


def _safe_next(next_url: str | None) -> str:
    """Only allow local redirect targets."""
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return "/"


def _login_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=AUTH_COOKIE_MAX_AGE,
        httponly=True,  # Prevent JavaScript access
        samesite="lax",  # CSRF protection
        secure=False,  # Set to True in production with HTTPS
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, next: str | None = None) -> Response:
    """Render the login page.

    Args:
        request: The incoming request.
        next: Optional URL to redirect to after login.
    """
    if get_current_user_from_cookie(request):
        return RedirectResponse(url=_safe_next(next), status_code=303)

    return templates.TemplateResponse(
        request=request,
        name="auth/login.html",
        context={"error": None, "login": None, "next": next},
    )


@router.post("/login", response_class=HTMLResponse)
@limiter.limit(get_rate_limit_string)
async def login_submit(
    request: Request,
    login: Annotated[str, Form()],
    password: Annotated[str, Form()],
    next: Annotated[str | None, Form()] = None,
) -> Response:
    """Handle login form submission.

    Args:
        request: The incoming request.
        login: Username or email address.
        password: User's password.
        next: Optional URL to redirect to after login.
    """
    auth_service = get_auth_service()

    if auth_service is None:
        return templates.TemplateResponse(
            request=request,
            name="auth/login.html",
            context={"error": "Authentication not configured", "login": login, "next": next},
        )

    try:
        login_response = await auth_service.login(login, password)
    except AuthenticationError as e:
        logger.warning("login_failed", login=login, error=str(e))
        return templates.TemplateResponse(
            request=request,
            name="auth/login.html",
            context={"error": str(e), "login": login, "next": next},
        )

    response = RedirectResponse(url=_safe_next(next), status_code=303)
    _login_cookie(response, login_response.access_token)
    set_flash(response, "Signed in successfully.")
    logger.info("user_logged_in", username=login_response.user.username)
    return response


@router.get("/logout")
async def logout(request: Request) -> Response:
    """Log out the user by clearing the auth cookie."""
    user = get_current_user_from_cookie(request)
    if user:
        logger.info("user_logged_out", username=user.get("username"))

    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(key=AUTH_COOKIE_NAME)
    set_flash(response, "Signed out successfully.")
    return response


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request) -> Response:
    return templates.TemplateResponse(
        request=request,
        name="auth/signup.html",
        context={"errors": {}, "values": {}},
    )


@router.post("/signup", response_class=HTMLResponse)
@limiter.limit(get_rate_limit_string)
async def signup_submit(
    request: Request,
    username: Annotated[str, Form()],
    name: Annotated[str, Form()],
    email: Annotated[str, Form()],
    password: Annotated[str, Form()],
    password_confirmation: Annotated[str, Form()],
) -> Response:
    """Register a reader account and sign it in."""
    values = {"username": username, "name": name, "email": email}
    auth_service = get_auth_service()

    def failed(errors: dict[str, list[str]]) -> Response:
        return templates.TemplateResponse(
            request=request,
            name="auth/signup.html",
            context={"errors": errors, "values": values},
            status_code=422,
        )

    if auth_service is None:
        return failed({"base": ["Authentication not configured"]})
    if password != password_confirmation:
        return failed({"password_confirmation": ["doesn't match Password"]})

    try:
        data = UserCreate(
            username=username.strip(), name=name.strip(), email=email, password=password
        )
    except SchemaError as e:
        return failed(ValidationError.from_schema(e).errors)

    try:
        user = await auth_service.register(data)
    except ValueError as e:
        return failed({"base": [str(e)]})

    response = RedirectResponse(url="/", status_code=303)
    _login_cookie(response, auth_service.create_token(user).access_token)
    set_flash(response, "Welcome! You have signed up successfully.")
    return response


@router.get("/account", response_class=HTMLResponse)
async def account_page(request: Request) -> Response:
    user = await load_cookie_user(request)
    if user is None:
        return RedirectResponse(url="/login?next=/account", status_code=303)
    return templates.TemplateResponse(
        request=request,
        name="auth/account.html",
        context={"user": user, "errors": {}},
    )


@router.post("/account", response_class=HTMLResponse)
async def account_submit(
    request: Request,
    name: Annotated[str, Form()],
    email: Annotated[str, Form()],
    bio: Annotated[str, Form()] = "",
    byline: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    current_password: Annotated[str, Form()] = "",
) -> Response:
    """Update the signed in user's own account."""
    auth_service = get_auth_service()
    user = await load_cookie_user(request)
    if user is None or auth_service is None:
        return RedirectResponse(url="/login?next=/account", status_code=303)

    def failed(errors: dict[str, list[str]]) -> Response:
        return templates.TemplateResponse(
            request=request,
            name="auth/account.html",
            context={"user": user, "errors": errors},
            status_code=422,
        )

    try:
        data = AccountUpdate(
            name=name.strip(),
            email=email,
            bio=bio,
            byline=byline,
            password=password or None,
            current_password=current_password or None,
        )
        await auth_service.update_account(user, data)
    except SchemaError as e:
        return failed(ValidationError.from_schema(e).errors)
    except (AuthenticationError, ValueError) as e:
        return failed({"base": [str(e)]})

    response = RedirectResponse(url="/account", status_code=303)
    set_flash(response, "Your account has been updated successfully.")
    return response

"""Rate limiting configuration using slowapi."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.config import get_settings
from src.web.templates import templates

RATE_LIMIT_MESSAGE = "Slow down, dude. Too many requests, try again in a moment."


def _get_rate_limit_key(request: Request) -> str:
    """Get the rate limit key from the request.

    Signed in visitors are limited by their user ID, everybody else by
    remote address. A cookie that does not verify counts as no cookie.
    """
    # Imported here: the auth routes import this module for the limiter
    from src.web.auth_routes import get_current_user_from_cookie

    payload = get_current_user_from_cookie(request)
    if payload is not None:
        return f"user:{payload['user_id']}"
    addr: str = get_remote_address(request)
    return addr


# Create limiter instance
limiter = Limiter(key_func=_get_rate_limit_key)


def get_rate_limit_string() -> str:
    """Get the rate limit string from settings."""
    settings = get_settings()
    return f"{settings.rate_limit_requests}/{settings.rate_limit_window}"


async def rate_limit_exceeded_handler(
    request: Request,
    _exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors with a user-friendly message."""
    # For API requests, return JSON
    if request.url.path.startswith("/auth/"):
        return JSONResponse(
            {"error": "rate_limit_exceeded", "message": RATE_LIMIT_MESSAGE},
            status_code=429,
        )

    # For form posts, a page carrying the message
    return templates.TemplateResponse(
        request=request,
        name="errors/429.html",
        context={"flash": None, "reason": RATE_LIMIT_MESSAGE},
        status_code=429,
    )

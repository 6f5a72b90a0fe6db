"""Web dependencies for services, authentication and authorization."""

from typing import Annotated, Any

import structlog
from fastapi import Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException

from src.modules.auth.models import User
from src.modules.auth.permissions import Ability, AccessDenied
from src.modules.common.exceptions import NotFoundError
from src.modules.site import Services
from src.web.auth_routes import load_cookie_user
from src.web.flash import clear_flash, read_flash, set_flash
from src.web.templates import templates

logger = structlog.get_logger()

# Dependency placeholder - configured during app startup
_services: Services | None = None


def get_services() -> Services:
    """Get the site services.

    Raises:
        HTTPException: 503 if the services are not configured yet.
    """
    if _services is None:
        raise HTTPException(status_code=503, detail="Site services not configured")
    return _services


def set_services(services: Services | None) -> None:
    """Set the site services during app startup."""
    global _services
    _services = services


class AuthenticationRequired(HTTPException):
    """Exception raised when authentication is required.

    This triggers a redirect to the login page.
    """

    def __init__(self) -> None:
        super().__init__(status_code=303, detail="Authentication required")


async def get_current_user(request: Request) -> User | None:
    """The signed in user, or None for anonymous visitors."""
    return await load_cookie_user(request)


async def require_user(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Dependency that requires a signed in user of any role.

    Raises:
        AuthenticationRequired: If nobody is signed in.
    """
    if user is None:
        raise AuthenticationRequired()
    return user


async def require_writer(
    user: Annotated[User, Depends(require_user)],
) -> User:
    """Dependency for the back-office: writers and above.

    Raises:
        AccessDenied: If the user is only a reader.
    """
    if not Ability(user).can_access_admin():
        raise AccessDenied()
    return user


def render(
    request: Request,
    name: str,
    context: dict[str, Any],
    *,
    status_code: int = 200,
) -> Response:
    """Render a template with the flash message and clear it."""
    flash = read_flash(request)
    response = templates.TemplateResponse(
        request=request,
        name=name,
        context={**context, "flash": flash},
        status_code=status_code,
    )
    if flash is not None:
        clear_flash(response)
    return response


# Exception handler for AuthenticationRequired
async def auth_exception_handler(
    request: Request, _exc: AuthenticationRequired
) -> RedirectResponse:
    """Handle AuthenticationRequired by redirecting to login.

    The next parameter preserves the original URL for post-login redirect.
    """
    login_url = f"/login?next={request.url.path}"
    response = RedirectResponse(url=login_url, status_code=303)
    set_flash(response, "You need to sign in or sign up before continuing.", kind="alert")
    return response


async def access_denied_handler(request: Request, exc: AccessDenied) -> RedirectResponse:
    """Send the visitor home with the reason."""
    logger.warning("access_denied", path=request.url.path, reason=exc.message)
    response = RedirectResponse(url="/", status_code=303)
    set_flash(response, exc.message, kind="alert")
    return response


async def not_found_handler(request: Request, exc: NotFoundError) -> HTMLResponse:
    logger.info("not_found", path=request.url.path, model=exc.model)
    return templates.TemplateResponse(
        request=request,
        name="errors/404.html",
        context={"flash": None, "message": f"{exc.model} not found"},
        status_code=404,
    )

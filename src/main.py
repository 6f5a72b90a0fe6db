"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from src.api.health import router as health_router
from src.api.rate_limit import limiter, rate_limit_exceeded_handler
from src.config import get_settings
from src.infrastructure.database import Database, init_database
from src.infrastructure.observability import init_observability, shutdown_observability
from src.modules.auth.permissions import AccessDenied
from src.modules.auth.routes import router as auth_api_router
from src.modules.auth.routes import set_auth_service as set_api_auth_service
from src.modules.auth.service import AuthService
from src.modules.common.exceptions import NotFoundError
from src.modules.site import build_services
from src.web.admin_routes import router as admin_router
from src.web.auth_routes import router as auth_web_router
from src.web.auth_routes import set_auth_service as set_web_auth_service
from src.web.dependencies import (
    AuthenticationRequired,
    access_denied_handler,
    auth_exception_handler,
    not_found_handler,
    set_services,
)
from src.web.routes import router as web_router

logger = structlog.get_logger()
settings = get_settings()

# Database instance (initialized on startup)
_database: Database | None = None


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup/shutdown."""
    global _database

    # Initialize database (sets global in connection module)
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    _database = await init_database(db_path)
    logger.info("database_connected", path=str(db_path))

    services = build_services(_database, settings)
    set_services(services)
    logger.info("services_initialized", mail_enabled=settings.mail_enabled)

    # Initialize auth service if enabled
    if settings.auth_enabled and settings.jwt_secret_key:
        auth_service = AuthService(
            services.users,
            jwt_secret=settings.jwt_secret_key.get_secret_value(),
            jwt_algorithm=settings.jwt_algorithm,
            jwt_expire_hours=settings.jwt_expire_hours,
        )
        set_api_auth_service(auth_service)
        set_web_auth_service(auth_service)
        logger.info("auth_service_initialized")
    else:
        logger.warning(
            "auth_disabled", reason="auth_enabled=False or jwt_secret_key not set"
        )

    yield

    # Cleanup on shutdown
    set_services(None)
    set_web_auth_service(None)
    set_api_auth_service(None)
    if _database:
        await _database.disconnect()
        logger.info("database_disconnected")
    shutdown_observability()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

init_observability(settings, app=app)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    rate_limit_exceeded_handler,  # type: ignore[arg-type]
)

# Authentication redirect
app.add_exception_handler(
    AuthenticationRequired,
    auth_exception_handler,  # type: ignore[arg-type]
)

# Authorization failures go home with the reason
app.add_exception_handler(
    AccessDenied,
    access_denied_handler,  # type: ignore[arg-type]
)

app.add_exception_handler(
    NotFoundError,
    not_found_handler,  # type: ignore[arg-type]
)

# Static files (optional - only mount if directory exists)
static_path = Path(__file__).parent / "web" / "static"
if static_path.exists():
    app.mount("/static", StaticFiles(directory=static_path), name="static")

# Register routers
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(auth_api_router, tags=["authentication"])
app.include_router(auth_web_router, tags=["auth-web"])
app.include_router(admin_router, tags=["admin"])
app.include_router(web_router, tags=["web"])

"""Health check endpoint."""

from datetime import date
from typing import Annotated, Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.config import Settings, get_settings
from src.infrastructure.database import get_database
from src.modules.common.clock import site_today

logger = structlog.get_logger()
router = APIRouter()

_COUNTS_SQL = """
SELECT
    (SELECT COUNT(*) FROM users) AS users,
    (SELECT COUNT(*) FROM articles WHERE published = 1) AS published_articles,
    (SELECT COUNT(*) FROM movies) AS movies
"""


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["healthy", "unhealthy"]
    version: str
    site_date: date
    users: int
    published_articles: int
    movies: int


@router.get("", response_model=HealthResponse)
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Report the version, the site calendar date and a few table counts.

    Raises:
        HTTPException: 503 if the database cannot be queried.
    """
    try:
        row = await get_database().fetch_one(_COUNTS_SQL)
    except Exception as e:
        logger.error("health_check_failed", error=str(e), error_type=type(e).__name__)
        raise HTTPException(
            status_code=503,
            detail=f"Service unhealthy: {type(e).__name__}",
        ) from e

    counts = dict(row) if row is not None else {}
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        site_date=site_today(settings.site_timezone),
        users=counts.get("users", 0),
        published_articles=counts.get("published_articles", 0),
        movies=counts.get("movies", 0),
    )

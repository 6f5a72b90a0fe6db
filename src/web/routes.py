"""Web routes for the public site pages."""

from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from src.api.rate_limit import get_rate_limit_string, limiter
from src.config import Settings, get_settings
from src.modules.articles import Article
from src.modules.auth.models import User
from src.modules.common.exceptions import NotFoundError
from src.modules.common.validation import ValidationError
from src.modules.site import Services
from src.web.dependencies import get_current_user, get_services, render, require_user
from src.web.flash import set_flash

logger = structlog.get_logger()

router = APIRouter()

# Input constraints
MAX_COMMENT_LENGTH = 1000


async def site_context(
    services: Services,
    user: User | None,
    *,
    show_daily_dose: bool = True,
) -> dict[str, Any]:
    """Context shared by every public page: navigation and the daily dose."""
    return {
        "user": user,
        "nav": await services.navigation.build(),
        "daily_dose": await services.daily_dose.today() if show_daily_dose else None,
    }


def article_url(article: Article) -> str:
    """Reviews live on their movie page."""
    if article.movie_id is not None:
        return f"/movies/{article.movie_id}"
    return f"/articles/{article.id}"


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User | None, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Render the home page: daily dose, latest articles and recent ratings."""
    articles = await services.articles.public(limit=settings.home_article_count)
    return render(
        request,
        "home.html",
        {
            **await site_context(services, user),
            "articles": await services.articles.views(articles),
            "ratings": await services.ratings.recent(settings.recent_ratings_count),
        },
    )


@router.get("/columns/{slug}", response_class=HTMLResponse)
async def column_page(
    request: Request,
    slug: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User | None, Depends(get_current_user)],
) -> Response:
    """Render a column with its public articles, newest first."""
    column = await services.columns.get_by_slug(slug)
    articles = await services.articles.public(column_id=column.id)
    return render(
        request,
        "column.html",
        {
            **await site_context(services, user),
            "column": column,
            "articles": await services.articles.views(articles),
        },
    )


@router.get("/writers/{user_id}", response_class=HTMLResponse)
async def writer_page(
    request: Request,
    user_id: UUID,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User | None, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Render a writer's public articles and recent ratings."""
    writer = await services.users.get_by_id(user_id)
    if writer is None or not writer.is_active:
        raise NotFoundError("Writer", user_id)

    articles = await services.articles.public(author_id=writer.id)
    return render(
        request,
        "writer.html",
        {
            **await site_context(services, user),
            "writer": writer,
            "articles": await services.articles.views(articles),
            "ratings": await services.ratings.recent(settings.recent_ratings_count, writer),
        },
    )


@router.get("/articles/{article_id}", response_class=HTMLResponse)
async def article_page(
    request: Request,
    article_id: UUID,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User | None, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
    count: int | None = None,
) -> Response:
    """Render a public article with its comments.

    Raises:
        NotFoundError: If the article is not public.
    """
    article = await services.articles.get_public(article_id)
    if article.is_review:
        return RedirectResponse(url=article_url(article), status_code=303)

    return render(
        request,
        "article.html",
        {
            **await site_context(services, user),
            "article": await services.articles.view(article),
            "thread": await services.comments.thread(
                article.id,
                limit=count or settings.comments_page_size,
                viewer=user,
            ),
            "page_size": settings.comments_page_size,
        },
    )


@router.get("/movies", response_class=HTMLResponse)
async def movies_index(
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User | None, Depends(get_current_user)],
    genre: UUID | None = None,
    title: str | None = None,
) -> Response:
    """Render finalized movies, filtered by genre or title."""
    index = await services.movies.index(genre_id=genre, title=(title or "").strip() or None)
    return render(
        request,
        "movies/index.html",
        {
            **await site_context(services, user, show_daily_dose=index.show_daily_dose),
            "index": index,
            "column": await services.columns.movie(),
        },
    )


@router.get("/movies/{movie_id}", response_class=HTMLResponse)
async def movie_page(
    request: Request,
    movie_id: UUID,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User | None, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
    count: int | None = None,
) -> Response:
    """Render a movie, its review, ratings and comments.

    Movies whose review is not public yet send the visitor home.
    """
    try:
        view = await services.movies.get_public(movie_id)
    except NotFoundError:
        view = None
    if view is None or view.review is None:
        return RedirectResponse(url="/", status_code=303)

    return render(
        request,
        "movies/show.html",
        {
            **await site_context(services, user),
            "view": view,
            "thread": await services.comments.thread(
                view.review.article.id,
                limit=count or settings.comments_page_size,
                viewer=user,
            ),
            "page_size": settings.comments_page_size,
        },
    )


@router.post("/articles/{article_id}/comments")
@limiter.limit(get_rate_limit_string)
async def post_comment(
    request: Request,
    article_id: UUID,
    body: Annotated[str, Form(max_length=MAX_COMMENT_LENGTH * 2)],
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_user)],
    parent_id: Annotated[UUID | None, Form()] = None,
) -> Response:
    """Post a comment or a reply, then go back to the article."""
    article = await services.articles.get_public(article_id)
    response = RedirectResponse(url=article_url(article), status_code=303)

    try:
        await services.comments.post(article.id, body, user, parent_id=parent_id)
    except ValidationError as e:
        set_flash(response, f"Comment {e}", kind="alert")
        return response

    set_flash(response, "Comment posted.")
    return response


@router.post("/comments/{comment_id}/vote")
async def vote_comment(
    request: Request,
    comment_id: UUID,
    value: Annotated[int, Form()],
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_user)],
) -> Response:
    """Vote a comment up (1) or down (-1)."""
    comment = await services.comments.get(comment_id)
    article = await services.articles.get_public(comment.article_id)
    response = RedirectResponse(url=article_url(article), status_code=303)

    try:
        await services.comments.vote(comment.id, value, user)
    except ValidationError as e:
        set_flash(response, f"Vote {e}", kind="alert")
    return response

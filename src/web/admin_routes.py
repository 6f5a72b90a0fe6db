"""Admin routes for the back-office."""

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from src.modules.articles import ArticleStatus
from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied
from src.modules.common.validation import ValidationError
from src.modules.site import Services
from src.web.admin_registry import AdminResource, Lookup, get_resource, navigation
from src.web.dependencies import get_services, render, require_writer
from src.web.flash import set_flash

logger = structlog.get_logger()

router = APIRouter(prefix="/admin", tags=["admin"])

# Statuses that wait on the editor or on the author
EDITOR_TURN = {ArticleStatus.CREATED, ArticleStatus.RESPONDED}
AUTHOR_TURN = {ArticleStatus.EDITED, ArticleStatus.REWRITE}


def _context(user: User, resource: AdminResource | None = None, **extra: Any) -> dict[str, Any]:
    return {"user": user, "nav": navigation(user), "resource": resource, **extra}


def _redirect(url: str, message: str | None = None, kind: str = "notice") -> Response:
    response = RedirectResponse(url=url, status_code=303)
    if message:
        set_flash(response, message, kind=kind)  # type: ignore[arg-type]
    return response


async def _render_form(
    request: Request,
    services: Services,
    user: User,
    resource: AdminResource,
    obj: Any,
    *,
    submitted: dict[str, Any] | None = None,
    errors: dict[str, list[str]] | None = None,
) -> Response:
    fields = resource.form_fields(obj, user)
    return render(
        request,
        "admin/form.html",
        _context(
            user,
            resource,
            obj=obj,
            object_id=resource.object_id(obj) if obj is not None else None,
            fields=[
                (f, resource.form_value(obj, f, submitted), f.locked(obj, user))
                for f in fields
            ],
            options=await resource.options(services, obj, user),
            errors=errors or {},
        ),
        status_code=422 if errors else 200,
    )


@router.get("", response_class=HTMLResponse)
@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def dashboard(
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    """Render the dashboard with the articles waiting on the user."""
    articles = await services.articles.list_all()
    waiting = [
        article
        for article in articles
        if (article.editor_id == user.id and article.status in EDITOR_TURN)
        or (article.author_id == user.id and article.status in AUTHOR_TURN)
    ]
    ratings = [
        rating
        for rating in await services.ratings.list_all()
        if not rating.reviewed and rating.creator_id != user.id
    ]
    return render(
        request,
        "admin/dashboard.html",
        _context(
            user,
            waiting=await services.articles.views(waiting),
            unreviewed_ratings=ratings if user.has_role("reviewer") else [],
            lookup=await Lookup.load(services),
        ),
    )


@router.post("/article/{item_id}/request_rewrite")
async def request_rewrite(
    item_id: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    """Send an article back to its author."""
    resource = get_resource("article")
    article = await services.articles.request_rewrite(resource.parse_id(item_id), user)
    return _redirect(f"/admin/article/{article.id}", "Rewrite requested.")


@router.post("/article/{item_id}/reject")
async def reject_article(
    item_id: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    resource = get_resource("article")
    article = await services.articles.reject(resource.parse_id(item_id), user)
    return _redirect(f"/admin/article/{article.id}", "Article rejected.")


@router.get("/{key}", response_class=HTMLResponse)
async def list_items(
    request: Request,
    key: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    """Render the list page of one content type."""
    resource = get_resource(key)
    resource.authorize(user, "read")

    items = await resource.list_items(services)
    lookup = await Lookup.load(services)
    rows = [
        (
            resource.object_id(item),
            [str(column.value(item, lookup)) for column in resource.columns],
        )
        for item in items
    ]
    return render(
        request,
        "admin/list.html",
        _context(
            user,
            resource,
            rows=rows,
            can_create=resource.can(user, "create"),
        ),
    )


@router.get("/{key}/new", response_class=HTMLResponse)
async def new_item(
    request: Request,
    key: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    resource = get_resource(key)
    resource.authorize(user, "create")
    return await _render_form(request, services, user, resource, None)


@router.post("/{key}")
async def create_item(
    request: Request,
    key: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    """Create a record from the new form.

    Invalid input renders the form again with the errors.
    """
    resource = get_resource(key)
    resource.authorize(user, "create")

    values = resource.parse_form(await request.form(), None, user)
    try:
        obj = await resource.create(services, dict(values), user)
    except ValidationError as e:
        logger.info("admin_validation_failed", model=resource.model, fields=list(e.errors))
        return await _render_form(
            request, services, user, resource, None, submitted=values, errors=e.errors
        )

    logger.info("admin_created", model=resource.model, user_id=str(user.id))
    return _redirect(
        f"/admin/{key}/{resource.object_id(obj)}",
        f"{resource.title(obj)} was successfully created.",
    )


@router.get("/{key}/{item_id}", response_class=HTMLResponse)
async def show_item(
    request: Request,
    key: str,
    item_id: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    """Render a record with its change history."""
    resource = get_resource(key)
    obj = await resource.get(services, item_id)
    resource.authorize(user, "read", obj)

    lookup = await Lookup.load(services)
    history = await services.audit.history(resource.model, resource.object_id(obj))
    return render(
        request,
        "admin/show.html",
        _context(
            user,
            resource,
            obj=obj,
            object_id=resource.object_id(obj),
            details=resource.details(obj, lookup),
            history=[(entry, lookup.user(entry.user_id)) for entry in history],
            actions=resource.actions(obj, user),
            can_edit=resource.can(user, "update", obj),
            can_delete=resource.can(user, "destroy", obj),
        ),
    )


@router.get("/{key}/{item_id}/edit", response_class=HTMLResponse)
async def edit_item(
    request: Request,
    key: str,
    item_id: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    resource = get_resource(key)
    obj = await resource.get(services, item_id)
    resource.authorize(user, "update", obj)
    return await _render_form(request, services, user, resource, obj)


@router.post("/{key}/{item_id}")
async def update_item(
    request: Request,
    key: str,
    item_id: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    """Save the edit form."""
    resource = get_resource(key)
    obj = await resource.get(services, item_id)
    resource.authorize(user, "update", obj)

    values = resource.parse_form(await request.form(), obj, user)
    try:
        saved = await resource.update(services, obj, dict(values), user)
    except ValidationError as e:
        logger.info("admin_validation_failed", model=resource.model, fields=list(e.errors))
        # Reload so the form reflects the stored record, not the failed attempt
        current = await resource.get(services, item_id)
        return await _render_form(
            request, services, user, resource, current, submitted=values, errors=e.errors
        )

    logger.info("admin_updated", model=resource.model, user_id=str(user.id))
    return _redirect(
        f"/admin/{key}/{resource.object_id(saved)}",
        f"{resource.title(saved)} was successfully updated.",
    )


@router.post("/{key}/{item_id}/delete")
async def delete_item(
    key: str,
    item_id: str,
    services: Annotated[Services, Depends(get_services)],
    user: Annotated[User, Depends(require_writer)],
) -> Response:
    resource = get_resource(key)
    obj = await resource.get(services, item_id)
    if not resource.can(user, "destroy", obj):
        raise AccessDenied()

    try:
        await resource.delete(services, obj, user)
    except ValidationError as e:
        return _redirect(f"/admin/{key}/{item_id}", f"Could not delete: {e}", kind="alert")

    logger.info("admin_deleted", model=resource.model, user_id=str(user.id))
    return _redirect(f"/admin/{key}", f"{resource.title(obj)} was successfully deleted.")

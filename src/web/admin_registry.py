"""Back-office description of every content type.

Each ``AdminResource`` names its label, navigation group, list columns and
form fields. Field rules decide per record and per actor whether a field is
shown or locked; hidden and locked fields keep the record's current value
when a form is submitted.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from starlette.datastructures import FormData

from src.modules.articles import (
    Article,
    ArticleInput,
    can_publish,
    can_request_rewrite,
    can_review,
    is_finalizable,
)
from src.modules.articles.workflow import is_editor_or_admin
from src.modules.auth import (
    Ability,
    AccessDenied,
    Role,
    User,
    UserAdminUpdate,
    UserCreate,
    authorize,
)
from src.modules.columns import ColumnInput
from src.modules.common import is_read_only, reviewable
from src.modules.common.exceptions import NotFoundError
from src.modules.common.validation import ValidationError
from src.modules.daily import (
    DailyVideoInput,
    PositionInput,
    ThingCategoryInput,
    ThingInput,
    TipInput,
)
from src.modules.model_config.models import CONFIGURABLE_MODELS, ModelConfig
from src.modules.movies import (
    GenreInput,
    MovieInput,
    RatingInput,
    format_rating,
    rating_enum,
)
from src.modules.site import Services
from src.web.auth_routes import get_auth_service

FieldKind = Literal[
    "text", "textarea", "password", "boolean", "date", "url", "select", "multiselect"
]
Rule = Callable[[Any, User], bool]
Choices = Callable[[Services], Awaitable[list[tuple[str, str]]]]

GROUPS = ["Articles", "Movies", "Daily Items", "Users"]


def _always(_obj: Any, _actor: User) -> bool:
    return True


def _never(_obj: Any, _actor: User) -> bool:
    return False


def _content_locked(obj: Any, actor: User) -> bool:
    return obj is not None and is_read_only(obj, actor)


def _review_visible(obj: Any, actor: User) -> bool:
    return obj is not None and (obj.reviewed or reviewable(obj, actor))


def _review_locked(obj: Any, actor: User) -> bool:
    return obj is not None and obj.reviewed and not actor.is_admin


@dataclass(frozen=True)
class AdminField:
    """One form field.

    Attributes:
        name: Input field name, also the record attribute shown on edit.
        label: Form label.
        kind: Widget type.
        help: Hint shown under the widget.
        choices: Loader for select options as (value, label) pairs.
        visible: Whether the actor sees the field for a record (None on new).
        read_only: Whether the field is shown but locked.
        on_new: Shown on the new form.
        on_edit: Shown on the edit form.
    """

    name: str
    label: str
    kind: FieldKind = "text"
    help: str | None = None
    choices: Choices | None = None
    visible: Rule = _always
    read_only: Rule = _never
    on_new: bool = True
    on_edit: bool = True

    def applies(self, obj: Any) -> bool:
        return self.on_new if obj is None else self.on_edit

    def shown(self, obj: Any, actor: User) -> bool:
        return self.applies(obj) and self.visible(obj, actor)

    def locked(self, obj: Any, actor: User) -> bool:
        return self.read_only(obj, actor)


@dataclass
class Lookup:
    """Related records needed to label list rows and show pages."""

    users: dict[UUID, User]
    columns: dict[UUID, str]
    movies: dict[UUID, str]
    categories: dict[UUID, str]
    articles: dict[UUID, str]

    @classmethod
    async def load(cls, services: Services) -> "Lookup":
        users = await services.users.list_all(include_inactive=True)
        return cls(
            users={user.id: user for user in users},
            columns={column.id: column.name for column in await services.columns.list_all()},
            movies={movie.id: movie.title for movie in await services.movies.list_all()},
            categories={
                category.id: category.category
                for category in await services.categories.list_all()
            },
            articles={article.id: article.title for article in await services.articles.list_all()},
        )

    def user(self, user_id: UUID | None) -> str:
        user = self.users.get(user_id) if user_id else None
        return user.username if user else ""


@dataclass(frozen=True)
class ListColumn:
    label: str
    value: Callable[[Any, Lookup], object]


def display(value: object) -> str:
    """Format a value for list and show pages."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.strftime("%B %d, %Y")
    if isinstance(value, Role):
        return value.value.title()
    return str(value)


# Choice loaders


async def column_choices(services: Services) -> list[tuple[str, str]]:
    """Regular columns; reviews own the movie column."""
    return [
        (str(column.id), column.name)
        for column in await services.columns.list_all()
        if not column.is_movie_column
    ]


async def writer_choices(services: Services) -> list[tuple[str, str]]:
    return [
        (str(user.id), user.name) for user in await services.users.with_role(Role.WRITER)
    ]


async def editor_choices(services: Services) -> list[tuple[str, str]]:
    return [
        (str(user.id), user.name) for user in await services.users.with_role(Role.EDITOR)
    ]


async def genre_choices(services: Services) -> list[tuple[str, str]]:
    return [(str(genre.id), genre.name) for genre in await services.genres.list_all()]


async def movie_choices(services: Services) -> list[tuple[str, str]]:
    return [(str(movie.id), movie.title) for movie in await services.movies.list_all()]


async def category_choices(services: Services) -> list[tuple[str, str]]:
    return [
        (str(category.id), category.category)
        for category in await services.categories.list_all()
    ]


async def rating_choices(_services: Services) -> list[tuple[str, str]]:
    return [(str(value), format_rating(value)) for value in rating_enum()]


async def weekly_output_choices(_services: Services) -> list[tuple[str, str]]:
    return [("1", "1"), ("2", "2")]


async def role_choices(_services: Services) -> list[tuple[str, str]]:
    return [(role.value, role.value.title()) for role in Role]


class AdminResource:
    """A content type managed through the generic admin screens.

    Create, update and delete go through the service named by
    ``service_name``; subclasses adapt types whose services differ.
    """

    def __init__(
        self,
        *,
        key: str,
        model: str,
        label: str,
        group: str,
        service_name: str,
        columns: list[ListColumn],
        fields: list[AdminField],
        input_type: type[BaseModel] | None = None,
        title: Callable[[Any], str] = lambda obj: str(getattr(obj, "id", "")),
        sort_key: Callable[[Any], Any] | None = None,
        creatable: bool = True,
        editable: bool = True,
    ) -> None:
        self.key = key
        self.model = model
        self.label = label
        self.group = group
        self.service_name = service_name
        self.columns = columns
        self.fields = fields
        self.input_type = input_type
        self.title = title
        self.sort_key = sort_key
        self.creatable = creatable
        self.editable = editable

    def service(self, services: Services) -> Any:
        return getattr(services, self.service_name)

    # Permissions

    def can(self, actor: User, action: str, obj: Any = None) -> bool:
        if action == "create" and not self.creatable:
            return False
        if action == "update" and not self.editable:
            return False
        return Ability(actor).can(action, self.model, obj)  # type: ignore[arg-type]

    def authorize(self, actor: User, action: str, obj: Any = None) -> None:
        """Raise AccessDenied unless ``can`` allows the action."""
        if (action == "create" and not self.creatable) or (
            action == "update" and not self.editable
        ):
            raise AccessDenied()
        authorize(actor, action, self.model, obj)  # type: ignore[arg-type]

    # Records

    def parse_id(self, raw: str) -> Any:
        try:
            return UUID(raw)
        except ValueError as e:
            raise NotFoundError(self.model, raw) from e

    async def list_items(self, services: Services) -> list[Any]:
        items = await self.service(services).list_all()
        if self.sort_key is not None:
            items = sorted(items, key=self.sort_key)
        return items

    async def get(self, services: Services, raw_id: str) -> Any:
        return await self.service(services).get(self.parse_id(raw_id))

    async def create(self, services: Services, values: dict[str, Any], actor: User) -> Any:
        return await self.service(services).create(self.build_input(values), actor)

    async def update(
        self, services: Services, obj: Any, values: dict[str, Any], actor: User
    ) -> Any:
        return await self.service(services).update(obj.id, self.build_input(values), actor)

    async def delete(self, services: Services, obj: Any, actor: User) -> None:
        await self.service(services).delete(obj.id, actor)

    def object_id(self, obj: Any) -> str:
        return str(obj.id)

    # Forms

    def form_fields(self, obj: Any, actor: User) -> list[AdminField]:
        return [f for f in self.fields if f.shown(obj, actor)]

    def build_input(self, values: dict[str, Any]) -> BaseModel:
        """Validate submitted values into the service input.

        Raises:
            ValidationError: If a value has the wrong type.
        """
        if self.input_type is None:
            raise ValidationError.single("base", f"{self.label} cannot be edited here")
        try:
            return self.input_type.model_validate(values)
        except SchemaError as e:
            raise ValidationError.from_schema(e) from e

    def current_value(self, obj: Any, name: str) -> Any:
        return getattr(obj, name, None)

    def parse_form(self, form: FormData, obj: Any, actor: User) -> dict[str, Any]:
        """Submitted values, with the record's values for hidden or locked fields."""
        values: dict[str, Any] = {}
        for f in self.fields:
            if not f.applies(obj):
                continue
            if not f.visible(obj, actor) or f.locked(obj, actor):
                if obj is not None:
                    values[f.name] = self.current_value(obj, f.name)
                continue

            if f.kind == "boolean":
                values[f.name] = f.name in form
            elif f.kind == "multiselect":
                values[f.name] = [v for v in form.getlist(f.name) if isinstance(v, str) and v]
            else:
                raw = form.get(f.name)
                text = raw.strip() if isinstance(raw, str) else ""
                # Blank optional widgets fall back to the input's default
                if text or f.kind in ("text", "textarea", "password"):
                    values[f.name] = text
        return values

    def form_value(self, obj: Any, f: AdminField, submitted: dict[str, Any] | None) -> Any:
        """Value to prefill a widget with."""
        if submitted is not None and f.name in submitted:
            value = submitted[f.name]
        elif obj is not None:
            value = self.current_value(obj, f.name)
        else:
            value = False if f.kind == "boolean" else None

        if f.kind == "boolean":
            return bool(value)
        if f.kind == "multiselect":
            return [str(v) for v in value or []]
        if isinstance(value, Role):
            return value.value
        return "" if value is None else str(value)

    async def options(self, services: Services, obj: Any, actor: User) -> dict[str, list]:
        return {
            f.name: await f.choices(services)
            for f in self.form_fields(obj, actor)
            if f.choices is not None
        }

    # Display

    def details(self, obj: Any, lookup: Lookup) -> list[tuple[str, str]]:
        """Label and value pairs for the show page."""
        rows = []
        for f in self.fields:
            if not f.on_edit or f.kind == "password":
                continue
            value = self.current_value(obj, f.name)
            if isinstance(value, UUID):
                value = _label_for(value, lookup)
            elif isinstance(value, list):
                value = ", ".join(_label_for(v, lookup) for v in value)
            rows.append((f.label, display(value)))
        return rows

    def actions(self, obj: Any, actor: User) -> list[tuple[str, str]]:
        """Extra workflow actions as (path segment, label)."""
        return []


def _label_for(value: Any, lookup: Lookup) -> str:
    if not isinstance(value, UUID):
        return str(value)
    for table in (lookup.columns, lookup.movies, lookup.categories, lookup.articles):
        if value in table:
            return table[value]
    if value in lookup.users:
        return lookup.users[value].name
    return str(value)


class ArticleResource(AdminResource):
    def actions(self, obj: Any, actor: User) -> list[tuple[str, str]]:
        actions = []
        if can_request_rewrite(obj, actor):
            actions.append(("request_rewrite", "Request rewrite"))
        if not obj.published and not obj.rejected and is_editor_or_admin(obj, actor):
            actions.append(("reject", "Reject"))
        return actions


class MovieResource(AdminResource):
    """New movies carry their review and the creator's rating."""

    def build_input(self, values: dict[str, Any]) -> BaseModel:
        data = dict(values)
        review = {
            key.removeprefix("review_"): data.pop(key)
            for key in list(data)
            if key.startswith("review_")
        }
        rating = {
            key.removeprefix("rating_"): data.pop(key)
            for key in list(data)
            if key.startswith("rating_")
        }
        if review:
            data["review"] = review
        if rating:
            data["ratings"] = [rating]
        try:
            return MovieInput.model_validate(data)
        except SchemaError as e:
            raise ValidationError.from_schema(e, _movie_form_field) from e


def _movie_form_field(loc: tuple[int | str, ...]) -> str:
    """Form widget for a movie input location, e.g. review.body -> review_body."""
    if len(loc) >= 2 and loc[0] == "review":
        return f"review_{loc[1]}"
    if len(loc) >= 3 and loc[0] == "ratings":
        return f"rating_{loc[2]}"
    return str(loc[0]) if loc else "base"


class RatingResource(AdminResource):
    async def create(self, services: Services, values: dict[str, Any], actor: User) -> Any:
        movie_id = values.pop("movie_id", None)
        if movie_id is None:
            raise ValidationError.single("movie", "can't be blank")
        try:
            movie_uuid = UUID(str(movie_id))
        except ValueError as e:
            raise ValidationError.single("movie", "is invalid") from e
        data = self.build_input(values)
        return await services.ratings.create(movie_uuid, data, actor)  # type: ignore[arg-type]


class UserResource(AdminResource):
    """Users are created and saved through the auth service."""

    async def list_items(self, services: Services) -> list[Any]:
        return await services.users.list_all(include_inactive=True)

    async def get(self, services: Services, raw_id: str) -> Any:
        user = await services.users.get_by_id(self.parse_id(raw_id))
        if user is None:
            raise NotFoundError("User", raw_id)
        return user

    async def create(self, services: Services, values: dict[str, Any], actor: User) -> Any:
        self.authorize(actor, "create")
        auth = _auth_service()
        try:
            data = UserCreate.model_validate(values)
        except SchemaError as e:
            raise ValidationError.from_schema(e) from e
        try:
            user = await auth.register(data)
        except ValueError as e:
            raise ValidationError.single("username", "or email has already been taken") from e
        await services.audit.record("User", user.id, "create", actor.id)
        return user

    async def update(
        self, services: Services, obj: Any, values: dict[str, Any], actor: User
    ) -> Any:
        auth = _auth_service()
        try:
            data = UserAdminUpdate.model_validate(values)
        except SchemaError as e:
            raise ValidationError.from_schema(e) from e
        before = {"name": obj.name, "email": obj.email, "role": obj.role.value}
        try:
            user = await auth.update_user(actor, obj.id, data)
        except ValueError as e:
            raise ValidationError.single("email", "has already been taken") from e
        after = {"name": user.name, "email": user.email, "role": user.role.value}
        await services.audit.record(
            "User", user.id, "update", actor.id,
            {k: [before[k], after[k]] for k in before if before[k] != after[k]},
        )
        return user

    async def delete(self, services: Services, obj: Any, actor: User) -> None:
        self.authorize(actor, "destroy", obj)
        counts = await services.users.content_counts(obj.id)
        if any(counts.values()):
            raise ValidationError.single(
                "base", "Cannot delete a user with content, deactivate the account instead"
            )
        await services.users.delete(obj.id)
        await services.audit.record("User", obj.id, "delete", actor.id)


class ModelConfigResource(AdminResource):
    """Settings rows are keyed by content type name."""

    def parse_id(self, raw: str) -> Any:
        if raw not in CONFIGURABLE_MODELS:
            raise NotFoundError("ModelConfig", raw)
        return raw

    async def list_items(self, services: Services) -> list[Any]:
        return [await self.get(services, model) for model in CONFIGURABLE_MODELS]

    async def get(self, services: Services, raw_id: str) -> Any:
        model = self.parse_id(raw_id)
        config = await services.configs.get(model)
        return config or ModelConfig(
            model=model, owner_id=None, backup_editor_id=None, start_date=None
        )

    def object_id(self, obj: Any) -> str:
        return str(obj.model)

    async def update(
        self, services: Services, obj: Any, values: dict[str, Any], actor: User
    ) -> Any:
        self.authorize(actor, "update", obj)
        try:
            owner_id = UUID(values["owner_id"]) if values.get("owner_id") else None
            backup_id = (
                UUID(values["backup_editor_id"]) if values.get("backup_editor_id") else None
            )
            start_date = (
                date.fromisoformat(values["start_date"]) if values.get("start_date") else None
            )
        except ValueError as e:
            raise ValidationError.single("base", "is invalid") from e
        before = {
            "owner_id": str(obj.owner_id) if obj.owner_id else None,
            "backup_editor_id": str(obj.backup_editor_id) if obj.backup_editor_id else None,
            "start_date": obj.start_date.isoformat() if obj.start_date else None,
        }
        config = await services.configs.save(
            obj.model, owner_id=owner_id, backup_editor_id=backup_id, start_date=start_date
        )
        after = {
            "owner_id": str(owner_id) if owner_id else None,
            "backup_editor_id": str(backup_id) if backup_id else None,
            "start_date": start_date.isoformat() if start_date else None,
        }
        await services.audit.record(
            "ModelConfig", obj.model, "update", actor.id,
            {k: [before[k], after[k]] for k in before if before[k] != after[k]},
        )
        return config


def _auth_service() -> Any:
    auth = get_auth_service()
    if auth is None:
        raise ValidationError.single("base", "user accounts are not configured")
    return auth


# Field rules


def _article_column_visible(obj: Any, _actor: User) -> bool:
    return obj is None or not obj.is_review


def _article_title_locked(obj: Any, _actor: User) -> bool:
    return obj is not None and obj.is_review


def _draft_visible(obj: Article | None, actor: User) -> bool:
    if obj is None:
        return True
    return obj.draft and (actor.id == obj.author_id or actor.is_admin)


def _finalized_visible(obj: Article | None, actor: User) -> bool:
    return obj is not None and (obj.finalized or is_finalizable(obj, actor))


def _finalized_locked(obj: Article | None, actor: User) -> bool:
    return obj is not None and obj.finalized and not actor.is_admin


def _article_reviewed_visible(obj: Article | None, actor: User) -> bool:
    return obj is not None and (obj.reviewed or can_review(obj, actor))


def _published_visible(obj: Article | None, actor: User) -> bool:
    return obj is not None and (obj.published or can_publish(obj, actor))


def _flag_locked(flag: str) -> Rule:
    def rule(obj: Any, actor: User) -> bool:
        return obj is not None and bool(getattr(obj, flag)) and not actor.is_admin

    return rule


def _rejected_visible(obj: Article | None, actor: User) -> bool:
    return obj is not None and (
        obj.rejected or (not obj.published and is_editor_or_admin(obj, actor))
    )


def _daily_published_visible(obj: Any, actor: User) -> bool:
    return obj is not None and (
        obj.published or (obj.reviewed and actor.has_role(Role.EDITOR))
    )


def _admin_only(_obj: Any, actor: User) -> bool:
    return actor.is_admin


def _username_locked(obj: Any, _actor: User) -> bool:
    return obj is not None


def _review_fields() -> list[AdminField]:
    return [
        AdminField(
            "reviewed",
            "Reviewed",
            "boolean",
            help="Reviewed items can only be changed by an admin.",
            visible=_review_visible,
            read_only=_review_locked,
            on_new=False,
        ),
    ]


def _daily_fields(content: list[AdminField]) -> list[AdminField]:
    return [
        *content,
        *_review_fields(),
        AdminField(
            "published",
            "Published",
            "boolean",
            help="Publishing schedules the item for the next free day.",
            visible=_daily_published_visible,
            read_only=_flag_locked("published"),
            on_new=False,
        ),
        AdminField("notes", "Notes", "textarea", help="Notes for the writer."),
    ]


def _daily_columns(label: str) -> list[ListColumn]:
    return [
        ListColumn(label, lambda obj, _l: obj.label),
        ListColumn("Creator", lambda obj, lookup: lookup.user(obj.creator_id)),
        ListColumn("Reviewed", lambda obj, _l: display(obj.reviewed)),
        ListColumn("Published", lambda obj, _l: display(obj.published)),
        ListColumn("Date", lambda obj, _l: display(obj.date)),
    ]


def _daily_sort(obj: Any) -> tuple:
    return (obj.published, obj.reviewed, obj.date or date.max)


def build_registry() -> dict[str, AdminResource]:
    """All admin resources keyed by URL segment, in navigation order."""
    resources: list[AdminResource] = [
        # Articles
        ArticleResource(
            key="article",
            model="Article",
            label="Articles",
            group="Articles",
            service_name="articles",
            input_type=ArticleInput,
            title=lambda obj: obj.title,
            columns=[
                ListColumn("Title", lambda obj, _l: obj.title),
                ListColumn("Column", lambda obj, lookup: lookup.columns.get(obj.column_id, "")),
                ListColumn("Author", lambda obj, lookup: lookup.user(obj.author_id)),
                ListColumn("Editor", lambda obj, lookup: lookup.user(obj.editor_id)),
                ListColumn("Status", lambda obj, _l: obj.status.label),
                ListColumn("Date", lambda obj, _l: display(obj.date)),
            ],
            fields=[
                AdminField(
                    "column_id",
                    "Column",
                    "select",
                    choices=column_choices,
                    visible=_article_column_visible,
                ),
                AdminField(
                    "title",
                    "Title",
                    help="10 to 70 characters. Review titles follow the movie.",
                    read_only=_article_title_locked,
                ),
                AdminField(
                    "body",
                    "Body",
                    "textarea",
                    help="300 to 10000 characters. Paragraphs, links and emphasis are kept.",
                ),
                AdminField("byline", "Byline", help="Defaults to the author's byline."),
                AdminField("image", "Image URL", "url", help="Defaults to the column image."),
                AdminField(
                    "draft",
                    "Draft",
                    "boolean",
                    help="Drafts are not sent to the editor.",
                    visible=_draft_visible,
                ),
                AdminField(
                    "finalized",
                    "Finalized",
                    "boolean",
                    help="The editor signs off the final text.",
                    visible=_finalized_visible,
                    read_only=_finalized_locked,
                    on_new=False,
                ),
                AdminField(
                    "reviewed",
                    "Reviewed",
                    "boolean",
                    visible=_article_reviewed_visible,
                    read_only=_flag_locked("reviewed"),
                    on_new=False,
                ),
                AdminField(
                    "published",
                    "Published",
                    "boolean",
                    help="Publishing schedules the article for the next free day.",
                    visible=_published_visible,
                    read_only=_flag_locked("published"),
                    on_new=False,
                ),
                AdminField(
                    "rejected",
                    "Rejected",
                    "boolean",
                    visible=_rejected_visible,
                    read_only=_flag_locked("rejected"),
                    on_new=False,
                ),
            ],
        ),
        AdminResource(
            key="column",
            model="Column",
            label="Columns",
            group="Articles",
            service_name="columns",
            input_type=ColumnInput,
            title=lambda obj: obj.name,
            columns=[
                ListColumn("Name", lambda obj, _l: obj.name),
                ListColumn("Short name", lambda obj, _l: obj.short_name),
                ListColumn("Columnist", lambda obj, lookup: lookup.user(obj.columnist_id)),
                ListColumn("Start date", lambda obj, _l: display(obj.start_date)),
                ListColumn("Articles", lambda obj, _l: obj.articles_count),
            ],
            fields=[
                AdminField("name", "Name", help="4 to 50 characters."),
                AdminField("short_name", "Short name", help="3 to 10 characters, used in URLs."),
                AdminField("columnist_id", "Columnist", "select", choices=writer_choices),
                AdminField("description", "Description", "textarea"),
                AdminField(
                    "publish_days",
                    "Publish days",
                    help="Days of the week as digits, Monday is 1. For example 135.",
                ),
                AdminField("start_date", "Start date", "date"),
                AdminField("image", "Image URL", "url"),
            ],
        ),
        AdminResource(
            key="comment",
            model="Comment",
            label="Comments",
            group="Articles",
            service_name="comments",
            title=lambda obj: f"Comment {obj.id}",
            creatable=False,
            editable=False,
            columns=[
                ListColumn("Article", lambda obj, lookup: lookup.articles.get(obj.article_id, "")),
                ListColumn("User", lambda obj, lookup: lookup.user(obj.user_id)),
                ListColumn("Comment", lambda obj, _l: obj.body[:80]),
                ListColumn("Posted", lambda obj, _l: display(obj.created_at)),
            ],
            fields=[
                AdminField("article_id", "Article", on_new=False),
                AdminField("user_id", "User", on_new=False),
                AdminField("body", "Comment", "textarea", on_new=False),
                AdminField("created_at", "Posted", on_new=False),
            ],
        ),
        # Movies
        MovieResource(
            key="movie",
            model="Movie",
            label="Movies",
            group="Movies",
            service_name="movies",
            input_type=MovieInput,
            title=lambda obj: obj.title_with_year,
            columns=[
                ListColumn("Title", lambda obj, _l: obj.title),
                ListColumn("Released", lambda obj, _l: display(obj.release_date)),
                ListColumn("Ratings", lambda obj, _l: obj.ratings_count),
                ListColumn("Average", lambda obj, _l: obj.display_average or ""),
            ],
            fields=[
                AdminField("title", "Title", help="4 to 60 characters."),
                AdminField("release_date", "Release date", "date"),
                AdminField("genre_ids", "Genres", "multiselect", choices=genre_choices),
                AdminField(
                    "review_body",
                    "Review",
                    "textarea",
                    help="300 to 10000 characters.",
                    on_edit=False,
                ),
                AdminField("review_byline", "Review byline", on_edit=False),
                AdminField("review_image", "Review image URL", "url", on_edit=False),
                AdminField("review_draft", "Review is a draft", "boolean", on_edit=False),
                AdminField(
                    "rating_body",
                    "Your rating",
                    "textarea",
                    help="10 to 500 characters.",
                    on_edit=False,
                ),
                AdminField(
                    "rating_rating", "Score", "select", choices=rating_choices, on_edit=False
                ),
                AdminField(
                    "rating_weekly_output",
                    "Weekly output",
                    "select",
                    choices=weekly_output_choices,
                    on_edit=False,
                ),
            ],
        ),
        AdminResource(
            key="genre",
            model="Genre",
            label="Genres",
            group="Movies",
            service_name="genres",
            input_type=GenreInput,
            title=lambda obj: obj.name,
            columns=[
                ListColumn("Name", lambda obj, _l: obj.name),
                ListColumn("Movies", lambda obj, _l: obj.movies_count),
            ],
            fields=[AdminField("name", "Name")],
        ),
        RatingResource(
            key="rating",
            model="Rating",
            label="Ratings",
            group="Movies",
            service_name="ratings",
            input_type=RatingInput,
            title=lambda obj: f"Rating {obj.display_rating}",
            columns=[
                ListColumn("Movie", lambda obj, lookup: lookup.movies.get(obj.movie_id, "")),
                ListColumn("Creator", lambda obj, lookup: lookup.user(obj.creator_id)),
                ListColumn("Rating", lambda obj, _l: obj.display_rating),
                ListColumn("Status", lambda obj, _l: obj.status.value),
            ],
            fields=[
                AdminField("movie_id", "Movie", "select", choices=movie_choices, on_edit=False),
                AdminField(
                    "body",
                    "Rating text",
                    "textarea",
                    help="10 to 500 characters.",
                    read_only=_content_locked,
                ),
                AdminField(
                    "rating", "Score", "select", choices=rating_choices, read_only=_content_locked
                ),
                AdminField(
                    "weekly_output",
                    "Weekly output",
                    "select",
                    choices=weekly_output_choices,
                    read_only=_content_locked,
                ),
                *_review_fields(),
                AdminField(
                    "needs_work",
                    "Needs work",
                    "boolean",
                    visible=_review_visible,
                    on_new=False,
                ),
                AdminField("notes", "Notes", "textarea", help="Notes for the writer."),
            ],
        ),
        # Daily items
        AdminResource(
            key="tip",
            model="Tip",
            label="Tips",
            group="Daily Items",
            service_name="tips",
            input_type=TipInput,
            title=lambda obj: obj.label,
            sort_key=_daily_sort,
            columns=_daily_columns("Tip"),
            fields=_daily_fields(
                [
                    AdminField(
                        "tip",
                        "Tip",
                        "textarea",
                        help="10 to 200 characters.",
                        read_only=_content_locked,
                    )
                ]
            ),
        ),
        AdminResource(
            key="thing",
            model="Thing",
            label="Things",
            group="Daily Items",
            service_name="things",
            input_type=ThingInput,
            title=lambda obj: obj.label,
            sort_key=_daily_sort,
            columns=_daily_columns("Thing"),
            fields=_daily_fields(
                [
                    AdminField(
                        "thing", "Thing", help="3 to 26 characters.", read_only=_content_locked
                    ),
                    AdminField(
                        "description",
                        "Description",
                        "textarea",
                        help="150 to 500 characters.",
                        read_only=_content_locked,
                    ),
                    AdminField(
                        "category_id",
                        "Category",
                        "select",
                        choices=category_choices,
                        read_only=_content_locked,
                    ),
                    AdminField("image", "Image URL", "url", read_only=_content_locked),
                ]
            ),
        ),
        AdminResource(
            key="thing_category",
            model="ThingCategory",
            label="Thing Categories",
            group="Daily Items",
            service_name="categories",
            input_type=ThingCategoryInput,
            title=lambda obj: obj.category,
            columns=[ListColumn("Category", lambda obj, _l: obj.category)],
            fields=[AdminField("category", "Category")],
        ),
        AdminResource(
            key="position",
            model="Position",
            label="Positions",
            group="Daily Items",
            service_name="positions",
            input_type=PositionInput,
            title=lambda obj: obj.label,
            sort_key=_daily_sort,
            columns=_daily_columns("Position"),
            fields=_daily_fields(
                [
                    AdminField(
                        "position",
                        "Position",
                        help="3 to 32 characters.",
                        read_only=_content_locked,
                    ),
                    AdminField(
                        "description",
                        "Description",
                        "textarea",
                        help="100 to 500 characters.",
                        read_only=_content_locked,
                    ),
                    AdminField(
                        "image",
                        "Image URL",
                        "text",
                        help="An http(s) URL ending in .png, .jpg or .jpeg.",
                        read_only=_content_locked,
                    ),
                ]
            ),
        ),
        AdminResource(
            key="daily_video",
            model="DailyVideo",
            label="Daily Videos",
            group="Daily Items",
            service_name="videos",
            input_type=DailyVideoInput,
            title=lambda obj: obj.label,
            sort_key=_daily_sort,
            columns=_daily_columns("Title"),
            fields=_daily_fields(
                [
                    AdminField(
                        "title", "Title", help="3 to 80 characters.", read_only=_content_locked
                    ),
                    AdminField(
                        "source", "Source URL", "url", read_only=_content_locked
                    ),
                ]
            ),
        ),
        # Users
        UserResource(
            key="user",
            model="User",
            label="Users",
            group="Users",
            service_name="users",
            title=lambda obj: obj.username,
            columns=[
                ListColumn("Username", lambda obj, _l: obj.username),
                ListColumn("Name", lambda obj, _l: obj.name),
                ListColumn("Email", lambda obj, _l: obj.email),
                ListColumn("Role", lambda obj, _l: display(obj.role)),
                ListColumn("Articles", lambda obj, _l: obj.articles_count),
                ListColumn("Active", lambda obj, _l: display(obj.is_active)),
            ],
            fields=[
                AdminField("username", "Username", read_only=_username_locked),
                AdminField("name", "Name", help="6 to 40 characters."),
                AdminField("email", "Email"),
                AdminField("password", "Password", "password", on_edit=False),
                AdminField(
                    "role", "Role", "select", choices=role_choices, visible=_admin_only
                ),
                AdminField("bio", "Bio", "textarea"),
                AdminField("byline", "Byline", help="Default byline for articles."),
                AdminField(
                    "is_active", "Active", "boolean", visible=_admin_only, on_new=False
                ),
            ],
        ),
        ModelConfigResource(
            key="model_config",
            model="ModelConfig",
            label="Model Configs",
            group="Users",
            service_name="configs",
            title=lambda obj: obj.model,
            creatable=False,
            columns=[
                ListColumn("Model", lambda obj, _l: obj.model),
                ListColumn("Owner", lambda obj, lookup: lookup.user(obj.owner_id)),
                ListColumn(
                    "Backup editor", lambda obj, lookup: lookup.user(obj.backup_editor_id)
                ),
                ListColumn("Start date", lambda obj, _l: display(obj.start_date)),
            ],
            fields=[
                AdminField("owner_id", "Owner", "select", choices=writer_choices),
                AdminField(
                    "backup_editor_id",
                    "Backup editor",
                    "select",
                    choices=editor_choices,
                    help="Edits the articles the owner writes.",
                ),
                AdminField("start_date", "Start date", "date"),
            ],
        ),
    ]
    return {resource.key: resource for resource in resources}


REGISTRY = build_registry()


def get_resource(key: str) -> AdminResource:
    """Look up a resource by URL segment.

    Raises:
        NotFoundError: If no resource has that key.
    """
    try:
        return REGISTRY[key]
    except KeyError as e:
        raise NotFoundError("Page", key) from e


def navigation(actor: User) -> list[tuple[str, list[AdminResource]]]:
    """Resources the actor can read, grouped for the sidebar."""
    return [
        (
            group,
            [r for r in REGISTRY.values() if r.group == group and r.can(actor, "read")],
        )
        for group in GROUPS
    ]

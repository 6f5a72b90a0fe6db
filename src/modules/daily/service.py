"""Services for daily items: editing, review, publishing and the daily dose."""

import copy
import dataclasses
from abc import ABC, abstractmethod
from datetime import UTC, date, datetime
from typing import Generic, TypeVar
from uuid import UUID, uuid4

import structlog

from src.modules.audit import AuditRepository, diff
from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied, authorize
from src.modules.auth.roles import Role
from src.modules.common.clock import site_today
from src.modules.common.exceptions import NotFoundError
from src.modules.common.fields import url_text
from src.modules.common.review import apply_review, is_read_only
from src.modules.common.validation import ValidationError, Validator
from src.modules.daily.models import (
    DailyDose,
    DailyItem,
    DailyVideo,
    Position,
    Thing,
    ThingCategory,
    Tip,
)
from src.modules.daily.repository import DailyItemRepository, ThingCategoryRepository
from src.modules.daily.schemas import (
    DailyItemInput,
    DailyVideoInput,
    PositionInput,
    ThingCategoryInput,
    ThingInput,
    TipInput,
)
from src.modules.model_config import ModelConfigService

logger = structlog.get_logger()

ItemT = TypeVar("ItemT", bound=DailyItem)
InputT = TypeVar("InputT", bound=DailyItemInput)


class DailyItemService(ABC, Generic[ItemT, InputT]):
    """Shared editing rules for one daily item type.

    Items are created by writers, reviewed by somebody else, and published
    by an editor once reviewed. Publishing gives the item the next free
    calendar date.
    """

    def __init__(
        self,
        repository: DailyItemRepository[ItemT],
        configs: ModelConfigService,
        audit: AuditRepository,
    ) -> None:
        self._repo = repository
        self._configs = configs
        self._audit = audit

    @property
    def model(self) -> str:
        return self._repo.model.MODEL

    async def get(self, item_id: UUID) -> ItemT:
        item = await self._repo.get_by_id(item_id)
        if item is None:
            raise NotFoundError(self.model, item_id)
        return item

    async def list_all(self) -> list[ItemT]:
        return await self._repo.list_all()

    async def of_the_day(self, today: date | None = None) -> ItemT | None:
        return await self._repo.of_the_day(today or site_today())

    async def create(self, data: InputT, actor: User) -> ItemT:
        """Create an item owned by ``actor``.

        Raises:
            AccessDenied: If the actor may not create the item or set a flag.
            ValidationError: If any field is invalid.
        """
        authorize(actor, "create", self.model)

        now = datetime.now(UTC)
        item = self._blank(
            id=uuid4(),
            creator_id=actor.id,
            reviewer_id=None,
            reviewed=False,
            reviewed_at=None,
            published=False,
            date=None,
            notes=None,
            created_at=now,
            updated_at=now,
        )
        await self._apply(item, data)
        item.notes = data.notes or None
        apply_review(item, data.reviewed, actor, now)
        await self._apply_published(item, data.published, actor)

        await self._repo.insert(item)
        await self._audit.record(self.model, item.id, "create", actor.id)
        return item

    async def update(self, item_id: UUID, data: InputT, actor: User) -> ItemT:
        """Save edits.

        Reviewed items keep their content unless an admin edits them.
        """
        item = await self.get(item_id)
        authorize(actor, "update", self.model, item)
        previous = copy.copy(item)

        if not is_read_only(item, actor):
            await self._apply(item, data)
        item.notes = data.notes or None
        apply_review(item, data.reviewed, actor, datetime.now(UTC))
        await self._apply_published(item, data.published, actor)

        await self._repo.update(item)
        await self._audit.record(
            self.model, item.id, "update", actor.id,
            diff(_snapshot(previous), _snapshot(item)),
        )
        return item

    async def delete(self, item_id: UUID, actor: User) -> None:
        item = await self.get(item_id)
        authorize(actor, "destroy", self.model, item)
        await self._repo.delete(item_id)
        await self._audit.record(self.model, item_id, "delete", actor.id)

    async def _apply_published(self, item: ItemT, requested: bool, actor: User) -> None:
        if requested == item.published:
            return

        if not requested:
            if not actor.is_admin:
                raise AccessDenied("Only admins can unpublish an item.")
            item.published = False
            item.date = None
            return

        if not actor.has_role(Role.EDITOR):
            raise AccessDenied("Only editors can publish an item.")
        if not item.reviewed:
            raise ValidationError.single("published", "requires a reviewed item")

        item.published = True
        if item.date is None:
            start_date = await self._configs.start_date(self.model)
            item.date = await self._repo.next_date(start_date)
        logger.info(
            "daily_item_published",
            model=self.model,
            item_id=str(item.id),
            date=item.date.isoformat(),
        )

    @abstractmethod
    def _blank(self, **shared: object) -> ItemT:
        """A new item with empty content and the given shared fields."""

    @abstractmethod
    async def _apply(self, item: ItemT, data: InputT) -> None:
        """Check uniqueness, then copy validated input onto ``item``."""

    async def _unique(self, v: Validator, item: ItemT, field: str, value: str) -> None:
        await v.unique(
            self._repo.database, self._repo.table, field, value, exclude_id=item.id
        )


class TipService(DailyItemService[Tip, TipInput]):
    def _blank(self, **shared: object) -> Tip:
        return Tip(tip="", **shared)  # type: ignore[arg-type]

    async def _apply(self, item: Tip, data: TipInput) -> None:
        v = Validator()
        await self._unique(v, item, "tip", data.tip)
        v.check()
        item.tip = data.tip


class ThingService(DailyItemService[Thing, ThingInput]):
    def __init__(
        self,
        repository: DailyItemRepository[Thing],
        categories: ThingCategoryRepository,
        configs: ModelConfigService,
        audit: AuditRepository,
    ) -> None:
        super().__init__(repository, configs, audit)
        self._categories = categories

    def _blank(self, **shared: object) -> Thing:
        return Thing(  # type: ignore[arg-type]
            thing="", description="", category_id=uuid4(), image=None, **shared
        )

    async def _apply(self, item: Thing, data: ThingInput) -> None:
        v = Validator()
        await self._unique(v, item, "thing", data.thing)
        await self._unique(v, item, "description", data.description)
        if await self._categories.get_by_id(data.category_id) is None:
            v.add("category", "is invalid")
        v.check()

        item.thing = data.thing
        item.description = data.description
        item.category_id = data.category_id
        item.image = url_text(data.image)


class PositionService(DailyItemService[Position, PositionInput]):
    def _blank(self, **shared: object) -> Position:
        return Position(position="", description="", image="", **shared)  # type: ignore[arg-type]

    async def _apply(self, item: Position, data: PositionInput) -> None:
        image = str(data.image)
        v = Validator()
        await self._unique(v, item, "position", data.position)
        await self._unique(v, item, "description", data.description)
        await self._unique(v, item, "image", image)
        v.check()

        item.position = data.position
        item.description = data.description
        item.image = image


class DailyVideoService(DailyItemService[DailyVideo, DailyVideoInput]):
    def _blank(self, **shared: object) -> DailyVideo:
        return DailyVideo(title="", source="", **shared)  # type: ignore[arg-type]

    async def _apply(self, item: DailyVideo, data: DailyVideoInput) -> None:
        source = str(data.source)
        v = Validator()
        await self._unique(v, item, "title", data.title)
        await self._unique(v, item, "source", source)
        v.check()

        item.title = data.title
        item.source = source


class ThingCategoryService:
    """Categories that group things."""

    def __init__(self, repository: ThingCategoryRepository, audit: AuditRepository) -> None:
        self._repo = repository
        self._audit = audit

    async def get(self, category_id: UUID) -> ThingCategory:
        category = await self._repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError("ThingCategory", category_id)
        return category

    async def list_all(self) -> list[ThingCategory]:
        return await self._repo.list_all()

    async def create(self, data: ThingCategoryInput, actor: User) -> ThingCategory:
        authorize(actor, "create", "ThingCategory")
        category = ThingCategory(id=uuid4(), category="")
        await self._apply(category, data)
        await self._repo.insert(category)
        await self._audit.record("ThingCategory", category.id, "create", actor.id)
        return category

    async def update(
        self, category_id: UUID, data: ThingCategoryInput, actor: User
    ) -> ThingCategory:
        category = await self.get(category_id)
        authorize(actor, "update", "ThingCategory", category)
        before = {"category": category.category}
        await self._apply(category, data)
        await self._repo.update(category)
        await self._audit.record(
            "ThingCategory", category.id, "update", actor.id,
            diff(before, {"category": category.category}),
        )
        return category

    async def delete(self, category_id: UUID, actor: User) -> None:
        category = await self.get(category_id)
        authorize(actor, "destroy", "ThingCategory", category)
        if await self._repo.is_used(category_id):
            raise ValidationError.single("base", "Cannot delete a category with things")
        await self._repo.delete(category_id)
        await self._audit.record("ThingCategory", category_id, "delete", actor.id)

    async def _apply(self, category: ThingCategory, data: ThingCategoryInput) -> None:
        v = Validator()
        await v.unique(
            self._repo.database, "thing_categories", "category", data.category,
            exclude_id=category.id,
        )
        v.check()
        category.category = data.category


class DailyDoseService:
    """Collects the items of the day."""

    def __init__(
        self,
        videos: DailyVideoService,
        things: ThingService,
        tips: TipService,
        positions: PositionService,
        categories: ThingCategoryRepository,
    ) -> None:
        self._videos = videos
        self._things = things
        self._tips = tips
        self._positions = positions
        self._categories = categories

    async def today(self, today: date | None = None) -> DailyDose:
        day = today or site_today()
        thing = await self._things.of_the_day(day)
        return DailyDose(
            video=await self._videos.of_the_day(day),
            thing=thing,
            tip=await self._tips.of_the_day(day),
            position=await self._positions.of_the_day(day),
            category=await self._categories.get_by_id(thing.category_id) if thing else None,
        )


def _snapshot(item: DailyItem) -> dict[str, object]:
    values = {}
    for field in dataclasses.fields(item):
        if field.name in ("id", "created_at", "updated_at"):
            continue
        value = getattr(item, field.name)
        values[field.name] = value if isinstance(value, (str, bool, type(None))) else str(value)
    return values

"""Tests for daily items, their review and publishing, and the daily dose."""

from collections.abc import Awaitable, Callable
from datetime import timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError as SchemaError

from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied
from src.modules.auth.roles import Role
from src.modules.common.clock import site_today
from src.modules.common.validation import ValidationError
from src.modules.daily import (
    DailyVideoInput,
    PositionInput,
    ThingCategoryInput,
    ThingInput,
    TipInput,
)
from src.modules.daily.service import DailyItemService
from src.modules.site import Services

UserFactory = Callable[..., Awaitable[User]]

TIP = "Never roll on Shabbos, and always bring your own ball."
DESCRIPTION = (
    "A White Russian: vodka, coffee liqueur and cream over ice. Best enjoyed "
    "in a bathrobe while listening to whale songs, or in the supermarket while "
    "writing a check for sixty-nine cents."
)


class Crew:
    def __init__(self, admin: User, editor: User, reviewer: User, writer: User) -> None:
        self.admin = admin
        self.editor = editor
        self.reviewer = reviewer
        self.writer = writer


@pytest.fixture
async def crew(make_user: UserFactory) -> Crew:
    return Crew(
        admin=await make_user(Role.ADMIN, "walter"),
        editor=await make_user(Role.EDITOR, "maude"),
        reviewer=await make_user(Role.REVIEWER, "donny"),
        writer=await make_user(Role.WRITER, "thedude"),
    )


class TestTips:
    """Tests for the review and publishing rules, using tips."""

    @pytest.mark.asyncio
    async def test_base_service_is_abstract(self, services: Services) -> None:
        """Should only build the concrete item services."""
        with pytest.raises(TypeError, match="abstract"):
            DailyItemService(  # type: ignore[abstract]
                services.tips._repo, services.configs, services.audit
            )

    @pytest.mark.asyncio
    async def test_create(self, services: Services, crew: Crew) -> None:
        """Should create an unreviewed, unpublished tip."""
        tip = await services.tips.create(TipInput(tip=TIP), crew.writer)

        assert tip.creator_id == crew.writer.id
        assert not tip.reviewed
        assert not tip.published
        assert tip.date is None

    def test_validates_length(self) -> None:
        """Should refuse a tip that is too short."""
        with pytest.raises(SchemaError, match="at least 10 characters"):
            TipInput(tip="Abide.")

    @pytest.mark.asyncio
    async def test_creator_cannot_review(self, services: Services, crew: Crew) -> None:
        """Should refuse a review by the creator."""
        with pytest.raises(AccessDenied):
            await services.tips.create(TipInput(tip=TIP, reviewed=True), crew.writer)

    @pytest.mark.asyncio
    async def test_publish_requires_review(self, services: Services, crew: Crew) -> None:
        """Should refuse to publish an unreviewed tip."""
        tip = await services.tips.create(TipInput(tip=TIP), crew.writer)

        with pytest.raises(ValidationError, match="requires a reviewed item"):
            await services.tips.update(tip.id, TipInput(tip=TIP, published=True), crew.editor)

    @pytest.mark.asyncio
    async def test_publish_requires_editor(self, services: Services, crew: Crew) -> None:
        """Should only let editors publish."""
        tip = await services.tips.create(TipInput(tip=TIP), crew.writer)
        await services.tips.update(tip.id, TipInput(tip=TIP, reviewed=True), crew.reviewer)

        with pytest.raises(AccessDenied, match="Only editors"):
            await services.tips.update(
                tip.id, TipInput(tip=TIP, reviewed=True, published=True), crew.reviewer
            )

    @pytest.mark.asyncio
    async def test_publish_schedules_next_day(self, services: Services, crew: Crew) -> None:
        """Should date published tips one after another."""
        today = site_today()
        first = await services.tips.create(TipInput(tip=TIP), crew.writer)
        second = await services.tips.create(
            TipInput(tip="Careful man, there's a beverage here."), crew.writer
        )
        for tip in (first, second):
            await services.tips.update(
                tip.id, TipInput(tip=tip.tip, reviewed=True), crew.reviewer
            )
            await services.tips.update(
                tip.id, TipInput(tip=tip.tip, reviewed=True, published=True), crew.editor
            )

        assert (await services.tips.get(first.id)).date == today
        assert (await services.tips.get(second.id)).date == today + timedelta(days=1)

        of_the_day = await services.tips.of_the_day()
        assert of_the_day is not None and of_the_day.id == first.id

    @pytest.mark.asyncio
    async def test_reviewed_content_is_frozen(self, services: Services, crew: Crew) -> None:
        """Should keep a reviewed tip's text unless an admin edits it."""
        tip = await services.tips.create(TipInput(tip=TIP), crew.writer)
        await services.tips.update(tip.id, TipInput(tip=TIP, reviewed=True), crew.reviewer)

        await services.tips.update(
            tip.id, TipInput(tip="Something else entirely, man.", reviewed=True), crew.writer
        )
        assert (await services.tips.get(tip.id)).tip == TIP

        await services.tips.update(
            tip.id, TipInput(tip="Something else entirely, man.", reviewed=True), crew.admin
        )
        assert (await services.tips.get(tip.id)).tip == "Something else entirely, man."

    @pytest.mark.asyncio
    async def test_only_admin_unpublishes(self, services: Services, crew: Crew) -> None:
        """Should only let admins take an item down."""
        tip = await services.tips.create(
            TipInput(tip=TIP, reviewed=True, published=True), crew.admin
        )
        assert tip.published

        with pytest.raises(AccessDenied, match="unpublish"):
            await services.tips.update(tip.id, TipInput(tip=TIP, reviewed=True), crew.editor)

        tip = await services.tips.update(tip.id, TipInput(tip=TIP, reviewed=True), crew.admin)
        assert not tip.published
        assert tip.date is None

    @pytest.mark.asyncio
    async def test_delete(self, services: Services, crew: Crew) -> None:
        """Should let writers delete their own tips until reviewed."""
        draft = await services.tips.create(TipInput(tip=TIP), crew.writer)
        await services.tips.delete(draft.id, crew.writer)
        assert await services.tips.list_all() == []

        tip = await services.tips.create(TipInput(tip=TIP), crew.writer)
        await services.tips.update(tip.id, TipInput(tip=TIP, reviewed=True), crew.reviewer)
        with pytest.raises(AccessDenied):
            await services.tips.delete(tip.id, crew.writer)

    @pytest.mark.asyncio
    async def test_changes_are_audited(self, services: Services, crew: Crew) -> None:
        """Should record the review in the item's history."""
        tip = await services.tips.create(TipInput(tip=TIP), crew.writer)
        await services.tips.update(tip.id, TipInput(tip=TIP, reviewed=True), crew.reviewer)

        history = await services.audit.history("Tip", tip.id)
        [update] = [entry for entry in history if entry.action == "update"]

        assert update.changes["reviewed"] == [False, True]
        assert update.changes["reviewer_id"] == [None, str(crew.reviewer.id)]


class TestThings:
    """Tests for things and their categories."""

    @pytest.mark.asyncio
    async def test_create_thing(self, services: Services, crew: Crew) -> None:
        """Should create a thing in a category."""
        category = await services.categories.create(
            ThingCategoryInput(category="Beverages"), crew.editor
        )

        thing = await services.things.create(
            ThingInput(thing="White Russian", description=DESCRIPTION, category_id=category.id),
            crew.writer,
        )

        assert thing.category_id == category.id

    def test_thing_requires_category(self) -> None:
        """Should refuse a thing without a category."""
        with pytest.raises(SchemaError) as exc_info:
            ThingInput(thing="White Russian", description=DESCRIPTION)  # type: ignore[call-arg]

        assert "category_id" in ValidationError.from_schema(exc_info.value).errors

    @pytest.mark.asyncio
    async def test_thing_category_must_exist(self, services: Services, crew: Crew) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await services.things.create(
                ThingInput(thing="White Russian", description=DESCRIPTION, category_id=uuid4()),
                crew.writer,
            )

        assert exc_info.value.errors == {"category": ["is invalid"]}

    @pytest.mark.asyncio
    async def test_category_in_use_cannot_be_deleted(
        self, services: Services, crew: Crew
    ) -> None:
        """Should block deleting a category with things."""
        category = await services.categories.create(
            ThingCategoryInput(category="Beverages"), crew.editor
        )
        await services.things.create(
            ThingInput(thing="White Russian", description=DESCRIPTION, category_id=category.id),
            crew.writer,
        )

        with pytest.raises(ValidationError, match="Cannot delete a category with things"):
            await services.categories.delete(category.id, crew.editor)

    @pytest.mark.asyncio
    async def test_writers_cannot_manage_categories(
        self, services: Services, crew: Crew
    ) -> None:
        """Should keep categories to editors."""
        with pytest.raises(AccessDenied):
            await services.categories.create(ThingCategoryInput(category="Rugs"), crew.writer)


class TestPositionsAndVideos:
    """Tests for URL rules on positions and videos."""

    def test_position_image_must_be_picture(self) -> None:
        """Should require a png or jpg image URL."""
        with pytest.raises(SchemaError, match="must be .png, .jpg, or .jpeg"):
            PositionInput(
                position="The Lebowski",
                description=DESCRIPTION,
                image="https://example.com/position.gif",  # type: ignore[arg-type]
            )

    def test_video_source_must_be_url(self) -> None:
        """Should require a web address for the video."""
        with pytest.raises(SchemaError, match="valid URL"):
            DailyVideoInput(title="Gutterballs", source="not a url")  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_position_image_is_unique(self, services: Services, crew: Crew) -> None:
        """Should refuse an image another position already uses."""
        image = "https://example.com/position.png"
        first = PositionInput.model_validate(
            {"position": "The Lebowski", "description": DESCRIPTION, "image": image}
        )
        second = PositionInput.model_validate(
            {"position": "The Stranger", "description": f"{DESCRIPTION} Again.", "image": image}
        )
        await services.positions.create(first, crew.writer)

        with pytest.raises(ValidationError) as exc_info:
            await services.positions.create(second, crew.writer)

        assert exc_info.value.errors == {"image": ["has already been taken"]}


class TestDailyDose:
    """Tests for DailyDoseService."""

    @pytest.mark.asyncio
    async def test_collects_items_of_the_day(self, services: Services, crew: Crew) -> None:
        """Should gather today's published items with the thing's category."""
        category = await services.categories.create(
            ThingCategoryInput(category="Beverages"), crew.editor
        )
        tip = await services.tips.create(
            TipInput(tip=TIP, reviewed=True, published=True), crew.admin
        )
        thing = await services.things.create(
            ThingInput(
                thing="White Russian",
                description=DESCRIPTION,
                category_id=category.id,
                reviewed=True,
                published=True,
            ),
            crew.admin,
        )
        await services.videos.create(
            DailyVideoInput(title="Gutterballs", source="https://example.com/gutterballs"),
            crew.writer,
        )

        dose = await services.daily_dose.today()

        assert dose.tip is not None and dose.tip.id == tip.id
        assert dose.thing is not None and dose.thing.id == thing.id
        assert dose.category is not None and dose.category.category == "Beverages"
        assert dose.video is None
        assert dose.position is None

    @pytest.mark.asyncio
    async def test_empty_day(self, services: Services) -> None:
        """Should return an empty dose when nothing is published."""
        dose = await services.daily_dose.today()

        assert dose.tip is None
        assert dose.category is None

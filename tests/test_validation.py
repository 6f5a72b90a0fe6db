"""Tests for input schemas and validation errors."""

import sqlite3
from datetime import date
from uuid import uuid4

import pytest
from pydantic import ValidationError as SchemaError

from src.infrastructure.database import Database
from src.modules.articles import ArticleInput
from src.modules.columns import ColumnInput
from src.modules.common.validation import ValidationError, Validator, unique_violations
from src.modules.daily import PositionInput, TipInput
from src.modules.movies import MovieInput, RatingInput

DESCRIPTION = "A position for the discerning dude. " * 4


class TestSchemaFields:
    """Tests for the field rules declared on the input schemas."""

    def test_html_is_stripped_before_length(self) -> None:
        """Should measure the text that will be stored."""
        with pytest.raises(SchemaError) as exc_info:
            TipInput(tip="<b><i>Short</i></b>")

        errors = ValidationError.from_schema(exc_info.value).errors
        assert errors == {"tip": ["String should have at least 10 characters"]}

    def test_plain_text_is_stored_without_tags(self) -> None:
        tip = TipInput(tip="<em>Take</em> it easy, man.")

        assert tip.tip == "Take it easy, man."

    def test_rich_text_keeps_safe_tags(self) -> None:
        body = "<p>" + "The Dude abides. " * 20 + "</p><script>x()</script>"

        data = ArticleInput(title="Abiding in the Valley", body=body)

        assert data.body.startswith("<p>The Dude abides.")
        assert "<script>" not in data.body

    def test_blank_byline_and_image_are_none(self) -> None:
        body = "Bowling. " * 40
        data = ArticleInput(title="Abiding in the Valley", body=body, byline="  ", image="")

        assert data.byline is None
        assert data.image is None

    def test_collects_every_failure(self) -> None:
        """Should report all failed fields at once."""
        with pytest.raises(SchemaError) as exc_info:
            ArticleInput(title="Short", body="Too short")

        errors = ValidationError.from_schema(exc_info.value).errors
        assert set(errors) == {"title", "body"}

    def test_publish_days(self) -> None:
        """Should accept digits for weekdays only."""
        values = {
            "name": "The Bowling Column",
            "short_name": "Bowl",
            "description": "All about bowling",
            "start_date": date(2020, 1, 1),
        }

        assert ColumnInput(**values, publish_days=" 135 ").publish_days == "135"
        with pytest.raises(SchemaError, match="must be days of the week"):
            ColumnInput(**values, publish_days="890")
        with pytest.raises(SchemaError, match="at most 7 characters"):
            ColumnInput(**values, publish_days="12345671")

    def test_position_image_must_be_a_picture(self) -> None:
        values = {"position": "The Lebowski", "description": DESCRIPTION}

        position = PositionInput(**values, image="https://example.com/dude.JPG")
        assert str(position.image) == "https://example.com/dude.JPG"
        with pytest.raises(SchemaError, match="must be .png, .jpg, or .jpeg"):
            PositionInput(**values, image="https://example.com/dude.gif")
        with pytest.raises(SchemaError):
            PositionInput(**values, image="not a url.png")

    @pytest.mark.parametrize("score", [0, 0.5, 7.5, 10])
    def test_rating_scale_accepts_half_points(self, score: float) -> None:
        assert RatingInput(body="Far out, man.", rating=score).rating == score

    @pytest.mark.parametrize("score", [-0.5, 7.3, 10.5])
    def test_rating_scale_rejects_other_values(self, score: float) -> None:
        with pytest.raises(SchemaError):
            RatingInput(body="Far out, man.", rating=score)

    def test_weekly_output(self) -> None:
        assert RatingInput(body="Far out, man.", rating=5, weekly_output="2").weekly_output == 2
        with pytest.raises(SchemaError):
            RatingInput(body="Far out, man.", rating=5, weekly_output=3)


class TestFromSchema:
    """Tests for ValidationError.from_schema."""

    def test_nested_locations(self) -> None:
        """Should name nested fields by path."""
        with pytest.raises(SchemaError) as exc_info:
            MovieInput(
                title="The Big Lebowski",
                release_date=date(1998, 3, 6),
                genre_ids=[uuid4()],
                ratings=[{"body": "Far out, man.", "rating": 11}],
            )

        errors = ValidationError.from_schema(exc_info.value).errors
        assert list(errors) == ["ratings[0].rating"]

    def test_custom_field_names(self) -> None:
        with pytest.raises(SchemaError) as exc_info:
            MovieInput(title="Dud", release_date=date(1998, 3, 6), genre_ids=[])

        errors = ValidationError.from_schema(
            exc_info.value, lambda loc: f"movie_{loc[0]}"
        ).errors
        assert set(errors) == {"movie_title", "movie_genre_ids"}


class TestValidator:
    """Tests for Validator rules that need the database."""

    def test_message_joins_fields(self) -> None:
        """Should read as field and message pairs."""
        error = ValidationError({"tip": ["has already been taken"]})

        assert str(error) == "tip has already been taken"

    def test_collects_before_raising(self) -> None:
        v = Validator()
        v.add("column", "is invalid")
        v.add("column", "is reserved for movie reviews")

        assert not v.valid
        with pytest.raises(ValidationError) as exc_info:
            v.check()
        assert exc_info.value.errors == {
            "column": ["is invalid", "is reserved for movie reviews"]
        }

    def test_valid_validator_does_not_raise(self) -> None:
        v = Validator()

        assert v.valid
        v.check()

    @pytest.mark.asyncio
    async def test_unique(self, database: Database) -> None:
        """Should find taken values, ignoring the record itself."""
        category_id = uuid4()
        await database.execute(
            "INSERT INTO thing_categories (id, category) VALUES (?, ?)",
            (str(category_id), "Beverages"),
        )

        v = Validator()
        await v.unique(database, "thing_categories", "category", "Beverages")
        assert v.errors == {"category": ["has already been taken"]}

        v = Validator()
        await v.unique(
            database, "thing_categories", "category", "Beverages", exclude_id=category_id
        )
        await v.unique(database, "thing_categories", "category", "Rugs")
        assert v.valid


class TestUniqueViolations:
    """Tests for unique_violations."""

    def test_reports_the_column(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            with unique_violations():
                raise sqlite3.IntegrityError("UNIQUE constraint failed: tips.tip")

        assert exc_info.value.errors == {"tip": ["has already been taken"]}

    def test_other_integrity_errors_pass_through(self) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            with unique_violations():
                raise sqlite3.IntegrityError("FOREIGN KEY constraint failed")

    @pytest.mark.asyncio
    async def test_real_constraint(self, database: Database) -> None:
        """Should translate what SQLite raises for a duplicate row."""
        sql = "INSERT INTO thing_categories (id, category) VALUES (?, ?)"
        await database.execute(sql, (str(uuid4()), "Beverages"))

        with pytest.raises(ValidationError) as exc_info:
            with unique_violations():
                await database.execute(sql, (str(uuid4()), "Beverages"))

        assert exc_info.value.errors == {"category": ["has already been taken"]}

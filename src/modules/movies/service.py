"""Genre, movie and rating services."""

import copy
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import structlog

from src.infrastructure.observability import annotate, traced
from src.modules.articles import Article, ArticleInput, ArticleService, review_title
from src.modules.audit import AuditRepository, diff
from src.modules.auth.models import User
from src.modules.auth.permissions import AccessDenied, authorize
from src.modules.auth.repository import UserRepository
from src.modules.common.clock import site_midnight, site_today
from src.modules.common.exceptions import NotFoundError
from src.modules.common.review import apply_review, is_read_only
from src.modules.common.validation import ValidationError, Validator
from src.modules.movies.models import (
    Genre,
    Movie,
    MovieView,
    Rating,
    RatingView,
)
from src.modules.movies.repository import GenreRepository, MovieRepository, RatingRepository
from src.modules.movies.schemas import GenreInput, MovieInput, RatingInput

logger = structlog.get_logger()


class GenreService:
    """Maintains genres and the genre navigation."""

    def __init__(self, repository: GenreRepository, audit: AuditRepository) -> None:
        self._repo = repository
        self._audit = audit

    async def get(self, genre_id: UUID) -> Genre:
        genre = await self._repo.get_by_id(genre_id)
        if genre is None:
            raise NotFoundError("Genre", genre_id)
        return genre

    async def list_all(self) -> list[Genre]:
        return await self._repo.list_all()

    async def top(self, limit: int = 8) -> list[Genre]:
        return await self._repo.top(limit)

    async def create(self, data: GenreInput, actor: User) -> Genre:
        authorize(actor, "create", "Genre")
        genre = Genre(id=uuid4(), name="", movies_count=0, created_at=datetime.now(UTC))
        await self._apply(genre, data)
        await self._repo.insert(genre)
        await self._audit.record("Genre", genre.id, "create", actor.id)
        return genre

    async def update(self, genre_id: UUID, data: GenreInput, actor: User) -> Genre:
        genre = await self.get(genre_id)
        authorize(actor, "update", "Genre", genre)
        before = {"name": genre.name}
        await self._apply(genre, data)
        await self._repo.update(genre)
        await self._audit.record(
            "Genre", genre.id, "update", actor.id, diff(before, {"name": genre.name})
        )
        return genre

    async def delete(self, genre_id: UUID, actor: User) -> None:
        genre = await self.get(genre_id)
        authorize(actor, "destroy", "Genre", genre)
        if genre.movies_count > 0:
            raise ValidationError.single("base", "Cannot delete a genre with movies")
        await self._repo.delete(genre_id)
        await self._audit.record("Genre", genre_id, "delete", actor.id)

    async def _apply(self, genre: Genre, data: GenreInput) -> None:
        v = Validator()
        await v.unique(self._repo.database, "genres", "name", data.name, exclude_id=genre.id)
        v.check()
        genre.name = data.name


@dataclass
class MovieIndex:
    """A filtered movie listing."""

    header: str
    movies: list[MovieView]
    show_daily_dose: bool


class RatingService:
    """Ratings and the movie counters they feed.

    ``movies.total_rating`` and ``movies.reviewed_ratings`` only count
    reviewed ratings.
    """

    def __init__(
        self,
        repository: RatingRepository,
        movies: MovieRepository,
        articles: ArticleService,
        users: UserRepository,
        audit: AuditRepository,
    ) -> None:
        self._repo = repository
        self._movies = movies
        self._articles = articles
        self._users = users
        self._audit = audit
        articles.on_publish(self.refresh_published_at)

    async def get(self, rating_id: UUID) -> Rating:
        rating = await self._repo.get_by_id(rating_id)
        if rating is None:
            raise NotFoundError("Rating", rating_id)
        return rating

    async def list_all(self) -> list[Rating]:
        return await self._repo.list_all()

    async def for_movie(self, movie_id: UUID) -> list[Rating]:
        return await self._repo.for_movie(movie_id)

    async def recent(self, limit: int, user: User | None = None) -> list[RatingView]:
        """Ratings published up to the end of today, newest first."""
        cutoff = site_midnight(site_today() + timedelta(days=1))
        ratings = await self._repo.published_before(
            cutoff, limit, user.id if user is not None else None
        )
        return await self.views(ratings)

    async def views(self, ratings: list[Rating]) -> list[RatingView]:
        movies = await self._movies.get_many({rating.movie_id for rating in ratings})
        creators = await self._users.get_many(
            {rating.creator_id for rating in ratings if rating.creator_id is not None}
        )
        return [
            RatingView(
                rating=rating,
                movie=movies[rating.movie_id],
                creator=creators.get(rating.creator_id) if rating.creator_id else None,
            )
            for rating in ratings
            if rating.movie_id in movies
        ]

    async def create(self, movie_id: UUID, data: RatingInput, actor: User) -> Rating:
        """Add the actor's rating to an existing movie."""
        authorize(actor, "create", "Rating")
        if await self._movies.get_by_id(movie_id) is None:
            raise ValidationError.single("movie", "can't be blank")

        rating = await self.build(movie_id, data, actor)
        await self.insert(rating, actor)
        return rating

    async def build(
        self,
        movie_id: UUID,
        data: RatingInput,
        actor: User,
        *,
        field_prefix: str = "",
    ) -> Rating:
        """Validate a new rating by ``actor`` without storing it."""
        now = datetime.now(UTC)
        rating = Rating(
            id=uuid4(),
            movie_id=movie_id,
            creator_id=actor.id,
            body="",
            rating=0.0,
            reviewed=False,
            reviewer_id=None,
            reviewed_at=None,
            needs_work=data.needs_work,
            notes=None,
            weekly_output=None,
            published_at=None,
            created_at=now,
            updated_at=now,
        )
        await self._apply(rating, data, field_prefix=field_prefix)
        apply_review(rating, data.reviewed, actor, now)
        return rating

    async def insert(self, rating: Rating, actor: User) -> None:
        async with self._repo.database.transaction():
            rating.published_at = rating.compute_published_at(
                await self._articles.review_of(rating.movie_id)
            )
            await self._repo.insert(rating)
            await self._movies.adjust_ratings(rating.movie_id, count=1)
            await self._shift_totals(None, rating)
            await self._audit.record("Rating", rating.id, "create", actor.id)

    @traced(span_name="ratings.update")
    async def update(self, rating_id: UUID, data: RatingInput, actor: User) -> Rating:
        """Edit a rating.

        Raises:
            AccessDenied: If the actor may not edit it, or it is reviewed
                and the score or text changed.
            ValidationError: If any field is invalid.
        """
        rating = await self.get(rating_id)
        authorize(actor, "update", "Rating", rating)
        previous = copy.copy(rating)

        if is_read_only(rating, actor):
            if data.body != rating.body or data.rating != rating.rating:
                raise AccessDenied("Reviewed ratings can only be changed by an admin.")
        else:
            await self._apply(rating, data)

        apply_review(rating, data.reviewed, actor, datetime.now(UTC))
        rating.needs_work = data.needs_work

        async with self._repo.database.transaction():
            rating.published_at = rating.compute_published_at(
                await self._articles.review_of(rating.movie_id)
            )
            await self._repo.update(rating)
            await self._shift_totals(previous, rating)
            await self._audit.record(
                "Rating", rating.id, "update", actor.id,
                diff(_snapshot(previous), _snapshot(rating)),
            )
        return rating

    async def delete(self, rating_id: UUID, actor: User) -> None:
        rating = await self.get(rating_id)
        authorize(actor, "destroy", "Rating", rating)

        async with self._repo.database.transaction():
            await self._repo.delete(rating_id)
            await self._movies.adjust_ratings(rating.movie_id, count=-1)
            await self._shift_totals(rating, None)
            await self._audit.record("Rating", rating_id, "delete", actor.id)

    async def refresh_published_at(self, review: Article) -> None:
        """Recompute publication times after a movie's review is published."""
        if review.movie_id is None:
            return
        for rating in await self._repo.for_movie(review.movie_id):
            published_at = rating.compute_published_at(review)
            if published_at != rating.published_at:
                await self._repo.set_published_at(rating.id, published_at)
        logger.info("ratings_published", movie_id=str(review.movie_id))

    async def _shift_totals(self, previous: Rating | None, current: Rating | None) -> None:
        if previous is not None and previous.reviewed:
            await self._movies.adjust_ratings(
                previous.movie_id, total=-previous.rating, reviewed=-1
            )
        if current is not None and current.reviewed:
            await self._movies.adjust_ratings(
                current.movie_id, total=current.rating, reviewed=1
            )

    async def _apply(self, rating: Rating, data: RatingInput, *, field_prefix: str = "") -> None:
        db = self._repo.database
        v = Validator()

        await v.unique(
            db, "ratings", "body", data.body,
            exclude_id=rating.id, error_field=f"{field_prefix}body",
        )
        if rating.creator_id is not None:
            await v.unique(
                db, "ratings", "creator_id", str(rating.creator_id),
                exclude_id=rating.id,
                scope={"movie_id": str(rating.movie_id)},
                error_field=f"{field_prefix}creator",
            )

        v.check()

        rating.body = data.body
        rating.rating = data.rating
        rating.notes = data.notes or None
        rating.weekly_output = data.weekly_output


class MovieService:
    """Movies with their review article, genres and ratings."""

    def __init__(
        self,
        repository: MovieRepository,
        genres: GenreRepository,
        ratings: RatingService,
        articles: ArticleService,
        audit: AuditRepository,
    ) -> None:
        self._repo = repository
        self._genres = genres
        self._ratings = ratings
        self._articles = articles
        self._audit = audit

    async def get(self, movie_id: UUID) -> Movie:
        movie = await self._repo.get_by_id(movie_id)
        if movie is None:
            raise NotFoundError("Movie", movie_id)
        return movie

    async def list_all(self) -> list[Movie]:
        return await self._repo.list_all()

    async def views(self, movies: list[Movie], *, with_ratings: bool = False) -> list[MovieView]:
        genres = await self._genres.for_movies([movie.id for movie in movies])
        views = []
        for movie in movies:
            review = await self._articles.review_of(movie.id)
            ratings: list[RatingView] = []
            if with_ratings:
                ratings = await self._ratings.views(await self._ratings.for_movie(movie.id))
            views.append(
                MovieView(
                    movie=movie,
                    review=await self._articles.view(review) if review else None,
                    genres=genres.get(movie.id, []),
                    ratings=ratings,
                )
            )
        return views

    async def get_public(self, movie_id: UUID) -> MovieView:
        """A movie whose review is public, with its reviewed ratings.

        Raises:
            NotFoundError: If the movie is missing or its review is not public.
        """
        movie = await self.get(movie_id)
        review = await self._articles.review_of(movie.id)
        if review is None or not review.is_public(site_today()):
            raise NotFoundError("Movie", movie_id)
        return (await self.views([movie], with_ratings=True))[0]

    async def index(
        self,
        *,
        genre_id: UUID | None = None,
        title: str | None = None,
    ) -> MovieIndex:
        """Finalized movies filtered by genre or title.

        The header names the filter; the unfiltered listing is headed "ALL"
        and hides the daily dose.
        """
        if genre_id is not None:
            genre = await self._genres.get_by_id(genre_id)
            if genre is None:
                raise NotFoundError("Genre", genre_id)
            movies = await self._repo.finalized(genre_id=genre_id)
            return MovieIndex(genre.name, await self.views(movies), True)

        if title:
            movies = await self._repo.finalized(title=title)
            return MovieIndex(title, await self.views(movies), True)

        movies = await self._repo.finalized()
        return MovieIndex("ALL", await self.views(movies), False)

    @traced(span_name="movies.create")
    async def create(self, data: MovieInput, actor: User) -> Movie:
        """Create a movie together with its review and first ratings.

        Raises:
            AccessDenied: If the actor may not add movies.
            ValidationError: If the movie, review or any rating is invalid.
        """
        authorize(actor, "create", "Movie")
        annotate(ratings=len(data.ratings or []), actor_role=actor.role)

        now = datetime.now(UTC)
        movie = Movie(
            id=uuid4(),
            title="",
            release_date=now.date(),
            creator_id=actor.id,
            ratings_count=0,
            total_rating=0.0,
            reviewed_ratings=0,
            created_at=now,
            updated_at=now,
        )

        v = Validator()
        if data.review is None:
            v.add("review", "can't be blank")
        if not data.ratings:
            v.add("ratings", "can't be blank")
        elif len(data.ratings) > 1:
            # Ratings added here all belong to the actor
            v.add("ratings", "can only hold your own rating")
        await self._apply(movie, data, v)

        async with self._repo.database.transaction():
            await self._repo.insert(movie)
            ratings = [
                await self._ratings.build(
                    movie.id, rating_data, actor, field_prefix=f"ratings[{i}]."
                )
                for i, rating_data in enumerate(data.ratings)
            ]
            if data.review is not None:
                await self._articles.create_review(
                    movie.id,
                    movie.title,
                    ArticleInput.model_validate(
                        {
                            **data.review.model_dump(mode="json"),
                            "title": review_title(movie.title),
                        }
                    ),
                    actor,
                )
            for rating in ratings:
                await self._ratings.insert(rating, actor)
            await self._audit.record("Movie", movie.id, "create", actor.id)

        return movie

    async def update(self, movie_id: UUID, data: MovieInput, actor: User) -> Movie:
        movie = await self.get(movie_id)
        authorize(actor, "update", "Movie", movie)
        before = _movie_snapshot(movie)

        await self._apply(movie, data, Validator())
        async with self._repo.database.transaction():
            await self._repo.update(movie)
            await self._articles.retitle_review(movie.id, movie.title)
            await self._audit.record(
                "Movie", movie.id, "update", actor.id, diff(before, _movie_snapshot(movie))
            )
        return movie

    async def delete(self, movie_id: UUID, actor: User) -> None:
        movie = await self.get(movie_id)
        authorize(actor, "destroy", "Movie", movie)
        review = await self._articles.review_of(movie.id)
        if review is not None and review.published and not actor.is_admin:
            raise AccessDenied("Published movies can only be removed by an admin.")

        async with self._repo.database.transaction():
            await self._articles.delete_review(movie.id)
            await self._repo.delete(movie.id)
            await self._audit.record("Movie", movie.id, "delete", actor.id)
        logger.info("movie_deleted", movie_id=str(movie.id))

    async def _apply(self, movie: Movie, data: MovieInput, v: Validator) -> None:
        await v.unique(self._repo.database, "movies", "title", data.title, exclude_id=movie.id)

        for genre_id in data.genre_ids:
            if await self._genres.get_by_id(genre_id) is None:
                v.add("genres", "is invalid")
                break

        v.check()

        movie.title = data.title
        movie.release_date = data.release_date
        movie.genre_ids = list(dict.fromkeys(data.genre_ids))


def _snapshot(rating: Rating) -> dict[str, object]:
    return {
        "body": rating.body,
        "rating": rating.rating,
        "reviewed": rating.reviewed,
        "needs_work": rating.needs_work,
        "notes": rating.notes,
        "weekly_output": rating.weekly_output,
    }


def _movie_snapshot(movie: Movie) -> dict[str, object]:
    return {
        "title": movie.title,
        "release_date": movie.release_date.isoformat(),
        "genre_ids": sorted(str(genre_id) for genre_id in movie.genre_ids),
    }

"""Genre, movie and rating repositories."""

from datetime import UTC, datetime
from uuid import UUID

import structlog

from src.infrastructure.database import Database
from src.modules.common.clock import iso
from src.modules.common.validation import unique_violations
from src.modules.movies.models import Genre, Movie, Rating

logger = structlog.get_logger()


class GenreRepository:
    """Repository for Genre CRUD operations."""

    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    async def insert(self, genre: Genre) -> Genre:
        with unique_violations():
            await self._db.execute(
                "INSERT INTO genres (id, name, movies_count, created_at) VALUES (?, ?, 0, ?)",
                (str(genre.id), genre.name, genre.created_at.isoformat()),
            )
        logger.info("genre_created", genre_id=str(genre.id), name=genre.name)
        return genre

    async def update(self, genre: Genre) -> Genre:
        with unique_violations():
            await self._db.execute(
                "UPDATE genres SET name = ? WHERE id = ?",
                (genre.name, str(genre.id)),
            )
        return genre

    async def delete(self, genre_id: UUID) -> bool:
        cursor = await self._db.execute("DELETE FROM genres WHERE id = ?", (str(genre_id),))
        return cursor.rowcount > 0

    async def get_by_id(self, genre_id: UUID) -> Genre | None:
        row = await self._db.fetch_one("SELECT * FROM genres WHERE id = ?", (str(genre_id),))
        return Genre.from_row(dict(row)) if row else None

    async def list_all(self) -> list[Genre]:
        rows = await self._db.fetch_all("SELECT * FROM genres ORDER BY name")
        return [Genre.from_row(dict(row)) for row in rows]

    async def top(self, limit: int) -> list[Genre]:
        """Genres with the most movies."""
        rows = await self._db.fetch_all(
            "SELECT * FROM genres ORDER BY movies_count DESC, name LIMIT ?",
            (limit,),
        )
        return [Genre.from_row(dict(row)) for row in rows]

    async def for_movies(self, movie_ids: list[UUID]) -> dict[UUID, list[Genre]]:
        """Genres of several movies, keyed by movie ID."""
        if not movie_ids:
            return {}
        ids = [str(movie_id) for movie_id in movie_ids]
        placeholders = ", ".join("?" for _ in ids)
        rows = await self._db.fetch_all(
            f"""
            SELECT mg.movie_id AS movie_id, g.* FROM movie_genres mg
            JOIN genres g ON g.id = mg.genre_id
            WHERE mg.movie_id IN ({placeholders})
            ORDER BY g.name
            """,  # nosec B608
            tuple(ids),
        )
        genres: dict[UUID, list[Genre]] = {movie_id: [] for movie_id in movie_ids}
        for row in rows:
            genres[UUID(str(row["movie_id"]))].append(Genre.from_row(dict(row)))
        return genres


class MovieRepository:
    """Repository for movies and their genre links.

    ``genres.movies_count`` follows the links.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    async def insert(self, movie: Movie) -> Movie:
        with unique_violations():
            await self._db.execute(
                """
                INSERT INTO movies (id, title, release_date, creator_id, ratings_count,
                                    total_rating, reviewed_ratings, created_at, updated_at)
                VALUES (?, ?, ?, ?, 0, 0, 0, ?, ?)
                """,
                (
                    str(movie.id),
                    movie.title,
                    movie.release_date.isoformat(),
                    str(movie.creator_id) if movie.creator_id else None,
                    movie.created_at.isoformat(),
                    movie.updated_at.isoformat(),
                ),
            )
        await self.set_genres(movie.id, movie.genre_ids)
        logger.info("movie_created", movie_id=str(movie.id), title=movie.title)
        return movie

    async def update(self, movie: Movie) -> Movie:
        movie.updated_at = datetime.now(UTC)
        with unique_violations():
            await self._db.execute(
                "UPDATE movies SET title = ?, release_date = ?, updated_at = ? WHERE id = ?",
                (
                    movie.title,
                    movie.release_date.isoformat(),
                    movie.updated_at.isoformat(),
                    str(movie.id),
                ),
            )
        await self.set_genres(movie.id, movie.genre_ids)
        logger.info("movie_updated", movie_id=str(movie.id))
        return movie

    async def delete(self, movie_id: UUID) -> bool:
        async with self._db.transaction():
            await self.set_genres(movie_id, [])
            cursor = await self._db.execute("DELETE FROM movies WHERE id = ?", (str(movie_id),))
        return cursor.rowcount > 0

    async def set_genres(self, movie_id: UUID, genre_ids: list[UUID]) -> None:
        """Replace a movie's genres, adjusting genre counters."""
        current = set(await self.genre_ids(movie_id))
        wanted = set(genre_ids)

        for genre_id in current - wanted:
            await self._db.execute(
                "DELETE FROM movie_genres WHERE movie_id = ? AND genre_id = ?",
                (str(movie_id), str(genre_id)),
            )
            await self._adjust_genre(genre_id, -1)

        for genre_id in wanted - current:
            await self._db.execute(
                "INSERT INTO movie_genres (movie_id, genre_id) VALUES (?, ?)",
                (str(movie_id), str(genre_id)),
            )
            await self._adjust_genre(genre_id, 1)

    async def genre_ids(self, movie_id: UUID) -> list[UUID]:
        rows = await self._db.fetch_all(
            "SELECT genre_id FROM movie_genres WHERE movie_id = ?",
            (str(movie_id),),
        )
        return [UUID(str(row["genre_id"])) for row in rows]

    async def get_by_id(self, movie_id: UUID) -> Movie | None:
        row = await self._db.fetch_one("SELECT * FROM movies WHERE id = ?", (str(movie_id),))
        if row is None:
            return None
        movie = Movie.from_row(dict(row))
        movie.genre_ids = await self.genre_ids(movie.id)
        return movie

    async def get_many(self, movie_ids: set[UUID]) -> dict[UUID, Movie]:
        if not movie_ids:
            return {}
        ids = [str(movie_id) for movie_id in movie_ids]
        placeholders = ", ".join("?" for _ in ids)
        rows = await self._db.fetch_all(
            f"SELECT * FROM movies WHERE id IN ({placeholders})",  # nosec B608
            tuple(ids),
        )
        movies = [Movie.from_row(dict(row)) for row in rows]
        return {movie.id: movie for movie in movies}

    async def list_all(self) -> list[Movie]:
        rows = await self._db.fetch_all("SELECT * FROM movies ORDER BY title")
        return [Movie.from_row(dict(row)) for row in rows]

    async def finalized(
        self,
        *,
        genre_id: UUID | None = None,
        title: str | None = None,
    ) -> list[Movie]:
        """Movies whose review is finalized, optionally filtered.

        Args:
            genre_id: Only movies in this genre.
            title: Only movies whose title contains this text, ignoring case.
        """
        conditions = ["a.finalized = 1"]
        params: list[object] = []
        if genre_id is not None:
            conditions.append(
                "m.id IN (SELECT movie_id FROM movie_genres WHERE genre_id = ?)"
            )
            params.append(str(genre_id))
        if title:
            conditions.append("instr(lower(m.title), lower(?)) > 0")
            params.append(title)

        rows = await self._db.fetch_all(
            f"""
            SELECT m.* FROM movies m
            JOIN articles a ON a.movie_id = m.id
            WHERE {' AND '.join(conditions)}
            ORDER BY a.date DESC, m.title
            """,  # nosec B608
            tuple(params),
        )
        return [Movie.from_row(dict(row)) for row in rows]

    async def adjust_ratings(
        self,
        movie_id: UUID,
        *,
        count: int = 0,
        total: float = 0.0,
        reviewed: int = 0,
    ) -> None:
        """Shift the rating counters of a movie."""
        await self._db.execute(
            """
            UPDATE movies
            SET ratings_count = ratings_count + ?,
                total_rating = total_rating + ?,
                reviewed_ratings = reviewed_ratings + ?
            WHERE id = ?
            """,
            (count, total, reviewed, str(movie_id)),
        )

    async def _adjust_genre(self, genre_id: UUID, delta: int) -> None:
        await self._db.execute(
            "UPDATE genres SET movies_count = movies_count + ? WHERE id = ?",
            (delta, str(genre_id)),
        )


class RatingRepository:
    """Repository for Rating CRUD operations."""

    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    async def insert(self, rating: Rating) -> Rating:
        with unique_violations():
            await self._db.execute(
                """
                INSERT INTO ratings (id, movie_id, creator_id, body, rating, reviewed,
                                     reviewer_id, reviewed_at, needs_work, notes,
                                     weekly_output, published_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(rating.id),
                    str(rating.movie_id),
                    str(rating.creator_id) if rating.creator_id else None,
                    rating.body,
                    rating.rating,
                    int(rating.reviewed),
                    str(rating.reviewer_id) if rating.reviewer_id else None,
                    iso(rating.reviewed_at),
                    int(rating.needs_work),
                    rating.notes,
                    rating.weekly_output,
                    iso(rating.published_at),
                    rating.created_at.isoformat(),
                    rating.updated_at.isoformat(),
                ),
            )
        logger.info("rating_created", rating_id=str(rating.id), movie_id=str(rating.movie_id))
        return rating

    async def update(self, rating: Rating) -> Rating:
        rating.updated_at = datetime.now(UTC)
        with unique_violations():
            await self._db.execute(
                """
                UPDATE ratings
                SET body = ?, rating = ?, reviewed = ?, reviewer_id = ?, reviewed_at = ?,
                    needs_work = ?, notes = ?, weekly_output = ?, published_at = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    rating.body,
                    rating.rating,
                    int(rating.reviewed),
                    str(rating.reviewer_id) if rating.reviewer_id else None,
                    iso(rating.reviewed_at),
                    int(rating.needs_work),
                    rating.notes,
                    rating.weekly_output,
                    iso(rating.published_at),
                    rating.updated_at.isoformat(),
                    str(rating.id),
                ),
            )
        logger.info("rating_updated", rating_id=str(rating.id))
        return rating

    async def set_published_at(self, rating_id: UUID, published_at: datetime | None) -> None:
        await self._db.execute(
            "UPDATE ratings SET published_at = ? WHERE id = ?",
            (iso(published_at), str(rating_id)),
        )

    async def delete(self, rating_id: UUID) -> bool:
        cursor = await self._db.execute("DELETE FROM ratings WHERE id = ?", (str(rating_id),))
        return cursor.rowcount > 0

    async def get_by_id(self, rating_id: UUID) -> Rating | None:
        row = await self._db.fetch_one("SELECT * FROM ratings WHERE id = ?", (str(rating_id),))
        return Rating.from_row(dict(row)) if row else None

    async def for_movie(self, movie_id: UUID) -> list[Rating]:
        rows = await self._db.fetch_all(
            "SELECT * FROM ratings WHERE movie_id = ? ORDER BY created_at",
            (str(movie_id),),
        )
        return [Rating.from_row(dict(row)) for row in rows]

    async def list_all(self) -> list[Rating]:
        """Back-office order: needs work, unreviewed, reviewed; newest movies first."""
        rows = await self._db.fetch_all(
            """
            SELECT r.* FROM ratings r
            JOIN movies m ON m.id = r.movie_id
            ORDER BY CASE WHEN r.needs_work = 1 THEN 0
                          WHEN r.reviewed = 0 THEN 1
                          ELSE 2 END,
                     m.created_at DESC, r.created_at, r.creator_id
            """
        )
        return [Rating.from_row(dict(row)) for row in rows]

    async def published_before(
        self,
        cutoff: datetime,
        limit: int,
        creator_id: UUID | None = None,
    ) -> list[Rating]:
        """Published ratings up to ``cutoff``, newest first."""
        conditions = ["published_at IS NOT NULL", "published_at < ?"]
        params: list[object] = [cutoff.isoformat()]
        if creator_id is not None:
            conditions.append("creator_id = ?")
            params.append(str(creator_id))
        params.append(limit)

        rows = await self._db.fetch_all(
            f"SELECT * FROM ratings WHERE {' AND '.join(conditions)} "  # nosec B608
            "ORDER BY published_at DESC LIMIT ?",
            tuple(params),
        )
        return [Rating.from_row(dict(row)) for row in rows]

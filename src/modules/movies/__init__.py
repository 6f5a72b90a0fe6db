"""Movies, genres and ratings."""

from src.modules.movies.models import (
    Genre,
    Movie,
    MovieView,
    Rating,
    RatingStatus,
    RatingView,
    format_rating,
    rating_enum,
)
from src.modules.movies.repository import GenreRepository, MovieRepository, RatingRepository
from src.modules.movies.schemas import GenreInput, MovieInput, RatingInput, ReviewInput
from src.modules.movies.service import GenreService, MovieIndex, MovieService, RatingService

__all__ = [
    "Genre",
    "GenreInput",
    "GenreRepository",
    "GenreService",
    "Movie",
    "MovieIndex",
    "MovieInput",
    "MovieRepository",
    "MovieService",
    "MovieView",
    "Rating",
    "RatingInput",
    "RatingRepository",
    "RatingService",
    "RatingStatus",
    "RatingView",
    "ReviewInput",
    "format_rating",
    "rating_enum",
]

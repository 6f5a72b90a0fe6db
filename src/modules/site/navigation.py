"""Navigation shown on every public page."""

from dataclasses import dataclass

from src.modules.articles import ArticleRepository
from src.modules.auth.models import User
from src.modules.auth.repository import UserRepository
from src.modules.auth.roles import Role
from src.modules.columns import Column, ColumnRepository
from src.modules.common.clock import site_today
from src.modules.movies import Genre, GenreRepository


@dataclass
class Navigation:
    columns: list[Column]
    writers: list[User]
    genres: list[Genre]


class NavigationService:
    """Builds the site navigation: live columns, writers and top genres."""

    def __init__(
        self,
        columns: ColumnRepository,
        articles: ArticleRepository,
        users: UserRepository,
        genres: GenreRepository,
        *,
        top_genres: int = 8,
    ) -> None:
        self._columns = columns
        self._articles = articles
        self._users = users
        self._genres = genres
        self._top_genres = top_genres

    async def writers(self) -> list[User]:
        """Writers ordered by number of public articles, most first."""
        counts = await self._articles.public_counts_by_author(site_today())
        writers = await self._users.with_role(Role.WRITER)
        return sorted(writers, key=lambda user: (-counts.get(user.id, 0), user.name))

    async def build(self) -> Navigation:
        return Navigation(
            columns=await self._columns.live(site_today()),
            writers=await self.writers(),
            genres=await self._genres.top(self._top_genres),
        )

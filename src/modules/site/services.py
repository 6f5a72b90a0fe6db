"""Wiring of repositories and services for one database."""

from dataclasses import dataclass

import structlog

from src.config import Settings
from src.infrastructure.database import Database
from src.infrastructure.mail import MailTransport, OutboxTransport
from src.modules.articles import ArticleMailer, ArticleRepository, ArticleService
from src.modules.audit import AuditRepository
from src.modules.auth.repository import UserRepository
from src.modules.columns import ColumnRepository, ColumnService
from src.modules.comments import CommentRepository, CommentService
from src.modules.daily import (
    DailyDoseService,
    DailyItemRepository,
    DailyVideo,
    DailyVideoService,
    Position,
    PositionService,
    Thing,
    ThingCategoryRepository,
    ThingCategoryService,
    ThingService,
    Tip,
    TipService,
)
from src.modules.model_config import ModelConfigService
from src.modules.movies import (
    GenreRepository,
    GenreService,
    MovieRepository,
    MovieService,
    RatingRepository,
    RatingService,
)
from src.modules.site.navigation import NavigationService

logger = structlog.get_logger()


@dataclass
class Services:
    """Every content service of the site."""

    database: Database
    users: UserRepository
    audit: AuditRepository
    configs: ModelConfigService
    columns: ColumnService
    articles: ArticleService
    genres: GenreService
    movies: MovieService
    ratings: RatingService
    tips: TipService
    things: ThingService
    positions: PositionService
    videos: DailyVideoService
    categories: ThingCategoryService
    daily_dose: DailyDoseService
    comments: CommentService
    navigation: NavigationService
    mail: MailTransport


def build_services(
    database: Database,
    settings: Settings,
    mail: MailTransport | None = None,
) -> Services:
    """Create the services for ``database``.

    Args:
        database: Connected database.
        settings: Application settings.
        mail: Mail transport; defaults to an in-memory outbox.
    """
    transport = mail if mail is not None else OutboxTransport()
    users = UserRepository(database)
    audit = AuditRepository(database)
    configs = ModelConfigService(database, users)

    column_repo = ColumnRepository(database)
    article_repo = ArticleRepository(database)
    genre_repo = GenreRepository(database)
    movie_repo = MovieRepository(database)
    category_repo = ThingCategoryRepository(database)

    mailer = (
        ArticleMailer(
            transport,
            users,
            sender=settings.mail_from,
            site_url=settings.site_url,
        )
        if settings.mail_enabled
        else None
    )
    articles = ArticleService(article_repo, column_repo, users, configs, audit, mailer)
    ratings = RatingService(RatingRepository(database), movie_repo, articles, users, audit)

    tips = TipService(DailyItemRepository(database, Tip), configs, audit)
    things = ThingService(DailyItemRepository(database, Thing), category_repo, configs, audit)
    positions = PositionService(DailyItemRepository(database, Position), configs, audit)
    videos = DailyVideoService(DailyItemRepository(database, DailyVideo), configs, audit)

    services = Services(
        database=database,
        users=users,
        audit=audit,
        configs=configs,
        columns=ColumnService(column_repo, users, audit),
        articles=articles,
        genres=GenreService(genre_repo, audit),
        movies=MovieService(movie_repo, genre_repo, ratings, articles, audit),
        ratings=ratings,
        tips=tips,
        things=things,
        positions=positions,
        videos=videos,
        categories=ThingCategoryService(category_repo, audit),
        daily_dose=DailyDoseService(videos, things, tips, positions, category_repo),
        comments=CommentService(CommentRepository(database), articles, users, audit),
        navigation=NavigationService(
            column_repo,
            article_repo,
            users,
            genre_repo,
            top_genres=settings.top_genres_count,
        ),
        mail=transport,
    )
    logger.debug("services_built", mail_enabled=settings.mail_enabled)
    return services

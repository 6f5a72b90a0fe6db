"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Dudefest"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Site calendar; "today" for publishing and daily items is computed here
    site_timezone: str = "America/New_York"

    # Rate limiting (comment posting and login)
    rate_limit_requests: int = 10
    rate_limit_window: str = "minute"

    # Database
    database_path: str = "./data/dudefest.db"

    # Authentication
    auth_enabled: bool = True
    jwt_secret_key: SecretStr | None = None
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24 * 14

    # Mail
    mail_enabled: bool = True
    mail_from: str = '"John Dudefest" <dudes@dudefest.com>'
    site_url: str = "http://localhost:8000"  # Base for links in mail

    # Pages
    comments_page_size: int = 10
    home_article_count: int = 6
    recent_ratings_count: int = 5
    top_genres_count: int = 8

    # Observability
    otel_enabled: bool = False
    otel_endpoint: str | None = None  # e.g. http://localhost:4318
    otel_console_export: bool = False
    otel_sample_rate: float = 1.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""SQLite persistence: one shared aiosqlite connection per process."""

from src.infrastructure.database.connection import Database, get_database, init_database

__all__ = ["Database", "get_database", "init_database"]

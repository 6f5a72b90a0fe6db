"""SQLite database connection management."""

import asyncio
import sqlite3
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path

import aiosqlite
import structlog

logger = structlog.get_logger()

# Database whose transaction the current task is running inside, if any
_active_transaction: ContextVar["Database | None"] = ContextVar(
    "active_transaction", default=None
)

# SQL for creating tables
_CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    username TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL,
    hashed_password TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'reader',
    bio TEXT,
    byline TEXT,
    is_active INTEGER DEFAULT 1,
    articles_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_users_email ON users(email);
CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);

CREATE TABLE IF NOT EXISTS model_configs (
    model TEXT PRIMARY KEY,
    owner_id TEXT,
    backup_editor_id TEXT,
    start_date TEXT,
    FOREIGN KEY (owner_id) REFERENCES users(id) ON DELETE SET NULL,
    FOREIGN KEY (backup_editor_id) REFERENCES users(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS columns (
    id TEXT PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    short_name TEXT UNIQUE NOT NULL COLLATE NOCASE,
    columnist_id TEXT,
    description TEXT UNIQUE NOT NULL,
    publish_days TEXT UNIQUE NOT NULL,
    start_date TEXT NOT NULL,
    image TEXT,
    articles_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (columnist_id) REFERENCES users(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS genres (
    id TEXT PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    movies_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS movies (
    id TEXT PRIMARY KEY,
    title TEXT UNIQUE NOT NULL,
    release_date TEXT NOT NULL,
    creator_id TEXT,
    ratings_count INTEGER NOT NULL DEFAULT 0,
    total_rating REAL NOT NULL DEFAULT 0,
    reviewed_ratings INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (creator_id) REFERENCES users(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS movie_genres (
    movie_id TEXT NOT NULL,
    genre_id TEXT NOT NULL,
    PRIMARY KEY (movie_id, genre_id),
    FOREIGN KEY (movie_id) REFERENCES movies(id) ON DELETE CASCADE,
    FOREIGN KEY (genre_id) REFERENCES genres(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS articles (
    id TEXT PRIMARY KEY,
    column_id TEXT NOT NULL,
    title TEXT UNIQUE NOT NULL,
    body TEXT UNIQUE NOT NULL,
    byline TEXT,
    image TEXT,
    author_id TEXT,
    editor_id TEXT,
    reviewer_id TEXT,
    movie_id TEXT UNIQUE,
    status TEXT NOT NULL,
    draft INTEGER NOT NULL DEFAULT 0,
    finalized INTEGER NOT NULL DEFAULT 0,
    reviewed INTEGER NOT NULL DEFAULT 0,
    published INTEGER NOT NULL DEFAULT 0,
    rejected INTEGER NOT NULL DEFAULT 0,
    date TEXT,
    edited_at TEXT,
    responded_at TEXT,
    finalized_at TEXT,
    reviewed_at TEXT,
    published_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (column_id) REFERENCES columns(id),
    FOREIGN KEY (author_id) REFERENCES users(id) ON DELETE SET NULL,
    FOREIGN KEY (editor_id) REFERENCES users(id) ON DELETE SET NULL,
    FOREIGN KEY (reviewer_id) REFERENCES users(id) ON DELETE SET NULL,
    FOREIGN KEY (movie_id) REFERENCES movies(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_articles_column ON articles(column_id);
CREATE INDEX IF NOT EXISTS idx_articles_date ON articles(date);
CREATE INDEX IF NOT EXISTS idx_articles_status ON articles(status);

CREATE TABLE IF NOT EXISTS ratings (
    id TEXT PRIMARY KEY,
    movie_id TEXT NOT NULL,
    creator_id TEXT NOT NULL,
    body TEXT UNIQUE NOT NULL,
    rating REAL NOT NULL,
    reviewed INTEGER NOT NULL DEFAULT 0,
    reviewer_id TEXT,
    reviewed_at TEXT,
    needs_work INTEGER NOT NULL DEFAULT 0,
    notes TEXT,
    weekly_output INTEGER,
    published_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (movie_id, creator_id),
    FOREIGN KEY (movie_id) REFERENCES movies(id) ON DELETE CASCADE,
    FOREIGN KEY (creator_id) REFERENCES users(id),
    FOREIGN KEY (reviewer_id) REFERENCES users(id) ON DELETE SET NULL
);

CREATE INDEX IF NOT EXISTS idx_ratings_published ON ratings(published_at);

CREATE TABLE IF NOT EXISTS thing_categories (
    id TEXT PRIMARY KEY,
    category TEXT UNIQUE NOT NULL
);

CREATE TABLE IF NOT EXISTS tips (
    id TEXT PRIMARY KEY,
    tip TEXT UNIQUE NOT NULL,
    creator_id TEXT,
    reviewer_id TEXT,
    reviewed INTEGER NOT NULL DEFAULT 0,
    reviewed_at TEXT,
    published INTEGER NOT NULL DEFAULT 0,
    date TEXT UNIQUE,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS things (
    id TEXT PRIMARY KEY,
    thing TEXT UNIQUE NOT NULL,
    description TEXT UNIQUE NOT NULL,
    category_id TEXT NOT NULL,
    image TEXT,
    creator_id TEXT,
    reviewer_id TEXT,
    reviewed INTEGER NOT NULL DEFAULT 0,
    reviewed_at TEXT,
    published INTEGER NOT NULL DEFAULT 0,
    date TEXT UNIQUE,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (category_id) REFERENCES thing_categories(id)
);

CREATE TABLE IF NOT EXISTS positions (
    id TEXT PRIMARY KEY,
    position TEXT UNIQUE NOT NULL,
    description TEXT UNIQUE NOT NULL,
    image TEXT UNIQUE NOT NULL,
    creator_id TEXT,
    reviewer_id TEXT,
    reviewed INTEGER NOT NULL DEFAULT 0,
    reviewed_at TEXT,
    published INTEGER NOT NULL DEFAULT 0,
    date TEXT UNIQUE,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS daily_videos (
    id TEXT PRIMARY KEY,
    title TEXT UNIQUE NOT NULL,
    source TEXT UNIQUE NOT NULL,
    creator_id TEXT,
    reviewer_id TEXT,
    reviewed INTEGER NOT NULL DEFAULT 0,
    reviewed_at TEXT,
    published INTEGER NOT NULL DEFAULT 0,
    date TEXT UNIQUE,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS comments (
    id TEXT PRIMARY KEY,
    article_id TEXT NOT NULL,
    parent_id TEXT,
    user_id TEXT NOT NULL,
    body TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY (article_id) REFERENCES articles(id) ON DELETE CASCADE,
    FOREIGN KEY (parent_id) REFERENCES comments(id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_comments_article ON comments(article_id, created_at);

CREATE TABLE IF NOT EXISTS comment_votes (
    comment_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    value INTEGER NOT NULL,
    PRIMARY KEY (comment_id, user_id),
    FOREIGN KEY (comment_id) REFERENCES comments(id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS audit_log (
    id TEXT PRIMARY KEY,
    model TEXT NOT NULL,
    object_id TEXT NOT NULL,
    action TEXT NOT NULL,
    user_id TEXT,
    changes TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_audit_object ON audit_log(model, object_id);
"""


class Database:
    """Async SQLite database wrapper.

    Provides connection management and query execution for SQLite.
    Uses aiosqlite for async operations.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the database.

        Args:
            db_path: Path to the SQLite database file.
        """
        self._db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Connect to the database and create tables if needed."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        self._connection.row_factory = aiosqlite.Row

        await self._connection.execute("PRAGMA foreign_keys = ON")

        await self._connection.executescript(_CREATE_TABLES)
        await self._connection.commit()

        logger.info("database_connected", path=str(self._db_path))

    async def disconnect(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            logger.info("database_disconnected", path=str(self._db_path))

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection]:
        """Context manager for database transactions.

        Statements issued through ``execute`` by the same task inside the
        block are not committed individually; the whole block commits or
        rolls back. Other tasks wait until the block finishes.

        Yields:
            The database connection for executing queries.

        Raises:
            RuntimeError: If database is not connected.
        """
        if not self._connection:
            raise RuntimeError("Database not connected")

        if _active_transaction.get() is self:
            # Nested blocks join the outer transaction
            yield self._connection
            return

        async with self._lock:
            token = _active_transaction.set(self)
            try:
                yield self._connection
                await self._connection.commit()
            except Exception:
                await self._connection.rollback()
                raise
            finally:
                _active_transaction.reset(token)

    async def execute(
        self,
        sql: str,
        parameters: tuple[object, ...] | dict[str, object] | None = None,
    ) -> aiosqlite.Cursor:
        """Execute a SQL statement.

        Args:
            sql: SQL statement to execute.
            parameters: Optional parameters for the statement.

        Returns:
            Cursor with execution results.

        Raises:
            RuntimeError: If database is not connected.
        """
        if not self._connection:
            raise RuntimeError("Database not connected")

        if _active_transaction.get() is self:
            return await self._run(sql, parameters)

        async with self._lock:
            cursor = await self._run(sql, parameters)
            await self._connection.commit()
            return cursor

    async def _run(
        self,
        sql: str,
        parameters: tuple[object, ...] | dict[str, object] | None,
    ) -> aiosqlite.Cursor:
        if not self._connection:
            raise RuntimeError("Database not connected")
        if parameters:
            return await self._connection.execute(sql, parameters)
        return await self._connection.execute(sql)

    async def fetch_one(
        self,
        sql: str,
        parameters: tuple[object, ...] | dict[str, object] | None = None,
    ) -> sqlite3.Row | None:
        """Fetch a single row.

        Args:
            sql: SQL query to execute.
            parameters: Optional parameters for the query.

        Returns:
            The first row or None.
        """
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetch_all(
        self,
        sql: str,
        parameters: tuple[object, ...] | dict[str, object] | None = None,
    ) -> list[sqlite3.Row]:
        """Fetch all rows.

        Args:
            sql: SQL query to execute.
            parameters: Optional parameters for the query.

        Returns:
            List of rows.
        """
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def fetch_value(
        self,
        sql: str,
        parameters: tuple[object, ...] | dict[str, object] | None = None,
    ) -> object:
        """Fetch the first column of the first row, or None."""
        row = await self.fetch_one(sql, parameters)
        return row[0] if row is not None else None


# Global database instance
_database: Database | None = None


def get_database() -> Database:
    """Get the global database instance.

    Returns:
        The database instance.

    Raises:
        RuntimeError: If database not initialized.
    """
    if _database is None:
        raise RuntimeError("Database not initialized. Call init_database first.")
    return _database


async def init_database(db_path: str | Path) -> Database:
    """Initialize and connect to the database.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        Connected database instance.
    """
    global _database
    _database = Database(db_path)
    await _database.connect()
    return _database

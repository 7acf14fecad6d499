"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the Library API.

We're using SYNCHRONOUS SQLAlchemy because:
- Simpler to understand and debug
- PostgreSQL with psycopg2 is battle-tested
- Async provides minimal benefit for simple CRUD APIs

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure
4. Close session when request ends

This is implemented using FastAPI's dependency injection.
"""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from library_api.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# Key parameters:
# - pool_size: Number of connections to keep open permanently
# - max_overflow: How many extra connections can be created during high load
# - pool_pre_ping: Test connection health before using (prevents stale connections)
# - echo: Log all SQL statements (useful for debugging, disable in production)

def configure_sqlite(dbapi_connection, connection_record) -> None:
    """
    Make SQLite behave like PostgreSQL where the API depends on it.

    - foreign_keys: enforce FKs and ON DELETE CASCADE
    - case_sensitive_like: LIKE (used by `search`) matches case
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA case_sensitive_like=ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    SQLite does not accept the pool sizing arguments, so they are only
    passed to server databases such as PostgreSQL.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        sqlite_engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )
        event.listen(sqlite_engine, "connect", configure_sqlite)
        return sqlite_engine

    return create_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )


engine = build_engine(settings.database_url)


# =============================================================================
# Session Factory
# =============================================================================
# - autocommit=False: We control when to commit
# - autoflush=False: Don't auto-flush before queries (more predictable behavior)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover models for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before yield creates the session, the route handler uses it,
    and the finally block closes it even if the handler raised.

    Usage in Routes:
        @router.get("/authors")
        def list_authors(db: DbSession):
            ...

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    WARNING: In production, use Alembic migrations instead!
    """
    Base.metadata.create_all(bind=engine)


def check_database_connection(bind: Engine | None = None) -> bool:
    """
    Run a trivial query to verify the database is reachable.

    Used by the /health endpoint and scripts/db_monitor.py.

    Returns:
        True if the database answered, False otherwise
    """
    target = bind if bind is not None else engine
    try:
        with target.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False

"""
pytest Fixtures for Library API Tests

This file contains shared fixtures used across all test files.

For database tests, we use:
- session scope for engine (expensive to create)
- function scope for sessions (isolation between tests)

For the cache, every test gets a flushed fakeredis client, so cached
pages and version counters never leak from one test into the next.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting, sets a test secret key and keeps the
# application's own engine away from PostgreSQL.
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from collections.abc import Generator
from datetime import date

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from library_api.database import Base, configure_sqlite, get_db
from library_api.main import app
from library_api.models import Author, Book, User
from library_api.services import cache
from library_api.services.security import create_access_token


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
@pytest.fixture(scope="session")
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the connection alive for the entire session.
    Without it, SQLite in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", configure_sqlite)

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.

    The session is wrapped in a transaction that's rolled back,
    ensuring test isolation without needing to recreate tables.
    """
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# =============================================================================
# CACHE FIXTURES
# =============================================================================
@pytest.fixture(autouse=True)
def fake_redis() -> Generator[fakeredis.FakeRedis, None, None]:
    """
    Replace the Redis client with an in-memory fake.

    get_redis_client() returns the module-level client when one is set,
    so the whole cache layer runs against fakeredis.
    """
    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    cache._redis_client = client

    yield client

    cache._redis_client = None


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    We override the get_db dependency to use our test session.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
@pytest.fixture
def sample_author(db_session: Session) -> Author:
    """Create a sample author for testing."""
    author = Author(
        name="Leila Chudori",
        bio="Indonesian novelist and journalist.",
        birth_date=date(1962, 12, 12),
    )
    db_session.add(author)
    db_session.commit()
    db_session.refresh(author)
    return author


@pytest.fixture
def second_author(db_session: Session) -> Author:
    author = Author(
        name="Pramoedya Ananta Toer",
        bio="Author of the Buru Quartet.",
        birth_date=date(1925, 2, 6),
    )
    db_session.add(author)
    db_session.commit()
    db_session.refresh(author)
    return author


@pytest.fixture
def sample_book(db_session: Session, sample_author: Author) -> Book:
    """
    Create a sample book written by sample_author.

    pytest resolves the sample_author dependency automatically.
    """
    book = Book(
        title="Laut Bercerita",
        description="A novel about the activists who disappeared in 1998.",
        publish_date=date(2017, 10, 1),
        author_id=sample_author.id,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def many_authors(db_session: Session) -> list[Author]:
    """Create 30 authors for pagination testing."""
    authors = [
        Author(
            name=f"Author {i:02d}",
            bio=f"Biography number {i}",
            birth_date=date(1950 + i, 1, 1),
        )
        for i in range(1, 31)
    ]
    db_session.add_all(authors)
    db_session.commit()
    for author in authors:
        db_session.refresh(author)
    return authors


@pytest.fixture
def dated_books(db_session: Session, sample_author: Author) -> list[Book]:
    """Three books published in 2000, 2010 and 2020."""
    books = [
        Book(
            title=f"Book of {year}",
            description=f"Published in {year}",
            publish_date=date(year, 6, 15),
            author_id=sample_author.id,
        )
        for year in (2000, 2010, 2020)
    ]
    db_session.add_all(books)
    db_session.commit()
    for book in books:
        db_session.refresh(book)
    return books


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user for testing."""
    user = User(
        email="reader@example.com",
        username="reader",
        full_name="Test Reader",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(sample_user: User) -> dict[str, str]:
    """Authorization header carrying a valid access token for sample_user."""
    token = create_access_token({"sub": str(sample_user.id)})
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# FAILURE FIXTURES
# =============================================================================
@pytest.fixture
def break_commits(db_session: Session, monkeypatch):
    """
    Return a function that makes every later commit fail.

    Call it after the sample data is in place. Rollbacks are recorded
    instead of executed so the per-test transaction stays usable.
    """
    rollbacks: list[bool] = []

    def failing_commit() -> None:
        raise SQLAlchemyError("database connection lost")

    def arm() -> list[bool]:
        monkeypatch.setattr(db_session, "commit", failing_commit)
        monkeypatch.setattr(db_session, "rollback", lambda: rollbacks.append(True))
        return rollbacks

    return arm

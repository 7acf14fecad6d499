#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample data for development.

USAGE:
    # From the project root with the virtualenv active
    python scripts/seed_data.py

    # Keep existing rows and only add new ones
    python scripts/seed_data.py --keep

This script:
1. Creates the tables if they don't exist
2. Clears existing authors, books and users (unless --keep)
3. Creates 10 authors with 5 books each
4. Creates a demo user and prints an access token for GET /api/user
"""

import argparse
import random
import sys
from datetime import date, timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from library_api.database import SessionLocal, create_tables
from library_api.models import Author, Book, User
from library_api.services.cache import bump_cache_version
from library_api.services.security import create_access_token

AUTHOR_COUNT = 10
BOOKS_PER_AUTHOR = 5

FIRST_NAMES = [
    "Leila", "Pramoedya", "Ayu", "Eka", "Dee", "Andrea",
    "Seno", "Laksmi", "Okky", "Intan", "Ahmad", "Nh.",
]
LAST_NAMES = [
    "Chudori", "Toer", "Utami", "Kurniawan", "Lestari", "Hirata",
    "Ajidarma", "Pamuntjak", "Madasari", "Paramaditha", "Tohari", "Dini",
]
TITLE_WORDS = [
    "Sea", "Home", "River", "Night", "Garden", "Letters", "Rain",
    "Island", "Memory", "City", "Silence", "Harbour", "Lantern", "Season",
]
BIO_TEMPLATES = [
    "{name} is a novelist whose work explores memory and exile.",
    "{name} writes fiction and essays about family, history and the sea.",
    "{name} began as a journalist before publishing a first novel.",
    "{name} is known for short stories set in coastal towns.",
]


def random_date(rng: random.Random, start: date, end: date) -> date:
    """Pick a day between start and end, inclusive."""
    return start + timedelta(days=rng.randint(0, (end - start).days))


def clear_data(db: Session) -> None:
    """Remove all rows. Books go first because they reference authors."""
    print("Clearing existing data...")
    db.execute(delete(Book))
    db.execute(delete(Author))
    db.execute(delete(User))
    db.commit()
    print("Data cleared.")


def create_authors(db: Session, rng: random.Random) -> list[Author]:
    """Create AUTHOR_COUNT authors with generated names and bios."""
    print("Creating authors...")
    authors = []

    for _ in range(AUTHOR_COUNT):
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        author = Author(
            name=name,
            bio=rng.choice(BIO_TEMPLATES).format(name=name),
            birth_date=random_date(rng, date(1925, 1, 1), date(1995, 12, 31)),
        )
        db.add(author)
        authors.append(author)

    db.commit()
    print(f"Created {len(authors)} authors.")
    return authors


def create_books(db: Session, rng: random.Random, authors: list[Author]) -> list[Book]:
    """Create BOOKS_PER_AUTHOR books for every author."""
    print("Creating books...")
    books = []

    for author in authors:
        for _ in range(BOOKS_PER_AUTHOR):
            title = " ".join(rng.sample(TITLE_WORDS, k=rng.randint(1, 3)))
            book = Book(
                title=f"The {title}",
                description=f"A novel by {author.name} about {title.lower()}.",
                publish_date=random_date(rng, author.birth_date + timedelta(days=365 * 20), date.today()),
                author_id=author.id,
            )
            db.add(book)
            books.append(book)

    db.commit()
    print(f"Created {len(books)} books.")
    return books


def create_demo_user(db: Session) -> User:
    """Create (or reuse) the user behind the printed access token."""
    existing = db.execute(select(User).where(User.username == "demo")).scalar_one_or_none()
    if existing is not None:
        return existing

    user = User(
        email="demo@example.com",
        username="demo",
        full_name="Demo Reader",
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def seed_database(clear_existing: bool = True, seed: int = 42) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
        seed: Random seed, so repeated runs produce the same data.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    rng = random.Random(seed)
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        authors = create_authors(db, rng)
        books = create_books(db, rng, authors)
        user = create_demo_user(db)

        # Cached pages from before the seed must not be served
        bump_cache_version("authors")
        bump_cache_version("books")
        for author in authors:
            bump_cache_version("author", author.id)
        for book in books:
            bump_cache_version("book", book.id)

        token = create_access_token({"sub": str(user.id)})

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Authors: {len(authors)}")
        print(f"  - Books: {len(books)}")
        print(f"  - Demo user: {user.username} (id {user.id})")
        print("\nAccess token for GET /api/user:")
        print(f"  {token}")
        print("\nYou can now access the API at http://localhost:8001/api")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Library API database.")
    parser.add_argument("--keep", action="store_true", help="Do not clear existing data first")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    seed_database(clear_existing=not args.keep, seed=args.seed)

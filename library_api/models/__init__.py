"""
SQLAlchemy Models Package

This package contains all database models for the Library API.

Model Relationships:
- Author -> Book: One-to-Many (an author writes many books,
                  each book belongs to exactly one author)

Import all models here to:
1. Make them available as: from library_api.models import Author, Book
2. Ensure Alembic discovers them for migrations
"""

from library_api.models.author import Author
from library_api.models.book import Book
from library_api.models.user import User

__all__ = [
    "Author",
    "Book",
    "User",
]

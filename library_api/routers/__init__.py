"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- authors.py: /api/authors/* endpoints
- books.py: /api/books/* endpoints
- users.py: /api/user endpoint

Each router is imported and registered in main.py.
"""

from library_api.routers.authors import router as authors_router
from library_api.routers.books import router as books_router
from library_api.routers.users import router as users_router

__all__ = [
    "authors_router",
    "books_router",
    "users_router",
]

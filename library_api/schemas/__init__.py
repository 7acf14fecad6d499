"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

WHY Separate Schemas from SQLAlchemy Models?
============================================
1. Security: Control exactly what data is exposed in API responses
2. Validation: Different rules for create vs update vs response
3. Decoupling: Database schema can evolve independently of API
4. Documentation: Schemas generate OpenAPI documentation

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
"""

from library_api.schemas.author import (
    AuthorCreate,
    AuthorResponse,
    AuthorSummary,
    AuthorUpdate,
)
from library_api.schemas.book import (
    AuthorBookItem,
    BookCreate,
    BookDetailResponse,
    BookListItem,
    BookResponse,
    BookUpdate,
)
from library_api.schemas.common import (
    ErrorResponse,
    ISODate,
    ItemResponse,
    PageLinks,
    PaginatedResponse,
    ValidationErrorResponse,
)
from library_api.schemas.user import UserResponse

__all__ = [
    # Author schemas
    "AuthorCreate",
    "AuthorUpdate",
    "AuthorResponse",
    "AuthorSummary",
    # Book schemas
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookListItem",
    "BookDetailResponse",
    "AuthorBookItem",
    # Envelopes and shared types
    "ISODate",
    "ItemResponse",
    "PageLinks",
    "PaginatedResponse",
    "ErrorResponse",
    "ValidationErrorResponse",
    # User schemas
    "UserResponse",
]

"""
Authors Router

CRUD endpoints for authors, plus the author -> books sub-resource.
The CRUD logic lives in the shared ResourceHandler; this module only
configures it for the Author model and wires the routes.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, load_only, selectinload

from library_api.config import get_settings
from library_api.dependencies import AuthorFilters, DbSession, Fields, Page
from library_api.models import Author, Book
from library_api.schemas import (
    AuthorBookItem,
    AuthorCreate,
    AuthorResponse,
    AuthorUpdate,
    ErrorResponse,
    ItemResponse,
    PaginatedResponse,
    ValidationErrorResponse,
)
from library_api.services.cache import cache_remember, get_cache_version, make_cache_key
from library_api.services.resources import ResourceHandler, build_page_envelope

logger = logging.getLogger(__name__)

# Fixed page size of GET /authors/{id}/books
AUTHOR_BOOKS_PER_PAGE = 20

router = APIRouter(
    prefix="/authors",
    tags=["Authors"],
    responses={
        404: {"model": ErrorResponse, "description": "Author not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)

author_handler = ResourceHandler(
    model=Author,
    name="author",
    plural="authors",
    search_columns=(Author.name, Author.bio),
    list_schema=AuthorResponse,
    detail_schema=AuthorResponse,
    record_schema=AuthorResponse,
)


@router.get(
    "",
    response_model=PaginatedResponse,
    summary="List authors",
    description="Paginated, sortable, searchable list of authors with optional field projection.",
)
def list_authors(
    request: Request,
    db: DbSession,
    params: AuthorFilters,
    page: Page,
) -> dict:
    """
    List authors.

    Examples:
        GET /api/authors?per_page=10&page=2
        GET /api/authors?search=Chudori&sort_field=name&sort_order=desc
        GET /api/authors?fields=id,name
    """
    return author_handler.index(db, params, page, request.url)


@router.post(
    "",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an author",
)
def create_author(
    author_data: AuthorCreate,
    db: DbSession,
) -> dict:
    """Create a new author."""
    return author_handler.create(db, author_data)


@router.get(
    "/{author_id}",
    response_model=ItemResponse,
    summary="Get an author by ID",
)
def get_author(
    author_id: int,
    db: DbSession,
    fields: Fields,
) -> dict:
    """Get a single author, optionally projected to `fields`."""
    return author_handler.show(db, author_id, fields.fields)


@router.api_route(
    "/{author_id}",
    methods=["PUT", "PATCH"],
    response_model=ItemResponse,
    summary="Update an author",
    description="Update only the submitted fields of an existing author.",
)
def update_author(
    author_id: int,
    author_data: AuthorUpdate,
    db: DbSession,
) -> dict:
    """Update an existing author."""
    return author_handler.update(db, author_id, author_data)


@router.delete(
    "/{author_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an author",
    description="Delete an author together with all of their books.",
)
def delete_author(
    author_id: int,
    db: DbSession,
) -> None:
    """Delete an author. Returns 204 with no body."""
    author_handler.delete(db, author_id)


# =============================================================================
# Author -> Books
# =============================================================================
def fetch_author_books(db: Session, author_id: int, page: int) -> dict[str, Any]:
    """Query one page of an author's books with the author's id and name."""
    total = db.execute(
        select(func.count()).select_from(Book).where(Book.author_id == author_id)
    ).scalar() or 0

    stmt = (
        select(Book)
        .options(
            load_only(Book.id, Book.title, Book.publish_date, Book.author_id),
            selectinload(Book.author).load_only(Author.id, Author.name),
        )
        .where(Book.author_id == author_id)
        .order_by(Book.id)
        .offset((page - 1) * AUTHOR_BOOKS_PER_PAGE)
        .limit(AUTHOR_BOOKS_PER_PAGE)
    )
    books = db.execute(stmt).scalars().all()

    return {
        "data": [AuthorBookItem.model_validate(book).model_dump(mode="json") for book in books],
        "total": total,
    }


@router.get(
    "/{author_id}/books",
    response_model=PaginatedResponse,
    summary="Get books by author",
    description="Books written by one author, 20 per page.",
)
def get_author_books(
    request: Request,
    author_id: int,
    db: DbSession,
    page: Page,
) -> dict:
    """
    Get a page of books by a specific author.

    Two different 404 responses are returned:
    - "Author not found." when the author does not exist
    - "No books found for this author." when the page has no books
    """
    author_handler.get_or_404(db, author_id)

    # Book writes move the books counter, author writes the authors counter
    cache_key = make_cache_key(
        "author",
        author_id,
        "books",
        f"v{get_cache_version('books')}",
        authors_v=get_cache_version("authors"),
        page=page,
    )

    try:
        cached = cache_remember(
            cache_key,
            get_settings().cache_ttl_item,
            lambda: fetch_author_books(db, author_id, page),
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to retrieve books of author {author_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve books.",
        )

    if not cached["data"]:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No books found for this author.",
        )

    return build_page_envelope(
        cached["data"], cached["total"], page, AUTHOR_BOOKS_PER_PAGE, request.url
    )

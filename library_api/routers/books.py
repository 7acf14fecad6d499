"""
Books Router

CRUD endpoints for books.

Books differ from authors in three ways, all configured on the handler:
- rows embed their author, so cache keys carry the authors counter
- the list accepts an inclusive publish date range
- author_id must point at an existing author
"""

from typing import Any

from fastapi import APIRouter, Request, status
from sqlalchemy import ColumnElement
from sqlalchemy.orm import Session, selectinload

from library_api.dependencies import BookFilters, BookListParams, DbSession, Fields, Page
from library_api.models import Author, Book
from library_api.schemas import (
    BookCreate,
    BookDetailResponse,
    BookListItem,
    BookResponse,
    BookUpdate,
    ErrorResponse,
    ItemResponse,
    PaginatedResponse,
    ValidationErrorResponse,
)
from library_api.services.resources import ResourceHandler

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"model": ErrorResponse, "description": "Book not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)


# =============================================================================
# Handler Configuration
# =============================================================================
def publish_date_filters(params: BookListParams) -> list[ColumnElement[bool]]:
    """
    Restrict books to an inclusive publish date range.

    Both bounds give a BETWEEN, a single bound an open-ended comparison.
    """
    date_from, date_to = params.publish_date_from, params.publish_date_to

    if date_from and date_to:
        return [Book.publish_date.between(date_from, date_to)]
    if date_from:
        return [Book.publish_date >= date_from]
    if date_to:
        return [Book.publish_date <= date_to]
    return []


def check_author_exists(db: Session, values: dict[str, Any]) -> dict[str, list[str]]:
    """Reject an author_id that does not reference an existing author."""
    if "author_id" in values and db.get(Author, values["author_id"]) is None:
        return {"author_id": ["The selected author id is invalid."]}
    return {}


book_handler = ResourceHandler(
    model=Book,
    name="book",
    plural="books",
    search_columns=(Book.title, Book.description),
    list_schema=BookListItem,
    detail_schema=BookDetailResponse,
    record_schema=BookResponse,
    load_options=(selectinload(Book.author),),
    extra_filters=publish_date_filters,
    validate=check_author_exists,
    embeds=("authors",),
)


# =============================================================================
# CRUD Endpoints
# =============================================================================
@router.get(
    "",
    response_model=PaginatedResponse,
    summary="List books",
    description="Paginated list of books with search, publish date range, sorting and field projection.",
)
def list_books(
    request: Request,
    db: DbSession,
    params: BookFilters,
    page: Page,
) -> dict:
    """
    List books.

    With all fields requested each row carries `author: {id, name}`;
    a projected row contains exactly the requested columns.

    Examples:
        GET /api/books?search=Laut
        GET /api/books?publish_date_from=2000-01-01&sort_field=publish_date&sort_order=desc
        GET /api/books?fields=id,title
    """
    return book_handler.index(db, params, page, request.url)


@router.post(
    "",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book",
)
def create_book(
    book_data: BookCreate,
    db: DbSession,
) -> dict:
    """Create a new book for an existing author."""
    return book_handler.create(db, book_data)


@router.get(
    "/{book_id}",
    response_model=ItemResponse,
    summary="Get a book by ID",
    description="Book details including the full author record.",
)
def get_book(
    book_id: int,
    db: DbSession,
    fields: Fields,
) -> dict:
    return book_handler.show(db, book_id, fields.fields)


@router.api_route(
    "/{book_id}",
    methods=["PUT", "PATCH"],
    response_model=ItemResponse,
    summary="Update a book",
)
def update_book(
    book_id: int,
    book_data: BookUpdate,
    db: DbSession,
) -> dict:
    """Update only the submitted fields of an existing book."""
    return book_handler.update(db, book_id, book_data)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
)
def delete_book(
    book_id: int,
    db: DbSession,
) -> None:
    """
    Delete a book.

    Returns 204 No Content on success. The None return type and
    status_code=204 tell FastAPI not to send a response body.
    """
    book_handler.delete(db, book_id)

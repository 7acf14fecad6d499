"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

This module holds the request validator for list and show endpoints:
class-based dependencies that apply defaults, restrict enumerations and
check types before a handler runs. Any failure becomes a 422 response
and the handler is never called.

Common Dependency Patterns:
- Database sessions (per-request)
- Pagination and sorting parameters
- Field projection
- Authentication (verify user)
"""

from typing import Annotated, Literal

from fastapi import Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from library_api.database import Base, get_db
from library_api.models import Author, Book, User
from library_api.schemas.common import ISODate
from library_api.services.security import verify_token_type

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
# Instead of writing:
#   def list_authors(db: Session = Depends(get_db)):
#
# You can write:
#   def list_authors(db: DbSession):

DbSession = Annotated[Session, Depends(get_db)]

SortOrder = Literal["asc", "desc"]
AuthorSortField = Literal["id", "created_at", "name"]
BookSortField = Literal["id", "title", "publish_date"]

DEFAULT_PER_PAGE = 20


# =============================================================================
# Field Projection
# =============================================================================
def parse_fields(raw: str, model: type[Base]) -> list[str] | None:
    """
    Turn a comma-separated field list into column names.

    "*" (or an empty value) means every column and returns None.
    Unknown names are rejected with the same 422 shape as any other
    query parameter error instead of failing later inside SQL.

    Examples:
        parse_fields("id,name", Author) -> ["id", "name"]
        parse_fields("*", Author) -> None
    """
    raw = raw.strip()
    if raw in ("", "*"):
        return None

    names = [name.strip() for name in raw.split(",") if name.strip()]
    columns = model.__table__.columns.keys()
    unknown = [name for name in names if name not in columns]
    if unknown or not names:
        raise RequestValidationError([
            {
                "type": "value_error",
                "loc": ("query", "fields"),
                "msg": (
                    f"Unknown field(s): {', '.join(unknown)}. "
                    f"Allowed: {', '.join(columns)}"
                ),
                "input": raw,
            }
        ])

    # Keep the request order but drop duplicates
    return list(dict.fromkeys(names))


# =============================================================================
# Pagination
# =============================================================================
def get_page(
    page: int = Query(
        default=1,
        ge=1,
        description="Page number (1-indexed)",
        examples=[1, 2, 3],
    ),
) -> int:
    """Current page; 1 when absent."""
    return page


Page = Annotated[int, Depends(get_page)]


# =============================================================================
# List Parameters
# =============================================================================
class AuthorListParams:
    """
    Query parameters for GET /authors.

    Defaults: sort_field=id, sort_order=asc, per_page=20, search="",
    fields="*".

    Usage:
        GET /api/authors?sort_field=name&sort_order=desc&per_page=10&search=Leila
    """

    def __init__(
        self,
        sort_field: AuthorSortField = Query(
            default="id",
            description="Column to sort by",
        ),
        sort_order: SortOrder = Query(
            default="asc",
            description="Sort direction",
        ),
        per_page: int = Query(
            default=DEFAULT_PER_PAGE,
            ge=1,
            description="Number of items per page",
        ),
        search: str = Query(
            default="",
            description="Substring matched against name or bio (case-sensitive)",
        ),
        fields: str = Query(
            default="*",
            description="Comma-separated columns to return, or * for all",
            examples=["id,name", "*"],
        ),
    ) -> None:
        self.sort_field = sort_field
        self.sort_order = sort_order
        self.per_page = per_page
        self.search = search
        self.fields = fields
        self.columns = parse_fields(fields, Author)

    def cache_params(self) -> dict:
        """Every parameter that changes the result, for the cache key."""
        return {
            "sort_field": self.sort_field,
            "sort_order": self.sort_order,
            "per_page": self.per_page,
            "search": self.search,
            "fields": self.fields,
        }


class BookListParams:
    """
    Query parameters for GET /books.

    Same defaults as authors, plus optional inclusive publish date bounds.

    Usage:
        GET /api/books?publish_date_from=2000-01-01&publish_date_to=2010-12-31
    """

    def __init__(
        self,
        sort_field: BookSortField = Query(
            default="id",
            description="Column to sort by",
        ),
        sort_order: SortOrder = Query(
            default="asc",
            description="Sort direction",
        ),
        per_page: int = Query(
            default=DEFAULT_PER_PAGE,
            ge=1,
            description="Number of items per page",
        ),
        search: str = Query(
            default="",
            description="Substring matched against title or description (case-sensitive)",
        ),
        publish_date_from: ISODate | None = Query(
            default=None,
            description="Earliest publish date (YYYY-MM-DD), inclusive",
        ),
        publish_date_to: ISODate | None = Query(
            default=None,
            description="Latest publish date (YYYY-MM-DD), inclusive",
        ),
        fields: str = Query(
            default="*",
            description="Comma-separated columns to return, or * for all",
            examples=["id,title", "*"],
        ),
    ) -> None:
        self.sort_field = sort_field
        self.sort_order = sort_order
        self.per_page = per_page
        self.search = search
        self.publish_date_from = publish_date_from
        self.publish_date_to = publish_date_to
        self.fields = fields
        self.columns = parse_fields(fields, Book)

    def cache_params(self) -> dict:
        return {
            "sort_field": self.sort_field,
            "sort_order": self.sort_order,
            "per_page": self.per_page,
            "search": self.search,
            "publish_date_from": self.publish_date_from,
            "publish_date_to": self.publish_date_to,
            "fields": self.fields,
        }


AuthorFilters = Annotated[AuthorListParams, Depends()]
BookFilters = Annotated[BookListParams, Depends()]


# =============================================================================
# Show Parameters
# =============================================================================
class FieldsParam:
    """Raw `fields` query parameter for show endpoints; parsed per resource."""

    def __init__(
        self,
        fields: str = Query(
            default="*",
            description="Comma-separated columns to return, or * for all",
        ),
    ) -> None:
        self.fields = fields


Fields = Annotated[FieldsParam, Depends()]


# =============================================================================
# JWT Authentication
# =============================================================================
# OAuth2PasswordBearer extracts the token from "Authorization: Bearer <token>"
# and returns 401 when the header is missing.
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/token",
    auto_error=True,
)


def get_current_user(
    db: DbSession,
    token: str = Depends(oauth2_scheme),
) -> User:
    """
    Extract and validate the current user from a JWT access token.

    This dependency:
    1. Extracts the Bearer token from the Authorization header
    2. Decodes and validates the JWT
    3. Looks up the user in the database

    Raises:
        HTTPException: 401 if the token is invalid or the user is unknown or inactive
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token_type(token, "access")
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise credentials_exception

    user = db.execute(select(User).where(User.id == int(user_id))).scalar_one_or_none()
    if user is None or not user.is_active:
        raise credentials_exception

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]

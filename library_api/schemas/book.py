"""
Book Pydantic Schemas

Request bodies for creating and updating books, plus the response shapes:
- BookResponse: the bare record (create/update responses)
- BookListItem: record with the author's id and name (list endpoint)
- BookDetailResponse: record with the full author (show endpoint)
- AuthorBookItem: compact row for GET /authors/{id}/books
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from library_api.schemas.author import AuthorResponse, AuthorSummary
from library_api.schemas.common import ISODate


class BookCreate(BaseModel):
    """
    Schema for creating a new book.

    author_id must reference an existing author; that check needs the
    database and is done by the handler, not here.

    Example request body:
    {
        "title": "Laut Bercerita",
        "description": "A novel about the activists of 1998.",
        "publish_date": "2017-10-01",
        "author_id": 1
    }
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Book title",
        examples=["Laut Bercerita", "Pulang"],
    )

    description: str = Field(
        ...,
        min_length=1,
        description="Book description or summary",
    )

    publish_date: ISODate = Field(
        ...,
        description="Date of publication (YYYY-MM-DD)",
        examples=["2017-10-01"],
    )

    author_id: int = Field(
        ...,
        gt=0,
        description="ID of the author who wrote the book",
        examples=[1],
    )

    @field_validator("title", "description")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        """Validate and normalize text fields."""
        if not v.strip():
            raise ValueError("This field cannot be empty or whitespace")
        return v.strip()


class BookUpdate(BaseModel):
    """
    Schema for updating an existing book.

    All fields are optional for PATCH-style updates; explicit nulls are
    rejected because every column is required.
    """

    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Book title",
    )

    description: str | None = Field(
        default=None,
        min_length=1,
        description="Book description",
    )

    publish_date: ISODate | None = Field(
        default=None,
        description="Date of publication (YYYY-MM-DD)",
    )

    author_id: int | None = Field(
        default=None,
        gt=0,
        description="ID of the author who wrote the book",
    )

    @field_validator("title", "description", "publish_date", "author_id")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("This field may not be null")
        return v

    @field_validator("title", "description")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("This field cannot be empty or whitespace")
        return v.strip()


class BookResponse(BaseModel):
    """Schema for a book record as stored."""

    id: int
    title: str
    description: str
    publish_date: date
    author_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class BookListItem(BookResponse):
    """Book row in GET /books, carrying the author's id and name."""

    author: AuthorSummary


class BookDetailResponse(BookResponse):
    """Book returned by GET /books/{id} with its full author."""

    author: AuthorResponse


class AuthorBookItem(BaseModel):
    """Compact book row returned by GET /authors/{id}/books."""

    id: int
    title: str
    publish_date: date
    author_id: int
    author: AuthorSummary

    model_config = ConfigDict(from_attributes=True)

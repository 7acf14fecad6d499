"""
Shared Schema Types

- ISODate: a date that must be sent as a strict YYYY-MM-DD string
- Response envelopes wrapping every successful payload with a status code
"""

import re
from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: Any) -> Any:
    """
    Accept only calendar dates written as YYYY-MM-DD.

    Pydantic's own date parsing is lenient (timestamps, datetimes with a
    zero time part), so the format is checked before conversion.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        raise ValueError("Must be a date in the format YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError("Must be a valid calendar date")


ISODate = Annotated[date, BeforeValidator(parse_iso_date)]


# =============================================================================
# Response Envelopes
# =============================================================================
class ItemResponse(BaseModel):
    """Envelope for a single record: {data, status}."""

    data: dict[str, Any] = Field(..., description="The record, possibly projected")
    status: int = Field(..., examples=[200])


class PageLinks(BaseModel):
    """Navigation URLs for a paginated list."""

    first: str
    last: str
    prev: str | None = None
    next: str | None = None


class PaginatedResponse(BaseModel):
    """
    Envelope for a page of records.

    Example:
        {
            "data": [{"id": 1, "name": "Leila Chudori"}],
            "current_page": 1,
            "last_page": 3,
            "per_page": 10,
            "total": 30,
            "links": {"first": "...?page=1", "last": "...?page=3",
                      "prev": null, "next": "...?page=2"},
            "status": 200
        }
    """

    data: list[dict[str, Any]]
    current_page: int
    last_page: int
    per_page: int
    total: int
    links: PageLinks
    status: int = 200


class ErrorResponse(BaseModel):
    """Envelope for not-found, rate-limit and server errors."""

    error: str
    status: int


class ValidationErrorResponse(BaseModel):
    """Envelope for 422 responses: one list of messages per invalid field."""

    errors: dict[str, list[str]]
    status: int = 422

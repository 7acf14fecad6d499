"""
Author Pydantic Schemas

These schemas define the shape of data for Author-related API operations.

Pydantic v2 Features Used:
- model_config: New way to configure models (replaces Config class)
- Field(): Define constraints and metadata
- field_validator: Validate and transform field values
- ConfigDict: Type-safe configuration
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from library_api.schemas.common import ISODate


class AuthorCreate(BaseModel):
    """
    Schema for creating a new author.

    Every field is required. Dates must be sent as YYYY-MM-DD.

    Example request body:
    {
        "name": "Leila Chudori",
        "bio": "An author who needs no introduction...",
        "birth_date": "1962-12-12"
    }
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author's full name",
        examples=["Leila Chudori", "Pramoedya Ananta Toer"],
    )

    bio: str = Field(
        ...,
        min_length=1,
        description="Author biography",
        examples=["Indonesian novelist and journalist."],
    )

    birth_date: ISODate = Field(
        ...,
        description="Date of birth (YYYY-MM-DD)",
        examples=["1962-12-12"],
    )

    @field_validator("name", "bio")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        """
        Validate that text fields are not just whitespace.

        Raises:
            ValueError: If the value is blank
        """
        if not v.strip():
            raise ValueError("This field cannot be empty or whitespace")
        return v.strip()


class AuthorUpdate(BaseModel):
    """
    Schema for updating an existing author.

    All fields are optional: only the fields present in the body are
    written. A field that is present must still be valid, so an explicit
    null is rejected.
    """

    name: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Author's full name",
    )

    bio: str | None = Field(
        default=None,
        min_length=1,
        description="Author biography",
    )

    birth_date: ISODate | None = Field(
        default=None,
        description="Date of birth (YYYY-MM-DD)",
    )

    @field_validator("name", "bio", "birth_date")
    @classmethod
    def reject_null(cls, v):
        """Validators only run on submitted values, so None here was sent explicitly."""
        if v is None:
            raise ValueError("This field may not be null")
        return v

    @field_validator("name", "bio")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("This field cannot be empty or whitespace")
        return v.strip()


class AuthorSummary(BaseModel):
    """Author reference embedded in book rows."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class AuthorResponse(BaseModel):
    """
    Schema for full author records returned by the API.

    model_config with from_attributes=True allows creating this schema
    from SQLAlchemy model instances.
    """

    id: int = Field(..., description="Unique identifier", examples=[1, 42])
    name: str
    bio: str
    birth_date: date
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Leila Chudori",
                "bio": "Indonesian novelist and journalist.",
                "birth_date": "1962-12-12",
                "created_at": "2024-09-24T10:30:00Z",
                "updated_at": "2024-09-24T10:30:00Z",
            }
        },
    )

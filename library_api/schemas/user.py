"""
User Pydantic Schemas

Only the public identity returned by GET /user is exposed.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserResponse(BaseModel):
    """Public user data for the authenticated caller."""

    id: int
    email: EmailStr = Field(..., examples=["reader@example.com"])
    username: str = Field(..., examples=["reader"])
    full_name: str | None = None

    model_config = ConfigDict(from_attributes=True)

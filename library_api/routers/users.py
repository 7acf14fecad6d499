"""
Users Router

GET /user returns the identity behind the bearer token.
"""

from fastapi import APIRouter, status

from library_api.dependencies import CurrentUser
from library_api.schemas import ErrorResponse, ItemResponse, UserResponse

router = APIRouter(
    tags=["Users"],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
    },
)


@router.get(
    "/user",
    response_model=ItemResponse,
    summary="Get the authenticated user",
)
def get_user(current_user: CurrentUser) -> dict:
    """Return the caller's public profile."""
    return {
        "data": UserResponse.model_validate(current_user).model_dump(mode="json"),
        "status": status.HTTP_200_OK,
    }

"""User Routes: register identified participants."""

from fastapi import APIRouter, Depends, status

from parley.api.dependencies import get_user_directory
from parley.core.session_rules import to_utc
from parley.schemas.user import UserCreate, UserResponse
from parley.services.user_directory import UserDirectory

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post(
    "", response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserCreate,
    directory: UserDirectory = Depends(get_user_directory),
):
    user = await directory.create_user(body.name, body.relationship_name)
    return UserResponse(
        id=user.id,
        name=user.name,
        relationship_name=user.relationship_name,
        created_at=to_utc(user.created_at),
    )

from uuid import UUID
from fastapi import APIRouter, status

from keygate.dependencies import AdminAuth, Users
from keygate.schemas.user import UserCreate, UserUpdate, UserResponse

router = APIRouter()


async def _to_response(users, user) -> UserResponse:
    response = UserResponse.model_validate(user)
    response.active_key_count = await users.count_active_keys(user.id)
    return response


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, users: Users, _: AdminAuth):
    """Create a key owner."""
    user = await users.create_user(data.username, data.email)
    return await _to_response(users, user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, users: Users, _: AdminAuth):
    user = await users.get_user(user_id)
    return await _to_response(users, user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(user_id: UUID, data: UserUpdate, users: Users, _: AdminAuth):
    """Change a username; 409 if it is taken."""
    user = await users.update_username(user_id, data.username)
    return await _to_response(users, user)

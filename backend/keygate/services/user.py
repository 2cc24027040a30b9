"""User accounts that own API keys."""

from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from keygate.errors import ConflictError, NotFoundError
from keygate.models import User
from keygate.repositories import APIKeyRepository, UserRepository


class UserService:
    """Service for managing key owners. Passwords live elsewhere."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)
        self.keys = APIKeyRepository(db)

    async def create_user(self, username: str, email: str | None = None) -> User:
        if await self.users.find_by_username(username) is not None:
            raise ConflictError("username already taken", username=username)

        user = await self.users.create(User(username=username, email=email))
        logger.info(f"Created user: {user.username} ({user.id})")
        return user

    async def get_user(self, user_id: UUID) -> User:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("user not found", user_id=str(user_id))
        return user

    async def update_username(self, user_id: UUID, username: str) -> User:
        user = await self.get_user(user_id)
        if username == user.username:
            return user

        existing = await self.users.find_by_username(username)
        if existing is not None:
            raise ConflictError("username already taken", username=username)

        user.username = username
        return await self.users.update(user)

    async def count_active_keys(self, user_id: UUID) -> int:
        return len(await self.keys.find_active_by_user_id(user_id))

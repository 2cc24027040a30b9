from typing import Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.errors import ConflictError, RepositoryError
from keygate.models import User


class UserRepository:
    """Repository for ``users``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def create(self, user: User) -> User:
        self.db.add(user)
        await self._commit("create", username=user.username)
        await self.db.refresh(user)
        return user

    async def update(self, user: User) -> User:
        self.db.add(user)
        await self._commit("update", username=user.username)
        return user

    async def _commit(self, operation: str, username: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Only unique constraint on users is the username
            await self.db.rollback()
            raise ConflictError("username already taken", username=username) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RepositoryError(operation, type(e).__name__, username=username) from e

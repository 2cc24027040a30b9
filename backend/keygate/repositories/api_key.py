"""Storage access for API key rows.

All keys of all users live in one table; rotation chains are followed by
querying ``parent_key_id`` rather than by walking object references.
"""
from typing import Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from keygate.errors import RepositoryError
from keygate.models import APIKey
from keygate.utils.clock import utcnow


class APIKeyRepository:
    """Repository for ``user_api_keys``. Every write commits on its own."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, key_id: UUID) -> Optional[APIKey]:
        try:
            result = await self.db.execute(select(APIKey).where(APIKey.id == key_id))
        except SQLAlchemyError as e:
            raise RepositoryError("find_by_id", type(e).__name__, key_id=str(key_id)) from e
        return result.scalar_one_or_none()

    async def find_by_user_id(self, user_id: UUID) -> list[APIKey]:
        """All keys of a user, newest first."""
        try:
            result = await self.db.execute(
                select(APIKey)
                .where(APIKey.user_id == user_id)
                .order_by(APIKey.created_at.desc(), APIKey.version.desc())
            )
        except SQLAlchemyError as e:
            raise RepositoryError("find_by_user_id", type(e).__name__, user_id=str(user_id)) from e
        return list(result.scalars().all())

    async def find_active_by_user_id(self, user_id: UUID) -> list[APIKey]:
        return [key for key in await self.find_by_user_id(user_id) if key.is_active]

    async def find_children(self, parent_key_id: UUID) -> list[APIKey]:
        """Keys rotated directly from ``parent_key_id``, oldest version first."""
        try:
            result = await self.db.execute(
                select(APIKey)
                .where(APIKey.parent_key_id == parent_key_id)
                .order_by(APIKey.version, APIKey.created_at)
            )
        except SQLAlchemyError as e:
            raise RepositoryError(
                "find_children", type(e).__name__, parent_key_id=str(parent_key_id)
            ) from e
        return list(result.scalars().all())

    async def create(self, api_key: APIKey) -> APIKey:
        self.db.add(api_key)
        await self._commit("create", name=api_key.name, prefix=api_key.prefix)
        await self.db.refresh(api_key)
        return api_key

    async def update(self, api_key: APIKey) -> APIKey:
        api_key.updated_at = utcnow()
        self.db.add(api_key)
        await self._commit("update", key_id=str(api_key.id), prefix=api_key.prefix)
        return api_key

    async def revoke(self, key_id: UUID) -> bool:
        """Soft revoke: the row stays for audit, it just stops being active."""
        api_key = await self.find_by_id(key_id)
        if api_key is None:
            return False
        api_key.is_active = False
        await self.update(api_key)
        return True

    async def touch_last_used(self, key_id: UUID, now=None) -> bool:
        api_key = await self.find_by_id(key_id)
        if api_key is None:
            return False
        api_key.last_used_at = now or utcnow()
        await self._commit("touch_last_used", key_id=str(key_id), prefix=api_key.prefix)
        return True

    async def _commit(self, operation: str, **context) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"API key {operation} failed: {type(e).__name__} {context}")
            raise RepositoryError(operation, type(e).__name__, **context) from e

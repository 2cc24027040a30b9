"""
Unit tests for UserService.
"""
import pytest
from uuid import uuid4

from keygate.errors import ConflictError, NotFoundError
from keygate.schemas.api_key import APIKeyCreate
from keygate.services import UserService


class TestUserService:

    @pytest.mark.asyncio
    async def test_create_user(self, db_session):
        service = UserService(db_session)

        user = await service.create_user("bob", "bob@example.com")

        assert user.id is not None
        assert user.username == "bob"
        assert user.is_active is True

    @pytest.mark.asyncio
    async def test_duplicate_username(self, db_session, user):
        service = UserService(db_session)

        with pytest.raises(ConflictError):
            await service.create_user(user.username)

    @pytest.mark.asyncio
    async def test_get_missing_user(self, db_session):
        with pytest.raises(NotFoundError):
            await UserService(db_session).get_user(uuid4())

    @pytest.mark.asyncio
    async def test_update_username(self, db_session, user):
        updated = await UserService(db_session).update_username(user.id, "alice2")
        assert updated.username == "alice2"

    @pytest.mark.asyncio
    async def test_update_to_same_username_is_noop(self, db_session, user):
        updated = await UserService(db_session).update_username(user.id, user.username)
        assert updated.username == "alice"

    @pytest.mark.asyncio
    async def test_update_to_taken_username(self, db_session, user, other_user):
        with pytest.raises(ConflictError):
            await UserService(db_session).update_username(user.id, other_user.username)

    @pytest.mark.asyncio
    async def test_count_active_keys(self, db_session, user, key_service):
        first = await key_service.create_key(user.id, APIKeyCreate(name="A"))
        await key_service.create_key(user.id, APIKeyCreate(name="B"))
        await key_service.delete_key(user.id, first.id)

        assert await UserService(db_session).count_active_keys(user.id) == 1

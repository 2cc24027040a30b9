"""API key lifecycle: creation, rotation, revocation and policy checks."""

import copy
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from keygate.config import settings
from keygate.errors import (
    NotFoundError,
    PartialRotationError,
    PolicyValidationError,
    RepositoryError,
    UnauthorizedError,
)
from keygate.models import APIKey
from keygate.permissions import permission_set_from_request, to_legacy_actions
from keygate.permissions.legacy import escalates_to_full_access
from keygate.repositories import APIKeyRepository, UserRepository
from keygate.schemas.api_key import (
    APIKeyCreate,
    APIKeyResponse,
    APIKeyRotate,
    APIKeySecretResponse,
)
from keygate.services.secrets import generate_api_key, hash_api_key, key_prefix
from keygate.utils.clock import utcnow

ROTATED_SUFFIX = " (rotated)"
NAME_MAX_LENGTH = 255


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str


def to_response(api_key: APIKey, secret: Optional[str] = None, now: Optional[datetime] = None):
    """
    Build the outward view of a key.

    Args:
        api_key: Stored row
        secret: The freshly generated secret; only the create/rotate call that
            produced it passes this

    Returns:
        APIKeySecretResponse if ``secret`` is given, else APIKeyResponse
    """
    permission_set = api_key.permission_set()
    fields = dict(
        id=api_key.id,
        user_id=api_key.user_id,
        name=api_key.name,
        prefix=api_key.prefix,
        permissions=to_legacy_actions(permission_set),
        permission_set=permission_set,
        rate_limit=api_key.rate_limit,
        expires_at=api_key.expires_at,
        last_used_at=api_key.last_used_at,
        is_active=api_key.is_active,
        is_expired=api_key.is_expired(now),
        created_at=api_key.created_at,
        updated_at=api_key.updated_at,
        parent_key_id=api_key.parent_key_id,
        version=api_key.version,
        rotation_reason=api_key.rotation_reason,
        rotated_at=api_key.rotated_at,
    )
    if secret is not None:
        return APIKeySecretResponse(api_key=secret, **fields)
    return APIKeyResponse(**fields)


class APIKeyService:
    """
    Service for managing API keys.

    Secrets are produced by ``key_generator`` and leave this service exactly
    once, in the response of the call that generated them. Log lines and
    errors only ever carry id, prefix and name.
    """

    def __init__(
        self,
        db: AsyncSession,
        repository: Optional[APIKeyRepository] = None,
        key_generator: Callable[[], str] = generate_api_key,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.keys = repository or APIKeyRepository(db)
        self.users = UserRepository(db)
        self.generate_key = key_generator
        self.clock = clock

    async def create_key(self, owner_id: UUID, request: APIKeyCreate) -> APIKeySecretResponse:
        """
        Create a new API key for ``owner_id``.

        Raises:
            NotFoundError: owner does not exist
            PolicyValidationError: policy or rate limit rejected (nothing written)
            GenerationError: secret could not be generated
            RepositoryError: the row could not be stored
        """
        if await self.users.find_by_id(owner_id) is None:
            raise NotFoundError("user not found", user_id=str(owner_id))

        permission_set = permission_set_from_request(
            permission_set=request.permission_set,
            permissions=request.permissions,
        )
        permission_set.validate_permissions()

        if request.permission_set is None and request.permissions:
            if escalates_to_full_access(request.permissions):
                # Historical rule: admin, or read+write together, means full access
                logger.warning(
                    f"Permissions {sorted(set(request.permissions))} for key '{request.name}' "
                    f"widened to full access"
                )

        rate_limit = request.rate_limit or settings.DEFAULT_RATE_LIMIT
        if rate_limit > settings.MAX_RATE_LIMIT:
            raise PolicyValidationError(
                f"rate_limit cannot exceed {settings.MAX_RATE_LIMIT}", rate_limit=rate_limit
            )

        secret = self.generate_key()
        now = self.clock()

        api_key = APIKey(
            user_id=owner_id,
            name=request.name,
            key_hash=hash_api_key(secret),
            prefix=key_prefix(secret),
            permissions=permission_set.to_blob(),
            rate_limit=rate_limit,
            expires_at=(
                now + timedelta(seconds=request.expires_in_seconds)
                if request.expires_in_seconds > 0
                else None
            ),
            is_active=True,
            version=1,
            parent_key_id=None,
            created_at=now,
            updated_at=now,
        )

        await self.keys.create(api_key)

        logger.info(f"Created API key: {api_key.name} ({api_key.prefix}...) id={api_key.id}")

        return to_response(api_key, secret=secret, now=now)

    async def rotate_key(
        self, owner_id: UUID, key_id: UUID, request: APIKeyRotate
    ) -> APIKeySecretResponse:
        """
        Replace a key with a new secret that carries the same policy.

        The old key is deactivated first (unless ``keep_old_active``), then the
        new key is inserted. If the insert fails after the deactivation went
        through, PartialRotationError is raised so the caller can repair the
        account; nothing is rolled back here.

        Raises:
            NotFoundError, UnauthorizedError: no side effects
            GenerationError: no side effects
            RepositoryError: a write failed and nothing changed
            PartialRotationError: old key deactivated, new key missing
        """
        old_key = await self._get_owned_key(owner_id, key_id, "rotate")

        secret = self.generate_key()
        now = self.clock()

        # Captured up front: a failed commit expires the loaded row
        old_id, old_prefix, old_version = old_key.id, old_key.prefix, old_key.version

        if request.expires_in_seconds > 0:
            expires_at = now + timedelta(seconds=request.expires_in_seconds)
        else:
            expires_at = old_key.expires_at

        new_key = APIKey(
            user_id=old_key.user_id,
            name=(request.name or f"{old_key.name}{ROTATED_SUFFIX}")[:NAME_MAX_LENGTH],
            key_hash=hash_api_key(secret),
            prefix=key_prefix(secret),
            permissions=copy.deepcopy(old_key.permissions),
            rate_limit=old_key.rate_limit,
            expires_at=expires_at,
            is_active=True,
            parent_key_id=old_id,
            version=old_version + 1,
            rotation_reason=request.rotation_reason or None,
            rotated_at=now,
            created_at=now,
            updated_at=now,
        )

        old_deactivated = False
        if not request.keep_old_active:
            old_key.is_active = False
            await self.keys.update(old_key)
            old_deactivated = True

        try:
            await self.keys.create(new_key)
        except RepositoryError as e:
            if not old_deactivated:
                raise
            logger.error(
                f"Rotation of key {old_id} ({old_prefix}...) left it deactivated "
                f"without a replacement"
            )
            raise PartialRotationError(
                old_id, "old key deactivated but the rotated key was not stored"
            ) from e

        logger.info(
            f"Rotated API key {old_id} ({old_prefix}...) -> {new_key.id} "
            f"({new_key.prefix}...) v{new_key.version}"
        )

        return to_response(new_key, secret=secret, now=now)

    async def delete_key(self, owner_id: UUID, key_id: UUID) -> None:
        """Revoke a key. The row is kept, only ``is_active`` changes."""
        api_key = await self._get_owned_key(owner_id, key_id, "delete")
        await self.keys.revoke(api_key.id)
        logger.info(f"Revoked API key: {api_key.name} ({api_key.prefix}...) id={api_key.id}")

    async def list_keys(self, owner_id: UUID, active_only: bool = False) -> list[APIKeyResponse]:
        """List a user's keys, newest first. Secrets are never included."""
        if active_only:
            keys = await self.keys.find_active_by_user_id(owner_id)
        else:
            keys = await self.keys.find_by_user_id(owner_id)
        now = self.clock()
        return [to_response(k, now=now) for k in keys]

    async def get_key(self, owner_id: UUID, key_id: UUID) -> APIKeyResponse:
        api_key = await self._get_owned_key(owner_id, key_id, "read")
        return to_response(api_key, now=self.clock())

    async def get_rotation_chain(self, owner_id: UUID, key_id: UUID) -> list[APIKeyResponse]:
        """
        Return the lineage of a key: ancestors (root first), the key, then
        every key rotated from it, ordered by version.
        """
        api_key = await self._get_owned_key(owner_id, key_id, "read")

        seen = {api_key.id}
        ancestors: list[APIKey] = []
        parent_id = api_key.parent_key_id
        while parent_id is not None and parent_id not in seen:
            parent = await self.keys.find_by_id(parent_id)
            if parent is None:
                break
            seen.add(parent.id)
            ancestors.append(parent)
            parent_id = parent.parent_key_id

        descendants: list[APIKey] = []
        frontier = [api_key.id]
        while frontier:
            children = []
            for current_id in frontier:
                for child in await self.keys.find_children(current_id):
                    if child.id not in seen:
                        seen.add(child.id)
                        children.append(child)
            descendants.extend(children)
            frontier = [child.id for child in children]

        chain = list(reversed(ancestors)) + [api_key] + sorted(
            descendants, key=lambda k: (k.version, k.created_at)
        )
        now = self.clock()
        return [to_response(k, now=now) for k in chain]

    async def check_access(
        self,
        owner_id: UUID,
        key_id: UUID,
        resource_type: str,
        resource_id: str,
        action: str,
        now: Optional[datetime] = None,
    ) -> AccessDecision:
        """
        Answer whether a known key may perform ``action`` on a resource.

        Active flag and expiry are checked together with the policy; an active
        key past its ``expires_at`` is denied. An allowed check records
        ``last_used_at``.
        """
        api_key = await self._get_owned_key(owner_id, key_id, "check")
        now = now or self.clock()

        if not api_key.is_usable(now):
            return AccessDecision(False, "inactive" if not api_key.is_active else "expired")
        if not api_key.permission_set().has_permission(resource_type, resource_id, action):
            return AccessDecision(False, "denied")

        await self.keys.touch_last_used(api_key.id, now)
        return AccessDecision(True, "allowed")

    async def _get_owned_key(self, owner_id: UUID, key_id: UUID, operation: str) -> APIKey:
        api_key = await self.keys.find_by_id(key_id)
        if api_key is None:
            raise NotFoundError("API key not found", key_id=str(key_id))

        if api_key.user_id != owner_id:
            logger.warning(
                f"User {owner_id} attempted to {operation} API key {api_key.id} "
                f"({api_key.prefix}...) owned by another user"
            )
            raise UnauthorizedError(
                f"unauthorized to {operation} this API key", key_id=str(api_key.id)
            )

        return api_key

"""
API key endpoints.

Every handler is transport only: ownership, policy and rotation rules live
in APIKeyService. Domain errors are turned into HTTP responses by the
handler registered in keygate.main.
"""
from uuid import UUID
from fastapi import APIRouter, Query, status

from keygate.dependencies import AdminAuth, KeyService
from keygate.schemas.api_key import (
    APIKeyCreate,
    APIKeyRotate,
    APIKeyResponse,
    APIKeySecretResponse,
    APIKeyListResponse,
    RotationChainResponse,
    AccessCheckRequest,
    AccessCheckResponse,
)

router = APIRouter()


@router.get("", response_model=APIKeyListResponse)
async def list_keys(
    user_id: UUID,
    service: KeyService,
    _: AdminAuth,
    active_only: bool = Query(False),
):
    """List a user's keys. Secrets are never included."""
    keys = await service.list_keys(user_id, active_only=active_only)
    return APIKeyListResponse(keys=keys, total=len(keys))


@router.post("", response_model=APIKeySecretResponse, status_code=status.HTTP_201_CREATED)
async def create_key(user_id: UUID, data: APIKeyCreate, service: KeyService, _: AdminAuth):
    """Create a key. The response is the only time the secret is shown."""
    return await service.create_key(user_id, data)


@router.get("/{key_id}", response_model=APIKeyResponse)
async def get_key(user_id: UUID, key_id: UUID, service: KeyService, _: AdminAuth):
    return await service.get_key(user_id, key_id)


@router.post(
    "/{key_id}/rotate",
    response_model=APIKeySecretResponse,
    status_code=status.HTTP_201_CREATED,
)
async def rotate_key(
    user_id: UUID,
    key_id: UUID,
    data: APIKeyRotate,
    service: KeyService,
    _: AdminAuth,
):
    """Issue a new secret with the same policy, optionally retiring the old key."""
    return await service.rotate_key(user_id, key_id, data)


@router.delete("/{key_id}")
async def revoke_key(user_id: UUID, key_id: UUID, service: KeyService, _: AdminAuth):
    """Soft-revoke a key."""
    await service.delete_key(user_id, key_id)
    return {"status": "revoked", "key_id": str(key_id)}


@router.get("/{key_id}/chain", response_model=RotationChainResponse)
async def get_rotation_chain(user_id: UUID, key_id: UUID, service: KeyService, _: AdminAuth):
    chain = await service.get_rotation_chain(user_id, key_id)
    return RotationChainResponse(key_id=key_id, chain=chain)


@router.post("/{key_id}/check", response_model=AccessCheckResponse)
async def check_access(
    user_id: UUID,
    key_id: UUID,
    data: AccessCheckRequest,
    service: KeyService,
    _: AdminAuth,
):
    """Evaluate a key's policy for one resource/action."""
    decision = await service.check_access(
        user_id, key_id, data.resource_type, data.resource_id, data.action
    )
    return AccessCheckResponse(allowed=decision.allowed, reason=decision.reason)

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from keygate.permissions import PermissionSet


class APIKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    rate_limit: int | None = Field(None, ge=0)  # requests/minute, 0 or None = default
    expires_in_seconds: int = Field(0, ge=0)  # 0 = never expires

    # Policy: permission_set wins over the legacy flat list
    permissions: list[str] | None = None
    permission_set: PermissionSet | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name cannot be blank")
        return v.strip()


class APIKeyRotate(BaseModel):
    keep_old_active: bool = False
    rotation_reason: str | None = Field(None, max_length=1000)
    expires_in_seconds: int = Field(0, ge=0)  # 0 = inherit from the old key
    name: str | None = Field(None, min_length=1, max_length=255)


class APIKeyResponse(BaseModel):
    """Display-only view: the secret is represented by its prefix."""

    id: UUID
    user_id: UUID
    name: str
    prefix: str
    permissions: list[str]  # legacy flat view
    permission_set: PermissionSet
    rate_limit: int
    expires_at: datetime | None
    last_used_at: datetime | None
    is_active: bool
    is_expired: bool
    created_at: datetime
    updated_at: datetime

    # Rotation chain
    parent_key_id: UUID | None
    version: int
    rotation_reason: str | None
    rotated_at: datetime | None


class APIKeySecretResponse(APIKeyResponse):
    """Returned only by the call that generated the secret."""

    api_key: str


class APIKeyListResponse(BaseModel):
    keys: list[APIKeyResponse]
    total: int


class RotationChainResponse(BaseModel):
    key_id: UUID
    chain: list[APIKeyResponse]  # root ancestor first


class AccessCheckRequest(BaseModel):
    resource_type: str = Field(..., min_length=1)
    resource_id: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)


class AccessCheckResponse(BaseModel):
    allowed: bool
    reason: str  # "allowed", "denied", "inactive", "expired"

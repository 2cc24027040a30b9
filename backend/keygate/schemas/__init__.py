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
from keygate.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
)

__all__ = [
    # API keys
    "APIKeyCreate",
    "APIKeyRotate",
    "APIKeyResponse",
    "APIKeySecretResponse",
    "APIKeyListResponse",
    "RotationChainResponse",
    "AccessCheckRequest",
    "AccessCheckResponse",
    # Users
    "UserCreate",
    "UserUpdate",
    "UserResponse",
]

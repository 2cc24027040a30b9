from keygate.repositories.api_key import APIKeyRepository
from keygate.repositories.user import UserRepository

__all__ = [
    "APIKeyRepository",
    "UserRepository",
]

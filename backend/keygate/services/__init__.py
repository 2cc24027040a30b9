from keygate.services.api_key import APIKeyService, AccessDecision
from keygate.services.user import UserService

__all__ = [
    "APIKeyService",
    "AccessDecision",
    "UserService",
]

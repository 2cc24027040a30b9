from keygate.models.user import User
from keygate.models.api_key import APIKey

__all__ = [
    "User",
    "APIKey",
]

"""API key secret generation."""

import hashlib
import secrets

from keygate.config import settings
from keygate.errors import GenerationError

# Number of leading secret characters that are safe to store and display
PREFIX_LENGTH = 10


def generate_api_key() -> str:
    """
    Generate a new API key secret.

    The full key is shown once to the user. Only its hash and its
    display prefix are stored.

    Raises:
        GenerationError: if the system entropy source fails
    """
    try:
        random_part = secrets.token_urlsafe(settings.API_KEY_BYTES)
    except (OSError, NotImplementedError) as e:
        raise GenerationError(f"Secret generation failed: {type(e).__name__}") from e

    return f"{settings.API_KEY_PREFIX}{random_part}"


def key_prefix(secret: str) -> str:
    """Display prefix: the first 10 characters of the secret."""
    return secret[:PREFIX_LENGTH]


def hash_api_key(key: str) -> str:
    """Hash API key for storage."""
    return hashlib.sha256(key.encode()).hexdigest()


def mask_secret(prefix: str) -> str:
    """Render a stored prefix for display."""
    return f"{prefix}..."

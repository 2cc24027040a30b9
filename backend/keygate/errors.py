"""Errors raised by the key lifecycle and permission layers.

Messages and context must only ever carry safe identifiers (key id, prefix,
name, user id). Secret values never appear here.
"""
from typing import Any


class KeyServiceError(Exception):
    """Base class for all keygate domain errors."""

    code = "error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(KeyServiceError):
    """User or key does not exist."""

    code = "not_found"


class UnauthorizedError(KeyServiceError):
    """Caller does not own the key it is acting on."""

    code = "unauthorized"


class PolicyValidationError(KeyServiceError):
    """Permission set or create request is malformed."""

    code = "validation_error"


class ConflictError(KeyServiceError):
    """Unique value (e.g. username) already taken."""

    code = "conflict"


class GenerationError(KeyServiceError):
    """Secret generation failed."""

    code = "generation_error"


class RepositoryError(KeyServiceError):
    """Storage failure, wrapped with the operation that was attempted."""

    code = "repository_error"

    def __init__(self, operation: str, message: str, **context: Any):
        super().__init__(f"{operation} failed: {message}", operation=operation, **context)
        self.operation = operation


class PartialRotationError(RepositoryError):
    """
    Old key was deactivated but its replacement was never persisted.

    The account may be left with no active key in this lineage; operators
    must reactivate ``old_key_id`` or issue a new key by hand.
    """

    code = "partial_rotation"

    def __init__(self, old_key_id: Any, message: str):
        super().__init__("rotate", message, old_key_id=str(old_key_id))
        self.old_key_id = old_key_id

"""
Permission policy value types and the access evaluator.

A PermissionSet answers allow/deny for a (resource_type, resource_id, action)
triple. Evaluation goes through three tiers, in order:

1. explicit ``permissions`` entries (any match grants)
2. the deprecated ``allowed_models`` x ``allowed_operations`` arrays, for
   ``model`` requests only (both must match)
3. ``default_allow``

Every caller decides access through ``has_permission`` so nothing outside
this module needs to know which representation a stored key uses.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from keygate.errors import PolicyValidationError

WILDCARD = "*"

RESOURCE_MODEL = "model"
RESOURCE_BILLING = "billing"


def _matches(granted: str, requested: str) -> bool:
    return granted == requested or granted == WILDCARD


class Permission(BaseModel):
    """Atomic grant of an action on a resource."""

    model_config = ConfigDict(frozen=True)

    resource_type: str  # "model", "billing", "key", or "*"
    resource_id: str  # concrete id or "*"
    action: str  # "read", "write", ... or "*"
    constraints: Optional[dict[str, Any]] = None  # free-form, e.g. quota hints

    def grants(self, resource_type: str, resource_id: str, action: str) -> bool:
        return (
            _matches(self.resource_type, resource_type)
            and _matches(self.resource_id, resource_id)
            and _matches(self.action, action)
        )


class PermissionSet(BaseModel):
    """Policy container attached to an API key."""

    permissions: list[Permission] = Field(default_factory=list)
    default_allow: bool = False

    # Advisory quota ceilings, carried but not enforced here
    max_requests_per_month: Optional[int] = None
    max_tokens_per_month: Optional[int] = None

    # Deprecated parallel arrays kept for keys stored before structured permissions
    allowed_models: list[str] = Field(default_factory=list)
    allowed_operations: list[str] = Field(default_factory=list)

    @classmethod
    def full_access(cls) -> "PermissionSet":
        """Wildcard model access, read-only billing, default allow."""
        return cls(
            permissions=[
                Permission(resource_type=RESOURCE_MODEL, resource_id=WILDCARD, action=WILDCARD),
                Permission(resource_type=RESOURCE_BILLING, resource_id=WILDCARD, action="read"),
            ],
            default_allow=True,
            allowed_models=[WILDCARD],
            allowed_operations=[WILDCARD],
        )

    @classmethod
    def for_models(cls, model_ids: list[str], operations: list[str]) -> "PermissionSet":
        """Explicit grants for every (model, operation) pair; nothing else allowed."""
        return cls(
            permissions=[
                Permission(resource_type=RESOURCE_MODEL, resource_id=model_id, action=op)
                for model_id in model_ids
                for op in operations
            ],
            default_allow=False,
            allowed_models=list(model_ids),
            allowed_operations=list(operations),
        )

    def has_permission(self, resource_type: str, resource_id: str, action: str) -> bool:
        """Return True if this set allows ``action`` on the given resource."""
        if any(p.grants(resource_type, resource_id, action) for p in self.permissions):
            return True

        # Legacy arrays only ever described model access
        if resource_type == RESOURCE_MODEL:
            model_allowed = any(_matches(m, resource_id) for m in self.allowed_models)
            operation_allowed = any(_matches(op, action) for op in self.allowed_operations)
            if model_allowed and operation_allowed:
                return True

        return self.default_allow

    def check_model_access(self, model_id: str, operation: str) -> bool:
        return self.has_permission(RESOURCE_MODEL, model_id, operation)

    def validate_permissions(self) -> None:
        """
        Reject explicit permissions with blank fields.

        The deprecated arrays and quota fields are not checked.

        Raises:
            PolicyValidationError: on the first offending permission
        """
        for index, perm in enumerate(self.permissions):
            for field_name in ("resource_type", "resource_id", "action"):
                if not getattr(perm, field_name).strip():
                    raise PolicyValidationError(
                        f"permission {field_name} cannot be empty",
                        index=index,
                        field=field_name,
                    )

    def to_blob(self) -> dict[str, Any]:
        """Serialize to the JSON document stored with the key."""
        return self.model_dump(mode="json", exclude_none=True)

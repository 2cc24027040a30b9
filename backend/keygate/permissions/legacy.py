"""
Translation between stored/requested policy shapes and PermissionSet.

Four historical shapes exist for the stored ``permissions`` document:

- structured: ``{"permissions": [{"resource_type": ..., ...}], "default_allow": ...}``
- string list: ``{"permissions": ["read", "write"], "allowed_models": [...]}``
- bare list: ``["read", "write"]`` stored as the whole document
- absent: no document at all (keys created before policies existed)

Parsing is an explicit, ordered sequence of attempts; nothing relies on
silent type coercion.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import ValidationError

from keygate.permissions.model import RESOURCE_MODEL, WILDCARD, PermissionSet

# Legacy flat list that means "everything", sorted for determinism
FULL_ACCESS_ACTIONS = ["admin", "read", "write"]

RECOGNISED_ACTIONS = ("read", "write")
ADMIN_ACTION = "admin"

NULLABLE_FIELDS = ("permissions", "default_allow", "allowed_models", "allowed_operations")


@dataclass(frozen=True)
class StructuredPolicy:
    permission_set: PermissionSet


@dataclass(frozen=True)
class StringListPolicy:
    operations: list[str] = field(default_factory=list)
    models: Optional[list[str]] = None


@dataclass(frozen=True)
class AbsentPolicy:
    pass


StoredPolicy = Union[StructuredPolicy, StringListPolicy, AbsentPolicy]


def _strings(value: Any) -> Optional[list[str]]:
    """Keep the string members of a list; None if ``value`` is not a list."""
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def classify_blob(blob: Any) -> StoredPolicy:
    """Decide which historical shape a stored document has."""
    if blob is None:
        return AbsentPolicy()

    # Oldest rows stored the bare action list as the whole document
    if isinstance(blob, list):
        return StringListPolicy(operations=_strings(blob))

    if not isinstance(blob, dict):
        return AbsentPolicy()

    # Older writers emitted null for an empty permission list; null means the zero value
    document = {
        k: v for k, v in blob.items() if not (k in NULLABLE_FIELDS and v is None)
    }

    try:
        # JSON mode + strict: a list of bare strings must not coerce into Permission
        permission_set = PermissionSet.model_validate_json(json.dumps(document), strict=True)
        return StructuredPolicy(permission_set)
    except ValidationError:
        pass

    operations = _strings(document.get("permissions"))
    if operations is None:
        return AbsentPolicy()

    return StringListPolicy(
        operations=operations,
        models=_strings(document.get("allowed_models")),
    )


def permission_set_from_blob(blob: Any) -> PermissionSet:
    """Rehydrate a stored document into a PermissionSet."""
    policy = classify_blob(blob)

    if isinstance(policy, StructuredPolicy):
        return policy.permission_set

    if isinstance(policy, StringListPolicy):
        return _from_string_list(policy)

    return PermissionSet.full_access()


def _from_string_list(policy: StringListPolicy) -> PermissionSet:
    base = PermissionSet.full_access()
    models = policy.models if policy.models is not None else base.allowed_models
    operations = policy.operations

    # Explicit entries are synthesized from the arrays so the evaluator and the
    # outbound translation see the same grants the legacy key described.
    synthesized = PermissionSet.for_models(models, operations)
    return base.model_copy(
        update={
            "permissions": synthesized.permissions,
            "allowed_models": list(models),
            "allowed_operations": list(operations),
        }
    )


def to_legacy_actions(permission_set: PermissionSet) -> list[str]:
    """
    Flatten a PermissionSet into the old ``["read", "write", "admin"]`` form.

    Used for clients that still expect the simple array.
    """
    if permission_set.default_allow and not permission_set.permissions:
        return list(FULL_ACCESS_ACTIONS)

    actions: set[str] = set()
    for perm in permission_set.permissions:
        if perm.resource_type == RESOURCE_MODEL and perm.resource_id:
            if perm.action == WILDCARD:
                return list(FULL_ACCESS_ACTIONS)
            actions.add(perm.action)

    if not actions and permission_set.allowed_operations:
        return list(permission_set.allowed_operations)

    return sorted(actions)


def contains_read_and_write(operations: list[str]) -> bool:
    return "read" in operations and "write" in operations


def escalates_to_full_access(permissions: list[str]) -> bool:
    """
    True when a flat create-request list is widened to full access.

    That happens for ``admin``, for ``read`` together with ``write``, and for a
    list with no recognised action at all.
    """
    if ADMIN_ACTION in permissions:
        return True
    operations = [p for p in permissions if p in RECOGNISED_ACTIONS]
    return not operations or contains_read_and_write(operations)


def permission_set_from_request(
    permission_set: Optional[PermissionSet] = None,
    permissions: Optional[list[str]] = None,
) -> PermissionSet:
    """
    Resolve the policy a create request asked for.

    Priority: an explicit PermissionSet, then a flat action list, then full
    access.
    """
    if permission_set is not None:
        return permission_set

    if permissions:
        if escalates_to_full_access(permissions):
            return PermissionSet.full_access()
        operations = [p for p in permissions if p in RECOGNISED_ACTIONS]
        return PermissionSet.for_models([WILDCARD], operations)

    return PermissionSet.full_access()

from keygate.permissions.model import (
    Permission,
    PermissionSet,
    RESOURCE_BILLING,
    RESOURCE_MODEL,
    WILDCARD,
)
from keygate.permissions.legacy import (
    FULL_ACCESS_ACTIONS,
    permission_set_from_blob,
    permission_set_from_request,
    to_legacy_actions,
)

__all__ = [
    "Permission",
    "PermissionSet",
    "RESOURCE_BILLING",
    "RESOURCE_MODEL",
    "WILDCARD",
    "FULL_ACCESS_ACTIONS",
    "permission_set_from_blob",
    "permission_set_from_request",
    "to_legacy_actions",
]

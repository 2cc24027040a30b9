"""
Unit tests for the PermissionSet evaluator.
"""
import pytest

from keygate.errors import PolicyValidationError
from keygate.permissions import Permission, PermissionSet

PROBES = [
    ("model", "gpt-4o", "read"),
    ("model", "claude-3", "write"),
    ("model", "*", "delete"),
    ("billing", "acct-1", "read"),
    ("billing", "acct-1", "write"),
    ("key", "k-1", "create"),
    ("anything", "", ""),
]


class TestFullAccess:
    """Tests for the full access constructor."""

    def test_shape(self):
        """Should hold one wildcard model grant and one read-only billing grant."""
        ps = PermissionSet.full_access()

        assert ps.default_allow is True
        assert ps.permissions == [
            Permission(resource_type="model", resource_id="*", action="*"),
            Permission(resource_type="billing", resource_id="*", action="read"),
        ]

    @pytest.mark.parametrize("resource_type,resource_id,action", PROBES)
    def test_allows_everything(self, resource_type, resource_id, action):
        assert PermissionSet.full_access().has_permission(resource_type, resource_id, action)


class TestHasPermission:
    """Tests for the three-tier evaluation."""

    def test_explicit_permission_grants(self):
        ps = PermissionSet(
            permissions=[Permission(resource_type="model", resource_id="gpt-4o", action="read")]
        )

        assert ps.has_permission("model", "gpt-4o", "read") is True
        assert ps.has_permission("model", "gpt-4o", "write") is False
        assert ps.has_permission("model", "other", "read") is False

    def test_wildcards_in_each_field(self):
        ps = PermissionSet(
            permissions=[Permission(resource_type="*", resource_id="*", action="read")]
        )

        assert ps.has_permission("billing", "acct-9", "read") is True
        assert ps.has_permission("model", "x", "read") is True
        assert ps.has_permission("model", "x", "write") is False

    def test_any_matching_entry_grants(self):
        """Order of entries should not change the verdict."""
        grants = [
            Permission(resource_type="model", resource_id="a", action="read"),
            Permission(resource_type="model", resource_id="b", action="write"),
        ]
        forward = PermissionSet(permissions=grants)
        backward = PermissionSet(permissions=list(reversed(grants)))

        for request in [("model", "a", "read"), ("model", "b", "write"), ("model", "a", "write")]:
            assert forward.has_permission(*request) == backward.has_permission(*request)

    @pytest.mark.parametrize("resource_type,resource_id,action", PROBES)
    def test_no_match_denies(self, resource_type, resource_id, action):
        """Should deny when nothing matches, default_allow is off and legacy arrays are empty."""
        ps = PermissionSet(
            permissions=[Permission(resource_type="model", resource_id="only-this", action="never")],
            default_allow=False,
        )
        assert ps.has_permission(resource_type, resource_id, action) is False

    def test_default_allow_is_fallback(self):
        ps = PermissionSet(permissions=[], default_allow=True)
        assert ps.has_permission("billing", "acct", "write") is True


class TestLegacyArrays:
    """Tests for the deprecated allowed_models / allowed_operations fallback."""

    def test_requires_both_model_and_operation(self):
        ps = PermissionSet(allowed_models=["gpt-4o"], allowed_operations=["read"])

        assert ps.check_model_access("gpt-4o", "read") is True
        assert ps.check_model_access("gpt-4o", "write") is False
        assert ps.check_model_access("other", "read") is False

    def test_wildcards(self):
        ps = PermissionSet(allowed_models=["*"], allowed_operations=["read"])
        assert ps.check_model_access("anything", "read") is True

        ps = PermissionSet(allowed_models=["gpt-4o"], allowed_operations=["*"])
        assert ps.check_model_access("gpt-4o", "delete") is True

    def test_only_applies_to_models(self):
        ps = PermissionSet(allowed_models=["*"], allowed_operations=["*"])
        assert ps.has_permission("billing", "acct", "read") is False

    def test_empty_operations_deny(self):
        ps = PermissionSet(allowed_models=["*"], allowed_operations=[])
        assert ps.check_model_access("gpt-4o", "read") is False


class TestForModels:
    """Tests for the model-specific constructor."""

    def test_cross_product(self):
        ps = PermissionSet.for_models(["a", "b"], ["read", "write"])

        assert len(ps.permissions) == 4
        assert ps.default_allow is False
        assert ps.allowed_models == ["a", "b"]
        assert ps.check_model_access("b", "write") is True
        assert ps.check_model_access("c", "read") is False


class TestValidate:
    """Tests for validate_permissions."""

    def test_valid_set_passes(self):
        PermissionSet.full_access().validate_permissions()
        PermissionSet().validate_permissions()

    @pytest.mark.parametrize("field", ["resource_type", "resource_id", "action"])
    @pytest.mark.parametrize("blank", ["", "   ", "\t"])
    def test_blank_field_rejected(self, field, blank):
        values = {"resource_type": "model", "resource_id": "*", "action": "read"}
        values[field] = blank
        ps = PermissionSet(permissions=[Permission(**values)])

        with pytest.raises(PolicyValidationError) as exc_info:
            ps.validate_permissions()

        assert field in exc_info.value.message
        assert exc_info.value.context["field"] == field

    def test_legacy_arrays_not_validated(self):
        ps = PermissionSet(allowed_models=[""], allowed_operations=[" "])
        ps.validate_permissions()


class TestPermissionImmutability:
    def test_permission_is_frozen(self):
        perm = Permission(resource_type="model", resource_id="*", action="read")
        with pytest.raises(Exception):
            perm.action = "write"

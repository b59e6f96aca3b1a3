"""Unit tests for AccessRegistry."""

import pytest

from fx_oracle.src.AccessRegistry import AccessRegistry
from fx_oracle.src.Errors import IndexOutOfRange, ThereMustBeAtLeastOneRoleAdmin, Unauthorized
from fx_oracle.src.Keys import CONFIG_KEEPER, CONTROLLER, ROLE_ADMIN


@pytest.fixture
def registry(admin):
    return AccessRegistry(admin.address)


class TestAccessRegistryInit:
    """Test initial role bindings."""

    def test_admin_has_role_admin(self, registry, admin) -> None:
        """The initial admin holds ROLE_ADMIN and is its only member."""
        assert registry.has_role(admin.address, ROLE_ADMIN)
        assert registry.get_role_members(ROLE_ADMIN) == [admin.address]

    def test_no_other_roles(self, registry, admin, outsider) -> None:
        """A fresh registry binds no role beyond ROLE_ADMIN."""
        assert not registry.has_role(admin.address, CONTROLLER)
        assert not registry.has_role(outsider.address, ROLE_ADMIN)
        assert registry.get_role_count() == 1


class TestGrantRevoke:
    """Test grant and revoke."""

    def test_grant_then_revoke(self, registry, admin, outsider) -> None:
        """hasRole is true after a grant and false after a revoke."""
        assert not registry.has_role(outsider.address, CONTROLLER)

        registry.grant_role(admin.address, outsider.address, CONTROLLER)
        assert registry.has_role(outsider.address, CONTROLLER)

        registry.revoke_role(admin.address, outsider.address, CONTROLLER)
        assert not registry.has_role(outsider.address, CONTROLLER)
        assert CONTROLLER.key not in registry.get_roles()

    def test_grant_idempotent(self, registry, admin, outsider) -> None:
        """Granting twice leaves the same state as granting once."""
        registry.grant_role(admin.address, outsider.address, CONTROLLER)
        members = registry.get_role_members(CONTROLLER)
        event_count = len(registry.events)

        registry.grant_role(admin.address, outsider.address, CONTROLLER)

        assert registry.get_role_members(CONTROLLER) == members
        assert registry.get_role_member_count(CONTROLLER) == 1
        assert len(registry.events) == event_count

    def test_revoke_unheld_is_noop(self, registry, admin, outsider) -> None:
        """Revoking a role the account lacks emits nothing."""
        registry.revoke_role(admin.address, outsider.address, CONTROLLER)
        assert registry.events == []

    def test_grant_requires_role_admin(self, registry, outsider) -> None:
        """Only ROLE_ADMIN holders may grant roles."""
        with pytest.raises(Unauthorized) as exc_info:
            registry.grant_role(outsider.address, outsider.address, CONTROLLER)
        assert exc_info.value.role == "ROLE_ADMIN"
        assert not registry.has_role(outsider.address, CONTROLLER)

    def test_controller_cannot_grant(self, registry, admin, outsider) -> None:
        """CONTROLLER does not imply the right to grant."""
        registry.grant_role(admin.address, outsider.address, CONTROLLER)
        with pytest.raises(Unauthorized):
            registry.grant_role(outsider.address, outsider.address, CONFIG_KEEPER)

    def test_last_admin_cannot_be_revoked(self, registry, admin) -> None:
        """The last ROLE_ADMIN member cannot be revoked."""
        with pytest.raises(ThereMustBeAtLeastOneRoleAdmin):
            registry.revoke_role(admin.address, admin.address, ROLE_ADMIN)
        assert registry.has_role(admin.address, ROLE_ADMIN)

    def test_admin_can_hand_over(self, registry, admin, outsider) -> None:
        """With a second admin, the first may revoke itself."""
        registry.grant_role(admin.address, outsider.address, ROLE_ADMIN)
        registry.revoke_role(outsider.address, admin.address, ROLE_ADMIN)
        assert registry.get_role_members(ROLE_ADMIN) == [outsider.address]

    def test_events(self, registry, admin, outsider) -> None:
        """Grants and revokes emit events with role names."""
        registry.grant_role(admin.address, outsider.address, CONTROLLER)
        registry.revoke_role(admin.address, outsider.address, CONTROLLER)

        assert [e.event_name for e in registry.events] == ["RoleGranted", "RoleRevoked"]
        assert registry.events[0].data == {
            "account": outsider.address,
            "role": "CONTROLLER",
            "sender": admin.address,
        }

    def test_raw_role_key(self, registry, admin, outsider) -> None:
        """Raw 32-byte keys work wherever a Role does."""
        registry.grant_role(admin.address, outsider.address, CONTROLLER.key)
        assert registry.has_role(outsider.address, CONTROLLER)


class TestValidateRole:
    """Test the shared capability check."""

    def test_any_of_roles(self, registry, admin, outsider) -> None:
        """Holding any one of the listed roles passes."""
        registry.grant_role(admin.address, outsider.address, CONFIG_KEEPER)
        registry.validate_role(outsider.address, CONTROLLER, CONFIG_KEEPER)

    def test_none_of_roles(self, registry, outsider) -> None:
        """Holding none of the listed roles raises Unauthorized."""
        with pytest.raises(Unauthorized) as exc_info:
            registry.validate_role(outsider.address, CONTROLLER, CONFIG_KEEPER)
        assert exc_info.value.account == outsider.address
        assert exc_info.value.role == "CONTROLLER | CONFIG_KEEPER"

    def test_lowercase_account(self, registry, admin) -> None:
        """Accounts are normalized before the check."""
        registry.validate_role(admin.address.lower(), ROLE_ADMIN)

    def test_has_role_malformed_account(self, registry) -> None:
        """has_role reads a malformed account as not holding the role."""
        assert registry.has_role("not-an-address", CONTROLLER) is False
        assert registry.has_role(None, ROLE_ADMIN) is False

    def test_has_role_malformed_key(self, registry, admin) -> None:
        """has_role reads a malformed role key as not held."""
        assert registry.has_role(admin.address, b"\x01" * 31) is False
        assert registry.has_role(admin.address, "CONTROLLER") is False
        assert registry.has_role(admin.address, None) is False


class TestListing:
    """Test role member listing."""

    def test_members_in_grant_order(self, registry, admin, signer_a, signer_b) -> None:
        """Members and roles list in grant order with paging."""
        registry.grant_role(admin.address, signer_a.address, CONTROLLER)
        registry.grant_role(admin.address, signer_b.address, CONTROLLER)

        assert registry.get_role_members(CONTROLLER) == [signer_a.address, signer_b.address]
        assert registry.get_role_members(CONTROLLER, 1) == [signer_b.address]
        assert registry.get_role_members(CONTROLLER, 0, 10) == [signer_a.address, signer_b.address]
        assert registry.get_roles() == [ROLE_ADMIN.key, CONTROLLER.key]

    def test_start_out_of_range(self, registry) -> None:
        """A start past the member count raises IndexOutOfRange."""
        with pytest.raises(IndexOutOfRange):
            registry.get_role_members(ROLE_ADMIN, 5)

    def test_empty_role(self, registry) -> None:
        """A role nobody holds lists no members."""
        assert registry.get_role_members(CONFIG_KEEPER) == []
        assert registry.get_role_member_count(CONFIG_KEEPER) == 0

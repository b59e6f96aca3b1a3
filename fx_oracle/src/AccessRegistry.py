"""AccessRegistry: Role bindings and the capability check for every gated write.

The registry is the single source of truth for authorization. Every mutating
operation in the other stores calls :meth:`AccessRegistry.validate_role`
instead of implementing its own check.

.. code-block:: python

    >>> registry = AccessRegistry(admin="0x00000000000000000000000000000000000000aa")
    >>> registry.has_role("0x00000000000000000000000000000000000000aa", ROLE_ADMIN)
    True
    >>> registry.has_role("0x00000000000000000000000000000000000000bb", CONTROLLER)
    False
"""

from __future__ import annotations

import logging

from .Chain import derive_address, to_address
from .Errors import IndexOutOfRange, ThereMustBeAtLeastOneRoleAdmin, Unauthorized
from .EventEmitter import EventLog
from .Keys import CONTROLLER, ROLE_ADMIN, Role, role_name, to_role_key

logger = logging.getLogger(__name__)


class AccessRegistry:
    """Maps (account, role) to granted/revoked.

    Members of each role are kept in grant order so they can be listed.

    :ivar address: This component's address.
    :ivar events: RoleGranted / RoleRevoked events in order.
    """

    def __init__(self, admin: str, address: str | None = None) -> None:
        """Initialize the registry with a first ROLE_ADMIN.

        :param admin: Deploying account; receives ROLE_ADMIN.
        :param address: Component address (derived from the class name if omitted).
        """
        self.address = to_address(address) if address else derive_address("AccessRegistry")
        self._members: dict[bytes, list[str]] = {}
        self.events: list[EventLog] = []
        self._add(to_address(admin), ROLE_ADMIN.key)
        logger.info(f"AccessRegistry initialized, ROLE_ADMIN granted to {to_address(admin)}")

    def has_role(self, account: str, role: Role | bytes) -> bool:
        """Check whether an account holds a role.

        :param account: Account address.
        :param role: Role or 32-byte role key.
        :returns: True if the role is currently granted; False for a malformed
            account or role key.
        """
        try:
            key = to_role_key(role)
            account = to_address(account)
        except (TypeError, ValueError):
            return False
        members = self._members.get(key)
        return members is not None and account in members

    def validate_role(self, account: str, *roles: Role) -> None:
        """Require that an account holds at least one of the given roles.

        :param account: Caller address.
        :param roles: Accepted roles.
        :raises Unauthorized: If the account holds none of them.
        """
        if any(self.has_role(account, role) for role in roles):
            return
        raise Unauthorized(to_address(account), " | ".join(r.name for r in roles))

    def grant_role(self, caller: str, account: str, role: Role | bytes) -> None:
        """Grant a role. Granting a held role is a no-op.

        :param caller: Must hold ROLE_ADMIN.
        :param account: Account receiving the role.
        :param role: Role or 32-byte role key.
        :raises Unauthorized: If caller lacks ROLE_ADMIN.
        """
        self.validate_role(caller, ROLE_ADMIN)
        account = to_address(account)
        key = to_role_key(role)
        if self.has_role(account, key):
            return
        self._add(account, key)
        self.events.append(
            EventLog(
                "RoleGranted",
                self.address,
                {"account": account, "role": role_name(key), "sender": to_address(caller)},
            )
        )
        logger.info(f"Granted {role_name(key)} to {account}")

    def revoke_role(self, caller: str, account: str, role: Role | bytes) -> None:
        """Revoke a role. Revoking an unheld role is a no-op.

        :param caller: Must hold ROLE_ADMIN.
        :param account: Account losing the role.
        :param role: Role or 32-byte role key.
        :raises Unauthorized: If caller lacks ROLE_ADMIN.
        :raises ThereMustBeAtLeastOneRoleAdmin: If this is the last ROLE_ADMIN.
        """
        self.validate_role(caller, ROLE_ADMIN)
        account = to_address(account)
        key = to_role_key(role)
        if not self.has_role(account, key):
            return
        if key == ROLE_ADMIN.key and len(self._members[key]) == 1:
            raise ThereMustBeAtLeastOneRoleAdmin()
        self._members[key].remove(account)
        if not self._members[key]:
            del self._members[key]
        self.events.append(
            EventLog(
                "RoleRevoked",
                self.address,
                {"account": account, "role": role_name(key), "sender": to_address(caller)},
            )
        )
        logger.info(f"Revoked {role_name(key)} from {account}")

    def get_role_count(self) -> int:
        """Number of roles with at least one member."""
        return len(self._members)

    def get_roles(self) -> list[bytes]:
        """Role keys with at least one member, in first-grant order."""
        return list(self._members)

    def get_role_member_count(self, role: Role | bytes) -> int:
        """Number of accounts holding a role."""
        return len(self._members.get(to_role_key(role), []))

    def get_role_members(self, role: Role | bytes, start: int = 0, end: int | None = None) -> list[str]:
        """List accounts holding a role.

        :param role: Role or 32-byte role key.
        :param start: First index (inclusive).
        :param end: Last index (exclusive); clamped to the member count.
        :returns: Member addresses in grant order.
        :raises IndexOutOfRange: If start is beyond the member count.
        """
        members = self._members.get(to_role_key(role), [])
        if start < 0 or start > len(members):
            raise IndexOutOfRange(start, len(members))
        if end is None or end > len(members):
            end = len(members)
        return members[start:end]

    def _add(self, account: str, key: bytes) -> None:
        self._members.setdefault(key, []).append(account)


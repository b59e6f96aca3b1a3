"""Keys: Role identifiers and config-store keys.

Every role and config key is the keccak256 hash of the ABI-encoded name,
matching the on-chain scheme:
    keccak256(abi.encode("CONTROLLER"))

The raw ``keccak256("CONTROLLER")`` form is a different value and must never
be used for authorization checks.

.. code-block:: python

    >>> CONTROLLER.key.hex()
    '97adf037b2472f4a6a9825eff7d2dd45e37f2dc308df2a260d6a72af4189a65b'
    >>> role_name(CONTROLLER.key)
    'CONTROLLER'
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_abi import encode
from web3 import Web3


def hash_string(name: str) -> bytes:
    """Hash a name the way the contracts derive role and config keys.

    :param name: Human-readable key name (e.g., "MIN_ORACLE_SIGNERS").
    :returns: 32-byte keccak256 of ``abi.encode(name)``.
    """
    return bytes(Web3.keccak(encode(["string"], [name])))


@dataclass(frozen=True)
class Role:
    """A named role and its 32-byte identifier.

    :ivar name: Fixed ASCII role name.
    :ivar key: keccak256(abi.encode(name)).
    """

    name: str
    key: bytes

    @classmethod
    def from_name(cls, name: str) -> Role:
        """Build a role from its name."""
        return cls(name, hash_string(name))

    def __str__(self) -> str:
        return self.name


ROLE_ADMIN = Role.from_name("ROLE_ADMIN")
CONTROLLER = Role.from_name("CONTROLLER")
CONFIG_KEEPER = Role.from_name("CONFIG_KEEPER")

ROLES: dict[bytes, Role] = {r.key: r for r in (ROLE_ADMIN, CONTROLLER, CONFIG_KEEPER)}

# Config keys
MIN_ORACLE_SIGNERS = hash_string("MIN_ORACLE_SIGNERS")
MAX_ORACLE_BLOCK_AGE = hash_string("MAX_ORACLE_BLOCK_AGE")
MAX_ORACLE_PRICE_AGE = hash_string("MAX_ORACLE_PRICE_AGE")


def role_name(key: bytes) -> str:
    """Return the name for a known role key, or its hex form otherwise.

    :param key: 32-byte role identifier.
    :returns: Role name like "CONTROLLER" or "0x..." for unknown keys.
    """
    role = ROLES.get(bytes(key))
    if role is None:
        return "0x" + bytes(key).hex()
    return role.name


def to_role_key(role: Role | bytes) -> bytes:
    """Normalize a Role or raw key into a 32-byte role key.

    :raises ValueError: If a raw key is not exactly 32 bytes.
    """
    if isinstance(role, Role):
        return role.key
    key = bytes(role)
    if len(key) != 32:
        raise ValueError(f"Role key must be 32 bytes, got {len(key)}")
    return key

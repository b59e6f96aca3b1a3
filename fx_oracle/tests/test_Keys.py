"""Unit tests for Keys."""

import pytest
from eth_abi import encode
from web3 import Web3

from fx_oracle.src.Keys import (
    CONFIG_KEEPER,
    CONTROLLER,
    MIN_ORACLE_SIGNERS,
    ROLE_ADMIN,
    ROLES,
    Role,
    hash_string,
    role_name,
    to_role_key,
)


class TestHashString:
    """Test role and config key derivation."""

    def test_controller_constant(self) -> None:
        """CONTROLLER must match the on-chain constant."""
        assert CONTROLLER.key.hex() == (
            "97adf037b2472f4a6a9825eff7d2dd45e37f2dc308df2a260d6a72af4189a65b"
        )

    def test_abi_encoded_not_raw(self) -> None:
        """Keys hash abi.encode(name), not the raw string."""
        assert hash_string("CONTROLLER") != bytes(Web3.keccak(text="CONTROLLER"))
        assert hash_string("CONTROLLER") == bytes(
            Web3.keccak(encode(["string"], ["CONTROLLER"]))
        )

    def test_config_key_length(self) -> None:
        """Config keys are 32-byte hashes of their names."""
        assert len(MIN_ORACLE_SIGNERS) == 32
        assert MIN_ORACLE_SIGNERS == hash_string("MIN_ORACLE_SIGNERS")


class TestRole:
    """Test Role helpers."""

    def test_from_name(self) -> None:
        """Roles build from their names."""
        role = Role.from_name("CONFIG_KEEPER")
        assert role == CONFIG_KEEPER
        assert str(role) == "CONFIG_KEEPER"

    def test_roles_are_distinct(self) -> None:
        """The three roles have distinct keys."""
        assert len(ROLES) == 3
        assert ROLE_ADMIN.key != CONTROLLER.key != CONFIG_KEEPER.key

    def test_role_name_known(self) -> None:
        """Known keys render as role names."""
        assert role_name(CONTROLLER.key) == "CONTROLLER"

    def test_role_name_unknown(self) -> None:
        """Unknown keys render as hex."""
        assert role_name(bytes(32)) == "0x" + "00" * 32

    def test_to_role_key(self) -> None:
        """Roles and raw keys normalize to the same key."""
        assert to_role_key(CONTROLLER) == CONTROLLER.key
        assert to_role_key(CONTROLLER.key) == CONTROLLER.key

    def test_to_role_key_wrong_length(self) -> None:
        """Raw keys must be 32 bytes."""
        with pytest.raises(ValueError, match="32 bytes"):
            to_role_key(b"\x01" * 31)

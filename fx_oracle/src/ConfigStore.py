"""ConfigStore: Typed key-value store for protocol parameters.

One namespace per value type. Keys are 32-byte hashes of semantic names
(see :mod:`fx_oracle.src.Keys`). Reading a key that was never set returns the
type's zero value; callers treat zero as "use the built-in default".

.. code-block:: python

    store = ConfigStore(registry)
    store.get_uint(MIN_ORACLE_SIGNERS)  # 0 until set
    store.set_uint(keeper, MIN_ORACLE_SIGNERS, 2)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from .Chain import ZERO_ADDRESS, derive_address, to_address
from .Compaction import MAX_UINT256
from .Errors import UintUnderflow
from .Keys import CONFIG_KEEPER, CONTROLLER

if TYPE_CHECKING:
    from .AccessRegistry import AccessRegistry

logger = logging.getLogger(__name__)

MIN_INT256 = -(2**255)
MAX_INT256 = 2**255 - 1
ZERO_BYTES32 = bytes(32)


def _to_key(key: bytes) -> bytes:
    key = bytes(key)
    if len(key) != 32:
        raise ValueError(f"Config key must be 32 bytes, got {len(key)}")
    return key


def _to_uint(value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= MAX_UINT256:
        raise ValueError(f"uint256 out of range: {value!r}")
    return value


def _to_int(value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not MIN_INT256 <= value <= MAX_INT256:
        raise ValueError(f"int256 out of range: {value!r}")
    return value


def _to_bytes32(value: bytes) -> bytes:
    value = bytes(value)
    if len(value) != 32:
        raise ValueError(f"bytes32 value must be 32 bytes, got {len(value)}")
    return value


class ConfigStore:
    """Generic typed key-value store gated by CONTROLLER or CONFIG_KEEPER.

    :ivar address: This component's address.
    """

    def __init__(self, access_registry: AccessRegistry, address: str | None = None) -> None:
        """Initialize an empty store.

        :param access_registry: Registry used to authorize writes.
        :param address: Component address (derived from the class name if omitted).
        """
        self.access_registry = access_registry
        self.address = to_address(address) if address else derive_address("ConfigStore")
        self._uints: dict[bytes, int] = {}
        self._ints: dict[bytes, int] = {}
        self._addresses: dict[bytes, str] = {}
        self._bools: dict[bytes, bool] = {}
        self._bytes32s: dict[bytes, bytes] = {}
        self._strings: dict[bytes, str] = {}

    def _validate_writer(self, caller: str) -> None:
        self.access_registry.validate_role(caller, CONTROLLER, CONFIG_KEEPER)

    def _set(
        self,
        caller: str,
        namespace: dict[bytes, Any],
        key: bytes,
        value: Any,
        convert: Callable[[Any], Any],
    ) -> Any:
        self._validate_writer(caller)
        key = _to_key(key)
        value = convert(value)
        namespace[key] = value
        logger.debug(f"Config 0x{key.hex()} set to {value!r} by {caller}")
        return value

    def _remove(self, caller: str, namespace: dict[bytes, Any], key: bytes) -> None:
        self._validate_writer(caller)
        namespace.pop(_to_key(key), None)

    # uint256

    def get_uint(self, key: bytes) -> int:
        return self._uints.get(_to_key(key), 0)

    def set_uint(self, caller: str, key: bytes, value: int) -> int:
        """Set an unsigned value.

        :raises Unauthorized: If caller lacks CONTROLLER and CONFIG_KEEPER.
        :raises ValueError: If value is outside the uint256 range.
        """
        return self._set(caller, self._uints, key, value, _to_uint)

    def remove_uint(self, caller: str, key: bytes) -> None:
        self._remove(caller, self._uints, key)

    def apply_delta_to_uint(self, caller: str, key: bytes, delta: int) -> int:
        """Add a signed delta to an unsigned value.

        :returns: The new value.
        :raises UintUnderflow: If the result would be negative.
        """
        self._validate_writer(caller)
        current = self.get_uint(key)
        if current + delta < 0:
            raise UintUnderflow(current, delta)
        return self.set_uint(caller, key, current + delta)

    def increment_uint(self, caller: str, key: bytes, delta: int = 1) -> int:
        """Increase an unsigned value; returns the new value."""
        if delta < 0:
            raise ValueError("delta must be non-negative")
        return self.apply_delta_to_uint(caller, key, delta)

    # int256

    def get_int(self, key: bytes) -> int:
        return self._ints.get(_to_key(key), 0)

    def set_int(self, caller: str, key: bytes, value: int) -> int:
        return self._set(caller, self._ints, key, value, _to_int)

    def remove_int(self, caller: str, key: bytes) -> None:
        self._remove(caller, self._ints, key)

    # address

    def get_address(self, key: bytes) -> str:
        return self._addresses.get(_to_key(key), ZERO_ADDRESS)

    def set_address(self, caller: str, key: bytes, value: str) -> str:
        return self._set(caller, self._addresses, key, value, to_address)

    def remove_address(self, caller: str, key: bytes) -> None:
        self._remove(caller, self._addresses, key)

    # bool

    def get_bool(self, key: bytes) -> bool:
        return self._bools.get(_to_key(key), False)

    def set_bool(self, caller: str, key: bytes, value: bool) -> bool:
        return self._set(caller, self._bools, key, value, bool)

    def remove_bool(self, caller: str, key: bytes) -> None:
        self._remove(caller, self._bools, key)

    # bytes32

    def get_bytes32(self, key: bytes) -> bytes:
        return self._bytes32s.get(_to_key(key), ZERO_BYTES32)

    def set_bytes32(self, caller: str, key: bytes, value: bytes) -> bytes:
        return self._set(caller, self._bytes32s, key, value, _to_bytes32)

    def remove_bytes32(self, caller: str, key: bytes) -> None:
        self._remove(caller, self._bytes32s, key)

    # string

    def get_string(self, key: bytes) -> str:
        return self._strings.get(_to_key(key), "")

    def set_string(self, caller: str, key: bytes, value: str) -> str:
        return self._set(caller, self._strings, key, value, str)

    def remove_string(self, caller: str, key: bytes) -> None:
        self._remove(caller, self._strings, key)

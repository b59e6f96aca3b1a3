"""Typed rejections raised by the oracle stores.

Every error aborts the current call as a whole. Each class carries the
Solidity-style error signature it corresponds to, so revert data coming back
from a node can be mapped to the same type:

.. code-block:: python

    >>> err = Unauthorized("0x0000000000000000000000000000000000000001", "CONTROLLER")
    >>> lookup_error(err.selector) is Unauthorized
    True
"""

from __future__ import annotations

from typing import ClassVar

from web3 import Web3


class OracleError(Exception):
    """Base exception for all oracle protocol rejections.

    :cvar signature: Solidity error signature, e.g. ``"Unauthorized(address,string)"``.
    """

    signature: ClassVar[str] = ""

    @classmethod
    def compute_selector(cls) -> bytes:
        """Return the 4-byte selector of this error's signature."""
        return bytes(Web3.keccak(text=cls.signature))[:4]

    @property
    def selector(self) -> bytes:
        """4-byte selector identifying this error type."""
        return self.compute_selector()


# Authorization


class Unauthorized(OracleError):
    """Caller lacks the role required for a write.

    :ivar account: Caller address.
    :ivar role: Name of the required role (or roles, joined with " | ").
    """

    signature = "Unauthorized(address,string)"

    def __init__(self, account: str, role: str) -> None:
        self.account = account
        self.role = role
        super().__init__(f"Unauthorized: {account} lacks role {role}")


class ThereMustBeAtLeastOneRoleAdmin(OracleError):
    """Revoking this ROLE_ADMIN would leave the registry without an admin."""

    signature = "ThereMustBeAtLeastOneRoleAdmin()"

    def __init__(self) -> None:
        super().__init__("There must be at least one ROLE_ADMIN")


# Quorum and roster


class MinOracleSigners(OracleError):
    """Fewer signers than the configured quorum."""

    signature = "MinOracleSigners(uint256,uint256)"

    def __init__(self, signers: int, min_signers: int) -> None:
        self.signers = signers
        self.min_signers = min_signers
        super().__init__(f"MinOracleSigners: got {signers}, need {min_signers}")


class MaxOracleSigners(OracleError):
    """More signers than the signer-info word can address."""

    signature = "MaxOracleSigners(uint256,uint256)"

    def __init__(self, signers: int, max_signers: int) -> None:
        self.signers = signers
        self.max_signers = max_signers
        super().__init__(f"MaxOracleSigners: got {signers}, max {max_signers}")


class InvalidSignature(OracleError):
    """A signature could not be recovered to any address."""

    signature = "InvalidSignature(uint256)"

    def __init__(self, signature_index: int, reason: str = "") -> None:
        self.signature_index = signature_index
        self.reason = reason
        message = f"InvalidSignature at index {signature_index}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidSigner(OracleError):
    """Recovered signer does not match the roster entry at the claimed index."""

    signature = "InvalidSigner(address,address)"

    def __init__(self, recovered: str, expected: str) -> None:
        self.recovered = recovered
        self.expected = expected
        super().__init__(f"InvalidSigner: recovered {recovered}, expected {expected}")


class DuplicateSigner(OracleError):
    """Signer already present in the roster or repeated in one submission."""

    signature = "DuplicateSigner(address)"

    def __init__(self, signer: str) -> None:
        self.signer = signer
        super().__init__(f"DuplicateSigner: {signer}")


class SignerNotFound(OracleError):
    """Signer to remove is not in the roster."""

    signature = "SignerNotFound(address)"

    def __init__(self, signer: str) -> None:
        self.signer = signer
        super().__init__(f"SignerNotFound: {signer}")


# Data validity


class EmptyPrimaryPrice(OracleError):
    """No price committed for the token, or a submitted bound is zero."""

    signature = "EmptyPrimaryPrice(address)"

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"EmptyPrimaryPrice: {token}")


class InvalidMinMaxPrice(OracleError):
    """Submitted min price is above the max price."""

    signature = "InvalidMinMaxPrice(address,uint256,uint256)"

    def __init__(self, token: str, min_price: int, max_price: int) -> None:
        self.token = token
        self.min_price = min_price
        self.max_price = max_price
        super().__init__(f"InvalidMinMaxPrice: {token} min={min_price} > max={max_price}")


class NonUniqueToken(OracleError):
    """The same token appears twice in one submission."""

    signature = "NonUniqueToken(address)"

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"NonUniqueToken: {token}")


class ArrayLengthMismatch(OracleError):
    """Parallel arrays of a submission disagree in length.

    :ivar name: Name of the offending array.
    :ivar expected: Expected length.
    :ivar actual: Actual length.
    """

    signature = "ArrayLengthMismatch(string,uint256,uint256)"

    def __init__(self, name: str, expected: int, actual: int) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"ArrayLengthMismatch: {name} has {actual}, expected {expected}")


class IndexOutOfRange(OracleError):
    """Index read beyond the end of a list."""

    signature = "IndexOutOfRange(uint256,uint256)"

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(f"IndexOutOfRange: index {index}, length {length}")


class OracleBlockNumberOutOfRange(OracleError):
    """Submission block range is in the future or older than the tolerance."""

    signature = "OracleBlockNumberOutOfRange(uint256,uint256,uint256)"

    def __init__(self, min_block: int, max_block: int, current_block: int) -> None:
        self.min_block = min_block
        self.max_block = max_block
        self.current_block = current_block
        super().__init__(
            f"OracleBlockNumberOutOfRange: [{min_block}, {max_block}] "
            f"at block {current_block}"
        )


class MaxPriceAgeExceeded(OracleError):
    """Submission timestamp is older than MAX_ORACLE_PRICE_AGE."""

    signature = "MaxPriceAgeExceeded(uint256,uint256)"

    def __init__(self, oracle_timestamp: int, current_timestamp: int) -> None:
        self.oracle_timestamp = oracle_timestamp
        self.current_timestamp = current_timestamp
        super().__init__(
            f"MaxPriceAgeExceeded: oracle timestamp {oracle_timestamp}, "
            f"now {current_timestamp}"
        )


class PriceOverflow(OracleError):
    """A compacted price rescales beyond uint256."""

    signature = "PriceOverflow(uint256,uint256)"

    def __init__(self, value: int, decimals: int) -> None:
        self.value = value
        self.decimals = decimals
        super().__init__(f"PriceOverflow: {value} * 10**{decimals} exceeds uint256")


class UintUnderflow(OracleError):
    """A delta would take an unsigned config value below zero."""

    signature = "UintUnderflow(uint256,int256)"

    def __init__(self, value: int, delta: int) -> None:
        self.value = value
        self.delta = delta
        super().__init__(f"UintUnderflow: {value} + ({delta}) < 0")


ERROR_TYPES: tuple[type[OracleError], ...] = (
    Unauthorized,
    ThereMustBeAtLeastOneRoleAdmin,
    MinOracleSigners,
    MaxOracleSigners,
    InvalidSignature,
    InvalidSigner,
    DuplicateSigner,
    SignerNotFound,
    EmptyPrimaryPrice,
    InvalidMinMaxPrice,
    NonUniqueToken,
    ArrayLengthMismatch,
    IndexOutOfRange,
    OracleBlockNumberOutOfRange,
    MaxPriceAgeExceeded,
    PriceOverflow,
    UintUnderflow,
)

ERRORS_BY_SELECTOR: dict[bytes, type[OracleError]] = {
    cls.compute_selector(): cls for cls in ERROR_TYPES
}


def lookup_error(data: bytes | str) -> type[OracleError] | None:
    """Map revert data (or a bare selector) to its error type.

    :param data: Raw revert bytes or a ``0x``-prefixed hex string.
    :returns: Matching error class, or None if the selector is unknown.
    :raises ValueError: If a hex string is malformed.
    """
    if isinstance(data, str):
        data = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    if len(data) < 4:
        return None
    return ERRORS_BY_SELECTOR.get(bytes(data[:4]))

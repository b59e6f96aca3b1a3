"""Chain: Block context and address helpers shared by every store."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Arbitrum Sepolia, where the exchange contracts are deployed.
DEFAULT_CHAIN_ID = 421614


def to_address(value: str) -> str:
    """Normalize an address to its EIP-55 checksummed form.

    :param value: Hex address, any case.
    :returns: Checksummed address.
    :raises ValueError: If value is not a 20-byte hex address.
    """
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(value)


def derive_address(label: str) -> str:
    """Derive a deterministic component address from a label.

    :param label: Unique label (e.g., "PriceOracle").
    :returns: Checksummed address built from the last 20 bytes of keccak256(label).
    """
    return Web3.to_checksum_address(bytes(Web3.keccak(text=label))[12:])


@dataclass
class Chain:
    """Current block number, block timestamp and chain id.

    Calls are serialized: every store reads the block context at the time of
    the call and nothing advances it except :meth:`mine`.

    :ivar chain_id: Chain id bound into signed price messages.
    :ivar block_number: Current block number.
    :ivar timestamp: Current block timestamp (unix seconds).
    """

    chain_id: int = DEFAULT_CHAIN_ID
    block_number: int = 1
    timestamp: int = field(default_factory=lambda: int(time.time()))

    def mine(self, blocks: int = 1, seconds: int | None = None) -> int:
        """Advance the chain.

        :param blocks: Number of blocks to mine.
        :param seconds: Seconds to advance the timestamp (default: one per block).
        :returns: New block number.
        :raises ValueError: If blocks or seconds is negative.
        """
        if blocks < 0:
            raise ValueError("blocks must be non-negative")
        if seconds is None:
            seconds = blocks
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        self.block_number += blocks
        self.timestamp += seconds
        return self.block_number

"""PriceBatch: Compacted multi-signer price submissions.

This module holds the submission format shared by both sides of the
protocol:

- :class:`SetPricesParams`: the parallel arrays of one ``set_prices`` call
- :func:`price_digest`: the canonical message each signer signs per token
- :class:`PriceBatchBuilder`: the off-chain keeper side, which compacts
  quotes and collects one signature per (token, signer)

Signatures are laid out token-major: the signature of signer ``j`` (position
in the signer info word) for token ``i`` is ``signatures[i * n + j]``. Price
slots use the same index.

.. code-block:: python

    builder = PriceBatchBuilder(chain_id=chain.chain_id)
    builder.add_price(NGN, 1500 * FLOAT_PRECISION)
    params = builder.build(
        signers=[(0, signer_a), (1, signer_b)],
        min_block=chain.block_number,
        timestamp=chain.timestamp,
    )
    oracle.set_prices(keeper, params)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from .Chain import to_address
from .Compaction import (
    BLOCK_NUMBER_BIT_LENGTH,
    DECIMAL_BIT_LENGTH,
    PRICE_BIT_LENGTH,
    TIMESTAMP_BIT_LENGTH,
    common_decimals,
    compact_values,
    encode_signer_info,
    price_to_slot,
)

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)

# Domain tag bound into every signed price, together with the chain id.
ORACLE_SALT_TAG = "fx-oracle-v1"


@dataclass
class SetPricesParams:
    """Arguments of one ``PriceOracle.set_prices`` call.

    :ivar signer_info: Signer count and roster indexes, 16 bits each.
    :ivar tokens: Token addresses, one entry per price.
    :ivar compacted_min_oracle_block_numbers: 64-bit slots, one per token.
    :ivar compacted_max_oracle_block_numbers: 64-bit slots, one per token.
    :ivar compacted_oracle_timestamps: 64-bit slots, one per token.
    :ivar compacted_decimals: 8-bit slots, one per token.
    :ivar compacted_min_prices: 32-bit slots, one per (token, signer).
    :ivar compacted_max_prices: 32-bit slots, one per (token, signer).
    :ivar signatures: 65-byte signatures, one per (token, signer).
    """

    signer_info: int
    tokens: list[str]
    compacted_min_oracle_block_numbers: list[int] = field(default_factory=list)
    compacted_max_oracle_block_numbers: list[int] = field(default_factory=list)
    compacted_oracle_timestamps: list[int] = field(default_factory=list)
    compacted_decimals: list[int] = field(default_factory=list)
    compacted_min_prices: list[int] = field(default_factory=list)
    compacted_max_prices: list[int] = field(default_factory=list)
    signatures: list[bytes] = field(default_factory=list)


def oracle_salt(chain_id: int) -> bytes:
    """Return the per-chain salt mixed into every price digest."""
    return bytes(Web3.keccak(encode(["uint256", "string"], [chain_id, ORACLE_SALT_TAG])))


def price_digest(
    chain_id: int,
    token: str,
    min_block: int,
    max_block: int,
    timestamp: int,
    decimals: int,
    min_price: int,
    max_price: int,
) -> bytes:
    """Hash the canonical message a signer signs for one token.

    :param chain_id: Chain the submission targets.
    :param token: Token address.
    :param min_block: Earliest block of the observation window.
    :param max_block: Latest block of the observation window.
    :param timestamp: Observation timestamp.
    :param decimals: Decimal exponent of the compacted prices.
    :param min_price: Compacted (slot) min price of this signer.
    :param max_price: Compacted (slot) max price of this signer.
    :returns: 32-byte keccak256 digest.
    """
    return bytes(
        Web3.keccak(
            encode(
                ["bytes32", "uint256", "uint256", "uint256", "address", "uint256", "uint256", "uint256"],
                [
                    oracle_salt(chain_id),
                    min_block,
                    max_block,
                    timestamp,
                    to_address(token),
                    decimals,
                    min_price,
                    max_price,
                ],
            )
        )
    )


def sign_digest(account: LocalAccount, digest: bytes) -> bytes:
    """Sign a price digest as an EIP-191 personal message.

    :returns: 65-byte signature (r, s, v).
    """
    signed = account.sign_message(encode_defunct(primitive=digest))
    return bytes(signed.signature)


def recover_signer(digest: bytes, signature: bytes) -> str:
    """Recover the address that signed a price digest.

    :returns: Checksummed signer address.
    :raises ValueError: If the signature is not 65 bytes.
    """
    if len(signature) != 65:
        raise ValueError(f"Signature must be 65 bytes, got {len(signature)}")
    return Account.recover_message(encode_defunct(primitive=digest), signature=signature)


@dataclass
class TokenQuote:
    """Quotes for one token, either shared by all signers or per signer.

    :ivar token: Token address.
    :ivar prices: (min, max) pairs at 30-decimal precision; a single pair is
        used for every signer.
    :ivar decimals: Decimal exponent override; derived from the prices if None.
    """

    token: str
    prices: list[tuple[int, int]]
    decimals: int | None = None

    def price_for(self, signer_position: int) -> tuple[int, int]:
        if len(self.prices) == 1:
            return self.prices[0]
        return self.prices[signer_position]


class PriceBatchBuilder:
    """Builds signed, compacted ``SetPricesParams`` from per-token quotes.

    Tokens are kept in insertion order and repeated tokens are not merged, so
    the builder can also produce batches the oracle must reject.

    :ivar chain_id: Chain id bound into every signature.
    :ivar quotes: Token quotes in submission order.
    """

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        self.quotes: list[TokenQuote] = []

    def add_price(
        self,
        token: str,
        min_price: int,
        max_price: int | None = None,
        decimals: int | None = None,
    ) -> PriceBatchBuilder:
        """Add one quote signed identically by every signer.

        :param token: Token address.
        :param min_price: Min price at 30-decimal precision.
        :param max_price: Max price (defaults to min_price).
        :param decimals: Optional decimal exponent for compaction.
        :returns: self, for chaining.
        """
        if max_price is None:
            max_price = min_price
        self.quotes.append(TokenQuote(to_address(token), [(min_price, max_price)], decimals))
        return self

    def add_signer_prices(
        self,
        token: str,
        prices: list[tuple[int, int]],
        decimals: int | None = None,
    ) -> PriceBatchBuilder:
        """Add per-signer (min, max) quotes, in the order signers are passed to build().

        :returns: self, for chaining.
        """
        if not prices:
            raise ValueError("prices must not be empty")
        self.quotes.append(TokenQuote(to_address(token), list(prices), decimals))
        return self

    def build(
        self,
        signers: list[tuple[int, LocalAccount]],
        min_block: int,
        max_block: int | None = None,
        timestamp: int = 0,
    ) -> SetPricesParams:
        """Compact the quotes and sign them.

        :param signers: (roster_index, account) pairs, in signer-info order.
        :param min_block: Earliest block of the observation window.
        :param max_block: Latest block (defaults to min_block).
        :param timestamp: Observation timestamp.
        :returns: Ready-to-submit params.
        :raises ValueError: If a price cannot be compacted or per-signer quotes
            do not match the signer count.
        """
        if max_block is None:
            max_block = min_block
        n = len(signers)

        decimals_list: list[int] = []
        min_slots: list[int] = []
        max_slots: list[int] = []
        signatures: list[bytes] = []

        for quote in self.quotes:
            if len(quote.prices) not in (1, n):
                raise ValueError(
                    f"{quote.token}: {len(quote.prices)} quotes for {n} signers"
                )
            pairs = [quote.price_for(j) for j in range(n)]
            decimals = quote.decimals
            if decimals is None:
                decimals = common_decimals([p for pair in pairs for p in pair])
            decimals_list.append(decimals)

            for (_, account), (min_price, max_price) in zip(signers, pairs):
                min_slot = price_to_slot(min_price, decimals)
                max_slot = price_to_slot(max_price, decimals)
                min_slots.append(min_slot)
                max_slots.append(max_slot)
                digest = price_digest(
                    self.chain_id,
                    quote.token,
                    min_block,
                    max_block,
                    timestamp,
                    decimals,
                    min_slot,
                    max_slot,
                )
                signatures.append(sign_digest(account, digest))

        count = len(self.quotes)
        params = SetPricesParams(
            signer_info=encode_signer_info([index for index, _ in signers]),
            tokens=[q.token for q in self.quotes],
            compacted_min_oracle_block_numbers=compact_values([min_block] * count, BLOCK_NUMBER_BIT_LENGTH),
            compacted_max_oracle_block_numbers=compact_values([max_block] * count, BLOCK_NUMBER_BIT_LENGTH),
            compacted_oracle_timestamps=compact_values([timestamp] * count, TIMESTAMP_BIT_LENGTH),
            compacted_decimals=compact_values(decimals_list, DECIMAL_BIT_LENGTH),
            compacted_min_prices=compact_values(min_slots, PRICE_BIT_LENGTH),
            compacted_max_prices=compact_values(max_slots, PRICE_BIT_LENGTH),
            signatures=signatures,
        )
        logger.debug(
            f"Built price batch: tokens={params.tokens}, signers={n}, "
            f"blocks=[{min_block}, {max_block}]"
        )
        return params

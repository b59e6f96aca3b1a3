"""PriceOracle: Quorum-signed price submissions.

A keeper holding CONTROLLER submits a compacted batch signed by a quorum of
roster signers. Each call is validated completely before anything is written:

    1. Caller must hold CONTROLLER
    2. Signer count must be within [MIN_ORACLE_SIGNERS, MAX_SIGNERS]
    3. For every token (no repeats):
        a. decode per-signer min/max slots and rescale to 30 decimals
        b. recover each signature and match it to the roster entry at the
           claimed index
        c. take the lowest min and the highest max across signers
        d. check the observation block window against MAX_ORACLE_BLOCK_AGE
           (and the timestamp against MAX_ORACLE_PRICE_AGE when set)
        e. reject zero bounds and min > max
    4. Commit all records together

Any failure raises a typed :class:`~fx_oracle.src.Errors.OracleError` and
leaves every record as it was.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .Chain import to_address
from .Compaction import (
    BLOCK_NUMBER_BIT_LENGTH,
    DECIMAL_BIT_LENGTH,
    MAX_SIGNERS,
    PRICE_BIT_LENGTH,
    TIMESTAMP_BIT_LENGTH,
    decode_signer_info,
    expand_price,
    required_words,
    signer_count,
    uncompact_value,
)
from .Errors import (
    ArrayLengthMismatch,
    DuplicateSigner,
    InvalidSignature,
    InvalidSigner,
    MaxOracleSigners,
    MaxPriceAgeExceeded,
    MinOracleSigners,
    NonUniqueToken,
    OracleBlockNumberOutOfRange,
)
from .Keys import CONTROLLER, MAX_ORACLE_BLOCK_AGE, MAX_ORACLE_PRICE_AGE, MIN_ORACLE_SIGNERS
from .PriceBatch import SetPricesParams, price_digest, recover_signer
from .PriceStore import PriceRecord, PriceStore

if TYPE_CHECKING:
    from .AccessRegistry import AccessRegistry
    from .Chain import Chain
    from .ConfigStore import ConfigStore
    from .EventEmitter import EventEmitter
    from .SignerRoster import SignerRoster

logger = logging.getLogger(__name__)

# Quorum used while MIN_ORACLE_SIGNERS is unset, so an unconfigured oracle
# still accepts single-signer submissions.
DEFAULT_MIN_ORACLE_SIGNERS = 1


class PriceOracle(PriceStore):
    """Oracle accepting compacted, quorum-signed price batches.

    :ivar signer_roster: Roster the signer indexes refer to.
    :ivar config_store: Source of MIN_ORACLE_SIGNERS and staleness limits.
    """

    def __init__(
        self,
        access_registry: AccessRegistry,
        signer_roster: SignerRoster,
        config_store: ConfigStore,
        chain: Chain,
        event_emitter: EventEmitter | None = None,
        address: str | None = None,
    ) -> None:
        """Initialize the oracle.

        :param access_registry: Registry used to authorize writes.
        :param signer_roster: Roster of authorized signers.
        :param config_store: Protocol parameter store.
        :param chain: Block context (current block, timestamp, chain id).
        :param event_emitter: Optional emitter for price events.
        :param address: Component address (derived from the class name if omitted).
        """
        super().__init__(access_registry, chain, event_emitter, address)
        self.signer_roster = signer_roster
        self.config_store = config_store

    def get_min_signers(self) -> int:
        """Configured quorum, falling back to DEFAULT_MIN_ORACLE_SIGNERS when unset."""
        return self.config_store.get_uint(MIN_ORACLE_SIGNERS) or DEFAULT_MIN_ORACLE_SIGNERS

    def set_prices(self, caller: str, params: SetPricesParams) -> None:
        """Validate a signed batch and commit its prices.

        :param caller: Must hold CONTROLLER.
        :param params: Compacted submission.
        :raises Unauthorized: If caller lacks CONTROLLER.
        :raises MinOracleSigners: If fewer signers than the quorum.
        :raises MaxOracleSigners: If more than MAX_SIGNERS signers.
        :raises DuplicateSigner: If a roster index is repeated.
        :raises IndexOutOfRange: If a roster index does not exist.
        :raises ArrayLengthMismatch: If the parallel arrays disagree.
        :raises NonUniqueToken: If a token appears twice.
        :raises InvalidSignature: If a signature cannot be recovered.
        :raises InvalidSigner: If a signature is not from the claimed signer.
        :raises PriceOverflow: If a decoded price exceeds uint256.
        :raises OracleBlockNumberOutOfRange: If the block window is stale or in the future.
        :raises MaxPriceAgeExceeded: If the observation timestamp is too old.
        :raises EmptyPrimaryPrice: If a price bound is zero.
        :raises InvalidMinMaxPrice: If the min price exceeds the max price.
        """
        self.access_registry.validate_role(caller, CONTROLLER)

        n = signer_count(params.signer_info)
        min_signers = self.get_min_signers()
        if n < min_signers:
            raise MinOracleSigners(n, min_signers)
        if n > MAX_SIGNERS:
            raise MaxOracleSigners(n, MAX_SIGNERS)

        signers = self._resolve_signers(params.signer_info)
        self._validate_lengths(params, n)

        max_block_age = self.config_store.get_uint(MAX_ORACLE_BLOCK_AGE)
        max_price_age = self.config_store.get_uint(MAX_ORACLE_PRICE_AGE)

        pending: dict[str, PriceRecord] = {}
        for i, token in enumerate(params.tokens):
            token = to_address(token)
            if token in pending:
                raise NonUniqueToken(token)
            pending[token] = self._decode_token(
                params, i, token, signers, max_block_age, max_price_age
            )

        self._commit(pending)
        logger.info(
            f"Committed {len(pending)} prices signed by {n} signers "
            f"at block {self.chain.block_number}"
        )

    def _resolve_signers(self, signer_info: int) -> list[str]:
        """Map the signer info indexes to roster addresses, rejecting repeats."""
        signers: list[str] = []
        for index in decode_signer_info(signer_info):
            signer = self.signer_roster.get_signer(index)
            if signer in signers:
                raise DuplicateSigner(signer)
            signers.append(signer)
        return signers

    @staticmethod
    def _validate_lengths(params: SetPricesParams, n: int) -> None:
        token_count = len(params.tokens)
        expected_signatures = token_count * n
        if len(params.signatures) != expected_signatures:
            raise ArrayLengthMismatch("signatures", expected_signatures, len(params.signatures))

        compacted = (
            ("compacted_min_oracle_block_numbers", params.compacted_min_oracle_block_numbers, token_count, BLOCK_NUMBER_BIT_LENGTH),
            ("compacted_max_oracle_block_numbers", params.compacted_max_oracle_block_numbers, token_count, BLOCK_NUMBER_BIT_LENGTH),
            ("compacted_oracle_timestamps", params.compacted_oracle_timestamps, token_count, TIMESTAMP_BIT_LENGTH),
            ("compacted_decimals", params.compacted_decimals, token_count, DECIMAL_BIT_LENGTH),
            ("compacted_min_prices", params.compacted_min_prices, expected_signatures, PRICE_BIT_LENGTH),
            ("compacted_max_prices", params.compacted_max_prices, expected_signatures, PRICE_BIT_LENGTH),
        )
        for name, words, slots, bit_length in compacted:
            expected = required_words(slots, bit_length)
            if len(words) != expected:
                raise ArrayLengthMismatch(name, expected, len(words))

    def _decode_token(
        self,
        params: SetPricesParams,
        token_index: int,
        token: str,
        signers: list[str],
        max_block_age: int,
        max_price_age: int,
    ) -> PriceRecord:
        min_block = uncompact_value(params.compacted_min_oracle_block_numbers, token_index, BLOCK_NUMBER_BIT_LENGTH)
        max_block = uncompact_value(params.compacted_max_oracle_block_numbers, token_index, BLOCK_NUMBER_BIT_LENGTH)
        timestamp = uncompact_value(params.compacted_oracle_timestamps, token_index, TIMESTAMP_BIT_LENGTH)
        decimals = uncompact_value(params.compacted_decimals, token_index, DECIMAL_BIT_LENGTH)

        n = len(signers)
        min_prices: list[int] = []
        max_prices: list[int] = []
        for j, expected_signer in enumerate(signers):
            slot = token_index * n + j
            min_slot = uncompact_value(params.compacted_min_prices, slot, PRICE_BIT_LENGTH)
            max_slot = uncompact_value(params.compacted_max_prices, slot, PRICE_BIT_LENGTH)

            digest = price_digest(
                self.chain.chain_id,
                token,
                min_block,
                max_block,
                timestamp,
                decimals,
                min_slot,
                max_slot,
            )
            self._validate_signer(digest, params.signatures[slot], slot, expected_signer)

            min_prices.append(expand_price(min_slot, decimals))
            max_prices.append(expand_price(max_slot, decimals))

        min_price = min(min_prices)
        max_price = max(max_prices)

        self._validate_block_window(min_block, max_block, max_block_age)
        if max_price_age and self.chain.timestamp - timestamp > max_price_age:
            raise MaxPriceAgeExceeded(timestamp, self.chain.timestamp)

        self._validate_price(token, min_price, max_price)
        logger.debug(
            f"{token}: decoded {n} signer prices (decimals={decimals}), "
            f"min={min_price} max={max_price}"
        )
        return PriceRecord(min_price, max_price, min_block, timestamp)

    @staticmethod
    def _validate_signer(digest: bytes, signature: bytes, index: int, expected: str) -> None:
        try:
            recovered = recover_signer(digest, bytes(signature))
        except Exception as exc:
            raise InvalidSignature(index, str(exc)) from exc
        if recovered != expected:
            raise InvalidSigner(recovered, expected)

    def _validate_block_window(self, min_block: int, max_block: int, max_block_age: int) -> None:
        current = self.chain.block_number
        if min_block > max_block or max_block > current:
            raise OracleBlockNumberOutOfRange(min_block, max_block, current)
        if current - min_block > max_block_age:
            raise OracleBlockNumberOutOfRange(min_block, max_block, current)

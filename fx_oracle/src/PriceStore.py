"""PriceStore: Committed price records and the shared read path.

Both oracle variants write through :meth:`PriceStore._commit`, which emits
one ``OraclePriceUpdate`` per token and then replaces the records of every
token in the batch at once. Reads never check record age; staleness
tolerance is up to each consumer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .Chain import derive_address, to_address
from .Compaction import FLOAT_PRECISION
from .Errors import EmptyPrimaryPrice, IndexOutOfRange, InvalidMinMaxPrice
from .Keys import CONTROLLER

if TYPE_CHECKING:
    from .AccessRegistry import AccessRegistry
    from .Chain import Chain
    from .EventEmitter import EventEmitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Price:
    """Primary price of a token at 30-decimal precision.

    :ivar min: Lower bound.
    :ivar max: Upper bound.
    """

    min: int
    max: int


@dataclass(frozen=True)
class PriceRecord:
    """A committed price with its observation block and timestamp.

    :ivar min: Lower bound at 30-decimal precision.
    :ivar max: Upper bound at 30-decimal precision.
    :ivar block_number: Oracle block the price was observed at.
    :ivar timestamp: Oracle timestamp the price was observed at.
    """

    min: int
    max: int
    block_number: int
    timestamp: int

    def to_price(self) -> Price:
        return Price(self.min, self.max)


def format_price(value: int) -> str:
    """Render a 30-decimal fixed-point price as a plain decimal string.

    .. code-block:: python

        >>> format_price(1500 * FLOAT_PRECISION)
        '1500'
        >>> format_price(FLOAT_PRECISION // 4)
        '0.25'
    """
    whole, fraction = divmod(value, FLOAT_PRECISION)
    if not fraction:
        return str(whole)
    return f"{whole}.{str(fraction).rjust(30, '0').rstrip('0')}"


class PriceStore:
    """Per-token price records with the read contract shared by both oracles.

    :ivar address: This component's address.
    """

    def __init__(
        self,
        access_registry: AccessRegistry,
        chain: Chain,
        event_emitter: EventEmitter | None = None,
        address: str | None = None,
    ) -> None:
        """Initialize an empty store.

        :param access_registry: Registry used to authorize writes.
        :param chain: Block context.
        :param event_emitter: Optional emitter for price events.
        :param address: Component address (derived from the class name if omitted).
        """
        self.access_registry = access_registry
        self.chain = chain
        self.event_emitter = event_emitter
        self.address = to_address(address) if address else derive_address(type(self).__name__)
        self._records: dict[str, PriceRecord] = {}

    def get_primary_price(self, token: str) -> Price:
        """Return the latest committed price of a token.

        :param token: Token address.
        :returns: Price with min and max at 30-decimal precision.
        :raises EmptyPrimaryPrice: If no price has been committed.
        """
        return self.get_price_record(token).to_price()

    def get_price_record(self, token: str) -> PriceRecord:
        """Return the latest committed record of a token.

        :raises EmptyPrimaryPrice: If no price has been committed.
        """
        token = to_address(token)
        record = self._records.get(token)
        if record is None or record.min == 0 or record.max == 0:
            raise EmptyPrimaryPrice(token)
        return record

    def has_price(self, token: str) -> bool:
        return to_address(token) in self._records

    def get_tokens_with_prices_count(self) -> int:
        return len(self._records)

    def get_tokens_with_prices(self, start: int = 0, end: int | None = None) -> list[str]:
        """Tokens with a committed price in [start, end), in first-commit order."""
        tokens = list(self._records)
        if start < 0 or start > len(tokens):
            raise IndexOutOfRange(start, len(tokens))
        if end is None or end > len(tokens):
            end = len(tokens)
        return tokens[start:end]

    def clear_all_prices(self, caller: str) -> None:
        """Drop every committed price.

        :param caller: Must hold CONTROLLER.
        :raises Unauthorized: If caller lacks CONTROLLER.
        """
        self.access_registry.validate_role(caller, CONTROLLER)
        count = len(self._records)
        if self.event_emitter is not None:
            self.event_emitter.emit(self.address, "OraclePricesCleared", count=count)
        self._records.clear()
        logger.info(f"Cleared {count} oracle prices")

    @staticmethod
    def _validate_price(token: str, min_price: int, max_price: int) -> None:
        """Reject zero bounds and inverted ranges.

        :raises EmptyPrimaryPrice: If either bound is zero.
        :raises InvalidMinMaxPrice: If min_price > max_price.
        """
        if min_price == 0 or max_price == 0:
            raise EmptyPrimaryPrice(token)
        if min_price > max_price:
            raise InvalidMinMaxPrice(token, min_price, max_price)

    def _commit(self, records: dict[str, PriceRecord]) -> None:
        """Emit price events, then replace the records of every token at once."""
        if not records:
            return
        if self.event_emitter is not None:
            self.event_emitter.emit_all(
                self.address,
                [
                    (
                        "OraclePriceUpdate",
                        {
                            "token": token,
                            "min_price": record.min,
                            "max_price": record.max,
                            "block_number": record.block_number,
                            "timestamp": record.timestamp,
                        },
                    )
                    for token, record in records.items()
                ],
            )
        self._records.update(records)
        for token, record in records.items():
            logger.info(
                f"{token}: min={format_price(record.min)} max={format_price(record.max)} "
                f"(block {record.block_number})"
            )

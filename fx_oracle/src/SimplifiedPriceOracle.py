"""SimplifiedPriceOracle: Direct price writes by a trusted submitter.

TRUSTED-SUBMITTER-ONLY. This variant performs no signature verification, no
signer quorum and no staleness check: whoever holds CONTROLLER sets prices
outright. It is meant for controlled test deployments and must not back a
production market. Reads behave exactly like :class:`PriceOracle`.

It also accepts the quorum oracle's ``set_prices`` call, so a keeper built for
:class:`PriceOracle` can submit unchanged: ``compacted_min_prices`` and
``compacted_max_prices`` then carry plain 30-decimal prices, one per token, and
the signer, block, timestamp and signature fields are ignored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .Chain import to_address
from .Errors import ArrayLengthMismatch, NonUniqueToken
from .Keys import CONTROLLER
from .PriceStore import PriceRecord, PriceStore

if TYPE_CHECKING:
    from .AccessRegistry import AccessRegistry
    from .Chain import Chain
    from .EventEmitter import EventEmitter
    from .PriceBatch import SetPricesParams

logger = logging.getLogger(__name__)


class SimplifiedPriceOracle(PriceStore):
    """Single-authority oracle without quorum (trusted submitter only)."""

    def __init__(
        self,
        access_registry: AccessRegistry,
        chain: Chain,
        event_emitter: EventEmitter | None = None,
        address: str | None = None,
    ) -> None:
        super().__init__(access_registry, chain, event_emitter, address)
        logger.warning(
            f"SimplifiedPriceOracle at {self.address}: prices are accepted from any "
            "CONTROLLER without signatures, quorum or staleness checks"
        )

    def set_simple_prices(
        self,
        caller: str,
        tokens: list[str],
        min_prices: list[int],
        max_prices: list[int],
    ) -> None:
        """Write prices directly. TRUSTED SUBMITTER ONLY.

        Only the zero-price and min <= max checks apply.

        :param caller: Must hold CONTROLLER.
        :param tokens: Token addresses.
        :param min_prices: Min prices at 30-decimal precision.
        :param max_prices: Max prices at 30-decimal precision.
        :raises Unauthorized: If caller lacks CONTROLLER.
        :raises ArrayLengthMismatch: If the arrays differ in length.
        :raises NonUniqueToken: If a token appears twice.
        :raises EmptyPrimaryPrice: If a price bound is zero.
        :raises InvalidMinMaxPrice: If a min price exceeds its max price.
        :raises ValueError: If a price is not a non-negative integer.
        """
        self.access_registry.validate_role(caller, CONTROLLER)
        if len(min_prices) != len(tokens):
            raise ArrayLengthMismatch("min_prices", len(tokens), len(min_prices))
        if len(max_prices) != len(tokens):
            raise ArrayLengthMismatch("max_prices", len(tokens), len(max_prices))

        pending: dict[str, PriceRecord] = {}
        for token, min_price, max_price in zip(tokens, min_prices, max_prices):
            token = to_address(token)
            if token in pending:
                raise NonUniqueToken(token)
            for price in (min_price, max_price):
                if not isinstance(price, int) or isinstance(price, bool) or price < 0:
                    raise ValueError(f"{token}: prices must be non-negative integers, got {price!r}")
            self._validate_price(token, min_price, max_price)
            pending[token] = PriceRecord(
                min_price, max_price, self.chain.block_number, self.chain.timestamp
            )

        self._commit(pending)

    def set_prices(self, caller: str, params: SetPricesParams) -> None:
        """Accept a ``PriceOracle.set_prices`` batch with uncompacted prices.

        TRUSTED SUBMITTER ONLY. ``params.compacted_min_prices`` and
        ``params.compacted_max_prices`` hold one 30-decimal price per token;
        every other field is ignored. Same checks as :meth:`set_simple_prices`.
        """
        self.set_simple_prices(
            caller,
            list(params.tokens),
            list(params.compacted_min_prices),
            list(params.compacted_max_prices),
        )

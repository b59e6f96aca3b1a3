"""EventEmitter: Observable event log shared by the oracle components.

Only accounts holding CONTROLLER may emit, so a component must be granted the
role before its writes can succeed. Components emit after validation and
before committing state, which keeps each call all-or-nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .Chain import derive_address, to_address
from .Keys import CONTROLLER

if TYPE_CHECKING:
    from .AccessRegistry import AccessRegistry
    from .Chain import Chain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventLog:
    """A single emitted event.

    :ivar event_name: Event name, e.g. "SignerAdded".
    :ivar emitter: Address of the component that emitted it.
    :ivar data: Event payload.
    :ivar block_number: Block the event was emitted in, if known.
    """

    event_name: str
    emitter: str
    data: dict[str, Any] = field(default_factory=dict)
    block_number: int | None = None


class EventEmitter:
    """Collects events from CONTROLLER-holding components.

    :ivar address: This component's address.
    :ivar events: Emitted events in emission order.
    """

    def __init__(
        self,
        access_registry: AccessRegistry,
        chain: Chain | None = None,
        address: str | None = None,
    ) -> None:
        """Initialize the emitter.

        :param access_registry: Registry used to authorize emitters.
        :param chain: Optional block context stamped onto events.
        :param address: Component address (derived from the class name if omitted).
        """
        self.access_registry = access_registry
        self.chain = chain
        self.address = to_address(address) if address else derive_address("EventEmitter")
        self.events: list[EventLog] = []

    def emit_all(self, emitter: str, events: list[tuple[str, dict[str, Any]]]) -> None:
        """Emit a group of events from one call.

        Authorization is checked once, before anything is appended.

        :param emitter: Address of the emitting component.
        :param events: (event_name, data) tuples.
        :raises Unauthorized: If the emitter lacks CONTROLLER.
        """
        self.access_registry.validate_role(emitter, CONTROLLER)
        block_number = self.chain.block_number if self.chain else None
        for event_name, data in events:
            log = EventLog(event_name, emitter, dict(data), block_number)
            self.events.append(log)
            logger.debug(f"{event_name} from {emitter}: {data}")

    def emit(self, emitter: str, event_name: str, **data: Any) -> None:
        """Emit a single event.

        :param emitter: Address of the emitting component.
        :param event_name: Event name.
        :raises Unauthorized: If the emitter lacks CONTROLLER.
        """
        self.emit_all(emitter, [(event_name, data)])

    def get_events(self, event_name: str | None = None) -> list[EventLog]:
        """Return emitted events, optionally filtered by name."""
        if event_name is None:
            return list(self.events)
        return [e for e in self.events if e.event_name == event_name]

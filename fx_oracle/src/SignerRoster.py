"""SignerRoster: Ordered roster of addresses allowed to co-sign prices.

Index positions are part of the submission format (the signer-info word
refers to signers by index), so removal keeps the relative order of the
remaining signers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .Chain import derive_address, to_address
from .Errors import DuplicateSigner, IndexOutOfRange, SignerNotFound
from .Keys import CONTROLLER

if TYPE_CHECKING:
    from .AccessRegistry import AccessRegistry
    from .EventEmitter import EventEmitter

logger = logging.getLogger(__name__)


class SignerRoster:
    """Ordered, deduplicated list of oracle signers.

    :ivar address: This component's address.
    """

    def __init__(
        self,
        access_registry: AccessRegistry,
        event_emitter: EventEmitter | None = None,
        address: str | None = None,
    ) -> None:
        """Initialize an empty roster.

        :param access_registry: Registry used to authorize writes.
        :param event_emitter: Optional emitter for SignerAdded/SignerRemoved.
        :param address: Component address (derived from the class name if omitted).
        """
        self.access_registry = access_registry
        self.event_emitter = event_emitter
        self.address = to_address(address) if address else derive_address("SignerRoster")
        self._signers: list[str] = []

    def add_signer(self, caller: str, signer: str) -> None:
        """Append a signer to the roster.

        :param caller: Must hold CONTROLLER.
        :param signer: Signer address.
        :raises Unauthorized: If caller lacks CONTROLLER.
        :raises DuplicateSigner: If the signer is already present.
        """
        self.access_registry.validate_role(caller, CONTROLLER)
        signer = to_address(signer)
        if signer in self._signers:
            raise DuplicateSigner(signer)
        if self.event_emitter is not None:
            self.event_emitter.emit(self.address, "SignerAdded", signer=signer, index=len(self._signers))
        self._signers.append(signer)
        logger.info(f"Added oracle signer {signer} at index {len(self._signers) - 1}")

    def remove_signer(self, caller: str, signer: str) -> None:
        """Remove a signer, keeping the order of the others.

        :param caller: Must hold CONTROLLER.
        :param signer: Signer address.
        :raises Unauthorized: If caller lacks CONTROLLER.
        :raises SignerNotFound: If the signer is not present.
        """
        self.access_registry.validate_role(caller, CONTROLLER)
        signer = to_address(signer)
        if signer not in self._signers:
            raise SignerNotFound(signer)
        if self.event_emitter is not None:
            self.event_emitter.emit(self.address, "SignerRemoved", signer=signer)
        self._signers.remove(signer)
        logger.info(f"Removed oracle signer {signer}")

    def get_signer_count(self) -> int:
        return len(self._signers)

    def get_signer(self, index: int) -> str:
        """Return the signer at an index.

        :raises IndexOutOfRange: If index >= signer count.
        """
        if index < 0 or index >= len(self._signers):
            raise IndexOutOfRange(index, len(self._signers))
        return self._signers[index]

    def get_signers(self, start: int = 0, end: int | None = None) -> list[str]:
        """Return signers in [start, end), end clamped to the signer count."""
        if start < 0 or start > len(self._signers):
            raise IndexOutOfRange(start, len(self._signers))
        if end is None or end > len(self._signers):
            end = len(self._signers)
        return self._signers[start:end]

    def contains_signer(self, signer: str) -> bool:
        return to_address(signer) in self._signers

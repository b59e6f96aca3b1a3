"""Deployment: Wires the oracle components together.

The order follows the exchange's deployment scripts:

    1. AccessRegistry (deployer becomes ROLE_ADMIN)
    2. EventEmitter
    3. ConfigStore
    4. SignerRoster
    5. PriceOracle and SimplifiedPriceOracle
    6. CONTROLLER for the deployer and every component that emits events
    7. Signers, MIN_ORACLE_SIGNERS and staleness limits

Components emit through the EventEmitter, which only accepts CONTROLLER
holders; a component deployed without the role rejects every write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .AccessRegistry import AccessRegistry
from .Chain import Chain, to_address
from .ConfigStore import ConfigStore
from .EventEmitter import EventEmitter
from .Keys import CONTROLLER, MAX_ORACLE_BLOCK_AGE, MAX_ORACLE_PRICE_AGE, MIN_ORACLE_SIGNERS
from .PriceOracle import PriceOracle
from .SignerRoster import SignerRoster
from .SimplifiedPriceOracle import SimplifiedPriceOracle

logger = logging.getLogger(__name__)

# Token addresses used for the FX markets.
FX_TOKENS: dict[str, str] = {
    "NGN": "0x0000000000000000000000000000000000000001",
    "ARS": "0x0000000000000000000000000000000000000002",
    "PKR": "0x0000000000000000000000000000000000000003",
    "GHS": "0x0000000000000000000000000000000000000004",
    "COP": "0x0000000000000000000000000000000000000008",
}

DEFAULT_MAX_ORACLE_BLOCK_AGE = 20


@dataclass
class Deployment:
    """A fully wired set of oracle components.

    :ivar admin: Deploying account (ROLE_ADMIN and CONTROLLER).
    :ivar chain: Shared block context.
    """

    admin: str
    chain: Chain
    access_registry: AccessRegistry
    event_emitter: EventEmitter
    config_store: ConfigStore
    signer_roster: SignerRoster
    oracle: PriceOracle
    simplified_oracle: SimplifiedPriceOracle | None = None


def deploy(
    admin: str,
    chain: Chain | None = None,
    signers: list[str] | None = None,
    min_signers: int = 1,
    max_block_age: int = DEFAULT_MAX_ORACLE_BLOCK_AGE,
    max_price_age: int = 0,
    with_simplified_oracle: bool = False,
) -> Deployment:
    """Deploy and configure the oracle components.

    :param admin: Deploying account.
    :param chain: Block context (new default chain if omitted).
    :param signers: Signer addresses, in roster order.
    :param min_signers: Value written to MIN_ORACLE_SIGNERS.
    :param max_block_age: Value written to MAX_ORACLE_BLOCK_AGE.
    :param max_price_age: Value written to MAX_ORACLE_PRICE_AGE (0 disables).
    :param with_simplified_oracle: Also deploy the trusted-submitter oracle.
    :returns: The wired deployment.
    """
    admin = to_address(admin)
    chain = chain or Chain()

    access_registry = AccessRegistry(admin)
    event_emitter = EventEmitter(access_registry, chain)
    config_store = ConfigStore(access_registry)
    signer_roster = SignerRoster(access_registry, event_emitter)
    oracle = PriceOracle(access_registry, signer_roster, config_store, chain, event_emitter)
    simplified_oracle = (
        SimplifiedPriceOracle(access_registry, chain, event_emitter)
        if with_simplified_oracle
        else None
    )

    controllers = [admin, signer_roster.address, oracle.address]
    if simplified_oracle is not None:
        controllers.append(simplified_oracle.address)
    for account in controllers:
        access_registry.grant_role(admin, account, CONTROLLER)

    for signer in signers or []:
        signer_roster.add_signer(admin, signer)

    config_store.set_uint(admin, MIN_ORACLE_SIGNERS, min_signers)
    config_store.set_uint(admin, MAX_ORACLE_BLOCK_AGE, max_block_age)
    config_store.set_uint(admin, MAX_ORACLE_PRICE_AGE, max_price_age)

    logger.info(
        f"Deployed oracle {oracle.address} with {signer_roster.get_signer_count()} signers "
        f"(min_signers={min_signers}, max_block_age={max_block_age})"
    )
    return Deployment(
        admin=admin,
        chain=chain,
        access_registry=access_registry,
        event_emitter=event_emitter,
        config_store=config_store,
        signer_roster=signer_roster,
        oracle=oracle,
        simplified_oracle=simplified_oracle,
    )

"""
FX Price Oracle - Quorum-Signed Price Protocol

This module provides the on-chain oracle protocol as in-process stores:
- AccessRegistry: Role bindings and the shared capability check
- SignerRoster: Ordered roster of authorized price signers
- ConfigStore: Typed protocol parameters (quorum, staleness limits)
- PriceOracle: Compacted, quorum-signed price submissions
- SimplifiedPriceOracle: Trusted-submitter variant without signatures
- PriceBatchBuilder: Off-chain compaction and signing of quotes
"""

from .AccessRegistry import AccessRegistry
from .Chain import Chain
from .Compaction import FLOAT_PRECISION, MAX_SIGNERS
from .ConfigStore import ConfigStore
from .Deployment import FX_TOKENS, Deployment, deploy
from .EventEmitter import EventEmitter, EventLog
from .Keys import CONFIG_KEEPER, CONTROLLER, ROLE_ADMIN, Role
from .PriceBatch import PriceBatchBuilder, SetPricesParams
from .PriceOracle import DEFAULT_MIN_ORACLE_SIGNERS, PriceOracle
from .PriceStore import Price, PriceRecord
from .SignerRoster import SignerRoster
from .SimplifiedPriceOracle import SimplifiedPriceOracle

__all__ = [
    "AccessRegistry",
    "CONFIG_KEEPER",
    "CONTROLLER",
    "Chain",
    "ConfigStore",
    "DEFAULT_MIN_ORACLE_SIGNERS",
    "Deployment",
    "EventEmitter",
    "EventLog",
    "FLOAT_PRECISION",
    "FX_TOKENS",
    "MAX_SIGNERS",
    "Price",
    "PriceBatchBuilder",
    "PriceOracle",
    "PriceRecord",
    "ROLE_ADMIN",
    "Role",
    "SetPricesParams",
    "SignerRoster",
    "SimplifiedPriceOracle",
    "deploy",
]

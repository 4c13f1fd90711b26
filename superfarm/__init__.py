"""
SuperFarm flow token engine

Deposit native currency, receive an NFT that streams yield to its holder
every second. Minting, transferring and burning the token create, redirect
and stop the stream; a holder's tokens share one stream per destination.

Architecture:
  - Flow rates are computed from the deposit, an oracle price and a fixed yield
  - Per-token rates live in the ledger, aggregates live on the stream host
  - The controller keeps both consistent on every ownership change

Usage:
    from superfarm import build_simulation

    farm = build_simulation()
    token_id = farm.mint("0xA11cE...", 10**18)
    farm.outgoing_rate("0xA11cE...")
    farm.burn("0xA11cE...", token_id)
"""

from .flow_types import FlowOp, FlowStream, IssuanceEvent, TokenRecord, ZERO_ADDRESS
from .errors import (
    SuperFarmError,
    InvalidDepositError,
    FlowRateOverflowError,
    InvalidReceiverError,
    RestrictedReceiverError,
    NotTokenOwnerError,
    OracleError,
    StreamHostError,
    RegistryError,
    LedgerInvariantError,
    ConfigError,
)
from .flow_rate import (
    SECONDS_PER_YEAR,
    MAX_FLOW_RATE,
    DEFAULT_YIELD_PERCENT,
    flow_rate,
    minimum_deposit,
    yearly_amount,
)
from .oracle import PriceOracleAdapter, FixedPriceFeed
from .ledger import TokenFlowLedger
from .stream_host import StreamHost, InMemoryStreamHost
from .registry import OwnershipRegistry, InMemoryRegistry
from .router import FlowRouter
from .controller import SuperFarm
from .config import FarmConfig, NETWORKS, load_config
from .simulation import build_simulation

__version__ = "0.1.0"
__all__ = [
    # Types
    "FlowOp", "FlowStream", "IssuanceEvent", "TokenRecord", "ZERO_ADDRESS",
    # Errors
    "SuperFarmError", "InvalidDepositError", "FlowRateOverflowError",
    "InvalidReceiverError", "RestrictedReceiverError", "NotTokenOwnerError",
    "OracleError", "StreamHostError", "RegistryError", "LedgerInvariantError",
    "ConfigError",
    # Flow rate
    "SECONDS_PER_YEAR", "MAX_FLOW_RATE", "DEFAULT_YIELD_PERCENT",
    "flow_rate", "minimum_deposit", "yearly_amount",
    # Core
    "PriceOracleAdapter", "FixedPriceFeed", "TokenFlowLedger",
    "StreamHost", "InMemoryStreamHost", "OwnershipRegistry", "InMemoryRegistry",
    "FlowRouter", "SuperFarm",
    # Config
    "FarmConfig", "NETWORKS", "load_config", "build_simulation",
]

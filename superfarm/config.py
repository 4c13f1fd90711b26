"""
SuperFarm - Configuration

Collaborator addresses, token name/symbol and the fixed yield. Everything
is chosen once per deployment and never changes afterwards.

Environment overrides (also read from a .env file):
    SUPERFARM_NETWORK     preset name (default: kovan)
    SUPERFARM_RPC_URL     JSON-RPC endpoint
    SUPERFARM_CUSTODY     deployed contract address
    SUPERFARM_YIELD       annual yield percent
"""

import logging
import os
from dataclasses import dataclass, asdict, replace
from typing import Dict, Mapping, Optional

from .errors import ConfigError
from .flow_rate import DEFAULT_YIELD_PERCENT

log = logging.getLogger(__name__)

# =============================================================================
# TOKEN
# =============================================================================

TOKEN_NAME = "SuperFaaSToken"
TOKEN_SYMBOL = "SFST"

# =============================================================================
# NETWORK CONFIGURATIONS
# =============================================================================

NETWORKS = {
    "kovan": {
        "name": "Kovan",
        "rpc": "https://kovan.infura.io/v3/",
        "chain_id": 42,
        "host": "0xF0d7d1D47109bA426B9D8A3Cde1941327af1eea3",
        "cfa": "0xECa8056809e7e8db04A8fF6e4E82cD889a46FE2F",
        "asset": "0xe3cb950cb164a31c66e32c320a800d477019dcff",   # fDAIx
        "oracle": "0x9326BFA02ADD2366b30bacB125260Af641031331",  # ETH / USD
    },
    "local": {
        "name": "Local (hardhat fork)",
        "rpc": "http://127.0.0.1:8545",
        "chain_id": 1337,
        "host": "0xF0d7d1D47109bA426B9D8A3Cde1941327af1eea3",
        "cfa": "0xECa8056809e7e8db04A8fF6e4E82cD889a46FE2F",
        "asset": "0xe3cb950cb164a31c66e32c320a800d477019dcff",
        "oracle": "0x9326BFA02ADD2366b30bacB125260Af641031331",
    },
}

SUPPORTED_CHAIN_IDS = {net["chain_id"] for net in NETWORKS.values()}

DEFAULT_NETWORK = "kovan"

# Custody address used by the in-memory simulation
SIMULATION_CUSTODY = "0x5F4Ef4a2A9c7b1e1D4D9E0fAa7C1fB4c3E2d1A00"


@dataclass(frozen=True)
class FarmConfig:
    """Deployment parameters for one network."""
    network: str
    rpc_url: str
    chain_id: int
    host: str
    cfa: str
    asset: str
    oracle: str
    custody: str = SIMULATION_CUSTODY
    yield_percent: int = DEFAULT_YIELD_PERCENT
    name: str = TOKEN_NAME
    symbol: str = TOKEN_SYMBOL

    def to_dict(self) -> dict:
        return asdict(self)


def load_env_file(path: str) -> int:
    """
    Load KEY=VALUE lines into os.environ without overriding existing keys.

    Returns:
        Number of keys read from the file (0 if it does not exist)
    """
    if not os.path.exists(path):
        return 0
    count = 0
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))
                count += 1
    log.info(f"Loaded {count} setting(s) from {path}")
    return count


def check_chain_id(chain_id: int):
    """Reject chains without a deployment preset."""
    if chain_id not in SUPPORTED_CHAIN_IDS:
        raise ConfigError(
            f"Unsupported chain id {chain_id} "
            f"(supported: {sorted(SUPPORTED_CHAIN_IDS)})",
            {"chain_id": chain_id})


def load_config(network: Optional[str] = None,
                env: Optional[Mapping[str, str]] = None) -> FarmConfig:
    """
    Build the configuration for a network preset plus environment overrides.

    Args:
        network: Preset name; falls back to SUPERFARM_NETWORK, then kovan
        env: Environment mapping (default: os.environ)

    Raises:
        ConfigError: Unknown network or malformed override
    """
    env = os.environ if env is None else env
    network = network or env.get("SUPERFARM_NETWORK", DEFAULT_NETWORK)

    if network not in NETWORKS:
        raise ConfigError(f"Unknown network: {network}. Supported: {list(NETWORKS)}",
                          {"network": network})

    net = NETWORKS[network]
    config = FarmConfig(
        network=network,
        rpc_url=net["rpc"],
        chain_id=net["chain_id"],
        host=net["host"],
        cfa=net["cfa"],
        asset=net["asset"],
        oracle=net["oracle"],
    )

    overrides: Dict[str, object] = {}
    if env.get("SUPERFARM_RPC_URL"):
        overrides["rpc_url"] = env["SUPERFARM_RPC_URL"]
    if env.get("SUPERFARM_CUSTODY"):
        overrides["custody"] = env["SUPERFARM_CUSTODY"]
    if env.get("SUPERFARM_YIELD"):
        try:
            overrides["yield_percent"] = int(env["SUPERFARM_YIELD"])
        except ValueError as e:
            raise ConfigError(f"SUPERFARM_YIELD must be an integer, "
                              f"got {env['SUPERFARM_YIELD']!r}") from e
        if overrides["yield_percent"] < 0:
            raise ConfigError("SUPERFARM_YIELD must be non-negative")

    return replace(config, **overrides)

"""
SuperFarm - Simulation

Wires the controller to in-memory collaborators (registry, stream host,
fixed price feed) and runs scripted scenarios against them.
"""

from typing import List, Optional

from .config import FarmConfig, load_config
from .controller import SuperFarm
from .flow_types import short_addr
from .oracle import FixedPriceFeed, PriceOracleAdapter
from .registry import InMemoryRegistry
from .stream_host import InMemoryStreamHost

# ETH / USD, 8 decimals
DEFAULT_PRICE = 2000 * 10 ** 8
DEFAULT_DECIMALS = 8

ALICE = "0xA11cE00000000000000000000000000000000001"
BOB = "0xB0B0000000000000000000000000000000000002"


def build_simulation(config: Optional[FarmConfig] = None,
                     price: int = DEFAULT_PRICE,
                     decimals: int = DEFAULT_DECIMALS) -> SuperFarm:
    """
    Create a controller backed by in-memory collaborators.

    The price feed is reachable as farm.oracle.feed (FixedPriceFeed).
    """
    config = config or load_config("local", env={})
    registry = InMemoryRegistry(config.name, config.symbol)
    host = InMemoryStreamHost()
    oracle = PriceOracleAdapter(FixedPriceFeed(price, decimals))
    return SuperFarm(
        registry, host, oracle,
        asset=config.asset,
        custody=config.custody,
        yield_percent=config.yield_percent,
        name=config.name,
        symbol=config.symbol,
    )


def run_scenario(farm: SuperFarm, deposit: int = 10 ** 18) -> List[str]:
    """
    Mint two tokens to Alice, move one to Bob, burn Bob's.

    Returns:
        Lines describing the streams after each step
    """
    lines = []

    def report(step: str):
        lines.append(step)
        for stream in farm.host.streams(farm.asset, farm.custody):
            lines.append(f"  -> {short_addr(stream.receiver)} @ {stream.flow_rate}/s")
        mismatches = farm.check_invariant()
        if mismatches:
            lines.append(f"  INVARIANT BROKEN: {mismatches}")

    first = farm.mint(ALICE, deposit)
    report(f"mint #{first} to {short_addr(ALICE)} ({deposit} wei)")

    second = farm.mint(ALICE, deposit * 2)
    report(f"mint #{second} to {short_addr(ALICE)} ({deposit * 2} wei)")

    farm.transfer(ALICE, BOB, first)
    report(f"transfer #{first} {short_addr(ALICE)} -> {short_addr(BOB)}")

    refund = farm.burn(BOB, first)
    report(f"burn #{first} by {short_addr(BOB)} (refund {refund} wei)")

    return lines

"""Shared fixtures: an in-memory farm and a few holder addresses."""

import pytest

from superfarm.config import load_config
from superfarm.controller import SuperFarm
from superfarm.errors import StreamHostError
from superfarm.oracle import FixedPriceFeed, PriceOracleAdapter
from superfarm.registry import InMemoryRegistry
from superfarm.simulation import DEFAULT_DECIMALS, DEFAULT_PRICE, build_simulation
from superfarm.stream_host import InMemoryStreamHost

ALICE = "0xA11cE00000000000000000000000000000000001"
BOB = "0xB0B0000000000000000000000000000000000002"
CAROL = "0xCa40100000000000000000000000000000000003"
APP = "0xAbba000000000000000000000000000000000004"

ONE_ETH = 10 ** 18

# flow_rate(ONE_ETH, 2000 * 10**8, 8, 10) and twice the deposit
RATE_1_ETH = 1_585_489
RATE_2_ETH = 3_170_979


class FlakyHost(InMemoryStreamHost):
    """In-memory host that records and can reject mutating operations."""

    def __init__(self):
        super().__init__()
        self.fail_on = set()
        self.calls = []

    def create_stream(self, asset, sender, receiver, rate):
        self.calls.append("create")
        if "create" in self.fail_on:
            raise StreamHostError("create rejected")
        super().create_stream(asset, sender, receiver, rate)

    def update_stream(self, asset, sender, receiver, rate):
        self.calls.append("update")
        if "update" in self.fail_on:
            raise StreamHostError("update rejected")
        super().update_stream(asset, sender, receiver, rate)

    def delete_stream(self, asset, sender, receiver):
        self.calls.append("delete")
        if "delete" in self.fail_on:
            raise StreamHostError("delete rejected")
        super().delete_stream(asset, sender, receiver)


@pytest.fixture
def config():
    return load_config("local", env={})


@pytest.fixture
def farm(config):
    return build_simulation(config, DEFAULT_PRICE, DEFAULT_DECIMALS)


@pytest.fixture
def flaky_farm(config):
    return SuperFarm(
        InMemoryRegistry(config.name, config.symbol),
        FlakyHost(),
        PriceOracleAdapter(FixedPriceFeed(DEFAULT_PRICE, DEFAULT_DECIMALS)),
        asset=config.asset,
        custody=config.custody,
        yield_percent=config.yield_percent,
    )

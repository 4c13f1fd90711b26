"""
SuperFarm - Live Chain Adapters

web3 readers for the deployed collaborators:
  - ChainlinkPriceFeed: AggregatorV3 price feed (feeds PriceOracleAdapter)
  - CFAv1Reader: ConstantFlowAgreementV1.getFlow and Host.isApp

Writes (create/update/delete flow) are issued by the contract itself
through the host; off-chain tooling only reads.
"""

import logging
from typing import Tuple

from web3 import Web3

from .errors import ConfigError, StreamHostError

log = logging.getLogger(__name__)

# =============================================================================
# CONTRACT ABIs (minimal)
# =============================================================================

AGGREGATOR_V3_ABI = [
    {
        "name": "latestRoundData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "roundId", "type": "uint80"},
            {"name": "answer", "type": "int256"},
            {"name": "startedAt", "type": "uint256"},
            {"name": "updatedAt", "type": "uint256"},
            {"name": "answeredInRound", "type": "uint80"}
        ]
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}]
    }
]

CFA_V1_ABI = [
    {
        "name": "getFlow",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "sender", "type": "address"},
            {"name": "receiver", "type": "address"}
        ],
        "outputs": [
            {"name": "timestamp", "type": "uint256"},
            {"name": "flowRate", "type": "int96"},
            {"name": "deposit", "type": "uint256"},
            {"name": "owedDeposit", "type": "uint256"}
        ]
    },
    {
        "name": "getNetFlow",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "account", "type": "address"}
        ],
        "outputs": [{"name": "flowRate", "type": "int96"}]
    }
]

HOST_ABI = [
    {
        "name": "isApp",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "app", "type": "address"}],
        "outputs": [{"name": "", "type": "bool"}]
    }
]


def connect(rpc_url: str, expected_chain_id: int = 0) -> Web3:
    """
    Connect to a JSON-RPC endpoint.

    Raises:
        ConfigError: Endpoint unreachable or on the wrong chain
    """
    w3 = Web3(Web3.HTTPProvider(rpc_url))
    if not w3.is_connected():
        raise ConfigError(f"Failed to connect to {rpc_url}")
    if expected_chain_id and w3.eth.chain_id != expected_chain_id:
        raise ConfigError(
            f"Connected to chain {w3.eth.chain_id}, expected {expected_chain_id}")
    return w3


class ChainlinkPriceFeed:
    """
    On-chain AggregatorV3 feed.

    Usage:
        w3 = connect(config.rpc_url)
        oracle = PriceOracleAdapter(ChainlinkPriceFeed(w3, config.oracle))
        price, decimals = oracle.latest_price()
    """

    def __init__(self, w3: Web3, address: str):
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=AGGREGATOR_V3_ABI)

    def latest_round_data(self) -> Tuple[int, int, int, int, int]:
        return tuple(self.contract.functions.latestRoundData().call())

    def decimals(self) -> int:
        return self.contract.functions.decimals().call()


class CFAv1Reader:
    """Read-only view of the Superfluid host and its flow agreement."""

    def __init__(self, w3: Web3, host: str, cfa: str):
        self.w3 = w3
        self.host = w3.eth.contract(address=Web3.to_checksum_address(host), abi=HOST_ABI)
        self.cfa = w3.eth.contract(address=Web3.to_checksum_address(cfa), abi=CFA_V1_ABI)

    def get_outgoing_rate(self, asset: str, sender: str, receiver: str) -> int:
        """Current flow rate sender -> receiver, 0 if none."""
        try:
            _, rate, _, _ = self.cfa.functions.getFlow(
                Web3.to_checksum_address(asset),
                Web3.to_checksum_address(sender),
                Web3.to_checksum_address(receiver),
            ).call()
        except Exception as e:
            raise StreamHostError(f"getFlow failed: {e}") from e
        return int(rate)

    def net_flow_rate(self, asset: str, account: str) -> int:
        try:
            return int(self.cfa.functions.getNetFlow(
                Web3.to_checksum_address(asset),
                Web3.to_checksum_address(account),
            ).call())
        except Exception as e:
            raise StreamHostError(f"getNetFlow failed: {e}") from e

    def is_restricted_receiver(self, address: str) -> bool:
        try:
            return bool(self.host.functions.isApp(
                Web3.to_checksum_address(address)).call())
        except Exception as e:
            raise StreamHostError(f"isApp failed: {e}") from e

"""
SuperFarm - Data Types

Token records, stream views and issuance events shared by the engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import time


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def is_null_address(address: Optional[str]) -> bool:
    """True for None, empty string or the all-zero address."""
    if not address:
        return True
    return address.lower() == ZERO_ADDRESS


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison (checksum casing is cosmetic)."""
    if a is None or b is None:
        return a is b
    return a.lower() == b.lower()


def short_addr(address: Optional[str]) -> str:
    """Shorten an address for log lines."""
    if is_null_address(address):
        return "0x0"
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"


class FlowOp(Enum):
    """What the router did to a destination stream"""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    NOOP = "noop"       # current < rate, nothing safe to do
    SKIP = "skip"       # custody or null destination


@dataclass(frozen=True)
class TokenRecord:
    """
    Per-token flow record.

    Created when a mint succeeds, never mutated, erased on burn.

    Structure:
      - token_id: Arena index assigned at mint
      - flow_rate: Asset units per second (> 0)
      - deposit: Native amount escrowed at mint, refunded verbatim on burn
      - owner_at_mint: First holder (audit only)
      - minted_at: Unix timestamp of the mint (audit only)
    """
    token_id: int
    flow_rate: int
    deposit: int
    owner_at_mint: str = ""
    minted_at: int = field(default_factory=lambda: int(time.time()))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "token_id": self.token_id,
            "flow_rate": self.flow_rate,
            "deposit": self.deposit,
            "owner_at_mint": self.owner_at_mint,
            "minted_at": self.minted_at,
        }


@dataclass(frozen=True)
class FlowStream:
    """A live stream on the host, identified by (asset, sender, receiver)."""
    asset: str
    sender: str
    receiver: str
    flow_rate: int
    updated_at: int = field(default_factory=lambda: int(time.time()))

    def to_dict(self) -> dict:
        return {
            "asset": self.asset,
            "sender": self.sender,
            "receiver": self.receiver,
            "flow_rate": self.flow_rate,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class IssuanceEvent:
    """Emitted once per successful mint."""
    token_id: int
    receiver: str
    flow_rate: int
    timestamp: int = field(default_factory=lambda: int(time.time()))

    def to_dict(self) -> dict:
        return {
            "event": "NFTIssued",
            "token_id": self.token_id,
            "receiver": self.receiver,
            "flow_rate": self.flow_rate,
            "timestamp": self.timestamp,
        }

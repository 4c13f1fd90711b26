"""
SuperFarm - Payment Stream Host

Interface to the continuous-payment host (Superfluid CFAv1 on-chain) and an
in-memory host with the same rules for simulation and tests.

Host rules:
  - A stream is identified by (asset, sender, receiver)
  - Rates are strictly positive and fit in int96; a stream at rate 0 does
    not exist
  - create fails if the stream exists, update/delete fail if it does not
  - Apps registered with the host are restricted receivers
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Set, Tuple

from .errors import StreamHostError
from .flow_rate import MAX_FLOW_RATE
from .flow_types import FlowStream, is_null_address, short_addr

log = logging.getLogger(__name__)

StreamKey = Tuple[str, str, str]


class StreamHost(ABC):
    """Operations the router needs from the stream host."""

    @abstractmethod
    def get_outgoing_rate(self, asset: str, sender: str, receiver: str) -> int:
        """Current rate sender -> receiver, 0 if no stream."""

    @abstractmethod
    def create_stream(self, asset: str, sender: str, receiver: str, rate: int):
        ...

    @abstractmethod
    def update_stream(self, asset: str, sender: str, receiver: str, rate: int):
        ...

    @abstractmethod
    def delete_stream(self, asset: str, sender: str, receiver: str):
        ...

    @abstractmethod
    def is_restricted_receiver(self, address: str) -> bool:
        """True if the host flags address as an app."""


class InMemoryStreamHost(StreamHost):
    """
    Host ledger of live streams kept in a dict.

    Usage:
        host = InMemoryStreamHost()
        host.create_stream("fDAIx", farm, alice, 1000)
        host.get_outgoing_rate("fDAIx", farm, alice)   # 1000
        host.net_flow_rate("fDAIx", alice)              # +1000
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._streams: Dict[StreamKey, FlowStream] = {}
        self._apps: Set[str] = set()

    @staticmethod
    def _key(asset: str, sender: str, receiver: str) -> StreamKey:
        return (asset.lower(), sender.lower(), receiver.lower())

    def _check(self, asset: str, sender: str, receiver: str):
        if not asset:
            raise StreamHostError("Missing asset")
        if is_null_address(sender) or is_null_address(receiver):
            raise StreamHostError(f"Stream to/from the zero address: "
                                  f"{short_addr(sender)} -> {short_addr(receiver)}")
        if sender.lower() == receiver.lower():
            raise StreamHostError(f"Self stream not allowed ({short_addr(sender)})")

    @staticmethod
    def _check_rate(rate: int):
        if rate <= 0 or rate > MAX_FLOW_RATE:
            raise StreamHostError(f"Invalid flow rate {rate}", {"flow_rate": rate})

    # ═══════════════════════════════════════════════════════════════════════
    # HOST OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════

    def get_outgoing_rate(self, asset: str, sender: str, receiver: str) -> int:
        if is_null_address(sender) or is_null_address(receiver):
            return 0
        stream = self._streams.get(self._key(asset, sender, receiver))
        return stream.flow_rate if stream else 0

    def create_stream(self, asset: str, sender: str, receiver: str, rate: int):
        self._check(asset, sender, receiver)
        self._check_rate(rate)
        key = self._key(asset, sender, receiver)
        if key in self._streams:
            raise StreamHostError(
                f"Stream {short_addr(sender)} -> {short_addr(receiver)} already exists")
        self._streams[key] = FlowStream(asset, sender, receiver, rate, int(self.clock()))
        log.debug(f"Created stream {short_addr(sender)} -> {short_addr(receiver)} @ {rate}")

    def update_stream(self, asset: str, sender: str, receiver: str, rate: int):
        self._check(asset, sender, receiver)
        self._check_rate(rate)
        key = self._key(asset, sender, receiver)
        if key not in self._streams:
            raise StreamHostError(
                f"Stream {short_addr(sender)} -> {short_addr(receiver)} does not exist")
        self._streams[key] = FlowStream(asset, sender, receiver, rate, int(self.clock()))
        log.debug(f"Updated stream {short_addr(sender)} -> {short_addr(receiver)} @ {rate}")

    def delete_stream(self, asset: str, sender: str, receiver: str):
        key = self._key(asset, sender, receiver)
        if key not in self._streams:
            raise StreamHostError(
                f"Stream {short_addr(sender)} -> {short_addr(receiver)} does not exist")
        del self._streams[key]
        log.debug(f"Deleted stream {short_addr(sender)} -> {short_addr(receiver)}")

    def is_restricted_receiver(self, address: str) -> bool:
        return bool(address) and address.lower() in self._apps

    # ═══════════════════════════════════════════════════════════════════════
    # INSPECTION
    # ═══════════════════════════════════════════════════════════════════════

    def register_app(self, address: str):
        """Flag an address as a host app (restricted receiver)."""
        self._apps.add(address.lower())

    def streams(self, asset: Optional[str] = None,
                sender: Optional[str] = None) -> List[FlowStream]:
        """List live streams, optionally filtered by asset and sender."""
        result = []
        for (a, s, _), stream in self._streams.items():
            if asset and a != asset.lower():
                continue
            if sender and s != sender.lower():
                continue
            result.append(stream)
        result.sort(key=lambda x: (x.sender.lower(), x.receiver.lower()))
        return result

    def net_flow_rate(self, asset: str, account: str) -> int:
        """Inflow minus outflow for an account."""
        asset = asset.lower()
        account = account.lower()
        net = 0
        for (a, s, r), stream in self._streams.items():
            if a != asset:
                continue
            if r == account:
                net += stream.flow_rate
            if s == account:
                net -= stream.flow_rate
        return net

    # ═══════════════════════════════════════════════════════════════════════
    # ROLLBACK SUPPORT
    # ═══════════════════════════════════════════════════════════════════════

    def snapshot(self) -> Dict[StreamKey, FlowStream]:
        return dict(self._streams)

    def restore(self, snap: Dict[StreamKey, FlowStream]):
        self._streams = dict(snap)


"""
SuperFarm - Flow Router

Keeps the contract's outgoing stream to each address equal to the sum of
the rates of the tokens that address holds.

The aggregate is never cached: every call re-reads the current rate from
the host and derives the create/update/delete from it. Host failures are
not caught; they abort the enclosing mint, transfer or burn.
"""

import logging
from typing import Optional

from .flow_types import FlowOp, is_null_address, same_address, short_addr
from .stream_host import StreamHost

log = logging.getLogger(__name__)


class FlowRouter:
    """
    Stream routing state machine.

    Usage:
        router = FlowRouter(host, asset="fDAIx", custody=farm_address)

        router.increase(alice, 1000)   # CREATE @ 1000
        router.increase(alice, 500)    # UPDATE @ 1500
        router.decrease(alice, 500)    # UPDATE @ 1000
        router.decrease(alice, 1000)   # DELETE
    """

    def __init__(self, host: StreamHost, asset: str, custody: str):
        """
        Args:
            host: Stream host (create/update/delete/query)
            asset: Super token streamed to holders
            custody: The contract's own address, sender of every stream
        """
        self.host = host
        self.asset = asset
        self.custody = custody

    def _skip(self, to: Optional[str]) -> bool:
        # Funds held by the contract never stream to themselves
        return is_null_address(to) or same_address(to, self.custody)

    def current_rate(self, to: str) -> int:
        """Outgoing rate custody -> to as reported by the host."""
        if self._skip(to):
            return 0
        return self.host.get_outgoing_rate(self.asset, self.custody, to)

    def increase(self, to: Optional[str], rate: int) -> FlowOp:
        """
        Add rate to the stream towards `to`.

        Returns:
            FlowOp.CREATE, FlowOp.UPDATE or FlowOp.SKIP
        """
        if self._skip(to):
            return FlowOp.SKIP

        current = self.host.get_outgoing_rate(self.asset, self.custody, to)
        if current == 0:
            self.host.create_stream(self.asset, self.custody, to, rate)
            log.debug(f"increase {short_addr(to)}: create @ {rate}")
            return FlowOp.CREATE

        self.host.update_stream(self.asset, self.custody, to, current + rate)
        log.debug(f"increase {short_addr(to)}: {current} -> {current + rate}")
        return FlowOp.UPDATE

    def decrease(self, to: Optional[str], rate: int) -> FlowOp:
        """
        Remove rate from the stream towards `to`.

        An exact match deletes the stream (the host has no zero-rate
        streams). A current rate below `rate` means the ledger and host
        disagree; it is logged and left alone so the transfer or burn can
        still go through.

        Returns:
            FlowOp.DELETE, FlowOp.UPDATE, FlowOp.NOOP or FlowOp.SKIP
        """
        if self._skip(to):
            return FlowOp.SKIP

        current = self.host.get_outgoing_rate(self.asset, self.custody, to)
        if current == rate:
            self.host.delete_stream(self.asset, self.custody, to)
            log.debug(f"decrease {short_addr(to)}: delete (was {current})")
            return FlowOp.DELETE

        if current > rate:
            self.host.update_stream(self.asset, self.custody, to, current - rate)
            log.debug(f"decrease {short_addr(to)}: {current} -> {current - rate}")
            return FlowOp.UPDATE

        log.warning(f"decrease {short_addr(to)}: current rate {current} < {rate}, ignored")
        return FlowOp.NOOP

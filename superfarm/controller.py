"""
SuperFarm - Token Lifecycle Controller

Mint / transfer / burn orchestration for the flow token.

Flow:
  mint      oracle price -> flow rate -> ledger record -> registry mint
            -> hook: increase stream to the new owner
  transfer  registry transfer -> hook: decrease old owner, increase new owner
  burn      registry burn -> hook: decrease owner -> ledger erase -> refund

Atomicity:
  Each operation holds a global lock and snapshots the ledger, counter,
  escrow, registry and stream host. If any step raises, everything is
  restored before the error propagates. Issuance events are only delivered
  once the operation has committed.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Tuple

from .errors import (
    InvalidReceiverError,
    NotTokenOwnerError,
    RegistryError,
    RestrictedReceiverError,
)
from .flow_rate import DEFAULT_YIELD_PERCENT, flow_rate
from .flow_types import (
    FlowOp,
    IssuanceEvent,
    TokenRecord,
    is_null_address,
    same_address,
    short_addr,
)
from .ledger import TokenFlowLedger
from .oracle import PriceOracleAdapter
from .registry import OwnershipRegistry
from .router import FlowRouter
from .stream_host import StreamHost

log = logging.getLogger(__name__)

EventListener = Callable[[IssuanceEvent], None]


class SuperFarm:
    """
    Token lifecycle controller.

    Usage:
        host = InMemoryStreamHost()
        registry = InMemoryRegistry("SuperFaaSToken", "SFST")
        oracle = PriceOracleAdapter(FixedPriceFeed(2000 * 10**8, 8))

        farm = SuperFarm(registry, host, oracle, asset="fDAIx", custody=FARM)

        token_id = farm.mint(alice, 10**18)
        farm.transfer(alice, bob, token_id)
        refund = farm.burn(bob, token_id)
    """

    def __init__(self, registry: OwnershipRegistry, host: StreamHost,
                 oracle: PriceOracleAdapter, asset: str, custody: str,
                 yield_percent: int = DEFAULT_YIELD_PERCENT,
                 name: str = "", symbol: str = ""):
        """
        Args:
            registry: Ownership registry; its transfer hook is bound here
            host: Payment stream host
            oracle: Price oracle adapter
            asset: Super token streamed to holders
            custody: The contract's own address
            yield_percent: Fixed annual yield used for every mint
            name: Token name
            symbol: Token symbol
        """
        self.registry = registry
        self.host = host
        self.oracle = oracle
        self.asset = asset
        self.custody = custody
        self.yield_percent = yield_percent
        self.name = name
        self.symbol = symbol

        self.ledger = TokenFlowLedger()
        self.router = FlowRouter(host, asset, custody)

        self.next_token_id = 0
        self.escrow = 0
        self.events: List[IssuanceEvent] = []

        self._lock = threading.RLock()
        self._in_tx = False
        self._burning: Optional[int] = None
        self._pending: List[IssuanceEvent] = []
        self._listeners: List[EventListener] = []

        registry.set_transfer_hook(self.before_token_transfer)

    # ═══════════════════════════════════════════════════════════════════════
    # ATOMICITY
    # ═══════════════════════════════════════════════════════════════════════

    def _participants(self) -> list:
        return [p for p in (self.ledger, self.registry, self.host)
                if hasattr(p, "snapshot") and hasattr(p, "restore")]

    def _snapshot(self) -> dict:
        return {
            "next_token_id": self.next_token_id,
            "escrow": self.escrow,
            "participants": [(p, p.snapshot()) for p in self._participants()],
        }

    def _restore(self, snap: dict):
        self.next_token_id = snap["next_token_id"]
        self.escrow = snap["escrow"]
        for participant, state in snap["participants"]:
            participant.restore(state)

    @contextmanager
    def _atomic(self):
        with self._lock:
            # Nested calls (the registry hook during mint/transfer/burn)
            # join the outer operation
            if self._in_tx:
                yield
                return

            snap = self._snapshot()
            self._in_tx = True
            try:
                yield
            except Exception:
                self._restore(snap)
                self._pending.clear()
                raise
            finally:
                self._in_tx = False

            committed, self._pending = self._pending, []
            for event in committed:
                self.events.append(event)
                self._deliver(event)

    def subscribe(self, listener: EventListener):
        """Register a callback for committed issuance events."""
        self._listeners.append(listener)

    def _deliver(self, event: IssuanceEvent):
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                # The mint has committed; a broken listener cannot undo it
                log.error(f"Issuance listener failed for token {event.token_id}: {e}")

    # ═══════════════════════════════════════════════════════════════════════
    # MINT
    # ═══════════════════════════════════════════════════════════════════════

    def quote(self, value: int) -> int:
        """Flow rate a mint with `value` would get at the current price."""
        price, decimals = self.oracle.latest_price()
        return flow_rate(value, price, decimals, self.yield_percent)

    def mint(self, caller: str, value: int) -> int:
        """
        Mint a token to the caller against a native deposit.

        Args:
            caller: Receiver of the token and of its stream
            value: Native amount attached to the call (escrowed)

        Returns:
            The new token id

        Raises:
            InvalidReceiverError: Caller is the custody or null address
            InvalidDepositError: Rate truncates to 0 (or overflows)
            OracleError, StreamHostError, RegistryError: Collaborator failure
        """
        with self._atomic():
            if is_null_address(caller) or same_address(caller, self.custody):
                raise InvalidReceiverError(
                    f"Cannot mint to {short_addr(caller)}", {"receiver": caller})

            rate = self.quote(value)
            token_id = self.next_token_id

            self.ledger.record(token_id, rate, value, owner=caller)
            self._pending.append(IssuanceEvent(token_id, caller, rate))
            self.registry.mint(caller, token_id)
            self.next_token_id += 1
            self.escrow += value

        log.info(f"Minted token {token_id} to {short_addr(caller)}: "
                 f"deposit={value} rate={rate}")
        return token_id

    # ═══════════════════════════════════════════════════════════════════════
    # TRANSFER HOOK
    # ═══════════════════════════════════════════════════════════════════════

    def validate_transfer(self, old_owner: Optional[str], new_owner: Optional[str],
                          token_id: int) -> TokenRecord:
        """
        Check an ownership change without touching any state.

        Returns:
            The token's ledger record

        Raises:
            InvalidReceiverError: Removal of a token outside burn()
            RestrictedReceiverError: new_owner is a host app (custody excepted)
            LedgerInvariantError: The token has no ledger record
        """
        if is_null_address(new_owner) and self._burning != token_id:
            raise InvalidReceiverError(
                f"Token {token_id} can only be removed through burn",
                {"token_id": token_id})
        if (not is_null_address(new_owner)
                and not same_address(new_owner, self.custody)
                and self.host.is_restricted_receiver(new_owner)):
            raise RestrictedReceiverError(
                f"Receiver {short_addr(new_owner)} is a stream host app",
                {"receiver": new_owner, "token_id": token_id})
        return self.ledger.get(token_id)

    def apply_transfer(self, old_owner: Optional[str], new_owner: Optional[str],
                       record: TokenRecord) -> Tuple[FlowOp, FlowOp]:
        """Move a token's rate from old_owner to new_owner (reduce first)."""
        removed = self.router.decrease(old_owner, record.flow_rate)
        added = self.router.increase(new_owner, record.flow_rate)
        log.debug(f"Token {record.token_id}: {short_addr(old_owner)} {removed.value}, "
                  f"{short_addr(new_owner)} {added.value}")
        return removed, added

    def before_token_transfer(self, old_owner: Optional[str],
                              new_owner: Optional[str], token_id: int):
        """Registry hook, called before every ownership change."""
        with self._atomic():
            record = self.validate_transfer(old_owner, new_owner, token_id)
            self.apply_transfer(old_owner, new_owner, record)

    # ═══════════════════════════════════════════════════════════════════════
    # TRANSFER / BURN
    # ═══════════════════════════════════════════════════════════════════════

    def _require_owner(self, caller: str, token_id: int) -> str:
        owner = self.registry.owner_of(token_id)
        if not same_address(owner, caller):
            raise NotTokenOwnerError(
                f"{short_addr(caller)} does not own token {token_id}",
                {"token_id": token_id, "caller": caller})
        return owner

    def transfer(self, caller: str, to: str, token_id: int):
        """Move a token from its owner (the caller) to `to`."""
        with self._atomic():
            owner = self._require_owner(caller, token_id)
            self.registry.transfer(owner, to, token_id)

        log.info(f"Transferred token {token_id}: {short_addr(caller)} -> {short_addr(to)}")

    def burn(self, caller: str, token_id: int) -> int:
        """
        Burn a token and refund its deposit.

        Returns:
            The refunded deposit

        Raises:
            NotTokenOwnerError: Caller is not the current owner
            RegistryError: Token does not exist (never minted or burned)
        """
        with self._atomic():
            self._require_owner(caller, token_id)
            self._burning = token_id
            try:
                self.registry.burn(token_id)
            finally:
                self._burning = None
            record = self.ledger.erase(token_id)
            self.escrow -= record.deposit

        log.info(f"Burned token {token_id} of {short_addr(caller)}: "
                 f"refund={record.deposit}")
        return record.deposit

    # ═══════════════════════════════════════════════════════════════════════
    # QUERIES
    # ═══════════════════════════════════════════════════════════════════════

    def flow_rate_of(self, token_id: int) -> int:
        return self.ledger.rate_of(token_id)

    def deposit_of(self, token_id: int) -> int:
        return self.ledger.deposit_of(token_id)

    def outgoing_rate(self, to: str) -> int:
        """Host-reported stream rate from the contract to `to`."""
        return self.router.current_rate(to)

    def _owner_or_none(self, token_id: int) -> Optional[str]:
        try:
            return self.registry.owner_of(token_id)
        except RegistryError:
            return None

    def orphaned_tokens(self) -> List[TokenRecord]:
        """Ledger records whose token no longer exists in the registry."""
        return [rec for rec in self.ledger if self._owner_or_none(rec.token_id) is None]

    def expected_rates(self) -> Dict[str, int]:
        """Sum of live token rates per holder (custody and orphans excluded)."""
        expected: Dict[str, int] = {}
        for record in self.ledger:
            owner = self._owner_or_none(record.token_id)
            if owner is None:
                continue
            if same_address(owner, self.custody):
                continue
            key = owner.lower()
            expected[key] = expected.get(key, 0) + record.flow_rate
        return expected

    def check_invariant(self) -> Dict[str, Tuple[int, int]]:
        """
        Compare host streams with ledger sums.

        Returns:
            {address: (expected, actual)} for every mismatch; empty if sound.
            An orphaned ledger record is reported as {"#<token_id>": (rate, 0)}.
        """
        with self._lock:
            expected = self.expected_rates()
            addresses = set(expected)
            # Hosts that can list streams also reveal streams to non-holders
            if hasattr(self.host, "streams"):
                for stream in self.host.streams(self.asset, self.custody):
                    addresses.add(stream.receiver.lower())

            mismatches = {}
            for address in sorted(addresses):
                want = expected.get(address, 0)
                have = self.router.current_rate(address)
                if want != have:
                    mismatches[address] = (want, have)
            for record in self.orphaned_tokens():
                mismatches[f"#{record.token_id}"] = (record.flow_rate, 0)
            return mismatches

    def status(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "asset": self.asset,
            "custody": self.custody,
            "yield_percent": self.yield_percent,
            "next_token_id": self.next_token_id,
            "live_tokens": len(self.ledger),
            "escrow": self.escrow,
            "total_rate": self.ledger.total_rate(),
        }

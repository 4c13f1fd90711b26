"""
SuperFarm - Token Flow Ledger

Single source of truth for how much rate each live token contributes.

Records are created on mint, never mutated, and erased on burn. Token ids
come from the controller's counter and are never reused, so the ledger is
an arena with holes.
"""

import logging
from typing import Dict, Iterator, Optional

from .errors import LedgerInvariantError
from .flow_types import TokenRecord

log = logging.getLogger(__name__)


class TokenFlowLedger:
    """
    Per-token {flow_rate, deposit} store.

    Usage:
        ledger = TokenFlowLedger()
        ledger.record(0, 1585489, 10**18)
        ledger.rate_of(0)      # 1585489
        ledger.erase(0)
        ledger.rate_of(0)      # 0
    """

    def __init__(self):
        self._records: Dict[int, TokenRecord] = {}

    def record(self, token_id: int, flow_rate: int, deposit: int,
               owner: str = "") -> TokenRecord:
        """
        Insert the record for a freshly minted token.

        Raises:
            LedgerInvariantError: Record already exists or rate is not positive
        """
        if token_id in self._records:
            raise LedgerInvariantError(f"Token {token_id} already recorded",
                                       {"token_id": token_id})
        if flow_rate <= 0:
            raise LedgerInvariantError(
                f"Token {token_id} flow rate must be positive, got {flow_rate}",
                {"token_id": token_id})

        rec = TokenRecord(token_id=token_id, flow_rate=flow_rate,
                          deposit=deposit, owner_at_mint=owner)
        self._records[token_id] = rec
        log.debug(f"Recorded token {token_id}: rate={flow_rate} deposit={deposit}")
        return rec

    def rate_of(self, token_id: int) -> int:
        """Flow rate of a token, 0 if burned or never minted."""
        rec = self._records.get(token_id)
        return rec.flow_rate if rec else 0

    def deposit_of(self, token_id: int) -> int:
        rec = self._records.get(token_id)
        return rec.deposit if rec else 0

    def find(self, token_id: int) -> Optional[TokenRecord]:
        return self._records.get(token_id)

    def get(self, token_id: int) -> TokenRecord:
        """
        Record for a token that must exist.

        Raises:
            LedgerInvariantError: No record for token_id
        """
        rec = self._records.get(token_id)
        if rec is None:
            raise LedgerInvariantError(f"No ledger record for token {token_id}",
                                       {"token_id": token_id})
        return rec

    def erase(self, token_id: int) -> TokenRecord:
        """
        Remove a record on burn.

        Raises:
            LedgerInvariantError: No record for token_id
        """
        rec = self.get(token_id)
        del self._records[token_id]
        log.debug(f"Erased token {token_id}")
        return rec

    def exists(self, token_id: int) -> bool:
        return token_id in self._records

    def total_deposits(self) -> int:
        return sum(rec.deposit for rec in self._records.values())

    def total_rate(self) -> int:
        return sum(rec.flow_rate for rec in self._records.values())

    # ═══════════════════════════════════════════════════════════════════════
    # ROLLBACK SUPPORT
    # ═══════════════════════════════════════════════════════════════════════

    def snapshot(self) -> Dict[int, TokenRecord]:
        # Records are frozen, a shallow copy is enough
        return dict(self._records)

    def restore(self, snap: Dict[int, TokenRecord]):
        self._records = dict(snap)

    def to_dict(self) -> dict:
        return {
            "tokens": [rec.to_dict() for rec in self],
            "total_deposits": self.total_deposits(),
            "total_rate": self.total_rate(),
        }

    def __contains__(self, token_id: int) -> bool:
        return token_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TokenRecord]:
        return iter(sorted(self._records.values(), key=lambda r: r.token_id))

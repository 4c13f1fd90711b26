"""
SuperFarm - Errors

Every failure aborts the enclosing mint / transfer / burn. Nothing here is
retried automatically.
"""

from typing import Optional


class SuperFarmError(Exception):
    """Base class for engine errors."""

    # Used by the HTTP API to pick a status code
    kind = "error"

    def __init__(self, message: str, context: Optional[dict] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, **self.context}


# ═══════════════════════════════════════════════════════════════════════════
# INVALID INPUT
# ═══════════════════════════════════════════════════════════════════════════

class InvalidDepositError(SuperFarmError):
    """Deposit/price combination yields a non-positive flow rate."""
    kind = "invalid_deposit"


class FlowRateOverflowError(InvalidDepositError):
    """Computed flow rate does not fit the host's int96 rate field."""
    kind = "flow_rate_overflow"


class InvalidReceiverError(SuperFarmError):
    """Receiver is the contract's own custody address."""
    kind = "invalid_receiver"


class RestrictedReceiverError(InvalidReceiverError):
    """Receiver is flagged by the stream host as an app."""
    kind = "restricted_receiver"


# ═══════════════════════════════════════════════════════════════════════════
# AUTHORIZATION
# ═══════════════════════════════════════════════════════════════════════════

class NotTokenOwnerError(SuperFarmError):
    """Caller does not own the token."""
    kind = "not_owner"


# ═══════════════════════════════════════════════════════════════════════════
# COLLABORATOR FAILURE
# ═══════════════════════════════════════════════════════════════════════════

class OracleError(SuperFarmError):
    """Price read failed or returned a non-positive price."""
    kind = "oracle_error"


class StreamHostError(SuperFarmError):
    """Stream host rejected a create/update/delete/query."""
    kind = "stream_host_error"


class RegistryError(SuperFarmError):
    """Ownership registry rejected a mint/burn/transfer."""
    kind = "registry_error"


# ═══════════════════════════════════════════════════════════════════════════
# INTERNAL / CONFIG
# ═══════════════════════════════════════════════════════════════════════════

class LedgerInvariantError(SuperFarmError):
    """Ledger record missing where required, or present where it must not be."""
    kind = "invariant_violation"


class ConfigError(SuperFarmError):
    """Unsupported network or malformed configuration."""
    kind = "config_error"

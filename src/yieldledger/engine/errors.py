"""Typed ledger errors.

Every error is raised before the ledger mutates any state, so callers can
retry with corrected input. The offending value travels on ``value``.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Optional


@dataclass(eq=False)
class LedgerError(Exception):
    """Base error for rejected ledger operations."""

    reason: str
    value: Optional[Any] = None

    code: ClassVar[str] = "ledger_error"
    category: ClassVar[str] = "validation"

    def __str__(self) -> str:
        if self.value is None:
            return f"{self.code}: {self.reason}"
        return f"{self.code}: {self.reason} ({self.value!r})"


# Validation errors

class InvalidRecipient(LedgerError):
    code = "invalid_recipient"


class InsufficientAmount(LedgerError):
    code = "insufficient_amount"


class InvalidYearlyRate(LedgerError):
    code = "invalid_yearly_rate"


class InvalidCooldownPeriod(LedgerError):
    code = "invalid_cooldown_period"


class InvalidMultiplier(LedgerError):
    code = "invalid_multiplier"


class InvalidTimeThreshold(LedgerError):
    code = "invalid_time_threshold"


class UnknownPool(LedgerError):
    code = "unknown_pool"


class PoolInactive(LedgerError):
    code = "pool_inactive"


# Invariant errors

class InsufficientBalance(LedgerError):
    code = "insufficient_balance"
    category = "invariant"


class InsufficientStake(LedgerError):
    code = "insufficient_stake"
    category = "invariant"


# Authorization errors

class Unauthorized(LedgerError):
    code = "unauthorized"
    category = "authorization"


class OracleError(Exception):
    """Raised by price oracles when a reading is unavailable.

    The staking ledger treats it as a zero-reward period; it never escapes a
    ledger operation.
    """

"""Ledger event log.

Events are the ledger's observable signals (first accrual, transfers, claims,
stakes, admin changes). They are appended in order and mirrored to the
module logger at DEBUG.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

STARTED_EARNING = "StartedEarning"
TRANSFER = "Transfer"
REWARDS_CLAIMED = "RewardsClaimed"
STAKED = "Staked"
UNSTAKED = "Unstaked"
POOL_ADDED = "PoolAdded"
POOL_DISABLED = "PoolDisabled"
YEARLY_RATE_UPDATED = "YearlyRateUpdated"
COOLDOWN_PERIOD_UPDATED = "CooldownPeriodUpdated"


@dataclass(frozen=True)
class LedgerEvent:
    """A single emitted ledger event."""
    kind: str
    timestamp: int
    account: Optional[str] = None
    amount: int = 0
    details: Dict[str, Any] = field(default_factory=dict)


class EventLog:
    """Append-only, in-order record of ledger events."""

    def __init__(self):
        self._events: List[LedgerEvent] = []

    def emit(
        self,
        kind: str,
        timestamp: int,
        account: Optional[str] = None,
        amount: int = 0,
        **details: Any
    ) -> LedgerEvent:
        event = LedgerEvent(
            kind=kind,
            timestamp=timestamp,
            account=account,
            amount=amount,
            details=details
        )
        self._events.append(event)
        logger.debug(
            "Ledger event %s",
            kind,
            extra={"event": f"ledger.{kind}", "account": account, "amount": amount, **details}
        )
        return event

    def of_kind(self, kind: str) -> List[LedgerEvent]:
        return [e for e in self._events if e.kind == kind]

    def __iter__(self) -> Iterator[LedgerEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

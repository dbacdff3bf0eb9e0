"""Global ledger scalars."""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class LedgerState:
    """Global state shared by the accrual engines.

    Invariant: minted_supply <= max_supply, and minted_supply equals the sum
    of every realized account value.
    """
    yearly_rate: int  # BPS
    min_rate: int  # BPS
    max_rate: int  # BPS
    reward_cooldown_period: int  # seconds
    max_supply: int
    minted_supply: int = 0
    last_global_update_timestamp: Optional[int] = None
    latest_claim_timestamp: Dict[str, int] = field(default_factory=dict)

    @property
    def remaining_supply(self) -> int:
        """Room left under the cap."""
        return max(0, self.max_supply - self.minted_supply)

    @property
    def at_cap(self) -> bool:
        return self.minted_supply >= self.max_supply

"""Base accrual ledger - per-account realized balance plus time-weighted accrual.

Key Concepts:
- Each account has an open accrual window [period_start_timestamp, now]
- accumulated_balance_per_time is the running sum of value * seconds held
  since the window opened
- Pending reward = accumulated balance-seconds * yearly_rate / (BPS * year),
  i.e. the window's average balance earning the yearly rate for the window length
- Realizing mints the pending reward and closes the window
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from .constants import BPS_SCALE, SECONDS_PER_YEAR
from .events import STARTED_EARNING, EventLog
from .state import LedgerState
from .supply import SupplyCapEnforcer


@dataclass
class AccountBalance:
    """Realized balance and accrual window of one account.

    The window is open once period_start_timestamp is set; None means the
    account has never been touched.
    """
    value: int = 0
    last_update_timestamp: Optional[int] = None
    period_start_timestamp: Optional[int] = None
    accumulated_balance_per_time: int = 0

    @property
    def is_open(self) -> bool:
        return self.period_start_timestamp is not None

    def accumulated_until(self, now: int) -> int:
        """Balance-seconds in the open window up to now."""
        if not self.is_open:
            return 0
        return self.accumulated_balance_per_time + self.value * (now - self.last_update_timestamp)


class BaseAccrualLedger:
    """Per-account base reward accounting."""

    def __init__(self, state: LedgerState, supply: SupplyCapEnforcer, events: EventLog):
        """
        Initialize base accrual ledger.

        Args:
            state: Shared global state (rate, supply counters)
            supply: Supply cap enforcer used for reward mints
            events: Ledger event log
        """
        self.state = state
        self.supply = supply
        self.events = events
        self._balances: Dict[str, AccountBalance] = {}

    def get(self, account: str) -> Optional[AccountBalance]:
        """Look up an account without creating it."""
        return self._balances.get(account)

    def touch(self, account: str) -> AccountBalance:
        """Get an account's balance, creating a zero balance on first use."""
        balance = self._balances.get(account)
        if balance is None:
            balance = AccountBalance()
            self._balances[account] = balance
        return balance

    def value_of(self, account: str) -> int:
        balance = self._balances.get(account)
        return balance.value if balance else 0

    def advance(self, account: str, now: int) -> None:
        """
        Fold value * elapsed seconds into the accumulator.

        On first touch the window is opened at now and a StartedEarning
        event is emitted instead.
        """
        balance = self.touch(account)
        if not balance.is_open:
            balance.period_start_timestamp = now
            balance.last_update_timestamp = now
            self.events.emit(STARTED_EARNING, now, account=account)
            return

        balance.accumulated_balance_per_time += balance.value * (now - balance.last_update_timestamp)
        balance.last_update_timestamp = now

    def pending_reward(self, account: str, now: int) -> int:
        """
        Compute the unminted base reward of an account.

        Args:
            account: Account address
            now: Evaluation time

        Returns:
            Pending reward (0 without an open window or once supply is capped)
        """
        balance = self._balances.get(account)
        if balance is None or not balance.is_open:
            return 0
        if self.state.at_cap:
            return 0

        temp_accum = balance.accumulated_until(now)
        window_len = now - balance.period_start_timestamp
        if temp_accum == 0 or window_len == 0:
            return 0

        avg_balance = temp_accum // window_len
        return avg_balance * window_len * self.state.yearly_rate // (BPS_SCALE * SECONDS_PER_YEAR)

    def realize(self, account: str, now: int, reward: Optional[int] = None) -> int:
        """
        Mint the pending reward and close the accrual window.

        Args:
            account: Account address
            now: Realization time
            reward: Precomputed pending reward (computed here when None)

        Returns:
            Amount minted after supply-cap truncation
        """
        balance = self.touch(account)
        if not balance.is_open:
            self.advance(account, now)
            return 0

        if reward is None:
            reward = self.pending_reward(account, now)
        minted = self.supply.mint(account, balance, reward, now)

        balance.period_start_timestamp = now
        balance.last_update_timestamp = now
        balance.accumulated_balance_per_time = 0
        return minted

    def credit(self, account: str, amount: int) -> None:
        """Move value in (accumulator must already be advanced to now)."""
        self.touch(account).value += amount

    def debit(self, account: str, amount: int) -> None:
        """Move value out (accumulator must already be advanced to now)."""
        self.touch(account).value -= amount

    def items(self) -> Iterator[Tuple[str, AccountBalance]]:
        return iter(list(self._balances.items()))

    def __len__(self) -> int:
        return len(self._balances)

"""Staking accrual ledger - boosted rewards on staked liquidity-pool tokens.

Key Concepts:
- Same window/accumulator mechanics as the base ledger, applied to the
  staked LP amount of each (pool, account)
- Each LP token is valued at reserve / lp_total_supply yield tokens, read
  from the pool's price oracle
- Reward is boosted by the cubic multiplier at the age of the current
  continuous stake:

  avg_staked   = staked_seconds // window
  staked_value = avg_staked * reserve // lp_supply
  reward       = staked_value * window * yearly_rate * multiplier
                 // (BPS * year * MULTIPLIER_SCALE)
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from .accounting import BaseAccrualLedger
from .constants import BPS_SCALE, MULTIPLIER_SCALE, SECONDS_PER_YEAR
from .pools import StakingPool
from .rate_curve import multiplier
from .state import LedgerState

logger = logging.getLogger(__name__)


@dataclass
class UserStake:
    """Staked LP amount and accrual window of one account in one pool."""
    amount: int = 0
    last_update_timestamp: Optional[int] = None
    period_start_timestamp: Optional[int] = None
    accumulated_staked_per_time: int = 0
    lp_stake_start_timestamp: Optional[int] = None  # start of the current continuous stake

    @property
    def is_open(self) -> bool:
        return self.period_start_timestamp is not None

    def accumulated_until(self, now: int) -> int:
        if not self.is_open:
            return 0
        return self.accumulated_staked_per_time + self.amount * (now - self.last_update_timestamp)

    def clear(self) -> None:
        """Reset the window after the stake drains to zero."""
        self.last_update_timestamp = None
        self.period_start_timestamp = None
        self.accumulated_staked_per_time = 0
        self.lp_stake_start_timestamp = None


class StakingAccrualLedger:
    """Per-(pool, account) staking reward accounting."""

    def __init__(self, state: LedgerState, base: BaseAccrualLedger, token_id: str):
        """
        Initialize staking accrual ledger.

        Args:
            state: Shared global state
            base: Base ledger receiving minted staking rewards
            token_id: Identifier of the yield token inside liquidity pools
        """
        self.state = state
        self.base = base
        self.token_id = token_id
        self._stakes: Dict[Tuple[int, str], UserStake] = {}

    def get(self, pool_id: int, account: str) -> Optional[UserStake]:
        return self._stakes.get((pool_id, account))

    def staked(self, pool_id: int, account: str) -> int:
        stake = self._stakes.get((pool_id, account))
        return stake.amount if stake else 0

    def advance(self, pool_id: int, account: str, now: int) -> None:
        """Fold amount * elapsed seconds into the accumulator (no-op without a stake)."""
        stake = self._stakes.get((pool_id, account))
        if stake is None or not stake.is_open:
            return
        stake.accumulated_staked_per_time += stake.amount * (now - stake.last_update_timestamp)
        stake.last_update_timestamp = now

    def reserve_and_supply(self, pool: StakingPool) -> Optional[Tuple[int, int]]:
        """
        Read the yield-token reserve and LP supply of a pool.

        Returns:
            (reserve, lp_total_supply), or None when the oracle is degenerate
            or unavailable
        """
        try:
            reserve_a, reserve_b = pool.lp_token.reserves()
            lp_supply = pool.lp_token.pool_total_supply()
            base_token = pool.lp_token.base_token()
        except Exception as exc:  # adapter failures of any kind mean no reading
            logger.warning(
                "Price oracle unavailable for pool %s: %s",
                pool.pool_id,
                exc,
                extra={"event": "staking.oracle_unavailable", "pool_id": pool.pool_id}
            )
            return None

        reserve = reserve_a if base_token == self.token_id else reserve_b
        if reserve <= 0 or lp_supply <= 0:
            logger.warning(
                "Degenerate oracle reading for pool %s (reserve=%s, lp_supply=%s)",
                pool.pool_id,
                reserve,
                lp_supply,
                extra={"event": "staking.oracle_degenerate", "pool_id": pool.pool_id}
            )
            return None
        return reserve, lp_supply

    def current_multiplier(self, pool: StakingPool, account: str, now: int) -> int:
        """Multiplier of the account's current continuous stake (1.0 without one)."""
        stake = self._stakes.get((pool.pool_id, account))
        if stake is None or stake.lp_stake_start_timestamp is None:
            return MULTIPLIER_SCALE
        return multiplier(
            pool.multiplier_max,
            pool.time_threshold,
            now - stake.lp_stake_start_timestamp
        )

    def pending_reward(self, pool: StakingPool, account: str, now: int) -> int:
        """
        Compute the unminted staking reward of an account in a pool.

        Args:
            pool: Staking pool
            account: Account address
            now: Evaluation time

        Returns:
            Pending reward in yield tokens
        """
        stake = self._stakes.get((pool.pool_id, account))
        if stake is None or not stake.is_open:
            return 0
        if self.state.at_cap:
            return 0

        temp_accum = stake.accumulated_until(now)
        window_len = now - stake.period_start_timestamp
        if temp_accum == 0 or window_len == 0:
            return 0

        reading = self.reserve_and_supply(pool)
        if reading is None:
            return 0
        reserve, lp_supply = reading

        avg_staked = temp_accum // window_len
        staked_value = avg_staked * reserve // lp_supply
        boost = self.current_multiplier(pool, account, now)
        numerator = staked_value * window_len * self.state.yearly_rate * boost
        return numerator // (BPS_SCALE * SECONDS_PER_YEAR * MULTIPLIER_SCALE)

    def realize(self, pool: StakingPool, account: str, now: int, reward: Optional[int] = None) -> int:
        """
        Mint the pending staking reward into the base balance and close the window.

        Returns:
            Amount minted after supply-cap truncation
        """
        stake = self._stakes.get((pool.pool_id, account))
        if stake is None or not stake.is_open:
            return 0

        if reward is None:
            reward = self.pending_reward(pool, account, now)
        minted = self.base.supply.mint(account, self.base.touch(account), reward, now)

        stake.period_start_timestamp = now
        stake.last_update_timestamp = now
        stake.accumulated_staked_per_time = 0
        return minted

    def add_stake(self, pool_id: int, account: str, amount: int, now: int) -> bool:
        """
        Fold amount into a stake already advanced to now.

        Returns:
            True when the stake went from zero to nonzero
        """
        stake = self._stakes.get((pool_id, account))
        if stake is None:
            stake = UserStake()
            self._stakes[(pool_id, account)] = stake

        fresh = stake.amount == 0
        if fresh:
            stake.period_start_timestamp = now
            stake.last_update_timestamp = now
            stake.accumulated_staked_per_time = 0
            stake.lp_stake_start_timestamp = now
        stake.amount += amount
        return fresh

    def remove_stake(self, pool_id: int, account: str, amount: int) -> bool:
        """
        Take amount out of a stake already advanced to now.

        Returns:
            True when the stake drained to zero
        """
        stake = self._stakes[(pool_id, account)]
        stake.amount -= amount
        if stake.amount == 0:
            stake.clear()
            return True
        return False

    def has_any_stake(self, account: str, pool_ids) -> bool:
        """True if the account holds stake in any of the given pools."""
        return any(self.staked(pool_id, account) > 0 for pool_id in pool_ids)

    def items(self) -> Iterator[Tuple[Tuple[int, str], UserStake]]:
        return iter(list(self._stakes.items()))

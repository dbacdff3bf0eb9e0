"""Reward realization policy - mint now or only advance the accumulators.

Per account, every mutating call lands in one of two states:
- Accumulating: the cooldown since the last claim has not elapsed; base and
  active-pool accumulators are advanced, nothing is minted
- Realizable: the cooldown has elapsed (or the account never claimed);
  base and active-pool rewards are minted and the windows closed

Direct supply changes (mint/burn) force the Realizable transition. Disabled
pools are skipped; their stakes keep their state but earn nothing.

A call is planned first (pure, oracle read once) and committed after the
caller's own validation succeeded, so a rejected call changes nothing.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .accounting import BaseAccrualLedger
from .events import REWARDS_CLAIMED, EventLog
from .pools import PoolRegistry
from .rewards import StakingAccrualLedger
from .state import LedgerState


@dataclass
class RealizationPlan:
    """Rewards a policy run would mint for one account."""
    account: str
    now: int
    realize: bool
    value: int = 0  # realized value before the run
    base_reward: int = 0
    staking_rewards: Dict[int, int] = field(default_factory=dict)

    @property
    def total_reward(self) -> int:
        return self.base_reward + sum(self.staking_rewards.values())


class RewardRealizationPolicy:
    """Cooldown-gated realization of base and staking rewards."""

    def __init__(
        self,
        state: LedgerState,
        base: BaseAccrualLedger,
        staking: StakingAccrualLedger,
        pools: PoolRegistry,
        events: EventLog
    ):
        self.state = state
        self.base = base
        self.staking = staking
        self.pools = pools
        self.events = events

    def is_realizable(self, account: str, now: int) -> bool:
        """True once the cooldown since the account's last claim has elapsed."""
        last_claim = self.state.latest_claim_timestamp.get(account)
        if last_claim is None:
            return True
        return now - last_claim >= self.state.reward_cooldown_period

    def plan(
        self,
        account: str,
        now: int,
        force: bool = False,
        room: Optional[int] = None
    ) -> RealizationPlan:
        """
        Work out what a policy run would mint, without touching state.

        Args:
            account: Account address
            now: Current time
            force: Realize regardless of cooldown (mint/burn)
            room: Supply left for this plan (defaults to the remaining supply;
                  smaller when another plan of the same call mints first)

        Returns:
            RealizationPlan with rewards already truncated to the cap room
        """
        plan = RealizationPlan(
            account=account,
            now=now,
            realize=force or self.is_realizable(account, now),
            value=self.base.value_of(account)
        )
        if not plan.realize:
            return plan

        if room is None:
            room = self.state.remaining_supply
        plan.base_reward = min(self.base.pending_reward(account, now), room)
        room -= plan.base_reward
        for pool in self.pools.active_pools():
            reward = min(self.staking.pending_reward(pool, account, now), room)
            if reward:
                plan.staking_rewards[pool.pool_id] = reward
                room -= reward
        return plan

    @staticmethod
    def projected_value(plan: RealizationPlan) -> int:
        """Realized value of the account once the plan is committed."""
        return plan.value + plan.total_reward

    def commit(self, plan: RealizationPlan) -> int:
        """
        Apply a plan: advance (Accumulating) or realize (Realizable).

        Returns:
            Total amount minted
        """
        account, now = plan.account, plan.now
        active = self.pools.active_pools()

        if not plan.realize:
            self.base.advance(account, now)
            for pool in active:
                self.staking.advance(pool.pool_id, account, now)
            return 0

        minted = self.base.realize(account, now, reward=plan.base_reward)
        for pool in active:
            minted += self.staking.realize(
                pool, account, now, reward=plan.staking_rewards.get(pool.pool_id, 0)
            )

        self.state.latest_claim_timestamp[account] = now
        self.state.last_global_update_timestamp = now
        if minted:
            self.events.emit(REWARDS_CLAIMED, now, account=account, amount=minted)
        return minted

    def apply(self, account: str, now: int, force: bool = False) -> int:
        """Plan and commit in one step."""
        return self.commit(self.plan(account, now, force=force))

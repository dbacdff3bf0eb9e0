"""Ledger facade - balances, supply, transfers, mint/burn and staking.

Every mutating call first runs the reward realization policy for the
accounts it touches (base ledger plus every active pool), then applies the
requested change. All calls on one ledger are serialized behind a single
re-entrant lock, so queries always observe a consistent state.
"""

import functools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .clock import system_clock
from .config.schema import LedgerConfig
from .engine.accounting import BaseAccrualLedger
from .engine.constants import is_null_account
from .engine.errors import (
    InsufficientAmount,
    InsufficientBalance,
    InsufficientStake,
    InvalidCooldownPeriod,
    InvalidRecipient,
    InvalidYearlyRate,
    PoolInactive,
    Unauthorized,
)
from .engine.events import (
    COOLDOWN_PERIOD_UPDATED,
    POOL_ADDED,
    POOL_DISABLED,
    STAKED,
    TRANSFER,
    UNSTAKED,
    YEARLY_RATE_UPDATED,
    EventLog,
)
from .engine.policy import RewardRealizationPolicy
from .engine.pools import ActiveStakerSet, PoolRegistry, StakingPool
from .engine.rate_curve import multiplier_to_float
from .engine.rewards import StakingAccrualLedger
from .engine.state import LedgerState
from .engine.supply import SupplyCapEnforcer
from .external.authority import Authority, StaticAuthority
from .external.oracle import PriceOracle

logger = logging.getLogger(__name__)


def _serialized(method):
    """Run a ledger method under the ledger lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


@dataclass
class LedgerSnapshot:
    """Point-in-time view of the whole ledger."""
    timestamp: int
    minted_supply: int
    total_supply: int
    max_supply: int
    yearly_rate: int
    cooldown_period: int
    accounts: List[Dict[str, Any]] = field(default_factory=list)
    pools: List[Dict[str, Any]] = field(default_factory=list)
    active_stakers: List[str] = field(default_factory=list)


class YieldLedger:
    """Continuously accruing yield ledger with boosted LP staking."""

    def __init__(
        self,
        token_id: str,
        authority: Authority,
        yearly_rate: int,
        min_rate: int,
        max_rate: int,
        cooldown_period: int,
        max_supply: int,
        clock: Optional[Callable[[], int]] = None,
        ledger_address: str = "ledger"
    ):
        """
        Initialize the ledger.

        Args:
            token_id: Identifier of the yield token inside liquidity pools
            authority: Admin/minter capability checks
            yearly_rate: Initial yearly rate (BPS)
            min_rate: Lowest rate set_yearly_rate accepts (BPS)
            max_rate: Highest rate set_yearly_rate accepts (BPS)
            cooldown_period: Seconds between reward realizations
            max_supply: Hard cap on minted supply
            clock: Callable returning integer seconds (defaults to wall clock)
            ledger_address: Account that escrows staked LP tokens

        Raises:
            InvalidYearlyRate: If yearly_rate is outside [min_rate, max_rate]
            InvalidCooldownPeriod: If cooldown_period is not positive
        """
        if not min_rate <= yearly_rate <= max_rate:
            raise InvalidYearlyRate("yearly rate outside bounds", yearly_rate)
        if cooldown_period <= 0:
            raise InvalidCooldownPeriod("cooldown period must be positive", cooldown_period)

        self.token_id = token_id
        self.authority = authority
        self.ledger_address = ledger_address
        self.clock = clock or system_clock
        self._last_now: Optional[int] = None
        self._lock = threading.RLock()

        self.state = LedgerState(
            yearly_rate=yearly_rate,
            min_rate=min_rate,
            max_rate=max_rate,
            reward_cooldown_period=cooldown_period,
            max_supply=max_supply
        )
        self.events = EventLog()
        self.supply = SupplyCapEnforcer(self.state, self.events)
        self.base = BaseAccrualLedger(self.state, self.supply, self.events)
        self.staking = StakingAccrualLedger(self.state, self.base, token_id)
        self.pools = PoolRegistry()
        self.stakers = ActiveStakerSet()
        self.policy = RewardRealizationPolicy(
            self.state, self.base, self.staking, self.pools, self.events
        )

    @classmethod
    def from_config(
        cls,
        config: LedgerConfig,
        clock: Optional[Callable[[], int]] = None,
        authority: Optional[Authority] = None
    ) -> 'YieldLedger':
        """Build a ledger from configuration (pools are added separately)."""
        if authority is None:
            authority = StaticAuthority(admin=config.admin, minters=frozenset(config.minters))
        return cls(
            token_id=config.token.token_id,
            authority=authority,
            yearly_rate=config.rate.yearly_rate_bps,
            min_rate=config.rate.min_rate_bps,
            max_rate=config.rate.max_rate_bps,
            cooldown_period=config.rewards.cooldown_period_seconds,
            max_supply=config.supply.max_supply,
            clock=clock,
            ledger_address=config.token.ledger_address
        )

    def _now(self) -> int:
        """Current time, never earlier than any time already observed."""
        now = self.clock()
        if self._last_now is not None and now < self._last_now:
            now = self._last_now
        self._last_now = now
        return now

    def _require_admin(self, caller: str) -> None:
        if not self.authority.is_admin(caller):
            raise Unauthorized("caller is not the administrator", caller)

    # Queries

    @property
    def minted_supply(self) -> int:
        return self.state.minted_supply

    @property
    def max_supply(self) -> int:
        return self.state.max_supply

    @property
    def yearly_rate(self) -> int:
        return self.state.yearly_rate

    @property
    def cooldown_period(self) -> int:
        return self.state.reward_cooldown_period

    @_serialized
    def balance_of(self, account: str) -> int:
        """Realized value plus every pending reward, capped by the remaining supply."""
        now = self._now()
        pending = self.base.pending_reward(account, now)
        for pool in self.pools.active_pools():
            pending += self.staking.pending_reward(pool, account, now)
        return self.base.value_of(account) + min(pending, self.state.remaining_supply)

    @_serialized
    def realized_balance_of(self, account: str) -> int:
        """Minted value only (what transfer/burn can spend right now)."""
        return self.base.value_of(account)

    @_serialized
    def total_supply(self) -> int:
        """Minted supply plus pending rewards of every account, capped."""
        now = self._now()
        pending = sum(self.base.pending_reward(account, now) for account, _ in self.base.items())
        active = self.pools.active_pools()
        for account in self.stakers:
            for pool in active:
                pending += self.staking.pending_reward(pool, account, now)
        return self.state.minted_supply + min(pending, self.state.remaining_supply)

    @_serialized
    def pending_rewards(self, account: str) -> Dict[str, Any]:
        """Breakdown of what a realization right now would mint."""
        plan = self.policy.plan(account, self._now(), force=True)
        return {
            "base": plan.base_reward,
            "staking": dict(plan.staking_rewards),
            "total": plan.total_reward,
            "realizable": self.policy.is_realizable(account, plan.now),
        }

    @_serialized
    def staked_balance(self, account: str, pool_id: int) -> int:
        self.pools.get(pool_id)
        return self.staking.staked(pool_id, account)

    @_serialized
    def current_multiplier(self, account: str, pool_id: int) -> int:
        """Multiplier the account's stake in a pool earns at right now."""
        pool = self.pools.get(pool_id)
        return self.staking.current_multiplier(pool, account, self._now())

    @_serialized
    def is_active_staker(self, account: str) -> bool:
        return account in self.stakers

    @_serialized
    def active_stakers(self) -> List[str]:
        return list(self.stakers)

    @_serialized
    def pool(self, pool_id: int) -> StakingPool:
        return self.pools.get(pool_id)

    # Holder operations

    @_serialized
    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """
        Move realized value between accounts after running the policy on both.

        Raises:
            InvalidRecipient: If to is the null account
            InsufficientAmount: If amount is negative
            InsufficientBalance: If the sender's realized balance is too low
        """
        if is_null_account(to):
            raise InvalidRecipient("transfer to the null account", to)
        if amount < 0:
            raise InsufficientAmount("transfer amount must not be negative", amount)

        now = self._now()
        sender_plan = self.policy.plan(sender, now)
        if amount > self.policy.projected_value(sender_plan):
            raise InsufficientBalance("transfer exceeds realized balance", amount)

        recipient_plan = None
        if to != sender:
            room = self.state.remaining_supply - sender_plan.total_reward
            recipient_plan = self.policy.plan(to, now, room=room)

        self.policy.commit(sender_plan)
        if recipient_plan is not None:
            self.policy.commit(recipient_plan)
            self.base.debit(sender, amount)
            self.base.credit(to, amount)
        self.events.emit(TRANSFER, now, account=to, amount=amount, source=sender)
        return True

    @_serialized
    def claim(self, account: str) -> int:
        """Run the policy for an account; mints only once the cooldown elapsed."""
        return self.policy.apply(account, self._now())

    @_serialized
    def burn(self, account: str, amount: int) -> None:
        """
        Destroy realized value. Forces a realization first.

        Raises:
            InsufficientAmount: If amount is not positive
            InsufficientBalance: If amount exceeds the realized balance
        """
        if amount <= 0:
            raise InsufficientAmount("burn amount must be positive", amount)

        now = self._now()
        plan = self.policy.plan(account, now, force=True)
        if amount > self.policy.projected_value(plan):
            raise InsufficientBalance("burn exceeds realized balance", amount)

        self.policy.commit(plan)
        self.supply.burn(account, self.base.touch(account), amount, now)

    @_serialized
    def stake(self, account: str, pool_id: int, amount: int) -> None:
        """
        Escrow LP tokens into a pool.

        Raises:
            UnknownPool: If pool_id is not registered
            PoolInactive: If the pool is disabled
            InsufficientAmount: If amount is not positive
        """
        pool = self.pools.get(pool_id)
        if not pool.active:
            raise PoolInactive("cannot stake into a disabled pool", pool_id)
        if amount <= 0:
            raise InsufficientAmount("stake amount must be positive", amount)

        now = self._now()
        plan = self.policy.plan(account, now)
        pool.lp_token.transfer_from(account, self.ledger_address, amount)

        self.policy.commit(plan)
        if self.staking.add_stake(pool_id, account, amount, now):
            self.stakers.add(account)
        self.events.emit(STAKED, now, account=account, amount=amount, pool_id=pool_id)

    @_serialized
    def unstake(self, account: str, pool_id: int, amount: int) -> None:
        """
        Return escrowed LP tokens.

        Raises:
            UnknownPool: If pool_id is not registered
            InsufficientAmount: If amount is not positive
            InsufficientStake: If amount exceeds the staked amount
        """
        pool = self.pools.get(pool_id)
        if amount <= 0:
            raise InsufficientAmount("unstake amount must be positive", amount)
        if amount > self.staking.staked(pool_id, account):
            raise InsufficientStake("unstake exceeds stake", amount)

        now = self._now()
        plan = self.policy.plan(account, now)
        pool.lp_token.transfer(account, amount)

        self.policy.commit(plan)
        # Disabled pools are skipped by the policy
        self.staking.advance(pool_id, account, now)
        drained = self.staking.remove_stake(pool_id, account, amount)
        if drained and not self.staking.has_any_stake(account, [p.pool_id for p in self.pools]):
            self.stakers.remove(account)
        self.events.emit(UNSTAKED, now, account=account, amount=amount, pool_id=pool_id)

    # Privileged operations

    @_serialized
    def mint(self, caller: str, to: str, amount: int) -> int:
        """
        Mint new tokens. Forces a realization of the recipient first.

        Returns:
            Amount minted after supply-cap truncation (0 at the cap)

        Raises:
            Unauthorized: If caller is not a minter
            InvalidRecipient: If to is the null account
            InsufficientAmount: If amount is not positive
        """
        if not self.authority.is_minter(caller):
            raise Unauthorized("caller may not mint", caller)
        if is_null_account(to):
            raise InvalidRecipient("mint to the null account", to)
        if amount <= 0:
            raise InsufficientAmount("mint amount must be positive", amount)

        now = self._now()
        self.policy.apply(to, now, force=True)
        minted = self.supply.mint(to, self.base.touch(to), amount, now)
        if minted < amount:
            logger.info(
                "Mint truncated at supply cap: requested %s, minted %s",
                amount,
                minted,
                extra={"event": "ledger.mint_truncated", "account": to}
            )
        return minted

    @_serialized
    def set_yearly_rate(self, caller: str, rate: int) -> None:
        self._require_admin(caller)
        if not self.state.min_rate <= rate <= self.state.max_rate:
            raise InvalidYearlyRate(
                f"rate must be within [{self.state.min_rate}, {self.state.max_rate}]", rate
            )
        previous = self.state.yearly_rate
        self.state.yearly_rate = rate
        self.events.emit(YEARLY_RATE_UPDATED, self._now(), amount=rate, previous=previous)

    @_serialized
    def set_cooldown_period(self, caller: str, period: int) -> None:
        self._require_admin(caller)
        if period <= 0:
            raise InvalidCooldownPeriod("cooldown period must be positive", period)
        previous = self.state.reward_cooldown_period
        self.state.reward_cooldown_period = period
        self.events.emit(COOLDOWN_PERIOD_UPDATED, self._now(), amount=period, previous=previous)

    @_serialized
    def add_pool(self, caller: str, lp_token: PriceOracle, multiplier_max: int, time_threshold: int) -> int:
        """Register a staking pool; returns its pool id."""
        self._require_admin(caller)
        pool = self.pools.add_pool(lp_token, multiplier_max, time_threshold)
        self.events.emit(
            POOL_ADDED,
            self._now(),
            pool_id=pool.pool_id,
            multiplier_max=multiplier_max,
            time_threshold=time_threshold
        )
        return pool.pool_id

    @_serialized
    def disable_pool(self, caller: str, pool_id: int) -> None:
        """Stop a pool from earning. Existing stakes stay withdrawable."""
        self._require_admin(caller)
        self.pools.disable_pool(pool_id)
        self.events.emit(POOL_DISABLED, self._now(), pool_id=pool_id)

    # Reporting

    @_serialized
    def snapshot(self) -> LedgerSnapshot:
        """Capture balances, stakes and pools at the current time."""
        now = self._now()
        accounts = []
        for account, balance in self.base.items():
            accounts.append({
                'account': account,
                'realized': balance.value,
                'balance': self.balance_of(account),
                'pending_base': self.base.pending_reward(account, now),
                'period_start': balance.period_start_timestamp,
                'last_claim': self.state.latest_claim_timestamp.get(account),
                'staked': {
                    pool.pool_id: self.staking.staked(pool.pool_id, account)
                    for pool in self.pools
                },
            })

        pools = []
        for pool in self.pools:
            total_staked = sum(
                stake.amount for (pool_id, _), stake in self.staking.items()
                if pool_id == pool.pool_id
            )
            pools.append({
                'pool_id': pool.pool_id,
                'active': pool.active,
                'multiplier_max': multiplier_to_float(pool.multiplier_max),
                'time_threshold': pool.time_threshold,
                'total_staked': total_staked,
            })

        return LedgerSnapshot(
            timestamp=now,
            minted_supply=self.state.minted_supply,
            total_supply=self.total_supply(),
            max_supply=self.state.max_supply,
            yearly_rate=self.state.yearly_rate,
            cooldown_period=self.state.reward_cooldown_period,
            accounts=accounts,
            pools=pools,
            active_stakers=list(self.stakers)
        )

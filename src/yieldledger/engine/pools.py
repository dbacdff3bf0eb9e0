"""Pool registry and active staker set."""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List

from .constants import MULTIPLIER_SCALE
from .errors import InvalidMultiplier, InvalidTimeThreshold, PoolInactive, UnknownPool


@dataclass
class StakingPool:
    """A staking pool; pool_id is its stable position in the registry."""
    pool_id: int
    lp_token: Any  # PriceOracle + LiquidityToken
    multiplier_max: int  # MULTIPLIER_SCALE fixed point
    time_threshold: int  # seconds to reach multiplier_max
    active: bool = True


class PoolRegistry:
    """Append-only list of staking pools. Pools are disabled, never removed."""

    def __init__(self):
        self._pools: List[StakingPool] = []

    @staticmethod
    def validate(multiplier_max: int, time_threshold: int) -> None:
        if multiplier_max < MULTIPLIER_SCALE:
            raise InvalidMultiplier("multiplier_max below 1.0", multiplier_max)
        if time_threshold <= 0:
            raise InvalidTimeThreshold("time_threshold must be positive", time_threshold)

    def add_pool(self, lp_token: Any, multiplier_max: int, time_threshold: int) -> StakingPool:
        self.validate(multiplier_max, time_threshold)
        pool = StakingPool(
            pool_id=len(self._pools),
            lp_token=lp_token,
            multiplier_max=multiplier_max,
            time_threshold=time_threshold
        )
        self._pools.append(pool)
        return pool

    def get(self, pool_id: int) -> StakingPool:
        if not isinstance(pool_id, int) or pool_id < 0 or pool_id >= len(self._pools):
            raise UnknownPool("no such pool", pool_id)
        return self._pools[pool_id]

    def check_disable(self, pool_id: int) -> StakingPool:
        pool = self.get(pool_id)
        if not pool.active:
            raise PoolInactive("pool already disabled", pool_id)
        return pool

    def disable_pool(self, pool_id: int) -> StakingPool:
        pool = self.check_disable(pool_id)
        pool.active = False
        return pool

    def active_pools(self) -> List[StakingPool]:
        return [p for p in self._pools if p.active]

    def __iter__(self) -> Iterator[StakingPool]:
        return iter(list(self._pools))

    def __len__(self) -> int:
        return len(self._pools)


class ActiveStakerSet:
    """Accounts with nonzero stake in at least one pool.

    Members live in a list with an account -> index map, so add, membership
    and removal (swap with the last element) are all O(1).
    """

    def __init__(self):
        self._members: List[str] = []
        self._index: Dict[str, int] = {}

    def add(self, account: str) -> bool:
        if account in self._index:
            return False
        self._index[account] = len(self._members)
        self._members.append(account)
        return True

    def remove(self, account: str) -> bool:
        idx = self._index.pop(account, None)
        if idx is None:
            return False
        last = self._members.pop()
        if last != account:
            self._members[idx] = last
            self._index[last] = idx
        return True

    def __contains__(self, account: object) -> bool:
        return account in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._members))

    def __len__(self) -> int:
        return len(self._members)

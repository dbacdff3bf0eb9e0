"""Simulation runner - drive a ledger with randomized holder activity.

Key Features:
- Manual clock stepped in whole days, starting at epoch 0
- In-memory liquidity pools built from the configured pool specs
- Randomized transfers, claims, stakes and unstakes per holder and step
- Invariant checks after every step; rejected operations are counted, not fatal
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..clock import ManualClock
from ..config.schema import LedgerConfig
from ..engine.errors import LedgerError
from ..external.oracle import InMemoryLiquidityPool
from ..ledger import LedgerSnapshot, YieldLedger
from ..validation.sanity_checks import validate_ledger

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Complete simulation result."""
    config: LedgerConfig
    metrics_over_time: List[Dict[str, Any]]
    final_metrics: Dict[str, Any]
    final_snapshot: LedgerSnapshot
    invariant_errors: List[str] = field(default_factory=list)
    rejected_operations: Dict[str, int] = field(default_factory=dict)


class LedgerSimulation:
    """Run one randomized scenario against a fresh ledger."""

    def __init__(self, config: LedgerConfig):
        """
        Initialize simulation.

        Args:
            config: Ledger and simulation configuration
        """
        self.config = config
        self.clock = ManualClock(start=0)
        self.ledger = YieldLedger.from_config(config, clock=self.clock)
        self.holders = [f"holder-{i:03d}" for i in range(config.simulation.num_holders)]
        self.liquidity_pools: List[InMemoryLiquidityPool] = []
        self._rejected: Counter = Counter()

        for spec in config.pools:
            lp_token = InMemoryLiquidityPool(
                base_token=config.token.token_id,
                reserve_a=spec.token_reserve,
                reserve_b=spec.paired_reserve,
                total_supply=spec.lp_total_supply,
                custodian=config.token.ledger_address
            )
            self.ledger.add_pool(
                config.admin, lp_token, spec.multiplier_max, spec.time_threshold_seconds
            )
            self.liquidity_pools.append(lp_token)

    def run(self, random_seed: Optional[int] = None) -> SimulationResult:
        """
        Run the simulation.

        Args:
            random_seed: Random seed (defaults to config value)

        Returns:
            SimulationResult with per-step metrics
        """
        sim = self.config.simulation
        if random_seed is None:
            random_seed = sim.random_seed
        rng = np.random.default_rng(random_seed)

        self._bootstrap(rng)

        metrics_over_time = [self._collect_metrics()]
        invariant_errors: List[str] = []
        num_steps = sim.horizon_days // sim.timestep_days

        for step in range(num_steps):
            self.clock.advance_days(sim.timestep_days)
            self._simulate_step(rng)
            metrics_over_time.append(self._collect_metrics())

            for warning in validate_ledger(self.ledger):
                if warning.severity == "error":
                    msg = f"step {step + 1}: {warning.message} ({warning.details})"
                    invariant_errors.append(msg)
                    logger.error(msg, extra={"event": "simulation.invariant_error"})

        final_snapshot = self.ledger.snapshot()
        final_metrics = self._final_metrics(metrics_over_time)
        logger.info(
            "Simulation finished after %s steps: minted %s, total %s",
            num_steps,
            final_metrics['final_minted_supply'],
            final_metrics['final_total_supply'],
            extra={"event": "simulation.finished"}
        )

        return SimulationResult(
            config=self.config,
            metrics_over_time=metrics_over_time,
            final_metrics=final_metrics,
            final_snapshot=final_snapshot,
            invariant_errors=invariant_errors,
            rejected_operations=dict(self._rejected)
        )

    def _bootstrap(self, rng: np.random.Generator) -> None:
        """Mint initial balances and hand out LP tokens."""
        sim = self.config.simulation
        amounts = np.maximum(1, rng.exponential(sim.initial_mint_mean, size=len(self.holders)))
        for holder, amount in zip(self.holders, amounts.astype(np.int64)):
            self.ledger.mint(self.config.admin, holder, int(amount))

        if sim.lp_per_holder > 0:
            for lp_token in self.liquidity_pools:
                for holder in self.holders:
                    lp_token.credit(holder, sim.lp_per_holder)

    def _attempt(self, operation: str, fn, *args) -> None:
        try:
            fn(*args)
        except LedgerError as exc:
            self._rejected[f"{operation}:{exc.code}"] += 1
            logger.debug("Rejected %s: %s", operation, exc, extra={"event": "simulation.rejected"})

    def _simulate_step(self, rng: np.random.Generator) -> None:
        """Let every holder act at most once per activity type."""
        sim = self.config.simulation
        ledger = self.ledger

        for holder in self.holders:
            draws = rng.random(4)

            if draws[0] < sim.transfer_probability and len(self.holders) > 1:
                recipient = self.holders[int(rng.integers(len(self.holders)))]
                if recipient != holder:
                    amount = int(ledger.realized_balance_of(holder) * rng.uniform(0.0, 0.5))
                    self._attempt("transfer", ledger.transfer, holder, recipient, amount)

            if draws[1] < sim.claim_probability:
                self._attempt("claim", ledger.claim, holder)

            if not self.liquidity_pools:
                continue
            pool_id = int(rng.integers(len(self.liquidity_pools)))

            if draws[2] < sim.stake_probability:
                available = self.liquidity_pools[pool_id].balance_of(holder)
                amount = int(available * rng.uniform(0.1, 1.0))
                self._attempt("stake", ledger.stake, holder, pool_id, amount)

            if draws[3] < sim.unstake_probability:
                staked = ledger.staked_balance(holder, pool_id)
                amount = int(staked * rng.uniform(0.1, 1.0))
                self._attempt("unstake", ledger.unstake, holder, pool_id, amount)

    def _collect_metrics(self) -> Dict[str, Any]:
        ledger = self.ledger
        balances = np.array([ledger.balance_of(h) for h in self.holders], dtype=float)
        minted = ledger.minted_supply
        total = ledger.total_supply()
        metrics = {
            't_seconds': self.clock.now,
            't_days': self.clock.now / 86_400,
            'minted_supply': minted,
            'total_supply': total,
            'pending_rewards': total - minted,
            'cap_utilization': minted / ledger.max_supply,
            'mean_balance': float(balances.mean()) if balances.size else 0.0,
            'median_balance': float(np.median(balances)) if balances.size else 0.0,
            'active_stakers': len(ledger.active_stakers()),
        }
        for pool_id, _ in enumerate(self.liquidity_pools):
            metrics[f'pool_{pool_id}_staked'] = sum(
                ledger.staked_balance(h, pool_id) for h in self.holders
            )
        return metrics

    def _final_metrics(self, metrics_over_time: List[Dict[str, Any]]) -> Dict[str, Any]:
        first, last = metrics_over_time[0], metrics_over_time[-1]
        years = last['t_seconds'] / (365 * 86_400) if last['t_seconds'] else 0.0
        if years > 0 and first['total_supply'] > 0:
            growth = last['total_supply'] / first['total_supply']
            annualized_growth = growth ** (1 / years) - 1
        else:
            annualized_growth = 0.0
        return {
            'final_minted_supply': last['minted_supply'],
            'final_total_supply': last['total_supply'],
            'final_active_stakers': last['active_stakers'],
            'annualized_supply_growth': annualized_growth,
            'num_timesteps': len(metrics_over_time) - 1,
            'events_emitted': len(self.ledger.events),
        }

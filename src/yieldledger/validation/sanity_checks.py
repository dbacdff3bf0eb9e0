"""Sanity checks and invariant validation for ledger configuration and state."""

from dataclasses import dataclass
from typing import List, Optional

from ..config.schema import LedgerConfig
from ..engine.constants import BPS_SCALE, MULTIPLIER_SCALE, SECONDS_PER_YEAR
from ..ledger import YieldLedger


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "conservation", "cap", "stakers", "accrual"
    message: str
    details: Optional[str] = None


class InvariantChecker:
    """Run sanity checks on configuration and ledger state."""

    def __init__(self, config: Optional[LedgerConfig] = None):
        """Initialize with an optional configuration."""
        self.config = config

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []
        if self.config is None:
            return warnings

        rate = self.config.rate
        if rate.max_rate_bps > 2000:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Maximum yearly rate above 20% allows aggressive inflation",
                details=f"max_rate_bps={rate.max_rate_bps} ({rate.max_rate_bps / BPS_SCALE:.1%})"
            ))

        if self.config.rewards.cooldown_period_seconds > SECONDS_PER_YEAR:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Cooldown longer than a year: rewards will rarely be realized",
                details=f"cooldown={self.config.rewards.cooldown_period_seconds}s"
            ))

        for pool in self.config.pools:
            if pool.multiplier_max > 10 * MULTIPLIER_SCALE:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="input",
                    message=f"Pool {pool.name} multiplier above 10x",
                    details=f"multiplier_max={pool.multiplier_max / MULTIPLIER_SCALE:.2f}x"
                ))
            if pool.token_reserve == 0 or pool.lp_total_supply == 0:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="input",
                    message=f"Pool {pool.name} starts with a degenerate price feed",
                    details="Staking rewards stay zero until reserves and LP supply are positive"
                ))

        return warnings

    def check_ledger(self, ledger: YieldLedger) -> List[ValidationWarning]:
        """
        Check the global ledger invariants.

        - minted_supply <= max_supply
        - sum of realized values == minted_supply
        - account is an active staker iff it has stake in some pool
        - every open accrual window is well-formed

        Returns:
            List of validation warnings (errors for invariant breaks)
        """
        warnings = []
        state = ledger.state

        if state.minted_supply > state.max_supply:
            warnings.append(ValidationWarning(
                severity="error",
                category="cap",
                message="Minted supply exceeds the cap",
                details=f"minted={state.minted_supply:,}, max={state.max_supply:,}"
            ))

        value_sum = sum(balance.value for _, balance in ledger.base.items())
        if value_sum != state.minted_supply:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message="Realized balances don't sum to minted supply",
                details=f"sum={value_sum:,} vs minted={state.minted_supply:,}"
            ))

        for account, balance in ledger.base.items():
            if balance.value < 0:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Negative balance for {account}",
                    details=f"value={balance.value}"
                ))
            if balance.is_open and balance.last_update_timestamp < balance.period_start_timestamp:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="accrual",
                    message=f"Accrual window of {account} updated before it opened",
                    details=(
                        f"period_start={balance.period_start_timestamp}, "
                        f"last_update={balance.last_update_timestamp}"
                    )
                ))

        staking_accounts = set()
        for (pool_id, account), stake in ledger.staking.items():
            if stake.amount < 0:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="stakers",
                    message=f"Negative stake for {account} in pool {pool_id}",
                    details=f"amount={stake.amount}"
                ))
            if stake.amount > 0:
                staking_accounts.add(account)
                if not stake.is_open:
                    warnings.append(ValidationWarning(
                        severity="error",
                        category="accrual",
                        message=f"Stake of {account} in pool {pool_id} has no open window",
                    ))
            elif stake.is_open:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="accrual",
                    message=f"Drained stake of {account} in pool {pool_id} kept its window",
                ))

        members = set(ledger.stakers)
        if members != staking_accounts:
            missing = sorted(staking_accounts - members)
            extra = sorted(members - staking_accounts)
            warnings.append(ValidationWarning(
                severity="error",
                category="stakers",
                message="Active staker set out of sync with stakes",
                details=f"missing={missing}, extra={extra}"
            ))

        return warnings


def validate_ledger(ledger: YieldLedger, config: Optional[LedgerConfig] = None) -> List[ValidationWarning]:
    """
    Run all validation checks on a ledger.

    Args:
        ledger: Ledger to check
        config: Configuration it was built from (optional)

    Returns:
        List of all validation warnings
    """
    checker = InvariantChecker(config)
    warnings = checker.check_config_inputs()
    warnings.extend(checker.check_ledger(ledger))
    return warnings

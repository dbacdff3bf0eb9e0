"""Continuously accruing yield ledger with boosted liquidity-pool staking."""

from .clock import ManualClock, system_clock
from .config import LedgerConfig, load_config
from .engine.errors import LedgerError, OracleError
from .external import InMemoryLiquidityPool, StaticAuthority
from .ledger import LedgerSnapshot, YieldLedger

__all__ = [
    "ManualClock",
    "system_clock",
    "LedgerConfig",
    "load_config",
    "LedgerError",
    "OracleError",
    "InMemoryLiquidityPool",
    "StaticAuthority",
    "LedgerSnapshot",
    "YieldLedger",
]

"""Accrual engines behind the ledger facade."""

from .accounting import AccountBalance, BaseAccrualLedger
from .constants import BPS_SCALE, MULTIPLIER_SCALE, NULL_ACCOUNT, SECONDS_PER_YEAR
from .errors import LedgerError, OracleError
from .events import EventLog, LedgerEvent
from .policy import RealizationPlan, RewardRealizationPolicy
from .pools import ActiveStakerSet, PoolRegistry, StakingPool
from .rate_curve import multiplier, multiplier_to_float
from .rewards import StakingAccrualLedger, UserStake
from .state import LedgerState
from .supply import SupplyCapEnforcer

__all__ = [
    "AccountBalance",
    "BaseAccrualLedger",
    "BPS_SCALE",
    "MULTIPLIER_SCALE",
    "NULL_ACCOUNT",
    "SECONDS_PER_YEAR",
    "LedgerError",
    "OracleError",
    "EventLog",
    "LedgerEvent",
    "RealizationPlan",
    "RewardRealizationPolicy",
    "ActiveStakerSet",
    "PoolRegistry",
    "StakingPool",
    "multiplier",
    "multiplier_to_float",
    "StakingAccrualLedger",
    "UserStake",
    "LedgerState",
    "SupplyCapEnforcer",
]

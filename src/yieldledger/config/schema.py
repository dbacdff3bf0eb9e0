"""Pydantic schema for configuration validation."""

import hashlib
import json
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator

from ..engine.constants import BPS_SCALE, MULTIPLIER_SCALE


class Token(BaseModel):
    """Yield token identity."""
    token_id: str = Field(min_length=1, description="Identifier of the yield token inside liquidity pools")
    name: str = Field(default="Yield Token", description="Display name")
    symbol: str = Field(default="YLD", description="Ticker symbol")
    ledger_address: str = Field(default="ledger", description="Account that escrows staked LP tokens")


class Rate(BaseModel):
    """Yearly rate and the bounds admin changes must respect (BPS)."""
    yearly_rate_bps: int = Field(ge=0, le=BPS_SCALE, description="Initial yearly rate")
    min_rate_bps: int = Field(ge=0, le=BPS_SCALE, description="Lowest allowed yearly rate")
    max_rate_bps: int = Field(ge=0, le=BPS_SCALE, description="Highest allowed yearly rate")

    @model_validator(mode='after')
    def validate_bounds(self):
        """Ensure min <= yearly <= max."""
        if self.min_rate_bps > self.max_rate_bps:
            raise ValueError(
                f"min_rate_bps ({self.min_rate_bps}) must not exceed max_rate_bps ({self.max_rate_bps})"
            )
        if not self.min_rate_bps <= self.yearly_rate_bps <= self.max_rate_bps:
            raise ValueError(
                f"yearly_rate_bps {self.yearly_rate_bps} outside "
                f"[{self.min_rate_bps}, {self.max_rate_bps}]"
            )
        return self


class Supply(BaseModel):
    """Supply cap."""
    max_supply: int = Field(gt=0, description="Hard cap on minted supply")


class Rewards(BaseModel):
    """Reward realization parameters."""
    cooldown_period_seconds: int = Field(gt=0, description="Minimum seconds between realizations")


class PoolSpec(BaseModel):
    """Staking pool bootstrapped by simulations (in-memory liquidity pool)."""
    name: str
    multiplier_max: int = Field(ge=MULTIPLIER_SCALE, description="Max multiplier, 1_000_000 == 1.0x")
    time_threshold_seconds: int = Field(gt=0, description="Seconds of staking to reach multiplier_max")
    token_reserve: int = Field(ge=0, description="Yield-token reserve in the liquidity pool")
    paired_reserve: int = Field(ge=0, description="Paired-asset reserve in the liquidity pool")
    lp_total_supply: int = Field(ge=0, description="LP tokens outstanding before the simulation")


class Simulation(BaseModel):
    """Simulation parameters."""
    horizon_days: int = Field(gt=0, description="Simulated time horizon")
    timestep_days: int = Field(gt=0, description="Timestep in days")
    num_holders: int = Field(gt=0, description="Number of simulated accounts")
    initial_mint_mean: int = Field(gt=0, description="Mean initial mint per holder")
    lp_per_holder: int = Field(ge=0, default=0, description="LP tokens handed to each holder per pool")
    transfer_probability: float = Field(ge=0, le=1, default=0.2)
    claim_probability: float = Field(ge=0, le=1, default=0.3)
    stake_probability: float = Field(ge=0, le=1, default=0.1)
    unstake_probability: float = Field(ge=0, le=1, default=0.05)
    random_seed: int = Field(description="Random seed for reproducibility")

    @field_validator("timestep_days")
    @classmethod
    def validate_timestep(cls, v, info):
        """Ensure the timestep fits in the horizon."""
        if 'horizon_days' in info.data and v > info.data['horizon_days']:
            raise ValueError("timestep_days must not exceed horizon_days")
        return v


class LedgerConfig(BaseModel):
    """Complete configuration for a yield ledger."""
    token: Token
    rate: Rate
    supply: Supply
    rewards: Rewards
    admin: str = Field(min_length=1, description="Administrator account")
    minters: List[str] = Field(default_factory=list, description="Designated minters besides the admin")
    pools: List[PoolSpec] = Field(default_factory=list)
    simulation: Simulation

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerConfig':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()

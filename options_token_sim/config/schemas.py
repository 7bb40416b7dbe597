#!/usr/bin/env python3
"""
Configuration schemas for options token deployments and simulations.

Pydantic models for every tunable: tokens, the TWAP feed, oracle parameters,
fee split, and the simulation run. Amounts are human units here and are
converted to WAD integers at deployment.
"""

import json
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ..feeds.weighted_pool import LARGEST_SAFE_QUERY_WINDOW


class FeedType(str, Enum):
    """Available TWAP feed shapes"""
    PAIR = "pair"
    WEIGHTED_POOL = "weighted_pool"


class TokenConfig(BaseModel):
    """Configuration for a single token"""
    name: str = Field(description="Token name")
    symbol: str = Field(min_length=1, description="Token symbol")


class PoolConfig(BaseModel):
    """TWAP feed pool between the underlying and the payment token"""
    feed_type: FeedType = Field(default=FeedType.PAIR, description="Feed shape")
    underlying_reserve: float = Field(gt=0, default=1_000_000.0, description="Initial underlying liquidity")
    payment_reserve: float = Field(gt=0, default=10_000_000.0, description="Initial payment token liquidity")
    stable: bool = Field(default=False, description="Stable-swap curve (pair feed only)")
    fee_bps: int = Field(ge=0, lt=10_000, default=30, description="Swap fee in basis points")
    underlying_weight: float = Field(gt=0, lt=1, default=0.5, description="Underlying weight (weighted pool only)")

    @model_validator(mode="after")
    def validate_feed_shape(self):
        """Stable curves only exist on the pair feed"""
        if self.stable and self.feed_type != FeedType.PAIR:
            raise ValueError("stable is only supported for the pair feed")
        return self

    @property
    def initial_price(self) -> float:
        """Spot price of the underlying in the payment token at seeding"""
        if self.feed_type == FeedType.WEIGHTED_POOL:
            payment_weight = 1.0 - self.underlying_weight
            return (self.payment_reserve / payment_weight) / (self.underlying_reserve / self.underlying_weight)
        return self.payment_reserve / self.underlying_reserve


class OracleConfig(BaseModel):
    """Strike price oracle parameters"""
    multiplier: int = Field(ge=0, le=65_535, default=5_000, description="Discount multiplier, denominator 10000")
    secs: int = Field(gt=0, default=1_800, description="TWAP window in seconds")
    ago: int = Field(ge=0, default=0, description="Lookback offset in seconds (weighted pool feed)")
    min_price: float = Field(ge=0, default=0.1, description="Strike price floor")


class ExerciseConfig(BaseModel):
    """Discount exercise settlement configuration"""
    treasury: str = Field(default="treasury", description="Treasury account label")
    fee_recipients: List[str] = Field(default_factory=list, description="Fee recipient account labels")
    fee_bps: List[int] = Field(default_factory=list, description="Fee split per recipient, summing to 10000")

    @field_validator("fee_bps")
    @classmethod
    def validate_fee_bps(cls, v):
        for bps in v:
            if not 0 <= bps <= 10_000:
                raise ValueError(f"fee bps {bps} must be between 0 and 10000")
        return v

    @model_validator(mode="after")
    def validate_fee_split(self):
        """Recipients and bps must line up and cover the whole payment"""
        if len(self.fee_recipients) != len(self.fee_bps):
            raise ValueError("fee_recipients and fee_bps must have the same length")
        if self.fee_recipients and sum(self.fee_bps) != 10_000:
            raise ValueError(f"fee_bps must sum to 10000, got {sum(self.fee_bps)}")
        return self


class SimulationConfig(BaseModel):
    """Exercise simulation run parameters"""
    name: str = Field(default="baseline", description="Scenario name")
    description: Optional[str] = Field(None, description="Scenario description")
    steps: int = Field(gt=0, default=288, description="Number of simulation steps")
    step_seconds: int = Field(gt=0, default=600, description="Seconds per step")
    warmup_steps: int = Field(ge=0, default=6, description="Steps before holders start exercising")
    random_seed: Optional[int] = Field(None, description="Random seed for reproducibility")

    # Market price path (geometric Brownian motion, annualized)
    drift: float = Field(default=0.0, description="Annualized drift")
    volatility: float = Field(ge=0, le=5, default=0.8, description="Annualized volatility")

    # Holders
    num_holders: int = Field(gt=0, default=10, description="Number of option holders")
    options_per_holder: float = Field(gt=0, default=10_000.0, description="Options issued per holder")
    payment_per_holder: float = Field(gt=0, default=100_000.0, description="Payment tokens per holder")
    exercise_probability: float = Field(ge=0, le=1, default=0.05, description="Chance a holder exercises each step")
    exercise_fraction: float = Field(gt=0, le=1, default=0.25, description="Share of remaining options exercised")
    slippage_tolerance: float = Field(ge=0, le=1, default=0.01, description="Payment ceiling above quoted payment")

    # Manipulation probes
    probe_interval: int = Field(ge=0, default=24, description="Steps between manipulation probes, 0 disables")
    probe_size: float = Field(gt=0, le=1, default=0.3, description="Probe swap size as share of payment reserve")


class DeploymentConfig(BaseModel):
    """Complete options token deployment configuration"""
    version: str = Field(default="1.0.0", description="Configuration version")
    underlying: TokenConfig = Field(default_factory=lambda: TokenConfig(name="Underlying", symbol="UND"))
    payment: TokenConfig = Field(default_factory=lambda: TokenConfig(name="Payment Token", symbol="PAY"))
    options: TokenConfig = Field(default_factory=lambda: TokenConfig(name="Underlying Call Option", symbol="oUND"))

    pool: PoolConfig = Field(default_factory=PoolConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    exercise: ExerciseConfig = Field(default_factory=ExerciseConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)

    @model_validator(mode="after")
    def validate_oracle_window(self):
        """The weighted pool can only serve windows inside its sample buffer"""
        if self.pool.feed_type == FeedType.WEIGHTED_POOL:
            if self.oracle.secs + self.oracle.ago > LARGEST_SAFE_QUERY_WINDOW:
                raise ValueError(
                    f"secs + ago ({self.oracle.secs + self.oracle.ago}) exceeds "
                    f"the weighted pool's safe window ({LARGEST_SAFE_QUERY_WINDOW})"
                )
        symbols = {self.underlying.symbol, self.payment.symbol, self.options.symbol}
        if len(symbols) != 3:
            raise ValueError("Token symbols must be unique")
        return self


def load_config(path: Union[str, Path]) -> DeploymentConfig:
    """Load and validate a JSON configuration file"""
    with open(path, "r") as f:
        return DeploymentConfig.model_validate(json.load(f))


def create_default_config() -> DeploymentConfig:
    """Default deployment: 50% discount on a 10 PAY/UND pair with a 0.1 floor"""
    return DeploymentConfig()

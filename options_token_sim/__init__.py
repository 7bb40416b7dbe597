"""
Options Token Simulation

An oracle-priced perpetual options token: holders exercise options at a
discounted TWAP strike through pluggable redemption strategies, simulated
against Solidly-style pair and weighted pool price feeds.
"""

__version__ = "1.0.0"
__author__ = "Options Token Simulation Team"

# Core components
from .core.chain import Chain, SINK_ADDRESS
from .core.token import Token
from .core.options_token import OptionsToken, RedemptionOption

# Oracles and feeds
from .feeds.pair import TwapPair
from .feeds.weighted_pool import WeightedPool2Tokens
from .oracles.pair_oracle import PairTwapOracle
from .oracles.weighted_pool_oracle import WeightedPoolOracle

# Redemption strategies
from .exercise.discount import DiscountExercise, DiscountExerciseParams, DiscountExerciseReturnData

# Engine
from .config.schemas import DeploymentConfig, create_default_config
from .engine.deployment import DeploymentFactory, OptionsDeployment
from .engine.simulation import ExerciseSimulationEngine

# Analysis
from .analysis.metrics import ExerciseMetricsCalculator

__all__ = [
    # Core
    "Chain", "SINK_ADDRESS", "Token", "OptionsToken", "RedemptionOption",

    # Oracles and feeds
    "TwapPair", "WeightedPool2Tokens", "PairTwapOracle", "WeightedPoolOracle",

    # Redemption strategies
    "DiscountExercise", "DiscountExerciseParams", "DiscountExerciseReturnData",

    # Engine
    "DeploymentConfig", "create_default_config", "DeploymentFactory", "OptionsDeployment",
    "ExerciseSimulationEngine",

    # Analysis
    "ExerciseMetricsCalculator"
]

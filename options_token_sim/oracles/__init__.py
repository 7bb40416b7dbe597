"""Strike price oracles"""

from .base import BaseOracle, OracleParams, MULTIPLIER_DENOM
from .pair_oracle import PairTwapOracle
from .weighted_pool_oracle import WeightedPoolOracle

__all__ = ["BaseOracle", "OracleParams", "MULTIPLIER_DENOM", "PairTwapOracle", "WeightedPoolOracle"]

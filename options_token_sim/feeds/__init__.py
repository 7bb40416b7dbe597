"""TWAP data sources"""

from .pair import TwapPair, Observation
from .weighted_pool import WeightedPool2Tokens, OracleAverageQuery, Variable

__all__ = ["TwapPair", "Observation", "WeightedPool2Tokens", "OracleAverageQuery", "Variable"]

"""Configuration schemas"""

from .schemas import (
    DeploymentConfig, ExerciseConfig, FeedType, OracleConfig, PoolConfig,
    SimulationConfig, TokenConfig, create_default_config, load_config
)
from .scenarios import ExerciseScenarios, build_scenario_config

__all__ = [
    "DeploymentConfig", "ExerciseConfig", "FeedType", "OracleConfig", "PoolConfig",
    "SimulationConfig", "TokenConfig", "create_default_config", "load_config",
    "ExerciseScenarios", "build_scenario_config"
]

"""Deployment factory and simulation engine"""

from .deployment import DeploymentFactory, OptionsDeployment
from .simulation import ExerciseSimulationEngine

__all__ = ["DeploymentFactory", "OptionsDeployment", "ExerciseSimulationEngine"]

"""Run analysis, charts and results storage"""

from .metrics import ExerciseMetricsCalculator
from .charts import ExerciseChartGenerator
from .results_manager import ResultsManager, RunMetadata

__all__ = ["ExerciseMetricsCalculator", "ExerciseChartGenerator", "ResultsManager", "RunMetadata"]

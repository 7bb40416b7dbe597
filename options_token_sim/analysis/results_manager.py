#!/usr/bin/env python3
"""
Results Management System

Stores each simulation run in its own numbered directory:

    results/<scenario>/run_NNN_<timestamp>/
        results.json    summary and configuration
        metadata.json   run metadata
        history.csv     per-step state
        exercises.csv   exercise attempts
        probes.csv      manipulation probes
        charts/
"""

import json
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

TABLES = ("history", "exercises", "probes")


@dataclass
class RunMetadata:
    """Metadata for a single simulation run"""
    run_id: str
    scenario_name: str
    timestamp: str
    parameters: Dict[str, Any]
    execution_time: float
    status: str = "completed"


class ResultsManager:
    """Handles automatic results storage and versioning"""

    def __init__(self, base_results_dir: str = "results"):
        self.base_results_dir = Path(base_results_dir)
        self._lock = threading.Lock()
        self.base_results_dir.mkdir(parents=True, exist_ok=True)

    def create_run_directory(self, scenario_name: str) -> Path:
        """
        Create a new run directory with sequential numbering

        Args:
            scenario_name: Name of the simulated scenario

        Returns:
            Path to the created run directory
        """
        with self._lock:
            scenario_dir = self.base_results_dir / scenario_name
            scenario_dir.mkdir(exist_ok=True)

            run_number = self._get_next_run_number(scenario_dir)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

            run_dir = scenario_dir / f"run_{run_number:03d}_{timestamp}"
            run_dir.mkdir(exist_ok=True)
            (run_dir / "charts").mkdir(exist_ok=True)

            return run_dir

    def _get_next_run_number(self, scenario_dir: Path) -> int:
        """Get the next sequential run number for a scenario"""
        run_numbers = []
        for run_dir in scenario_dir.iterdir():
            if not run_dir.is_dir() or not run_dir.name.startswith("run_"):
                continue
            parts = run_dir.name.split("_")
            if len(parts) >= 2 and parts[1].isdigit():
                run_numbers.append(int(parts[1]))

        return max(run_numbers) + 1 if run_numbers else 1

    def save_results(self, run_dir: Path, results: Dict[str, Any], metadata: RunMetadata) -> Path:
        """
        Save simulation results to the run directory

        Tables go to CSV, everything else to results.json.
        """
        for table in TABLES:
            frame = results.get(table)
            if isinstance(frame, pd.DataFrame):
                frame.to_csv(run_dir / f"{table}.csv", index=False)

        results_file = run_dir / "results.json"
        payload = {k: v for k, v in results.items() if k not in TABLES}
        with open(results_file, 'w') as f:
            json.dump(self._make_serializable(payload), f, indent=2)

        with open(run_dir / "metadata.json", 'w') as f:
            json.dump(asdict(metadata), f, indent=2)

        return results_file

    def list_scenario_runs(self, scenario_name: str) -> List[Dict[str, Any]]:
        """List all saved runs for a scenario, oldest first"""
        scenario_dir = self.base_results_dir / scenario_name
        if not scenario_dir.exists():
            return []

        runs = []
        for run_dir in scenario_dir.iterdir():
            if not run_dir.is_dir() or not run_dir.name.startswith("run_"):
                continue
            metadata = self.load_metadata(run_dir)
            if metadata is not None:
                runs.append({"run_id": run_dir.name, "path": str(run_dir), **asdict(metadata)})
            else:
                runs.append({"run_id": run_dir.name, "path": str(run_dir), "scenario_name": scenario_name})

        runs.sort(key=lambda x: x["run_id"])
        return runs

    def list_all_scenarios(self) -> List[str]:
        """List all scenario directories"""
        return sorted(item.name for item in self.base_results_dir.iterdir()
                      if item.is_dir() and not item.name.startswith('.'))

    def load_results(self, run_path: Path) -> Optional[Dict[str, Any]]:
        """Load results.json and any CSV tables from a run directory"""
        results_file = run_path / "results.json"
        if not results_file.exists():
            return None

        try:
            with open(results_file, 'r') as f:
                results = json.load(f)
        except json.JSONDecodeError:
            return None

        for table in TABLES:
            table_file = run_path / f"{table}.csv"
            if table_file.exists():
                results[table] = pd.read_csv(table_file)
        return results

    def load_metadata(self, run_path: Path) -> Optional[RunMetadata]:
        """Load metadata from a run directory"""
        metadata_file = run_path / "metadata.json"
        if not metadata_file.exists():
            return None

        try:
            with open(metadata_file, 'r') as f:
                return RunMetadata(**json.load(f))
        except (json.JSONDecodeError, TypeError):
            return None

    def _make_serializable(self, obj: Any) -> Any:
        """Convert objects to JSON-serializable format"""
        if isinstance(obj, float) and obj != obj:
            return None
        if hasattr(obj, 'tolist'):  # numpy arrays
            return obj.tolist()
        elif hasattr(obj, 'item'):  # numpy scalars
            return self._make_serializable(obj.item())
        elif isinstance(obj, dict):
            return {str(getattr(k, 'value', k)): self._make_serializable(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple, set, frozenset)):
            return [self._make_serializable(item) for item in obj]
        else:
            try:
                json.dumps(obj)
                return obj
            except (TypeError, ValueError):
                return str(obj)

#!/usr/bin/env python3
"""
Options Token Exercise Simulation - Main Entry Point

Deploys an oracle-priced options token, runs holders, arbitrage and
manipulation probes against it, and stores the results.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from options_token_sim.analysis.charts import ExerciseChartGenerator
from options_token_sim.analysis.results_manager import ResultsManager, RunMetadata
from options_token_sim.config.scenarios import ExerciseScenarios, build_scenario_config
from options_token_sim.config.schemas import DeploymentConfig, FeedType, create_default_config, load_config
from options_token_sim.core.errors import OptionsTokenSimError
from options_token_sim.engine.simulation import ExerciseSimulationEngine
from options_token_sim.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main(argv: Optional[list] = None) -> int:
    """Main entry point with command-line interface"""

    parser = argparse.ArgumentParser(
        description="Options Token Exercise Simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m options_token_sim.main                              # Baseline run
  python -m options_token_sim.main --scenario weighted_pool     # Named scenario
  python -m options_token_sim.main --config deploy.json --steps 500 --seed 7 --charts
  python -m options_token_sim.main --list-scenarios
        """
    )

    parser.add_argument('--config', type=str, metavar='PATH',
                        help='Load deployment configuration from a JSON file')

    parser.add_argument('--scenario', type=str,
                        help='Apply a named scenario on top of the configuration')

    parser.add_argument('--list-scenarios', action='store_true',
                        help='List available scenarios')

    parser.add_argument('--steps', type=int,
                        help='Number of simulation steps')

    parser.add_argument('--seed', type=int,
                        help='Random seed for reproducibility')

    parser.add_argument('--feed', choices=[f.value for f in FeedType],
                        help='TWAP feed to price the strike from')

    parser.add_argument('--results-dir', type=str, default='results',
                        help='Directory for saved runs (default: results)')

    parser.add_argument('--no-save', action='store_true',
                        help='Do not save results to disk')

    parser.add_argument('--charts', action='store_true',
                        help='Generate charts into the run directory')

    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")

    if args.list_scenarios:
        list_scenarios()
        return 0

    try:
        config = create_config(args)
    except (OSError, ValueError, ValidationError) as e:
        print(f"Error: invalid configuration - {e}")
        return 1

    print(f"Running Exercise Simulation: {config.simulation.name}")
    print("=" * 60)

    try:
        engine = ExerciseSimulationEngine(config)
        results = engine.run()
    except OptionsTokenSimError as e:
        print(f"Error: simulation failed - {e.__class__.__name__}: {e}")
        return 1

    display_results(results, args.verbose)

    if not args.no_save:
        save_run(results, Path(args.results_dir), args.charts)

    return 0


def create_config(args) -> DeploymentConfig:
    """Build the run configuration from file, scenario and overrides"""
    config = load_config(args.config) if args.config else create_default_config()
    if args.scenario:
        config = build_scenario_config(args.scenario, config)

    data = config.model_dump()
    if args.steps is not None:
        data["simulation"]["steps"] = args.steps
    if args.seed is not None:
        data["simulation"]["random_seed"] = args.seed
    if args.feed is not None:
        data["pool"]["feed_type"] = args.feed
    return DeploymentConfig.model_validate(data)


def list_scenarios():
    """List all available scenarios"""
    print("Available Scenarios:")
    print("=" * 40)
    for scenario in ExerciseScenarios.all():
        print(f"  {scenario['name']:<18} {scenario['description']}")


def display_results(results: Dict, verbose: bool):
    """Print the run summary"""
    summary = results["summary"]
    tracking = summary["price_tracking"]
    exercises = summary["exercises"]
    manipulation = summary["manipulation"]
    supply = summary["supply"]

    print(f"\nResults for {results['scenario']} ({results['execution_time']:.2f}s):")
    print(f"  Exercises: {exercises['successes']}/{exercises['attempts']} succeeded")
    print(f"  Options Exercised: {exercises['total_exercised']:,.2f}")
    print(f"  Payment Collected: {exercises['total_payment']:,.2f}")
    print(f"  Effective Price: {exercises['effective_price']:.4f}")
    print(f"  Realized Discount: {exercises['mean_realized_discount']:.2%}")
    print(f"  Strike / Spot: {tracking['mean_strike_to_spot']:.4f}")
    print(f"  Max Probe Strike Deviation: {manipulation['max_abs_strike_deviation']:.4%}")

    if exercises["failures_by_error"]:
        print("\n  Failed Exercises:")
        for error, count in exercises["failures_by_error"].items():
            print(f"    {error}: {count}")

    if verbose:
        print("\n  Price Tracking:")
        for metric, value in tracking.items():
            print(f"    {metric.replace('_', ' ').title()}: {value}")
        print("\n  Supply:")
        for metric, value in supply.items():
            print(f"    {metric.replace('_', ' ').title()}: {value}")


def save_run(results: Dict, results_dir: Path, charts: bool) -> Path:
    """Store results, and optionally charts, in a new run directory"""
    manager = ResultsManager(str(results_dir))
    run_dir = manager.create_run_directory(results["scenario"])

    metadata = RunMetadata(
        run_id=run_dir.name,
        scenario_name=results["scenario"],
        timestamp=run_dir.name.split("_", 2)[-1],
        parameters=results["config"],
        execution_time=results["execution_time"],
    )
    manager.save_results(run_dir, results, metadata)

    if charts:
        chart_paths = ExerciseChartGenerator().generate_charts(results["scenario"], results, run_dir / "charts")
        for path in chart_paths:
            print(f"  Chart: {path}")

    print(f"\nResults saved to {run_dir}")
    return run_dir


if __name__ == "__main__":
    sys.exit(main())

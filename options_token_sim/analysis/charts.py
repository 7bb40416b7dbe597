#!/usr/bin/env python3
"""
Exercise Chart Generator

One time-series overview per run (prices, strike ratio, cumulative
exercise, probe deviations) plus a payment distribution chart.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class ExerciseChartGenerator:
    """Generates charts for a simulation run"""

    def __init__(self):
        self._setup_styling()

    def _setup_styling(self):
        """Setup clean, professional chart styling"""
        plt.style.use('default')

        plt.rcParams.update({
            'figure.figsize': (12, 8),
            'font.size': 11,
            'axes.titlesize': 14,
            'axes.labelsize': 12,
            'legend.fontsize': 10,
            'xtick.labelsize': 10,
            'ytick.labelsize': 10
        })

    def generate_charts(self, scenario_name: str, results: Dict[str, Any], charts_dir: Path) -> List[Path]:
        """Write every chart for results into charts_dir"""
        charts_dir.mkdir(parents=True, exist_ok=True)
        history = results.get("history")
        if history is None or history.empty:
            logger.warning("No history recorded for %s, skipping charts", scenario_name)
            return []

        paths = [self._create_overview(scenario_name, results, charts_dir)]
        exercises = results.get("exercises")
        if exercises is not None and exercises["success"].astype(bool).any():
            paths.append(self._create_payment_distribution(scenario_name, exercises, charts_dir))
        return paths

    def _create_overview(self, scenario_name: str, results: Dict, charts_dir: Path) -> Path:
        history: pd.DataFrame = results["history"]
        exercises: pd.DataFrame = results["exercises"]
        probes: pd.DataFrame = results["probes"]

        fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2, figsize=(14, 10))
        fig.suptitle(f'{scenario_name.replace("_", " ")} - Exercise Dynamics Over Time',
                     fontsize=16, fontweight='bold')
        hours = (history["timestamp"] - history["timestamp"].iloc[0]) / 3600

        # Chart 1: market, pool spot, TWAP and strike
        ax1.plot(hours, history["market_price"], color='grey', alpha=0.6, label='Market')
        ax1.plot(hours, history["spot_price"], color='#1f77b4', label='Pool spot')
        ax1.plot(hours, history["twap"], color='#ff7f0e', label='TWAP')
        ax1.plot(hours, history["strike"], color='#2ca02c', linewidth=2, label='Strike')
        ax1.plot(hours, history["min_price"], color='#d62728', linestyle='--', alpha=0.7, label='Min price')
        ax1.set_title('Prices')
        ax1.set_xlabel('Hours')
        ax1.set_ylabel('Payment per underlying')
        ax1.legend()
        ax1.grid(True, alpha=0.3)

        # Chart 2: strike relative to spot
        ratio = history["strike"] / history["spot_price"].replace(0, np.nan)
        ax2.plot(hours, ratio, color='#9467bd')
        ax2.set_title('Strike / Spot')
        ax2.set_xlabel('Hours')
        ax2.set_ylabel('Ratio')
        ax2.grid(True, alpha=0.3)

        # Chart 3: options sent to the sink and treasury revenue
        ax3.plot(hours, history["sink_balance"], color='#8c564b', label='Options exercised')
        ax3.set_xlabel('Hours')
        ax3.set_ylabel('Options')
        ax3_revenue = ax3.twinx()
        revenue = history["treasury_balance"] - history["treasury_balance"].iloc[0]
        ax3_revenue.plot(hours, revenue, color='#17becf', label='Treasury revenue')
        ax3_revenue.set_ylabel('Payment token')
        ax3.set_title('Cumulative Exercise')
        ax3.grid(True, alpha=0.3)

        # Chart 4: single-block probe impact on spot vs strike
        if not probes.empty:
            ax4.bar(probes["step"] - 0.2, probes["spot_impact"] * 100, width=0.4, color='#ff7f0e',
                    label='Spot impact')
            ax4.bar(probes["step"] + 0.2, probes["strike_deviation"] * 100, width=0.4, color='#2ca02c',
                    label='Strike deviation')
            ax4.legend()
        else:
            ax4.text(0.5, 0.5, 'No probes', ha='center', va='center', transform=ax4.transAxes)
        failed = int((~exercises["success"].astype(bool)).sum()) if not exercises.empty else 0
        ax4.set_title(f'Manipulation Probes ({failed} failed exercises)')
        ax4.set_xlabel('Step')
        ax4.set_ylabel('Change (%)')
        ax4.grid(True, alpha=0.3)

        plt.tight_layout()
        path = charts_dir / f"{scenario_name}_exercise_dynamics.png"
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return path

    def _create_payment_distribution(self, scenario_name: str, exercises: pd.DataFrame,
                                     charts_dir: Path) -> Path:
        succeeded = exercises[exercises["success"].astype(bool)]
        paid_price = succeeded["payment"] / succeeded["amount"]
        discount = (1 - paid_price / succeeded["spot_price"]) * 100

        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 6))
        fig.suptitle(f'{scenario_name.replace("_", " ")} - Exercise Payments', fontsize=16, fontweight='bold')

        ax1.hist(paid_price, bins=20, color='#1f77b4', alpha=0.8, edgecolor='black')
        ax1.set_title('Price Paid per Option')
        ax1.set_xlabel('Payment per underlying')
        ax1.set_ylabel('Exercises')
        ax1.grid(True, alpha=0.3)

        ax2.hist(discount, bins=20, color='#2ca02c', alpha=0.8, edgecolor='black')
        ax2.axvline(discount.mean(), color='red', linestyle='--', label=f'Mean {discount.mean():.1f}%')
        ax2.set_title('Realized Discount to Spot')
        ax2.set_xlabel('Discount (%)')
        ax2.set_ylabel('Exercises')
        ax2.legend()
        ax2.grid(True, alpha=0.3)

        plt.tight_layout()
        path = charts_dir / f"{scenario_name}_payments.png"
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return path

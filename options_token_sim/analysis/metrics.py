#!/usr/bin/env python3
"""
Exercise Metrics Calculator

Summarises a simulation run: how closely the strike tracked the pool,
what holders actually paid, why exercises failed, and how far single-block
manipulation probes moved the strike.
"""

from typing import Dict

import numpy as np
import pandas as pd


class ExerciseMetricsCalculator:
    """Computes summary metrics from recorded simulation tables"""

    def __init__(self, history: pd.DataFrame, exercises: pd.DataFrame, probes: pd.DataFrame):
        self.history = history
        self.exercises = exercises
        self.probes = probes

    def calculate_price_tracking_metrics(self) -> Dict:
        """How the TWAP and the strike compare with the pool spot price"""
        priced = self.history.dropna(subset=["twap", "strike"])
        priced = priced[priced["spot_price"] > 0]
        if priced.empty:
            return {
                "priced_steps": 0,
                "twap_tracking_error": 0.0,
                "max_twap_lag": 0.0,
                "mean_strike_to_spot": 0.0,
                "floor_binding_share": 0.0,
            }

        twap_error = priced["twap"] / priced["spot_price"] - 1
        # the floor binds whenever the strike sits exactly at min_price
        floor_binding = np.isclose(priced["strike"], priced["min_price"])

        return {
            "priced_steps": int(len(priced)),
            "twap_tracking_error": float(np.sqrt(np.mean(twap_error ** 2))),
            "max_twap_lag": float(twap_error.abs().max()),
            "mean_strike_to_spot": float((priced["strike"] / priced["spot_price"]).mean()),
            "floor_binding_share": float(floor_binding.mean()),
        }

    def calculate_exercise_metrics(self) -> Dict:
        """Exercise outcomes and what successful holders paid"""
        exercises = self.exercises
        attempts = int(len(exercises))
        if attempts == 0:
            return {
                "attempts": 0,
                "successes": 0,
                "success_rate": 0.0,
                "failures_by_error": {},
                "total_exercised": 0.0,
                "total_payment": 0.0,
                "effective_price": 0.0,
                "mean_realized_discount": 0.0,
            }

        succeeded = exercises[exercises["success"].astype(bool)]
        failed = exercises[~exercises["success"].astype(bool)]
        total_exercised = float(succeeded["amount"].sum())
        total_payment = float(succeeded["payment"].sum())

        realized_discount = 0.0
        market_value = succeeded["amount"] * succeeded["spot_price"]
        if not succeeded.empty and (market_value > 0).all():
            realized_discount = float((1 - succeeded["payment"] / market_value).mean())

        return {
            "attempts": attempts,
            "successes": int(len(succeeded)),
            "success_rate": len(succeeded) / attempts,
            "failures_by_error": {str(k): int(v) for k, v in failed["error"].value_counts().items()},
            "total_exercised": total_exercised,
            "total_payment": total_payment,
            "effective_price": total_payment / total_exercised if total_exercised > 0 else 0.0,
            "mean_realized_discount": realized_discount,
        }

    def calculate_manipulation_metrics(self) -> Dict:
        """Strike movement caused by single-block probes"""
        probes = self.probes.dropna(subset=["strike_deviation"])
        if probes.empty:
            return {"probes": 0, "max_abs_strike_deviation": 0.0, "mean_spot_impact": 0.0}

        return {
            "probes": int(len(probes)),
            "max_abs_strike_deviation": float(probes["strike_deviation"].abs().max()),
            "mean_spot_impact": float(probes["spot_impact"].mean()),
        }

    def calculate_supply_metrics(self) -> Dict:
        """Option supply, sink accumulation and treasury revenue"""
        history = self.history
        if history.empty:
            return {"options_supply_constant": True, "sink_balance": 0.0,
                    "treasury_revenue": 0.0, "underlying_minted": 0.0}

        first, last = history.iloc[0], history.iloc[-1]
        return {
            "options_supply_constant": bool(history["options_supply"].nunique() == 1),
            "sink_balance": float(last["sink_balance"]),
            "treasury_revenue": float(last["treasury_balance"] - first["treasury_balance"]),
            "underlying_minted": float(last["underlying_supply"] - first["underlying_supply"]),
        }

    def summary(self) -> Dict:
        return {
            "price_tracking": self.calculate_price_tracking_metrics(),
            "exercises": self.calculate_exercise_metrics(),
            "manipulation": self.calculate_manipulation_metrics(),
            "supply": self.calculate_supply_metrics(),
        }

#!/usr/bin/env python3
"""
Named exercise scenarios.

Each scenario is a set of overrides applied on top of a base
DeploymentConfig, section by section.
"""

from typing import Dict, List, Optional

from .schemas import DeploymentConfig, create_default_config


class ExerciseScenarios:
    """Preset scenarios for the exercise simulation"""

    BASELINE = {
        "name": "baseline",
        "description": "50% discount on a volatile pair, moderate volatility",
    }

    HIGH_VOLATILITY = {
        "name": "high_volatility",
        "description": "Market volatility tripled, wider slippage tolerance",
        "simulation": {"volatility": 2.4, "slippage_tolerance": 0.03},
    }

    TIGHT_SLIPPAGE = {
        "name": "tight_slippage",
        "description": "Holders accept no movement from their quoted payment",
        "simulation": {"slippage_tolerance": 0.0, "exercise_probability": 0.2},
    }

    PRICE_FLOOR = {
        "name": "price_floor",
        "description": "Deep discount where the minimum price binds",
        "oracle": {"multiplier": 500, "min_price": 1.0},
    }

    WEIGHTED_POOL = {
        "name": "weighted_pool",
        "description": "80/20 weighted pool feed with a one hour lookback",
        "pool": {"feed_type": "weighted_pool", "underlying_weight": 0.8,
                 "underlying_reserve": 1_000_000.0, "payment_reserve": 2_500_000.0},
        "oracle": {"secs": 3_600, "ago": 3_600},
    }

    FEE_SPLIT = {
        "name": "fee_split",
        "description": "Payments split 70/30 between treasury and a rewards pool",
        "exercise": {"fee_recipients": ["treasury", "rewards"], "fee_bps": [7_000, 3_000]},
    }

    MANIPULATION = {
        "name": "manipulation",
        "description": "Frequent probes moving half the payment reserve in one block",
        "simulation": {"probe_interval": 4, "probe_size": 0.5},
    }

    @classmethod
    def all(cls) -> List[Dict]:
        return [cls.BASELINE, cls.HIGH_VOLATILITY, cls.TIGHT_SLIPPAGE, cls.PRICE_FLOOR,
                cls.WEIGHTED_POOL, cls.FEE_SPLIT, cls.MANIPULATION]

    @classmethod
    def get(cls, name: str) -> Dict:
        for scenario in cls.all():
            if scenario["name"] == name:
                return scenario
        raise ValueError(f"Unknown scenario: {name}")


def build_scenario_config(name: str, base: Optional[DeploymentConfig] = None) -> DeploymentConfig:
    """Apply a named scenario's overrides to base and revalidate"""
    scenario = ExerciseScenarios.get(name)
    data = (base or create_default_config()).model_dump()

    for section in ("pool", "oracle", "exercise", "simulation"):
        data[section].update(scenario.get(section, {}))
    data["simulation"]["name"] = scenario["name"]
    data["simulation"]["description"] = scenario["description"]

    return DeploymentConfig.model_validate(data)

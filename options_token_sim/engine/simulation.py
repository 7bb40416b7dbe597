#!/usr/bin/env python3
"""
Exercise Simulation Engine

Drives a deployed options token system through time:

- A geometric Brownian market price the feed is arbitraged towards each step
- Option holders that quote the strike, then exercise one step later with a
  slippage ceiling on that quote
- Periodic single-block manipulation probes: read the strike, push the pool
  with a large swap, read again in the same block, swap back

Every step is recorded so the price tracking, exercise outcomes and
manipulation resistance can be analysed afterwards.
"""

import logging
import math
import time
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from ..analysis.metrics import ExerciseMetricsCalculator
from ..config.schemas import DeploymentConfig, create_default_config
from ..core.chain import Address, SINK_ADDRESS
from ..core.errors import OptionsTokenSimError, StalenessError
from ..core.fixed_point import from_wad, mul_div_down, mul_wad_up, to_wad
from ..exercise.discount import DiscountExerciseParams, DiscountExerciseReturnData
from ..feeds.pair import TwapPair
from .deployment import DeploymentFactory

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = 365 * 24 * 3600
# Relative spot/market gap below which the arbitrageur does nothing
ARBITRAGE_THRESHOLD = 0.001

HISTORY_COLUMNS = [
    "step", "timestamp", "market_price", "spot_price", "twap", "strike", "min_price",
    "options_supply", "sink_balance", "treasury_balance", "underlying_supply",
]
EXERCISE_COLUMNS = [
    "step", "timestamp", "holder", "amount", "quoted_strike", "max_payment",
    "payment", "spot_price", "success", "error",
]
PROBE_COLUMNS = [
    "step", "timestamp", "probe_size", "spot_before", "spot_during", "strike_before",
    "strike_during", "strike_after", "spot_impact", "strike_deviation",
]


class ExerciseSimulationEngine:
    """Simulates holders exercising options against a live TWAP feed"""

    def __init__(self, config: Optional[DeploymentConfig] = None):
        self.config = config or create_default_config()
        self.sim_config = self.config.simulation
        self.rng = np.random.default_rng(self.sim_config.random_seed)

        self.deployment = DeploymentFactory.deploy(self.config)
        self.chain = self.deployment.chain

        self.market_price = self.config.pool.initial_price
        self.arbitrageur = self._create_trader("arbitrageur")
        self.prober = self._create_trader("prober")
        self.holders = self._create_holders()

        self.history: List[Dict] = []
        self.exercises: List[Dict] = []
        self.probes: List[Dict] = []

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _create_trader(self, label: str) -> Address:
        account = self.chain.account(label)
        pool = self.config.pool
        self.deployment.fund(
            account,
            payment=to_wad(pool.payment_reserve * 10),
            underlying=to_wad(pool.underlying_reserve * 10),
        )
        self.deployment.approve_all(account)
        return account

    def _create_holders(self) -> List[Address]:
        holders = []
        for i in range(self.sim_config.num_holders):
            holder = self.chain.account(f"holder_{i:03d}")
            self.deployment.fund(
                holder,
                options=to_wad(self.sim_config.options_per_holder),
                payment=to_wad(self.sim_config.payment_per_holder),
            )
            self.deployment.approve_all(holder)
            holders.append(holder)
        return holders

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def run(self) -> Dict:
        """Run the configured number of steps and return recorded results"""
        start_time = time.time()
        sim = self.sim_config
        logger.info("Running exercise simulation '%s' for %d steps", sim.name, sim.steps)

        for step in range(sim.steps):
            quoted_strike = self._safe_strike()

            self.chain.mine(sim.step_seconds)
            self._update_market_price()
            self._arbitrage()

            if sim.probe_interval and step > 0 and step % sim.probe_interval == 0:
                self._probe_manipulation(step)

            if step >= sim.warmup_steps:
                self._process_exercises(step, quoted_strike)

            self._record_state(step)

        return self._compile_results(time.time() - start_time)

    def _update_market_price(self) -> None:
        """Advance the market price one geometric Brownian step"""
        sim = self.sim_config
        dt = sim.step_seconds / SECONDS_PER_YEAR
        shock = self.rng.standard_normal()
        log_return = (sim.drift - 0.5 * sim.volatility ** 2) * dt + sim.volatility * math.sqrt(dt) * shock
        self.market_price *= float(np.exp(log_return))

    # ------------------------------------------------------------------
    # Feed interaction
    # ------------------------------------------------------------------

    def _feed_balances(self):
        feed = self.deployment.feed
        if isinstance(feed, TwapPair):
            return float(feed.reserve0), float(feed.reserve1)
        return float(feed.balance0), float(feed.balance1)

    def _spot_price(self) -> float:
        """Price of the underlying in the payment token"""
        feed = self.deployment.feed
        balance_u, balance_p = self._feed_balances()
        if balance_u == 0:
            return 0.0
        if isinstance(feed, TwapPair):
            return balance_p / balance_u
        return (balance_p / feed.weight1) / (balance_u / feed.weight0)

    def _target_balances(self, price: float):
        """Feed balances at which the spot price equals price, invariant held"""
        feed = self.deployment.feed
        balance_u, balance_p = self._feed_balances()
        if isinstance(feed, TwapPair):
            k = balance_u * balance_p
            return math.sqrt(k / price), math.sqrt(k * price)

        w_u = feed.weight0 / 1e18
        w_p = feed.weight1 / 1e18
        log_invariant = w_u * math.log(balance_u) + w_p * math.log(balance_p)
        ratio = price * w_p / w_u
        target_u = math.exp(log_invariant - w_p * math.log(ratio))
        return target_u, ratio * target_u

    def _arbitrage(self) -> None:
        spot = self._spot_price()
        if spot <= 0 or abs(spot / self.market_price - 1) < ARBITRAGE_THRESHOLD:
            return

        deployment = self.deployment
        feed = deployment.feed
        balance_u, balance_p = self._feed_balances()
        target_u, target_p = self._target_balances(self.market_price)
        fee = feed.fee_bps / 10_000

        if target_u < balance_u:
            token_in = deployment.payment
            amount_in = int((target_p - balance_p) / (1 - fee))
        else:
            token_in = deployment.underlying
            amount_in = int((target_u - balance_u) / (1 - fee))
        if amount_in <= 0:
            return

        with self.chain.acting_as(self.arbitrageur):
            feed.swap(token_in, amount_in, 0, self.arbitrageur)

    def _probe_manipulation(self, step: int) -> None:
        """Push the pool hard within one block and check the strike does not move"""
        deployment = self.deployment
        _, balance_p = self._feed_balances()
        size = int(balance_p * self.sim_config.probe_size)

        spot_before = self._spot_price()
        strike_before = self._safe_strike()

        with self.chain.acting_as(self.prober):
            received = deployment.feed.swap(deployment.payment, size, 0, self.prober)
            spot_during = self._spot_price()
            strike_during = self._safe_strike()
            deployment.feed.swap(deployment.underlying, received, 0, self.prober)

        strike_after = self._safe_strike()

        deviation = float("nan")
        if strike_before and strike_during is not None:
            deviation = strike_during / strike_before - 1
        self.probes.append({
            "step": step,
            "timestamp": self.chain.timestamp,
            "probe_size": from_wad(size),
            "spot_before": spot_before,
            "spot_during": spot_during,
            "strike_before": self._to_float(strike_before),
            "strike_during": self._to_float(strike_during),
            "strike_after": self._to_float(strike_after),
            "spot_impact": spot_during / spot_before - 1 if spot_before else float("nan"),
            "strike_deviation": deviation,
        })

    # ------------------------------------------------------------------
    # Holders
    # ------------------------------------------------------------------

    def _process_exercises(self, step: int, quoted_strike: Optional[int]) -> None:
        sim = self.sim_config
        deployment = self.deployment
        slippage_bps = int(round(sim.slippage_tolerance * 10_000))
        fraction_ppm = int(round(sim.exercise_fraction * 1_000_000))

        for holder in self.holders:
            balance = deployment.options_token.balance_of(holder)
            if balance == 0 or self.rng.random() >= sim.exercise_probability:
                continue
            amount = mul_div_down(balance, fraction_ppm, 1_000_000)
            if amount == 0:
                continue

            row = {
                "step": step,
                "timestamp": self.chain.timestamp,
                "holder": self.chain.label(holder),
                "amount": from_wad(amount),
                "quoted_strike": self._to_float(quoted_strike),
                "max_payment": float("nan"),
                "payment": 0.0,
                "spot_price": self._spot_price(),
                "success": False,
                "error": None,
            }
            if quoted_strike is None:
                row["error"] = "NoQuote"
                self.exercises.append(row)
                continue

            max_payment = mul_div_down(mul_wad_up(amount, quoted_strike), 10_000 + slippage_bps, 10_000)
            row["max_payment"] = from_wad(max_payment)
            params = DiscountExerciseParams(max_payment).encode()
            deadline = self.chain.timestamp + sim.step_seconds

            try:
                with self.chain.acting_as(holder):
                    data = deployment.options_token.exercise(
                        amount, holder, deployment.option_id, params, deadline
                    )
                row["payment"] = from_wad(DiscountExerciseReturnData.decode(data).payment_amount)
                row["success"] = True
            except OptionsTokenSimError as e:
                row["error"] = e.__class__.__name__
                logger.debug("Exercise by %s failed: %s", row["holder"], e)

            self.exercises.append(row)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def _safe_strike(self) -> Optional[int]:
        try:
            return self.deployment.oracle.get_price()
        except StalenessError:
            return None

    def _safe_twap(self) -> Optional[int]:
        try:
            return self.deployment.oracle.get_twap()
        except StalenessError:
            return None

    @staticmethod
    def _to_float(value: Optional[int]) -> float:
        return float("nan") if value is None else from_wad(value)

    def _record_state(self, step: int) -> None:
        deployment = self.deployment
        self.history.append({
            "step": step,
            "timestamp": self.chain.timestamp,
            "market_price": self.market_price,
            "spot_price": self._spot_price(),
            "twap": self._to_float(self._safe_twap()),
            "strike": self._to_float(self._safe_strike()),
            "min_price": from_wad(deployment.oracle.params.min_price),
            "options_supply": from_wad(deployment.options_token.total_supply),
            "sink_balance": from_wad(deployment.options_token.balance_of(SINK_ADDRESS)),
            "treasury_balance": from_wad(deployment.payment.balance_of(deployment.treasury)),
            "underlying_supply": from_wad(deployment.underlying.total_supply),
        })

    def _compile_results(self, execution_time: float) -> Dict:
        history = pd.DataFrame(self.history, columns=HISTORY_COLUMNS)
        exercises = pd.DataFrame(self.exercises, columns=EXERCISE_COLUMNS)
        probes = pd.DataFrame(self.probes, columns=PROBE_COLUMNS)

        summary = ExerciseMetricsCalculator(history, exercises, probes).summary()
        logger.info("Simulation '%s' finished in %.2fs: %d exercises, %d probes",
                    self.sim_config.name, execution_time, len(exercises), len(probes))

        return {
            "scenario": self.sim_config.name,
            "config": self.config.model_dump(mode="json"),
            "history": history,
            "exercises": exercises,
            "probes": probes,
            "summary": summary,
            "execution_time": execution_time,
        }

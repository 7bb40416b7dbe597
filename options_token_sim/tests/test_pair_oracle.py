#!/usr/bin/env python3
"""
Pair TWAP Oracle Test Suite

Test scenarios:
1. TWAP and discounted strike over a full observation window
2. Fallback to the previous observation when the latest is too young
3. Minimum price floor and the inverse orientation
4. Multiplier monotonicity, including multipliers above 100%
5. Single-block manipulation leaves the strike unchanged
6. Not-ready, overflow and stable pair rejection
"""

import pytest

from options_token_sim.core.chain import Chain
from options_token_sim.core.errors import (
    Overflow, StablePairsUnsupported, TWAPOracleNotReady, Unauthorized
)
from options_token_sim.core.fixed_point import MAX_UINT256, WAD
from options_token_sim.core.token import Token
from options_token_sim.feeds.pair import TwapPair
from options_token_sim.oracles.base import BaseOracle
from options_token_sim.oracles.pair_oracle import PairTwapOracle


class PairFixture:
    """A UND/PAY pair seeded at 10 PAY per UND"""

    def __init__(self, underlying_reserve=1_000 * WAD, payment_reserve=10_000 * WAD, stable=False):
        self.chain = Chain()
        self.deployer = self.chain.account("deployer")
        self.whale = self.chain.account("whale")
        self.underlying = Token(self.chain, "Underlying", "UND", owner=self.deployer)
        self.payment = Token(self.chain, "Payment Token", "PAY", owner=self.deployer)
        self.pair = TwapPair(self.chain, self.underlying, self.payment, stable=stable)

        with self.chain.acting_as(self.deployer):
            for token in (self.underlying, self.payment):
                token.set_minter(self.deployer, True)
                token.approve(self.pair.address, MAX_UINT256)
            self.underlying.mint(self.deployer, underlying_reserve)
            self.payment.mint(self.deployer, payment_reserve)
            self.payment.mint(self.whale, 100_000 * WAD)
            self.pair.add_liquidity(underlying_reserve, payment_reserve)

        with self.chain.acting_as(self.whale):
            self.payment.approve(self.pair.address, MAX_UINT256)
            self.underlying.approve(self.pair.address, MAX_UINT256)

    def warm_up(self, seconds=1_801):
        self.chain.mine(seconds)
        with self.chain.acting_as(self.deployer):
            self.pair.sync()

    def oracle(self, token=None, multiplier=5_000, secs=1_800, min_price=WAD // 10):
        return PairTwapOracle(self.chain, self.deployer, self.pair, token or self.underlying,
                              multiplier, secs, min_price)

    def buy_underlying(self, amount):
        with self.chain.acting_as(self.whale):
            return self.pair.swap(self.payment, amount, 0, self.whale)


class TestPairTwapOracle:
    """TWAP pricing over the pair's observations"""

    def setup_method(self):
        self.fx = PairFixture()
        self.fx.warm_up()
        self.oracle = self.fx.oracle()

    def test_twap_and_strike(self):
        assert self.oracle.get_twap() == 10 * WAD
        assert self.oracle.get_price() == 5 * WAD, "50% multiplier on a TWAP of 10"

    def test_window_served_by_latest_observation(self):
        self.fx.buy_underlying(5_000 * WAD)
        self.fx.chain.mine(1_800)

        assert self.fx.pair.observation_length() == 2
        assert self.oracle.get_twap() == self.fx.pair.get_spot_price(), \
            "A full window after the swap the TWAP equals the new spot price"

    def test_fallback_to_previous_observation(self):
        self.fx.buy_underlying(5_000 * WAD)
        self.fx.chain.mine(900)

        twap = self.oracle.get_twap()
        spot = self.fx.pair.get_spot_price()
        assert 10 * WAD < twap < spot, "TWAP should blend the old and new prices"

    def test_min_price_floor_and_inverse(self):
        inverse = self.fx.oracle(token=self.fx.payment)
        assert inverse.get_twap() == WAD // 10
        assert inverse.get_price() == WAD // 10, "Discounted 0.05 is clamped to the 0.1 floor"

    def test_multiplier_monotonic(self):
        prices = []
        for multiplier in (1_000, 5_000, 10_000, 15_000):
            with self.fx.chain.acting_as(self.fx.deployer):
                self.oracle.set_params(self.fx.underlying, multiplier, 1_800, 0, WAD // 10)
            prices.append(self.oracle.get_price())

        assert prices == sorted(prices)
        assert prices[2] == 10 * WAD
        assert prices[3] == 15 * WAD, "Multipliers above 10000 price above the TWAP"

    def test_multiplier_rounds_up(self):
        fx = PairFixture(underlying_reserve=3_000 * WAD)
        fx.warm_up()
        oracle = fx.oracle(min_price=0)

        assert oracle.get_twap() == 3_333_333_333_333_333_333
        assert oracle.get_price() == 1_666_666_666_666_666_667

    def test_set_params_owner_only(self):
        with self.fx.chain.acting_as(self.fx.whale):
            with pytest.raises(Unauthorized):
                self.oracle.set_params(self.fx.underlying, 10_000, 1_800, 0, 0)
        assert self.oracle.params.multiplier == 5_000

    def test_same_block_manipulation_has_no_effect(self):
        price_before = self.oracle.get_price()
        spot_before = self.fx.pair.get_spot_price()

        received = self.fx.buy_underlying(50_000 * WAD)
        assert self.fx.pair.get_spot_price() > 10 * spot_before
        assert self.oracle.get_price() == price_before

        with self.fx.chain.acting_as(self.fx.whale):
            self.fx.pair.swap(self.fx.underlying, received, 0, self.fx.whale)
        assert self.oracle.get_price() == price_before


class TestPairOracleReadiness:
    """Windows the pair cannot serve yet"""

    def test_single_observation_not_ready(self):
        fx = PairFixture()
        oracle = fx.oracle()
        with pytest.raises(TWAPOracleNotReady):
            oracle.get_price()

        fx.chain.mine(100)
        with pytest.raises(TWAPOracleNotReady):
            oracle.get_price()

    def test_not_ready_is_retriable(self):
        fx = PairFixture()
        oracle = fx.oracle()
        with pytest.raises(TWAPOracleNotReady) as exc_info:
            oracle.get_price()
        assert exc_info.value.retriable

        fx.warm_up()
        assert oracle.get_price() == 5 * WAD

    def test_average_reserve_overflow(self):
        fx = PairFixture(underlying_reserve=2 ** 130, payment_reserve=2 ** 131)
        fx.warm_up()
        oracle = fx.oracle()
        with pytest.raises(Overflow):
            oracle.get_twap()

    def test_stable_pair_rejected(self):
        fx = PairFixture(stable=True)
        contracts_before = len(fx.chain.contracts)
        with pytest.raises(StablePairsUnsupported):
            fx.oracle()
        assert len(fx.chain.contracts) == contracts_before

    def test_token_not_in_pair(self):
        fx = PairFixture()
        other = Token(fx.chain, "Other", "OTH", owner=fx.deployer)
        with pytest.raises(ValueError):
            fx.oracle(token=other)

    def test_zero_secs_rejected(self):
        fx = PairFixture()
        with pytest.raises(ValueError):
            fx.oracle(secs=0)

    def test_oracle_must_implement_twap(self):
        class SpotOracle(BaseOracle):
            pass

        fx = PairFixture()
        with pytest.raises(TypeError):
            SpotOracle(fx.chain, fx.deployer, fx.pair, fx.underlying, 5_000, 1_800, 0, 0)

#!/usr/bin/env python3
"""
Pair TWAP Oracle

Reads the reserve accumulators of a TwapPair and averages them against a
stored observation. When the latest observation is younger than the window
(for instance it was written in this very block) the one before it is used,
so the average always spans at least one full observation period and a
single block cannot move it.
"""

import logging
from typing import TYPE_CHECKING

from ..core.chain import Address, Chain
from ..core.errors import StablePairsUnsupported, TWAPOracleNotReady
from ..core.fixed_point import div_wad_down, safe_cast
from .base import BaseOracle, OracleParams

if TYPE_CHECKING:
    from ..core.token import Token
    from ..feeds.pair import TwapPair

logger = logging.getLogger(__name__)

# Average reserves are narrowed to this width before WAD division
RESERVE_BITS = 128


class PairTwapOracle(BaseOracle):

    def __init__(self, chain: Chain, owner: Address, pair: "TwapPair", token: "Token",
                 multiplier: int, secs: int, min_price: int, ago: int = 0):
        super().__init__(chain, owner, pair, token, multiplier, secs, ago, min_price,
                         label="PairTwapOracle")

    @property
    def pair(self) -> "TwapPair":
        return self.feed

    def _validate_feed(self, feed) -> None:
        if feed.stable:
            raise StablePairsUnsupported(f"{feed.__class__.__name__} is a stable pair")

    def _get_twap(self, params: OracleParams) -> int:
        pair = self.pair
        reserve0_cumulative, reserve1_cumulative, block_timestamp = pair.current_cumulative_prices()

        length = pair.observation_length()
        observation = pair.observations(length - 1)
        time_elapsed = block_timestamp - observation.timestamp
        if time_elapsed < params.secs:
            if length < 2:
                raise TWAPOracleNotReady("Pair has a single observation")
            observation = pair.observations(length - 2)
            time_elapsed = block_timestamp - observation.timestamp
        if time_elapsed == 0:
            raise TWAPOracleNotReady("No time elapsed since the observation")

        reserve0 = safe_cast(
            (reserve0_cumulative - observation.reserve0_cumulative) // time_elapsed, RESERVE_BITS
        )
        reserve1 = safe_cast(
            (reserve1_cumulative - observation.reserve1_cumulative) // time_elapsed, RESERVE_BITS
        )
        if reserve0 == 0 or reserve1 == 0:
            raise TWAPOracleNotReady("Pair had no liquidity over the window")

        if params.is_token0:
            return div_wad_down(reserve1, reserve0)
        return div_wad_down(reserve0, reserve1)

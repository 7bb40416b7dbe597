#!/usr/bin/env python3
"""
Weighted Pool TWAP Oracle

Issues a single windowed query [now - ago - secs, now - ago] against the
pool's own price oracle instead of doing accumulator math locally.
"""

from typing import TYPE_CHECKING

from ..core.chain import Address, Chain
from ..core.errors import TWAPOracleNotReady
from ..core.fixed_point import WAD, div_wad_down
from ..feeds.weighted_pool import OracleAverageQuery, Variable
from .base import BaseOracle, OracleParams

if TYPE_CHECKING:
    from ..core.token import Token
    from ..feeds.weighted_pool import WeightedPool2Tokens


class WeightedPoolOracle(BaseOracle):

    def __init__(self, chain: Chain, owner: Address, pool: "WeightedPool2Tokens", token: "Token",
                 multiplier: int, secs: int, ago: int, min_price: int):
        super().__init__(chain, owner, pool, token, multiplier, secs, ago, min_price,
                         label="WeightedPoolOracle")

    @property
    def pool(self) -> "WeightedPool2Tokens":
        return self.feed

    def _get_twap(self, params: OracleParams) -> int:
        if params.secs + params.ago > self.pool.get_largest_safe_query_window():
            raise TWAPOracleNotReady(
                f"Window {params.secs}s + {params.ago}s exceeds the pool's safe query window"
            )

        query = OracleAverageQuery(Variable.PAIR_PRICE, params.secs, params.ago)
        pair_price = self.pool.get_time_weighted_average([query])[0]
        if pair_price == 0:
            raise TWAPOracleNotReady("Pool returned a zero price")

        # pair price is token1 quoted in token0
        if params.is_token0:
            return div_wad_down(WAD, pair_price)
        return pair_price

#!/usr/bin/env python3
"""
Strike Price Oracle Base

Turns a raw TWAP into the strike price options are exercised at:

    price = max(min_price, ceil(twap * multiplier / 10000))

The multiplier is applied rounding up so the discount can never come out
larger than configured. Parameters live in a single frozen record that
set_params swaps out whole; a price query reads it once.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.chain import Address, Chain, external
from ..core.fixed_point import mul_div_up, require_uint
from ..core.ownership import Owned

if TYPE_CHECKING:
    from ..core.token import Token

logger = logging.getLogger(__name__)

MULTIPLIER_DENOM = 10_000


@dataclass(frozen=True)
class OracleParams:
    """Tunables shared by every oracle variant"""
    multiplier: int   # uint16, denominator 10000
    secs: int         # TWAP window
    ago: int          # lookback offset
    min_price: int    # uint128, WAD
    is_token0: bool   # price the feed's token0 (in token1) or the reverse

    @classmethod
    def build(cls, multiplier: int, secs: int, ago: int, min_price: int, is_token0: bool) -> "OracleParams":
        require_uint(multiplier, 16, "multiplier")
        require_uint(secs, 56, "secs")
        require_uint(ago, 56, "ago")
        require_uint(min_price, 128, "min_price")
        if secs == 0:
            raise ValueError("secs must be positive")
        return cls(multiplier, secs, ago, min_price, bool(is_token0))


class BaseOracle(Owned, ABC):
    """Owner-tunable strike price derived from a TWAP feed"""

    def __init__(self, chain: Chain, owner: Address, feed, token: "Token", multiplier: int,
                 secs: int, ago: int, min_price: int, label: str = ""):
        self._validate_feed(feed)
        self.feed = feed
        params = OracleParams.build(multiplier, secs, ago, min_price, self._is_token0(token))
        super().__init__(chain, owner, label)
        self.params = params
        self.emit("SetParams", token=token.address, multiplier=multiplier, secs=secs,
                  ago=ago, min_price=min_price)

    def _validate_feed(self, feed) -> None:
        pass

    def _is_token0(self, token: "Token") -> bool:
        if token is self.feed.token0:
            return True
        if token is self.feed.token1:
            return False
        raise ValueError(f"{token.symbol} is not priced by {self.feed.__class__.__name__}")

    def get_price(self) -> int:
        """Strike price (WAD); read-only"""
        params = self.params
        twap = self._get_twap(params)
        price = mul_div_up(twap, params.multiplier, MULTIPLIER_DENOM)
        if price < params.min_price:
            price = params.min_price
        logger.debug("%s twap=%d price=%d", self.__class__.__name__, twap, price)
        return price

    def get_twap(self) -> int:
        """Undiscounted TWAP under the current parameters"""
        return self._get_twap(self.params)

    @abstractmethod
    def _get_twap(self, params: OracleParams) -> int:
        pass

    @external
    def set_params(self, token: "Token", multiplier: int, secs: int, ago: int, min_price: int) -> None:
        self._only_owner()
        self.params = OracleParams.build(multiplier, secs, ago, min_price, self._is_token0(token))
        self.emit("SetParams", token=token.address, multiplier=multiplier, secs=secs,
                  ago=ago, min_price=min_price)
        logger.info("%s params: multiplier=%d secs=%d ago=%d min_price=%d",
                    self.__class__.__name__, multiplier, secs, ago, min_price)

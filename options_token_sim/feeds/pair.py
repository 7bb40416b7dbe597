#!/usr/bin/env python3
"""
TWAP Pair

Two-token pool that keeps cumulative reserve accumulators and a list of
periodic observations, the data an accumulator-style TWAP oracle reads.

Accumulators always advance with the reserves that were in place before the
current block's first change, so a swap can only influence the average once
time has passed after it.

Volatile pairs use the constant product curve (x*y=k). Stable pairs use the
x^3*y + y^3*x curve and are not suitable for TWAP pricing.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Tuple

from ..core.chain import Address, Chain, Contract, external
from ..core.fixed_point import WAD, div_wad_down, require_uint

if TYPE_CHECKING:
    from ..core.token import Token

logger = logging.getLogger(__name__)

# Minimum spacing between stored observations
PERIOD_SIZE = 1800
FEE_DENOM = 10_000


@dataclass(frozen=True)
class Observation:
    timestamp: int
    reserve0_cumulative: int
    reserve1_cumulative: int


class TwapPair(Contract):
    """Two-token pair with reserve accumulators"""

    def __init__(self, chain: Chain, token0: "Token", token1: "Token", stable: bool = False,
                 fee_bps: int = 30, period_size: int = PERIOD_SIZE):
        super().__init__(chain, label=f"{token0.symbol}/{token1.symbol}")
        require_uint(fee_bps, 16, "fee_bps")
        if fee_bps >= FEE_DENOM:
            raise ValueError("Fee too high")

        self.token0 = token0
        self.token1 = token1
        self.stable = stable
        self.fee_bps = fee_bps
        self.period_size = period_size

        self.reserve0 = 0
        self.reserve1 = 0
        self.block_timestamp_last = chain.timestamp
        self.reserve0_cumulative_last = 0
        self.reserve1_cumulative_last = 0

        self._observations: List[Observation] = [Observation(chain.timestamp, 0, 0)]

    # ------------------------------------------------------------------
    # Oracle surface
    # ------------------------------------------------------------------

    def observation_length(self) -> int:
        return len(self._observations)

    def observations(self, index: int) -> Observation:
        if not 0 <= index < len(self._observations):
            raise IndexError(f"Observation {index} out of range")
        return self._observations[index]

    def last_observation(self) -> Observation:
        return self._observations[-1]

    def current_cumulative_prices(self) -> Tuple[int, int, int]:
        """Accumulators as of the current block, counterfactually advanced"""
        block_timestamp = self.chain.timestamp
        reserve0_cumulative = self.reserve0_cumulative_last
        reserve1_cumulative = self.reserve1_cumulative_last

        if self.block_timestamp_last != block_timestamp:
            time_elapsed = block_timestamp - self.block_timestamp_last
            reserve0_cumulative += self.reserve0 * time_elapsed
            reserve1_cumulative += self.reserve1 * time_elapsed

        return reserve0_cumulative, reserve1_cumulative, block_timestamp

    def get_reserves(self) -> Tuple[int, int, int]:
        return self.reserve0, self.reserve1, self.block_timestamp_last

    def get_spot_price(self) -> int:
        """Instantaneous price of token0 in token1 (WAD), volatile curve only"""
        if self.reserve0 == 0:
            return 0
        return div_wad_down(self.reserve1, self.reserve0)

    def _update(self, balance0: int, balance1: int) -> None:
        block_timestamp = self.chain.timestamp
        time_elapsed = block_timestamp - self.block_timestamp_last
        if time_elapsed > 0 and self.reserve0 != 0 and self.reserve1 != 0:
            self.reserve0_cumulative_last += self.reserve0 * time_elapsed
            self.reserve1_cumulative_last += self.reserve1 * time_elapsed

        point = self.last_observation()
        if block_timestamp - point.timestamp > self.period_size:
            self._observations.append(Observation(
                block_timestamp, self.reserve0_cumulative_last, self.reserve1_cumulative_last
            ))

        self.reserve0 = balance0
        self.reserve1 = balance1
        self.block_timestamp_last = block_timestamp
        self.emit("Sync", reserve0=balance0, reserve1=balance1)

    # ------------------------------------------------------------------
    # Liquidity and swaps
    # ------------------------------------------------------------------

    @external
    def add_liquidity(self, amount0: int, amount1: int) -> None:
        """Pull both tokens from the caller into the pair"""
        sender = self.msg_sender
        self.token0.transfer_from(sender, self.address, amount0)
        self.token1.transfer_from(sender, self.address, amount1)
        self._update(self.token0.balance_of(self.address), self.token1.balance_of(self.address))

    @external
    def sync(self) -> None:
        self._update(self.token0.balance_of(self.address), self.token1.balance_of(self.address))

    @external
    def swap(self, token_in: "Token", amount_in: int, min_amount_out: int, to: Address) -> int:
        """Swap an exact input amount, pulling it from the caller"""
        if token_in is not self.token0 and token_in is not self.token1:
            raise ValueError(f"{token_in.symbol} is not in this pair")
        amount_out = self.get_amount_out(amount_in, token_in)
        if amount_out == 0:
            raise ValueError("Insufficient output amount")
        if amount_out < min_amount_out:
            raise ValueError(f"Slippage: {amount_out} < {min_amount_out}")

        token_out = self.token1 if token_in is self.token0 else self.token0
        token_in.transfer_from(self.msg_sender, self.address, amount_in)
        token_out.transfer(to, amount_out)

        self._update(self.token0.balance_of(self.address), self.token1.balance_of(self.address))
        self.emit("Swap", sender=self.msg_sender, token_in=token_in.address,
                  amount_in=amount_in, amount_out=amount_out, to=to)
        return amount_out

    def get_amount_out(self, amount_in: int, token_in: "Token") -> int:
        require_uint(amount_in, 256, "amount_in")
        if self.reserve0 == 0 or self.reserve1 == 0:
            return 0
        amount_in -= amount_in * self.fee_bps // FEE_DENOM
        if token_in is self.token0:
            reserve_in, reserve_out = self.reserve0, self.reserve1
        else:
            reserve_in, reserve_out = self.reserve1, self.reserve0

        if self.stable:
            xy = _stable_k(self.reserve0, self.reserve1)
            y = reserve_out - _get_y(amount_in + reserve_in, xy, reserve_out)
            return max(y, 0)
        return amount_in * reserve_out // (reserve_in + amount_in)


# Stable curve helpers, all values in 18 decimals

def _stable_k(x: int, y: int) -> int:
    a = x * y // WAD
    b = x * x // WAD + y * y // WAD
    return a * b // WAD


def _f(x0: int, y: int) -> int:
    return x0 * (y * y // WAD * y // WAD) // WAD + (x0 * x0 // WAD * x0 // WAD) * y // WAD


def _d(x0: int, y: int) -> int:
    return 3 * x0 * (y * y // WAD) // WAD + (x0 * x0 // WAD * x0 // WAD)


def _get_y(x0: int, xy: int, y: int) -> int:
    """Newton iteration for y given x on the stable curve"""
    for _ in range(255):
        y_prev = y
        k = _f(x0, y)
        derivative = _d(x0, y)
        if derivative == 0:
            break
        if k < xy:
            y = y + (xy - k) * WAD // derivative
        else:
            y = y - (k - xy) * WAD // derivative
        if abs(y - y_prev) <= 1:
            break
    return y

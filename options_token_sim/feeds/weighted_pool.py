#!/usr/bin/env python3
"""
Two-Token Weighted Pool with Price Oracle

Weighted pool (constant value function b0^w0 * b1^w1) that records
log-compressed price samples in a ring buffer and answers windowed
time-weighted average queries.

- Values are stored as natural logs with 4 decimal places of precision, so
  averaging accumulators yields a geometric mean
- The oracle is updated at most once per block, before the first balance
  change, with the pre-change balances
- Each sample covers up to SAMPLE_DURATION seconds; BUFFER_SIZE samples give
  a little over 34 hours of history
"""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, List, Sequence

import numpy as np

from ..core.chain import Address, Chain, Contract, external
from ..core.errors import OracleQueryTooOld
from ..core.fixed_point import WAD, div_wad_down, require_uint

if TYPE_CHECKING:
    from ..core.token import Token

logger = logging.getLogger(__name__)

SAMPLE_DURATION = 120
BUFFER_SIZE = 1024
LARGEST_SAFE_QUERY_WINDOW = 34 * 3600
LOG_PRECISION = 10_000
FEE_DENOM = 10_000


class Variable(IntEnum):
    PAIR_PRICE = 0
    INVARIANT = 1


@dataclass(frozen=True)
class OracleAverageQuery:
    variable: Variable
    secs: int
    ago: int


def _to_low_res_log(value_wad: int) -> int:
    return int(round(math.log(value_wad / WAD) * LOG_PRECISION))


def _from_low_res_log(value: float) -> int:
    return int(np.exp(value / LOG_PRECISION) * WAD)


class WeightedPool2Tokens(Contract):
    """Two-token weighted pool with a time-weighted average oracle"""

    def __init__(self, chain: Chain, token0: "Token", token1: "Token",
                 weight0: int, weight1: int, fee_bps: int = 30):
        if weight0 + weight1 != WAD:
            raise ValueError(f"Weights must sum to {WAD}, got {weight0 + weight1}")
        if weight0 <= 0 or weight1 <= 0:
            raise ValueError("Weights must be positive")
        require_uint(fee_bps, 16, "fee_bps")
        super().__init__(chain, label=f"B-{token0.symbol}/{token1.symbol}")

        self.token0 = token0
        self.token1 = token1
        self.weight0 = weight0
        self.weight1 = weight1
        self.fee_bps = fee_bps

        self.balance0 = 0
        self.balance1 = 0
        self.last_change_block = 0

        # Ring buffer of samples
        self.timestamps = np.zeros(BUFFER_SIZE, dtype=np.int64)
        self.instant = np.zeros((BUFFER_SIZE, len(Variable)), dtype=np.int64)
        self.accumulators = np.zeros((BUFFER_SIZE, len(Variable)), dtype=np.int64)
        self.sample_index = 0
        self.sample_count = 0
        # timestamps[i] moves with every update; a sample rolls over on creation age
        self.sample_created_at = 0

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def get_spot_price(self) -> int:
        """Price of token1 in units of token0 (WAD)"""
        if self.balance0 == 0 or self.balance1 == 0:
            return 0
        return div_wad_down(
            div_wad_down(self.balance0, self.weight0),
            div_wad_down(self.balance1, self.weight1),
        )

    def _instant_values(self) -> np.ndarray:
        pair_price = _to_low_res_log(self.get_spot_price())
        invariant = self.weight0 / WAD * math.log(self.balance0 / WAD) \
            + self.weight1 / WAD * math.log(self.balance1 / WAD)
        return np.array([pair_price, int(round(invariant * LOG_PRECISION))], dtype=np.int64)

    # ------------------------------------------------------------------
    # Oracle
    # ------------------------------------------------------------------

    def get_largest_safe_query_window(self) -> int:
        return LARGEST_SAFE_QUERY_WINDOW

    def get_latest(self, variable: Variable) -> int:
        """Value of variable from the latest sample"""
        if self.sample_count == 0:
            raise OracleQueryTooOld("Oracle has no samples")
        return _from_low_res_log(self.instant[self.sample_index, variable])

    def get_time_weighted_average(self, queries: Sequence[OracleAverageQuery]) -> List[int]:
        results = []
        for query in queries:
            if query.secs <= 0:
                raise ValueError("Query window must be positive")
            begin = self._get_past_accumulator(query.variable, query.ago + query.secs)
            end = self._get_past_accumulator(query.variable, query.ago)
            results.append(_from_low_res_log((end - begin) / query.secs))
        return results

    def _ordered_indices(self) -> np.ndarray:
        oldest = (self.sample_index + 1) % BUFFER_SIZE if self.sample_count == BUFFER_SIZE else 0
        return (oldest + np.arange(self.sample_count)) % BUFFER_SIZE

    def _get_past_accumulator(self, variable: Variable, ago: int) -> int:
        if self.sample_count == 0:
            raise OracleQueryTooOld("Oracle has no samples")
        look_up_time = self.chain.timestamp - ago

        latest = self.sample_index
        latest_timestamp = int(self.timestamps[latest])
        if latest_timestamp <= look_up_time:
            # ahead of the latest sample the latest instant value still holds
            elapsed = look_up_time - latest_timestamp
            return int(self.accumulators[latest, variable]) + int(self.instant[latest, variable]) * elapsed

        order = self._ordered_indices()
        timestamps = self.timestamps[order]
        if look_up_time < timestamps[0]:
            raise OracleQueryTooOld(
                f"Query at {look_up_time} predates oldest sample {int(timestamps[0])}"
            )

        position = int(np.searchsorted(timestamps, look_up_time, side="right")) - 1
        prev_index = order[position]
        prev_timestamp = int(self.timestamps[prev_index])
        prev_acc = int(self.accumulators[prev_index, variable])
        if prev_timestamp == look_up_time:
            return prev_acc

        next_index = order[position + 1]
        next_timestamp = int(self.timestamps[next_index])
        next_acc = int(self.accumulators[next_index, variable])
        return prev_acc + (next_acc - prev_acc) * (look_up_time - prev_timestamp) // (next_timestamp - prev_timestamp)

    def _update_oracle(self) -> None:
        """Record the pre-change state once per block"""
        if self.balance0 == 0 or self.balance1 == 0:
            return
        if self.last_change_block == self.chain.block_number:
            return

        now = self.chain.timestamp
        values = self._instant_values()

        if self.sample_count == 0:
            self.timestamps[0] = now
            self.instant[0] = values
            self.accumulators[0] = 0
            self.sample_count = 1
            self.sample_created_at = now
            return

        current = self.sample_index
        elapsed = now - int(self.timestamps[current])
        accumulators = self.accumulators[current] + values * elapsed

        if now - self.sample_created_at >= SAMPLE_DURATION:
            current = (current + 1) % BUFFER_SIZE
            self.sample_index = current
            self.sample_count = min(self.sample_count + 1, BUFFER_SIZE)
            self.sample_created_at = now

        self.timestamps[current] = now
        self.instant[current] = values
        self.accumulators[current] = accumulators

    # ------------------------------------------------------------------
    # Liquidity and swaps
    # ------------------------------------------------------------------

    @external
    def add_liquidity(self, amount0: int, amount1: int) -> None:
        sender = self.msg_sender
        self._update_oracle()
        self.token0.transfer_from(sender, self.address, amount0)
        self.token1.transfer_from(sender, self.address, amount1)
        self.balance0 += amount0
        self.balance1 += amount1
        self._mark_changed()

    @external
    def swap(self, token_in: "Token", amount_in: int, min_amount_out: int, to: Address) -> int:
        if token_in is not self.token0 and token_in is not self.token1:
            raise ValueError(f"{token_in.symbol} is not in this pool")
        amount_out = self.get_amount_out(amount_in, token_in)
        if amount_out == 0:
            raise ValueError("Insufficient output amount")
        if amount_out < min_amount_out:
            raise ValueError(f"Slippage: {amount_out} < {min_amount_out}")

        self._update_oracle()
        token_out = self.token1 if token_in is self.token0 else self.token0
        token_in.transfer_from(self.msg_sender, self.address, amount_in)
        token_out.transfer(to, amount_out)

        if token_in is self.token0:
            self.balance0 += amount_in
            self.balance1 -= amount_out
        else:
            self.balance1 += amount_in
            self.balance0 -= amount_out
        self._mark_changed()
        self.emit("Swap", sender=self.msg_sender, token_in=token_in.address,
                  amount_in=amount_in, amount_out=amount_out, to=to)
        return amount_out

    def _mark_changed(self) -> None:
        if self.sample_count == 0 and self.balance0 > 0 and self.balance1 > 0:
            # seed the buffer with the initial price
            self._update_oracle()
        self.last_change_block = self.chain.block_number

    def get_amount_out(self, amount_in: int, token_in: "Token") -> int:
        require_uint(amount_in, 256, "amount_in")
        if self.balance0 == 0 or self.balance1 == 0:
            return 0
        if token_in is self.token0:
            balance_in, balance_out = self.balance0, self.balance1
            weight_in, weight_out = self.weight0, self.weight1
        else:
            balance_in, balance_out = self.balance1, self.balance0
            weight_in, weight_out = self.weight1, self.weight0

        amount_in -= amount_in * self.fee_bps // FEE_DENOM
        base = balance_in / (balance_in + amount_in)
        amount_out = int(balance_out * (1.0 - base ** (weight_in / weight_out)))
        return max(min(amount_out, balance_out - 1), 0)

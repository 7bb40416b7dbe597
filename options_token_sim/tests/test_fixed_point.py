#!/usr/bin/env python3
"""
Fixed-point and word encoding tests

Rounding direction, 256-bit overflow detection, narrowing casts and the
32-byte word codec used for strategy parameters.
"""

import pytest

from options_token_sim.core.abi import WORD_SIZE, decode_words, encode_words
from options_token_sim.core.errors import Overflow
from options_token_sim.core.fixed_point import (
    MAX_UINT256, WAD, div_wad_down, div_wad_up, mul_div_down, mul_div_up,
    mul_wad_down, mul_wad_up, require_uint, safe_cast, to_wad, from_wad
)


class TestMulDiv:
    """Rounding and overflow of multiply-then-divide"""

    def test_rounding_direction(self):
        assert mul_div_down(3, 1, 2) == 1
        assert mul_div_up(3, 1, 2) == 2
        assert mul_div_up(10, 5000, 10000) == 5, "Exact results must not round up"

    def test_zero_product_rounds_to_zero(self):
        assert mul_div_up(0, 123, 7) == 0
        assert mul_div_up(123, 0, 7) == 0

    def test_wad_helpers(self):
        assert mul_wad_up(100 * WAD, 5 * WAD) == 500 * WAD
        assert mul_wad_down(1, WAD // 3) == 0
        assert mul_wad_up(1, WAD // 3) == 1
        assert div_wad_down(10 * WAD, 3 * WAD) == 3333333333333333333
        assert div_wad_up(10 * WAD, 3 * WAD) == 3333333333333333334

    def test_intermediate_overflow(self):
        with pytest.raises(Overflow):
            mul_div_down(MAX_UINT256, 2, 4)
        with pytest.raises(Overflow):
            mul_div_up(MAX_UINT256, 2, 4)

    def test_division_by_zero(self):
        with pytest.raises(ValueError):
            mul_div_down(1, 1, 0)
        with pytest.raises(ValueError):
            mul_div_up(1, 1, 0)


class TestWidths:
    """Narrowing and argument width checks"""

    def test_safe_cast_bounds(self):
        assert safe_cast(2 ** 128 - 1, 128) == 2 ** 128 - 1
        with pytest.raises(Overflow):
            safe_cast(2 ** 128, 128)
        with pytest.raises(Overflow):
            safe_cast(-1, 128)

    def test_require_uint(self):
        assert require_uint(65_535, 16, "multiplier") == 65_535
        with pytest.raises(ValueError):
            require_uint(65_536, 16, "multiplier")
        with pytest.raises(ValueError):
            require_uint(-1, 16, "multiplier")
        with pytest.raises(ValueError):
            require_uint(True, 16, "multiplier")
        with pytest.raises(ValueError):
            require_uint(1.5, 16, "multiplier")

    def test_wad_conversion(self):
        assert to_wad(1.5) == 15 * 10 ** 17
        assert to_wad(0.1) == 10 ** 17
        assert from_wad(5 * WAD) == 5.0


class TestWords:
    """Opaque parameter blobs"""

    def test_encoding_is_big_endian_words(self):
        data = encode_words(1, 2)
        assert len(data) == 2 * WORD_SIZE
        assert data[WORD_SIZE - 1] == 1
        assert data[-1] == 2
        assert decode_words(data, 2) == (1, 2)

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            decode_words(b"", 1)
        with pytest.raises(ValueError):
            decode_words(encode_words(1), 2)

    def test_values_must_fit_a_word(self):
        with pytest.raises(ValueError):
            encode_words(2 ** 256)

#!/usr/bin/env python3
"""
Fixed-point integer math

WAD (18 decimal) helpers with explicit rounding direction. All values are
unsigned integers living in a 256-bit word, so intermediate products that
would not fit raise Overflow instead of silently growing the way Python
ints do.
"""

from .errors import Overflow

WAD = 10 ** 18
MAX_UINT256 = 2 ** 256 - 1


def uint_max(bits: int) -> int:
    """Largest value representable by an unsigned integer of the given width"""
    return (1 << bits) - 1


def _check_word(value: int) -> int:
    if value > MAX_UINT256:
        raise Overflow(f"Intermediate value {value} exceeds 256 bits")
    return value


def mul_div_down(x: int, y: int, denominator: int) -> int:
    """Multiply two numbers and divide by denominator, rounding down"""
    if denominator == 0:
        raise ValueError("Division by zero")
    return _check_word(x * y) // denominator


def mul_div_up(x: int, y: int, denominator: int) -> int:
    """Multiply two numbers and divide by denominator, rounding up"""
    if denominator == 0:
        raise ValueError("Division by zero")
    product = _check_word(x * y)
    if product == 0:
        return 0
    return (product - 1) // denominator + 1


def mul_wad_down(x: int, y: int) -> int:
    return mul_div_down(x, y, WAD)


def mul_wad_up(x: int, y: int) -> int:
    return mul_div_up(x, y, WAD)


def div_wad_down(x: int, y: int) -> int:
    return mul_div_down(x, WAD, y)


def div_wad_up(x: int, y: int) -> int:
    return mul_div_up(x, WAD, y)


def safe_cast(value: int, bits: int) -> int:
    """Narrow value to an unsigned width, raising Overflow when it does not fit"""
    if value < 0 or value > uint_max(bits):
        raise Overflow(f"Value {value} does not fit in uint{bits}")
    return value


def require_uint(value: int, bits: int, name: str) -> int:
    """Validate an argument against its declared unsigned width"""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > uint_max(bits):
        raise ValueError(f"{name} {value} out of bounds [0, {uint_max(bits)}]")
    return value


def to_wad(amount: float) -> int:
    """Convert a human-unit amount to WAD, as config and simulation inputs arrive in floats"""
    return int(round(amount * 1e6)) * 10 ** 12


def from_wad(amount: int) -> float:
    return amount / WAD

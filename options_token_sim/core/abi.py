#!/usr/bin/env python3
"""Opaque parameter blobs: fixed 32-byte big-endian words"""

from typing import Tuple

from .fixed_point import require_uint

WORD_SIZE = 32


def encode_words(*values: int) -> bytes:
    """Encode unsigned integers as consecutive 32-byte words"""
    return b"".join(
        require_uint(value, 256, "word").to_bytes(WORD_SIZE, "big") for value in values
    )


def decode_words(data: bytes, count: int) -> Tuple[int, ...]:
    """Decode exactly count words, raising ValueError for any other length"""
    if len(data) != count * WORD_SIZE:
        raise ValueError(
            f"Cannot decode {count} words from {len(data)} bytes"
        )
    return tuple(
        int.from_bytes(data[i * WORD_SIZE:(i + 1) * WORD_SIZE], "big") for i in range(count)
    )

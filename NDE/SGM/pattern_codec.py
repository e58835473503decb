# =============================================================================
# pattern_codec.py - Digit / Bit-Pattern Codec
# =============================================================================
#
# There's no number data structure as such: this module converts, in both
# directions, between 0-9 integers (digits) and 7-element tuples of 0/1
# (bit patterns, one entry per display segment).
#
# The digit table is a board constant (SMM.constants.DIGIT_BITLISTS), not
# computed, so encode/decode is a total bijection over the ten digits.
# Anything outside that domain raises DomainError.

from __future__ import annotations

import numbers
from typing import Sequence

from NDE.SMM.constants import (
    DIGIT_BITLISTS, BITLIST_TO_DIGIT,
    DIGIT_COUNT, INTEGER_BITS,
)
from NDE.SMM.errors import DomainError


def encode(digit: int) -> tuple[int, ...]:
    """
    Return the bit pattern for a digit.

        >>> encode(1)
        (0, 0, 1, 0, 0, 1, 0)
        >>> encode(5)
        (1, 1, 0, 1, 0, 1, 1)

    Raises DomainError if `digit` is not one of 0-9.
    """
    # bool is an Integral; True is not a digit
    if (isinstance(digit, bool) or not isinstance(digit, numbers.Integral)
            or not 0 <= digit < DIGIT_COUNT):
        raise DomainError(f"digit must be an int 0-{DIGIT_COUNT - 1}, got {digit!r}")
    return DIGIT_BITLISTS[int(digit)]


def decode(pattern: Sequence[int]) -> int:
    """
    Return the digit for a bit pattern.

        >>> decode([1, 1, 1, 1, 1, 1, 1])
        8

    Compares by value, so lists, tuples and numpy arrays of 0/1 all work.
    Raises DomainError if the pattern is not one of the ten digit patterns.
    """
    key = tuple(pattern)
    try:
        return BITLIST_TO_DIGIT[key]
    except KeyError:
        raise DomainError(
            f"bit pattern {list(key)} does not correspond to a digit 0-9"
        ) from None


def encode_integer(value: int, width: int = INTEGER_BITS) -> tuple[int, ...]:
    """
    Unsigned binary of `value mod 2**width`, MSB first, zero-padded to
    exactly `width` bits.

        >>> encode_integer(5)
        (0, 0, 0, 0, 1, 0, 1)
        >>> encode_integer(-1, 4)
        (1, 1, 1, 1)
    """
    if width < 1:
        raise ValueError(f"width must be >= 1, got {width}")
    value %= 1 << width
    return tuple((value >> i) & 1 for i in range(width - 1, -1, -1))

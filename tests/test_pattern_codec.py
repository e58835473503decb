"""
Pattern Codec Tests
===================

Digit <-> seven-segment bit pattern bijection and the general integer
encoder.
"""

import itertools

import numpy as np
import pytest

from NDE.SMM.constants import DIGIT_BITLISTS
from NDE.SMM.errors import DomainError
from NDE.SGM.pattern_codec import decode, encode, encode_integer


NON_DIGIT_PATTERNS = [
    bits for bits in itertools.product((0, 1), repeat=7)
    if bits not in DIGIT_BITLISTS
]


class TestDigitCodec:

    @pytest.mark.parametrize("digit", range(10))
    def test_decode_inverts_encode(self, digit):
        assert decode(encode(digit)) == digit

    def test_known_patterns(self):
        assert encode(1) == (0, 0, 1, 0, 0, 1, 0)
        assert encode(5) == (1, 1, 0, 1, 0, 1, 1)
        assert decode([1, 1, 1, 1, 1, 1, 1]) == 8

    def test_table_is_a_bijection(self):
        assert len(set(DIGIT_BITLISTS)) == 10
        assert all(len(bits) == 7 for bits in DIGIT_BITLISTS)

    @pytest.mark.parametrize("bad", [-1, 10, 42, 1.5, "3", None, True])
    def test_encode_rejects_non_digits(self, bad):
        with pytest.raises(DomainError):
            encode(bad)

    def test_encode_accepts_numpy_ints(self):
        assert encode(np.int64(7)) == encode(7)

    def test_decode_rejects_every_non_digit_pattern(self):
        assert len(NON_DIGIT_PATTERNS) == 128 - 10
        for bits in NON_DIGIT_PATTERNS:
            with pytest.raises(DomainError):
                decode(bits)

    def test_decode_compares_by_value(self):
        assert decode(list(encode(3))) == 3
        assert decode(np.array(encode(3))) == 3
        assert decode([float(b) for b in encode(3)]) == 3

    def test_decode_rejects_wrong_length(self):
        with pytest.raises(DomainError):
            decode([1, 1, 1])

    def test_domain_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            encode(11)


class TestIntegerEncoder:

    def test_msb_first_zero_padded(self):
        assert encode_integer(5) == (0, 0, 0, 0, 1, 0, 1)
        assert encode_integer(0) == (0,) * 7
        assert encode_integer(127) == (1,) * 7

    @pytest.mark.parametrize("value", [-300, -1, 0, 1, 64, 127, 500, 10**9])
    def test_modulo_128_periodicity(self, value):
        assert encode_integer(value, 7) == encode_integer(value + 128, 7)

    def test_value_taken_modulo_width(self):
        assert encode_integer(-1, 4) == (1, 1, 1, 1)
        assert encode_integer(16, 4) == (0, 0, 0, 0)

    @pytest.mark.parametrize("width", [1, 3, 12, 16])
    def test_width_respected(self, width):
        assert len(encode_integer(12345, width)) == width

    def test_zero_width_rejected(self):
        with pytest.raises(ValueError):
            encode_integer(3, 0)

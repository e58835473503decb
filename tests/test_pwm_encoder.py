"""
PWM Encoder Tests
=================

Clamp → gamma → 12-bit quantise → big-endian packing.
"""

import numpy as np
import pytest

from NDE.SMM.constants import CHANNEL_COUNT, FRAME_BYTES
from NDE.SGM.pwm_encoder import encode_frame, pack_levels, quantize


class TestQuantize:

    def test_extremes_without_gamma(self):
        assert quantize([0.0, 1.0], gamma=None).tolist() == [0, 4095]

    def test_extremes_with_gamma(self):
        assert quantize([0.0, 1.0]).tolist() == [0, 4095]

    def test_clamps_out_of_range(self):
        assert quantize([-3.0, 7.5], gamma=None).tolist() == [0, 4095]

    def test_gamma_darkens_midpoint(self):
        mid_linear = int(quantize([0.5], gamma=None)[0])
        mid_gamma  = int(quantize([0.5])[0])
        assert mid_linear == 2047
        assert mid_gamma == int(0.5 ** 2.8 * 4095.9999999999)
        assert mid_gamma < mid_linear // 3

    def test_truncates(self):
        # 0.25 * 4095.9999999999 = 1023.99999...
        assert int(quantize([0.25], gamma=None)[0]) == 1023


class TestPacking:

    def test_known_frame(self):
        assert encode_frame([0, 1, 0, 1], gamma=None) == bytes.fromhex("000fff000fff")

    def test_big_endian_fields(self):
        assert pack_levels(np.array([0xABC, 0x123])) == bytes.fromhex("abc123")

    def test_odd_channel_count_padded(self):
        assert pack_levels(np.array([0xFFF])) == bytes.fromhex("fff0")

    def test_full_board_frame_length(self):
        frame = encode_frame(np.linspace(0, 1, CHANNEL_COUNT))
        assert len(frame) == FRAME_BYTES == 108

    def test_deterministic(self):
        values = np.random.default_rng(3).random(CHANNEL_COUNT)
        assert encode_frame(values) == encode_frame(values.copy())

    def test_empty(self):
        assert encode_frame([]) == b""

    def test_non_finite_values_defined(self):
        levels = quantize([np.nan, np.inf, -np.inf, 0.5], gamma=None)
        assert levels.tolist() == [0, 4095, 0, 2047]
        assert encode_frame([np.nan] * CHANNEL_COUNT) == bytes(FRAME_BYTES)

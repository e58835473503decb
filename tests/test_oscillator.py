"""
Oscillator Tests
================

Sine oscillator and the drift animation's continuity at its start time.
"""

import math

import pytest

from NDE.SGM.oscillator import (
    apply_drift, derive_drift_parameters, oscillate,
)
from NDE.SGM.pattern_codec import encode


class TestOscillate:

    def test_formula(self):
        assert oscillate(1.0, 0.0, 0.25) == pytest.approx(1.0)
        assert oscillate(1.0, 0.0, 0.75) == pytest.approx(-1.0)
        assert oscillate(2.0, 0.1, 3.0) == pytest.approx(math.sin(2 * math.pi * (6.0 + 0.1)))

    def test_phase_in_cycles(self):
        assert oscillate(0.0, 0.25, 123.0) == pytest.approx(1.0)

    def test_range(self):
        for i in range(200):
            v = oscillate(0.37, 0.1, i * 0.173)
            assert -1.0 <= v <= 1.0

    def test_default_time_is_wall_clock(self):
        v = oscillate(0.05)
        assert -1.0 <= v <= 1.0


class TestDrift:

    def test_parameters_per_segment(self):
        params = derive_drift_parameters(10.0)
        assert len(params) == 7
        for i, p in enumerate(params):
            assert p.frequency == pytest.approx(0.05 + 0.01723 * i)
            assert 0.0 <= p.phase < 1.0

    def test_parameters_depend_only_on_start_time(self):
        assert derive_drift_parameters(42.5) == derive_drift_parameters(42.5)
        assert derive_drift_parameters(42.5) != derive_drift_parameters(43.5)

    @pytest.mark.parametrize("t0", [0.0, 1.0, 1000.0, 123456.789])
    @pytest.mark.parametrize("digit", range(10))
    def test_continuous_at_start_time(self, digit, t0):
        bits = encode(digit)
        brightness = apply_drift(bits, derive_drift_parameters(t0), t0)
        assert brightness == pytest.approx(list(bits), abs=1e-6)

    def test_evolves_after_start(self):
        bits = encode(8)
        params = derive_drift_parameters(0.0)
        later = apply_drift(bits, params, 3.0)
        assert later != pytest.approx(list(bits), abs=1e-3)
        assert all(0.0 <= v <= 1.0 for v in later)

    def test_small_step_is_small_change(self):
        bits = encode(2)
        params = derive_drift_parameters(50.0)
        a = apply_drift(bits, params, 50.0)
        b = apply_drift(bits, params, 50.01)
        assert max(abs(x - y) for x, y in zip(a, b)) < 0.01

    def test_length_mismatch_rejected(self):
        with pytest.raises(ValueError):
            apply_drift([1, 0, 1], derive_drift_parameters(0.0), 0.0)

# =============================================================================
# oscillator.py - Time-Indexed Oscillator and Segment Drift
# =============================================================================
#
# osc(f, phase, t) = sin(2π · (t·f + phase))        phase in CYCLES, not rad
#
# Used two ways:
#   - Idle / breathing animation: every channel oscillates on its own.
#   - Drift animation: the seven segments start from the digit currently on
#     display and wander away from it smoothly.
#
# DRIFT CONTINUITY:
#   Each segment's phase is chosen at the animation's start time t0 so that
#   t0·f + phase is a whole number of cycles.  A lit segment then adds a
#   quarter cycle (90°), so at t = t0:
#       bit 0 → |sin(0)|    = 0   (still dark)
#       bit 1 → |sin(π/2)|  = 1   (still fully lit)
#   There is no jump on the first animated frame.
#
# Pass `time` explicitly whenever the result must be reproducible; the
# default reads the wall clock at call time.

from __future__ import annotations

import math
import time as _time
from typing import NamedTuple, Sequence

from NDE.SMM.constants import (
    SEGMENT_COUNT,
    DRIFT_BASE_FREQUENCY, DRIFT_FREQUENCY_SPREAD,
)

QUARTER_CYCLE = 0.25   # 90° expressed in cycles


class DriftParameter(NamedTuple):
    frequency: float   # Hz
    phase:     float   # cycles, in [0, 1)


def oscillate(frequency: float, phase: float = 0.0, time: float | None = None) -> float:
    """
    Sine oscillator in [-1, 1].

    Args:
        frequency: Hz.
        phase:     offset in cycles (1.0 = one full period).
        time:      seconds; defaults to the wall clock.
    """
    t = _time.time() if time is None else time
    return math.sin(2 * math.pi * (t * frequency + phase))


def derive_drift_parameters(start_time: float) -> tuple[DriftParameter, ...]:
    """
    One (frequency, phase) pair per segment, fixed for the whole animation.

    Segment i runs at 0.05 + 0.01723·i Hz.  Its phase cancels the start
    time so every segment sits at a zero crossing at `start_time`.
    """
    params = []
    for i in range(SEGMENT_COUNT):
        frequency = DRIFT_BASE_FREQUENCY + DRIFT_FREQUENCY_SPREAD * i
        phase     = (-start_time * frequency) % 1.0
        params.append(DriftParameter(frequency, phase))
    return tuple(params)


def apply_drift(
    bits:         Sequence[int],
    drift_params: Sequence[DriftParameter],
    time:         float | None = None,
) -> list[float]:
    """
    Brightness in [0, 1] for each segment at `time`.

    Args:
        bits:         the segment pattern the animation started from.
        drift_params: from derive_drift_parameters(); same length as bits.
        time:         seconds; defaults to the wall clock.
    """
    if len(bits) != len(drift_params):
        raise ValueError(
            f"need one drift parameter per segment: "
            f"{len(bits)} bits, {len(drift_params)} parameters"
        )
    t = _time.time() if time is None else time
    return [
        abs(oscillate(p.frequency, p.phase + bit * QUARTER_CYCLE, t))
        for bit, p in zip(bits, drift_params)
    ]

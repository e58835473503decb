# =============================================================================
# pwm_encoder.py - TLC5947 PWM Frame Encoder
# =============================================================================
#
# Converts a list of channel brightness values into the packed bitstream the
# daisy-chained TLC5947 controllers expect on SPI.
#
# PIPELINE (each step a pure transform):
#   1. clamp        every value to [0, 1]   (NaN → 0, ±inf → 1 / 0)
#   2. gamma        v ** 2.8       (without it 0.5 looks nearly full-on)
#   3. quantise     int(v * 4095.9999999999)  → 0 .. 4095
#   4. pack         12-bit unsigned, big-endian, MSB first
#   5. concatenate  fields in input order
#
# Gamma leaves the extremes alone: 0 → 0 and 1 → 4095 with or without it.
#
# FRAME SIZE:
#   72 channels * 12 bits = 864 bits = 108 bytes, always whole bytes.
#   An odd channel count leaves 4 spare bits; they are zero-padded at the
#   tail so the result is still `bytes`.
#
# This module never reorders channels.  The tail-first shift-register order
# is the frame builder's job (see frame_builder.py).

from __future__ import annotations

from typing import Sequence

import numpy as np

from NDE.SMM.constants import GAMMA, PWM_BITS, PWM_SCALE

# MSB-first shift amounts for one 12-bit field
_FIELD_SHIFTS = np.arange(PWM_BITS - 1, -1, -1, dtype=np.uint16)


def gamma_correct(values: np.ndarray, gamma: float | None = GAMMA) -> np.ndarray:
    """Clamp to [0, 1] and apply gamma (None = no gamma).  NaN is dark."""
    v = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    v = np.clip(v, 0.0, 1.0)
    if gamma is None:
        return v
    return v ** gamma


def quantize(values: Sequence[float], gamma: float | None = GAMMA) -> np.ndarray:
    """
    Brightness values → uint16 array of 12-bit PWM levels.

    Args:
        values: brightness per channel, nominally [0, 1]; clamped, so any
                float is accepted.
        gamma:  exponent applied after clamping; None skips it.
    """
    v = gamma_correct(values, gamma)
    return (v * PWM_SCALE).astype(np.uint16)   # astype truncates toward 0


def pack_levels(levels: np.ndarray) -> bytes:
    """
    Pack 12-bit levels MSB-first into bytes.

    Args:
        levels: integer array, each 0 .. 4095.

    Returns:
        bytes, ceil(len(levels) * 12 / 8) long.
    """
    levels = np.asarray(levels, dtype=np.uint16)
    bits = (levels[:, None] >> _FIELD_SHIFTS) & 1
    return np.packbits(bits.astype(np.uint8).ravel()).tobytes()


def encode_frame(values: Sequence[float], gamma: float | None = GAMMA) -> bytes:
    """
    Encode channel brightness values into one packed PWM frame.

        >>> encode_frame([0, 1, 0, 1], gamma=None).hex()
        '000fff000fff'

    Never fails: clamping keeps every field in range, NaN included.
    """
    return pack_levels(quantize(values, gamma))

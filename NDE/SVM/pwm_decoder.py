# =============================================================================
# pwm_decoder.py - PWM Frame Decoder
# =============================================================================
#
# Inverse of pwm_encoder + the frame builder's reversal.  Accepts the bytes
# that would go out on SPI and returns what each logical channel would show.
#
#   decode_frame()     bytes → 12-bit levels, in transmission order
#   unpack_channels()  bytes → brightness per LOGICAL channel (reversal
#                      undone, level / 4095, gamma NOT inverted: this is
#                      the duty cycle the LED actually gets)
#   region_values()    logical levels → {region name: values}
#
# A frame whose length isn't a whole number of 12-bit fields is rejected.

from __future__ import annotations

import numpy as np

from NDE.SMM.constants import CHANNEL_COUNT, PWM_BITS, PWM_MAX
from NDE.SGM.frame_builder import FrameBuilder

# MSB-first place values for one 12-bit field
_FIELD_WEIGHTS = (1 << np.arange(PWM_BITS - 1, -1, -1)).astype(np.uint16)


def decode_frame(data: bytes, channel_count: int = CHANNEL_COUNT) -> np.ndarray:
    """
    Unpack `channel_count` 12-bit big-endian fields.

    Returns:
        uint16 array of levels 0 .. 4095, in the order they were sent.
    """
    needed_bits = channel_count * PWM_BITS
    needed      = -(-needed_bits // 8)   # ceil
    if len(data) != needed:
        raise ValueError(
            f"{channel_count} channels need {needed} bytes, got {len(data)}"
        )
    bits = np.unpackbits(np.frombuffer(bytes(data), dtype=np.uint8))[:needed_bits]
    fields = bits.reshape(channel_count, PWM_BITS).astype(np.uint16)
    return (fields * _FIELD_WEIGHTS).sum(axis=1).astype(np.uint16)


def unpack_channels(data: bytes, channel_count: int = CHANNEL_COUNT) -> np.ndarray:
    """Duty cycle in [0, 1] per logical channel (channel 0 first)."""
    levels = decode_frame(data, channel_count)
    return levels[::-1].astype(np.float64) / PWM_MAX


def region_values(logical: np.ndarray, builder: FrameBuilder) -> dict[str, np.ndarray]:
    """Slice a logical-order frame into the builder's named regions."""
    return {
        name: np.asarray(logical[r.start:r.stop])
        for name, r in builder.regions.items()
    }

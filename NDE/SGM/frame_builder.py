# =============================================================================
# frame_builder.py - Board Frame Builder (Wire Layout)
# =============================================================================
#
# Maps an ActivationTrace onto the 72 physical PWM channels.
#
# REGIONS (logical channel offsets, from SMM.constants.PIN_MAP, hidden width 2):
#
#   ch  0 .. 14  dense_1_and_output_a   w(0→0) w(0→1) out0  ...  w(0→8) w(0→9) out4
#   ch 15        relu_0a
#   ch 24 .. 38  dense_1_and_output_b   w(1→0) w(1→1) out5  ...  w(1→8) w(1→9) out9
#   ch 39        relu_0b
#   ch 48 .. 61  dense_0                x0·w(0→0) x0·w(0→1) x1·w(1→0) ...
#   ch 62 .. 68  ss                     seven segment inputs
#   everything else = 0
#
# NORMALISATION (each group on its own):
#   dense_0 products  min-max → [0, 1]   (zero range → all 0)
#   relu_0            x / (1 + x)        (unbounded above, so saturating)
#   dense_1 products  min-max → [0, 1]   (zero range → all 0)
#   ss, softmax_0     unscaled           (already in [0, 1])
#
# INTERLEAVING:
#   Weight-line and output-line wires share two connector blocks.  The
#   dense_1 products are flattened input-major (w(0→0) w(0→1) ... w(1→0) ...),
#   taken two at a time, and output j's own LED follows pair j:
#       w(0→0) w(0→1) out0  w(0→2) w(0→3) out1 ...
#   Pairing stops at whichever runs out first, pairs or outputs.  The flat
#   sequence is split after INTERLEAVE_SPLIT values: 15 to block a, the rest
#   to block b (15 at hidden width 2, none at width 1).
#
# WIRE ORDER:
#   The controller chain is a shift register wired tail-first.  Every frame
#   this module returns is already REVERSED: index 0 of the result is logical
#   channel 71.  Feed it straight to the PWM encoder.

from __future__ import annotations

import math
import time as _time
from typing import NamedTuple, Sequence

import numpy as np

from NDE.SMM.constants import (
    CHANNEL_COUNT, SEGMENT_COUNT, DIGIT_COUNT,
    PIN_MAP, INTERLEAVE_CHUNK, INTERLEAVE_SPLIT, DEFAULT_HIDDEN_WIDTH,
    BREATHE_FREQUENCY, BREATHE_GROUPS,
)
from NDE.SMM.errors import ShapeError
from NDE.SGM.oscillator import DriftParameter, apply_drift, oscillate
from NDE.NNM.activations import ActivationTrace


class Region(NamedTuple):
    name:   str
    start:  int   # 0-based logical channel
    length: int

    @property
    def stop(self) -> int:
        return self.start + self.length


def normalize_group(values: np.ndarray) -> np.ndarray:
    """Min-max scale to [0, 1]; a group with zero range maps to all 0."""
    v = np.asarray(values, dtype=np.float64)
    if v.size == 0:
        return v.copy()
    lo, hi = v.min(), v.max()
    span = hi - lo
    if not span > 0:
        return np.zeros_like(v)
    return (v - lo) / span


def saturate(values: np.ndarray) -> np.ndarray:
    """x / (1 + x) for x >= 0; maps [0, ∞) onto [0, 1)."""
    v = np.maximum(np.asarray(values, dtype=np.float64), 0.0)
    return v / (1.0 + v)


def interleaved_length(products: int, outputs: int, chunk: int = INTERLEAVE_CHUNK) -> int:
    """Number of values interleave_outputs() yields for these group sizes."""
    pairs = min(-(-products // chunk), outputs)
    return min(pairs * chunk, products) + pairs


def interleave_outputs(
    dense_1: np.ndarray,
    outputs: np.ndarray,
    chunk:   int = INTERLEAVE_CHUNK,
) -> np.ndarray:
    """
    Flatten hidden → output wires input-major, take them `chunk` at a time
    and follow chunk j with output j.  Stops when either side runs out.

    Args:
        dense_1: (h, 10) per-wire values
        outputs: (10,)

    Returns:
        flat array, interleaved_length(dense_1.size, outputs.size) long
    """
    flat    = np.asarray(dense_1, dtype=np.float64).ravel()
    outputs = np.asarray(outputs, dtype=np.float64).ravel()
    pairs   = min(-(-flat.size // chunk), outputs.size)
    woven   = []
    for j in range(pairs):
        woven.append(flat[j * chunk:(j + 1) * chunk])
        woven.append(outputs[j:j + 1])
    if not woven:
        return np.zeros(0, dtype=np.float64)
    return np.concatenate(woven)


class FrameBuilder:
    """
    Builds 72-channel brightness frames for the board.

    One builder per hidden width.  The pin map is checked once here: regions
    that overflow the board or collide with each other raise ShapeError
    before any frame is built.

    Example:
        builder = FrameBuilder()
        frame   = builder.build(trace(snapshot, encode(5)))
        pwm     = encode_frame(frame)
    """

    def __init__(
        self,
        hidden_width:  int = DEFAULT_HIDDEN_WIDTH,
        pin_map:       dict[str, int] | None = None,
        split:         int = INTERLEAVE_SPLIT,
        channel_count: int = CHANNEL_COUNT,
    ) -> None:
        if hidden_width < 1:
            raise ShapeError(f"hidden_width must be >= 1, got {hidden_width}")
        pins = dict(PIN_MAP if pin_map is None else pin_map)

        self.hidden_width  = hidden_width
        self.channel_count = channel_count

        interleaved  = interleaved_length(hidden_width * DIGIT_COUNT, DIGIT_COUNT)
        relu_a       = math.ceil(hidden_width / 2)
        self.split   = min(split, interleaved)

        lengths = {
            "ss":                   SEGMENT_COUNT,
            "dense_0":              SEGMENT_COUNT * hidden_width,
            "relu_0a":              relu_a,
            "relu_0b":              hidden_width - relu_a,
            "dense_1_and_output_a": self.split,
            "dense_1_and_output_b": interleaved - self.split,
        }
        missing = set(lengths) - set(pins)
        if missing:
            raise ShapeError(f"pin map is missing regions: {sorted(missing)}")

        self.regions = {
            name: Region(name, pins[name], length) for name, length in lengths.items()
        }
        self._check_regions()

    # ── Layout ───────────────────────────────────────────────────────────────

    def _check_regions(self) -> None:
        owner: list[str | None] = [None] * self.channel_count
        for region in self.regions.values():
            if region.start < 0 or region.stop > self.channel_count:
                raise ShapeError(
                    f"region {region.name!r} spans channels {region.start}..{region.stop - 1}, "
                    f"outside the {self.channel_count}-channel board"
                )
            for ch in range(region.start, region.stop):
                if owner[ch] is not None:
                    raise ShapeError(
                        f"regions {owner[ch]!r} and {region.name!r} both claim channel {ch} "
                        f"(hidden width {self.hidden_width})"
                    )
                owner[ch] = region.name

    def unused_channels(self) -> list[int]:
        """Logical channels no region writes to (always 0 in every frame)."""
        used = set()
        for region in self.regions.values():
            used.update(range(region.start, region.stop))
        return [ch for ch in range(self.channel_count) if ch not in used]

    def blank(self) -> np.ndarray:
        return np.zeros(self.channel_count, dtype=np.float64)

    def place(self, frame: np.ndarray, region: str, values: Sequence[float]) -> np.ndarray:
        """Write `values` into a named region of a logical frame, in place."""
        r = self.regions[region]
        values = np.asarray(values, dtype=np.float64).ravel()
        if values.size != r.length:
            raise ShapeError(
                f"region {region!r} takes {r.length} values, got {values.size}"
            )
        frame[r.start:r.stop] = values
        return frame

    @staticmethod
    def to_wire_order(frame: np.ndarray) -> np.ndarray:
        """Logical channel order → shift-register (tail-first) order."""
        return np.ascontiguousarray(frame[::-1])

    # ── Activation frames ────────────────────────────────────────────────────

    def _check_trace(self, t: ActivationTrace) -> None:
        h = self.hidden_width
        expected = {
            "inputs":           (SEGMENT_COUNT,),
            "dense_0_products": (SEGMENT_COUNT, h),
            "relu_0":           (h,),
            "dense_1_products": (h, DIGIT_COUNT),
            "softmax_0":        (DIGIT_COUNT,),
        }
        for field, shape in expected.items():
            actual = np.shape(getattr(t, field))
            if actual != shape:
                raise ShapeError(
                    f"trace field {field!r} has shape {actual}, "
                    f"layout for hidden width {h} expects {shape}"
                )

    def build(self, t: ActivationTrace) -> np.ndarray:
        """
        ActivationTrace → 72 brightness values in wire (reversed) order.

        Raises ShapeError if the trace does not match this builder's hidden
        width.  Never truncates or pads.
        """
        self._check_trace(t)

        dense_0 = normalize_group(np.asarray(t.dense_0_products).ravel())  # input-major
        relu_0  = saturate(t.relu_0)
        dense_1 = normalize_group(t.dense_1_products)
        outputs = np.asarray(t.softmax_0, dtype=np.float64)

        woven = interleave_outputs(dense_1, outputs)
        ra    = self.regions["relu_0a"].length

        frame = self.blank()
        self.place(frame, "ss",                   t.inputs)
        self.place(frame, "dense_0",              dense_0)
        self.place(frame, "relu_0a",              relu_0[:ra])
        self.place(frame, "relu_0b",              relu_0[ra:])
        self.place(frame, "dense_1_and_output_a", woven[:self.split])
        self.place(frame, "dense_1_and_output_b", woven[self.split:])
        return self.to_wire_order(frame)

    # ── Demo frames (no network) ─────────────────────────────────────────────

    def breathe(self, pattern: Sequence[int], time: float | None = None) -> np.ndarray:
        """
        Every channel breathes at its own rate; the seven-segment region
        holds `pattern` steady.
        """
        t = _time.time() if time is None else time
        frame = np.array([
            0.5 + 0.5 * oscillate(BREATHE_FREQUENCY * (x % BREATHE_GROUPS), time=t)
            for x in range(1, self.channel_count + 1)
        ])
        self.place(frame, "ss", pattern)
        return self.to_wire_order(frame)

    def step(self, time: float | None = None) -> np.ndarray:
        """All channels on except one, which moves one channel per second."""
        t = _time.time() if time is None else time
        frame = np.ones(self.channel_count, dtype=np.float64)
        frame[int(t) % self.channel_count] = 0.0
        return self.to_wire_order(frame)

    def fill(self, value: float) -> np.ndarray:
        """Every channel at `value`."""
        return np.full(self.channel_count, float(value), dtype=np.float64)

    def drift(
        self,
        pattern: Sequence[int],
        params:  Sequence[DriftParameter],
        time:    float | None = None,
    ) -> np.ndarray:
        """Seven-segment region drifting away from `pattern`; all else dark."""
        frame = self.blank()
        self.place(frame, "ss", apply_drift(pattern, params, time))
        return self.to_wire_order(frame)


_default_builders: dict[int, FrameBuilder] = {}


def build_frame(t: ActivationTrace, hidden_width: int = DEFAULT_HIDDEN_WIDTH) -> np.ndarray:
    """build() with the standard pin map; the trace must match `hidden_width`."""
    h = hidden_width
    builder = _default_builders.get(h)
    if builder is None:
        builder = _default_builders[h] = FrameBuilder(hidden_width=h)
    return builder.build(t)

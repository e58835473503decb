#!/usr/bin/env python3
# =============================================================================
# hardware_sim.py - LED Board Emulator
# =============================================================================
#
# Shows what the board would display for a PWM frame, without the board.
# Either load a raw frame captured from the bus, or render one here from a
# freshly trained network (or one of the demo animations).
#
# Usage:
#   python -m NDE.SVM.hardware_sim --digit 5
#   python -m NDE.SVM.hardware_sim --digit 5 --epochs 500 --seed 1
#   python -m NDE.SVM.hardware_sim --mode breathe --digit 3 --time 12.5
#   python -m NDE.SVM.hardware_sim --frame captured.bin
#   python -m NDE.SVM.hardware_sim --digit 7 --save frame.bin
#
# Output sections:
#   [1] Frame info        - byte count, expected byte count
#   [2] Decode report     - level range, lit channel count
#   [3] Region table      - every region with its channel levels
#   [4] Network           - predicted class (activation frames only)
#   [5] VERDICT           - PASS / FAIL with reason
#
# =============================================================================

from __future__ import annotations

import argparse
import logging
import os
import sys

import numpy as np

from NDE.SMM.constants import (
    CHANNEL_COUNT, FRAME_BYTES, PWM_MAX,
    DEFAULT_HIDDEN_WIDTH,
)
from NDE.SGM import pattern_codec
from NDE.SGM.frame_builder import FrameBuilder
from NDE.SGM.oscillator import derive_drift_parameters
from NDE.NNM.snapshot import predict
from NDE.SOM.display import Display
from NDE.SOM.transport import RecordingTransport
from NDE.SVM.pwm_decoder import decode_frame, region_values

DIVIDER = "=" * 68
MODES   = ("activations", "breathe", "step", "fill", "drift")

log = logging.getLogger(__name__)


def render(
    mode:         str,
    digit:        int,
    hidden_width: int = DEFAULT_HIDDEN_WIDTH,
    epochs:       int = 300,
    seed:         int | None = None,
    time:         float | None = None,
    value:        float = 0.5,
) -> tuple[bytes, np.ndarray | None]:
    """
    Render one frame the way the running system would.

    Returns:
        (frame bytes, class distribution or None for demo modes)
    """
    if mode not in MODES:
        raise ValueError(f"mode must be one of {MODES}, got {mode!r}")
    pattern   = pattern_codec.encode(digit)
    transport = RecordingTransport(maxlen=1)

    if mode == "activations":
        # torch is only needed to train; demo modes run without it
        from NDE.NNM.trainer import IncrementalTrainer

        trainer = IncrementalTrainer(hidden_width=hidden_width, seed=seed)
        for _ in range(epochs):
            trainer.step()
        log.info(
            "trained %d epochs: loss=%.4f accuracy=%.2f",
            trainer.epoch, trainer.last_loss, trainer.last_accuracy,
        )
        display = Display(transport, holder=trainer.holder)
        display.show_activations(pattern)
        return transport.last, predict(trainer.holder.get(), digit)

    display = Display(transport, builder=FrameBuilder(hidden_width=hidden_width))
    if mode == "breathe":
        display.breathe_demo(pattern, time)
    elif mode == "step":
        display.step_demo(time)
    elif mode == "fill":
        display.set_all(value)
    else:
        start = 0.0 if time is None else time
        display.drift_demo(pattern, derive_drift_parameters(start), time)
    return transport.last, None


def run_sim(
    data:          bytes,
    builder:       FrameBuilder,
    check_unused:  bool = True,
    expect_digit:  int | None = None,
    distribution:  np.ndarray | None = None,
) -> bool:
    """
    Decode and report on one frame.
    Returns True if the frame is one the board would display correctly.
    """
    verdict_pass = True
    reasons: list[str] = []

    # -----------------------------------------------------------------------
    # [1] Frame info
    # -----------------------------------------------------------------------
    print(f"\n{DIVIDER}")
    print(f"  LED Board Emulator")
    print(DIVIDER)
    print(f"  Frame bytes : {len(data)}  (expected {FRAME_BYTES})")
    print(f"  Channels    : {CHANNEL_COUNT}  (hidden width {builder.hidden_width})")

    if len(data) != FRAME_BYTES:
        print(f"  [FAIL] Wrong frame length - every channel on the chain would shift")
        print(f"\n{DIVIDER}")
        print(f"  VERDICT: FAIL - frame length {len(data)} != {FRAME_BYTES}")
        print(f"{DIVIDER}\n")
        return False

    # -----------------------------------------------------------------------
    # [2] Decode report
    # -----------------------------------------------------------------------
    levels  = decode_frame(data)
    logical = levels[::-1]
    lit     = int(np.count_nonzero(logical))

    print(f"\n  -- Decode Report --")
    print(f"  Level range       : {int(logical.min())} .. {int(logical.max())}  (max {PWM_MAX})")
    print(f"  Lit channels      : {lit} / {CHANNEL_COUNT}")

    # -----------------------------------------------------------------------
    # [3] Region table
    # -----------------------------------------------------------------------
    print(f"\n  -- Region Table --")
    regions = region_values(logical, builder)
    print(f"  {'Region':<22} {'Start':>5}  Levels")
    print(f"  {'-'*22} {'-'*5}  {'-'*36}")
    for name, vals in sorted(regions.items(), key=lambda kv: builder.regions[kv[0]].start):
        shown = " ".join(f"{int(v):4d}" for v in vals) or "(empty)"
        print(f"  {name:<22} {builder.regions[name].start:>5}  {shown}")

    unused = builder.unused_channels()
    if check_unused:
        stray = [ch for ch in unused if logical[ch] != 0]
        if stray:
            verdict_pass = False
            reasons.append(f"unwired channels lit: {stray}")
            print(f"  [FAIL] Unwired channels carry a level: {stray}")
        else:
            print(f"  [PASS] All {len(unused)} unwired channels dark")
    else:
        print(f"  [INFO] Unwired-channel check skipped (demo frame)")

    if expect_digit is not None:
        segments = tuple(int(v > PWM_MAX // 2) for v in regions["ss"])
        expected = pattern_codec.encode(expect_digit)
        if segments != expected:
            verdict_pass = False
            reasons.append(f"segments show {segments}, expected digit {expect_digit} {expected}")
            print(f"  [FAIL] Seven-segment region does not show digit {expect_digit}")
        else:
            print(f"  [PASS] Seven-segment region shows digit {expect_digit}")

    # -----------------------------------------------------------------------
    # [4] Network
    # -----------------------------------------------------------------------
    if distribution is not None:
        print(f"\n  -- Network --")
        best = int(np.argmax(distribution))
        for d, p in enumerate(distribution):
            bar = "#" * int(round(p * 40))
            mark = " <" if d == best else ""
            print(f"  {d}  {p:6.3f}  {bar}{mark}")
        if expect_digit is not None:
            tag = "[PASS]" if best == expect_digit else "[INFO]"
            print(f"  {tag} Predicted {best} for digit {expect_digit}")

    # -----------------------------------------------------------------------
    # [5] Verdict
    # -----------------------------------------------------------------------
    print(f"\n{DIVIDER}")
    if verdict_pass:
        print(f"  VERDICT: PASS - board would display this frame correctly")
    else:
        print(f"  VERDICT: FAIL - board would display this frame incorrectly")
        for r in reasons:
            print(f"    - {r}")
    print(f"{DIVIDER}\n")

    return verdict_pass


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="LED Board Emulator",
    )
    parser.add_argument(
        "--frame",
        help="Path to a raw PWM frame (108 bytes) instead of rendering one",
    )
    parser.add_argument(
        "--mode", choices=MODES, default="activations",
        help="What to render, default activations",
    )
    parser.add_argument("--digit", type=int, default=8, help="Digit to show, default 8")
    parser.add_argument(
        "--hidden", type=int, default=DEFAULT_HIDDEN_WIDTH,
        help=f"Hidden layer width, default {DEFAULT_HIDDEN_WIDTH}",
    )
    parser.add_argument("--epochs", type=int, default=300, help="Training epochs, default 300")
    parser.add_argument("--seed", type=int, default=None, help="Weight init seed")
    parser.add_argument("--time", type=float, default=None, help="Animation time (s)")
    parser.add_argument("--value", type=float, default=0.5, help="Level for --mode fill")
    parser.add_argument("--save", help="Write the rendered frame to this path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log training progress")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    builder = FrameBuilder(hidden_width=args.hidden)

    if args.frame:
        if not os.path.exists(args.frame):
            print(f"  [!!] File not found: {args.frame}")
            sys.exit(1)
        with open(args.frame, "rb") as f:
            data = f.read()
        ok = run_sim(data, builder, check_unused=True)
        sys.exit(0 if ok else 1)

    data, distribution = render(
        mode=args.mode,
        digit=args.digit,
        hidden_width=args.hidden,
        epochs=args.epochs,
        seed=args.seed,
        time=args.time,
        value=args.value,
    )
    if args.save:
        with open(args.save, "wb") as f:
            f.write(data)
        print(f"  [INFO] Frame written to {args.save}")

    on_segments = args.mode in ("activations", "breathe")
    ok = run_sim(
        data,
        builder,
        check_unused=args.mode in ("activations", "drift"),
        expect_digit=args.digit if on_segments else None,
        distribution=distribution,
    )
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()

# =============================================================================
# display.py - Display and Render Loop
# =============================================================================
#
# Display turns one thing-to-show into one bus transfer:
#
#   show_activations(pattern)   network state for a digit pattern
#   breathe_demo(pattern)       idle breathing, digit held on the segments
#   step_demo()                 one dark channel walking the chain
#   set_all(value)              every channel the same
#   drift_demo(pattern, params) segments drifting away from a digit
#
# Each call: build frame (wire order) → PWM encode → transport.transfer().
# Transport errors propagate to the caller unchanged.
#
# RenderLoop calls a tick function at a fixed rate on its own thread.  A
# TransportError inside a tick is a dropped frame: logged, counted, and the
# loop carries on.  The next tick is the retry.
#
# The render path never waits on the trainer.  It reads the current
# snapshot from the SnapshotHolder (no lock) and computes from that.

from __future__ import annotations

import logging
import threading
import time as _time
from typing import Callable, Sequence

import numpy as np

from NDE.SMM.constants import DEFAULT_HIDDEN_WIDTH, GAMMA, RENDER_RATE_HZ
from NDE.SMM.errors import TransportError
from NDE.SGM.frame_builder import FrameBuilder
from NDE.SGM.oscillator import DriftParameter
from NDE.SGM.pwm_encoder import encode_frame
from NDE.NNM.activations import trace
from NDE.NNM.snapshot import SnapshotHolder, WeightSnapshot
from NDE.SOM.transport import Transport

log = logging.getLogger(__name__)


class Display:
    """
    The LED board.

    Args:
        transport: anything with transfer(bytes).
        holder:    where show_activations() reads weights from when no
                   snapshot is passed explicitly.
        builder:   frame builder; defaults to the standard pin map for the
                   holder's hidden width.
        gamma:     passed to the PWM encoder (None disables gamma).
    """

    def __init__(
        self,
        transport: Transport,
        holder:    SnapshotHolder | None = None,
        builder:   FrameBuilder | None = None,
        gamma:     float | None = GAMMA,
    ) -> None:
        if builder is None:
            width   = holder.get().hidden_width if holder is not None else DEFAULT_HIDDEN_WIDTH
            builder = FrameBuilder(hidden_width=width)
        self.transport = transport
        self.holder    = holder
        self.builder   = builder
        self.gamma     = gamma

    def _send(self, frame: np.ndarray) -> np.ndarray:
        self.transport.transfer(encode_frame(frame, self.gamma))
        return frame

    def show_activations(
        self,
        pattern:  Sequence[float],
        snapshot: WeightSnapshot | None = None,
    ) -> np.ndarray:
        """
        Light the board with the network's response to `pattern`.

        Returns the wire-order brightness frame that was sent.
        """
        if snapshot is None:
            if self.holder is None:
                raise ValueError("no snapshot given and no SnapshotHolder attached")
            snapshot = self.holder.get()
        return self._send(self.builder.build(trace(snapshot, pattern)))

    def breathe_demo(self, pattern: Sequence[int], time: float | None = None) -> np.ndarray:
        return self._send(self.builder.breathe(pattern, time))

    def step_demo(self, time: float | None = None) -> np.ndarray:
        return self._send(self.builder.step(time))

    def set_all(self, value: float) -> np.ndarray:
        """Set all PWM channels to `value` in [0, 1]."""
        return self._send(self.builder.fill(value))

    def drift_demo(
        self,
        pattern: Sequence[int],
        params:  Sequence[DriftParameter],
        time:    float | None = None,
    ) -> np.ndarray:
        return self._send(self.builder.drift(pattern, params, time))


class RenderLoop:
    """
    Calls `tick()` `rate_hz` times a second on a daemon thread.

    Usage:
        loop = RenderLoop(lambda: display.show_activations(knob.pattern()))
        loop.start()
        ...
        loop.stop()
    """

    def __init__(self, tick: Callable[[], object], rate_hz: float = RENDER_RATE_HZ) -> None:
        if rate_hz <= 0:
            raise ValueError(f"rate_hz must be > 0, got {rate_hz}")
        self.tick     = tick
        self.period   = 1.0 / rate_hz
        self.ticks    = 0
        self.dropped  = 0
        self._stop    = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("render loop already running")
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="nde-render", daemon=True)
        self._thread.start()
        log.info("render loop started at %.1f Hz", 1.0 / self.period)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        log.info("render loop stopped: %d ticks, %d dropped", self.ticks, self.dropped)

    def run_once(self) -> bool:
        """
        One tick on the calling thread.

        Returns:
            False if the frame was dropped by the transport.
        """
        self.ticks += 1
        try:
            self.tick()
        except TransportError as e:
            self.dropped += 1
            log.warning("dropped frame %d: %s", self.ticks, e)
            return False
        return True

    def _run(self) -> None:
        deadline = _time.monotonic()
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                log.exception("render tick %d failed; render loop halted", self.ticks)
                raise
            deadline += self.period
            delay = deadline - _time.monotonic()
            if delay < 0:
                # running late: skip missed ticks rather than bursting
                deadline = _time.monotonic()
                delay = 0.0
            self._stop.wait(delay)

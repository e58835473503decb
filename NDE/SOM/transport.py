# =============================================================================
# transport.py - Bus Transport
# =============================================================================
#
# One operation: transfer(frame).  Synchronous, blocking, bounded by the
# SPI clock.  No retry: a failed transfer raises TransportError and the next
# render tick sends a fresh frame anyway.
#
# The frame must be exactly FRAME_BYTES long (72 channels x 12 bits).  A
# short or long frame would shift every channel on the chain, so it is
# rejected with ValueError before the device is touched.
#
# SpiTransport does not import an SPI library.  It wraps whatever device
# object the host opened (e.g. spidev.SpiDev with mode / max_speed_hz
# already set) and only needs `writebytes2` or `writebytes`.

from __future__ import annotations

import collections
import threading
from typing import Protocol

from NDE.SMM.constants import FRAME_BYTES
from NDE.SMM.errors import TransportError


class Transport(Protocol):
    def transfer(self, frame: bytes) -> None: ...


def check_frame(frame: bytes, frame_bytes: int = FRAME_BYTES) -> bytes:
    data = bytes(frame)
    if len(data) != frame_bytes:
        raise ValueError(
            f"PWM frame must be exactly {frame_bytes} bytes, got {len(data)}"
        )
    return data


class SpiTransport:
    """
    Writes PWM frames to an already-opened SPI device.

    Args:
        device:      object with writebytes2(bytes) or writebytes(list[int]).
        frame_bytes: expected frame length, default FRAME_BYTES (108).
    """

    def __init__(self, device, frame_bytes: int = FRAME_BYTES) -> None:
        if hasattr(device, "writebytes2"):
            self._write = device.writebytes2
        elif hasattr(device, "writebytes"):
            self._write = lambda data: device.writebytes(list(data))
        else:
            raise TypeError(
                f"{type(device).__name__} has neither writebytes2 nor writebytes"
            )
        self.device      = device
        self.frame_bytes = frame_bytes
        self._lock       = threading.Lock()   # one transfer on the bus at a time

    def transfer(self, frame: bytes) -> None:
        data = check_frame(frame, self.frame_bytes)
        with self._lock:
            try:
                self._write(data)
            except OSError as e:
                raise TransportError(f"SPI transfer of {len(data)} bytes failed: {e}") from e


class RecordingTransport:
    """
    In-memory transport.  Keeps the most recent `maxlen` frames.

    fail_next(n) makes the next n transfers raise TransportError, to
    exercise the dropped-frame path without hardware.
    """

    def __init__(self, maxlen: int = 64, frame_bytes: int = FRAME_BYTES) -> None:
        self.frames: collections.deque[bytes] = collections.deque(maxlen=maxlen)
        self.frame_bytes = frame_bytes
        self.transfers   = 0
        self._failures   = 0
        self._lock       = threading.Lock()

    def fail_next(self, n: int = 1) -> None:
        with self._lock:
            self._failures = n

    @property
    def last(self) -> bytes | None:
        with self._lock:
            return self.frames[-1] if self.frames else None

    def transfer(self, frame: bytes) -> None:
        data = check_frame(frame, self.frame_bytes)
        with self._lock:
            if self._failures:
                self._failures -= 1
                raise TransportError("simulated bus failure")
            self.frames.append(data)
            self.transfers += 1

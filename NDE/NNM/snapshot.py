# =============================================================================
# snapshot.py - Weight Snapshots and the Shared Snapshot Holder
# =============================================================================
#
# Everything downstream of the trainer works from a WeightSnapshot, so this
# module is numpy-only.  Importing it (or the activation trace, the frame
# builder, the display) never pulls in torch.
#
# WEIGHT SNAPSHOTS:
#   torch.nn.Linear stores weights as (out, in).  A WeightSnapshot stores
#   them as (in, out) numpy arrays, read-only, so row i is everything input
#   unit i feeds.  Snapshots are replaced wholesale, never edited.
#
# SNAPSHOT HOLDER:
#   One writer (the trainer), any number of readers (render ticks).
#   publish() swaps the reference under a short lock; get() is a single
#   reference read, so a reader sees the previous snapshot or the new one,
#   never a mix.

from __future__ import annotations

import threading
from dataclasses import dataclass

import numpy as np

from NDE.SMM.constants import SEGMENT_COUNT, DIGIT_COUNT
from NDE.SMM.errors import ShapeError
from NDE.SGM import pattern_codec


def _frozen(matrix) -> np.ndarray:
    a = np.array(matrix, dtype=np.float64)   # always a private copy
    a.setflags(write=False)
    return a


@dataclass(frozen=True, eq=False)
class WeightSnapshot:
    """
    Immutable copy of the network weights.

    Attributes:
        dense_0: (7, h)  input segment → hidden unit
        dense_1: (h, 10) hidden unit   → digit class
        version: number of completed training epochs when taken
    """
    dense_0: np.ndarray
    dense_1: np.ndarray
    version: int = 0

    def __post_init__(self):
        d0 = _frozen(self.dense_0)
        d1 = _frozen(self.dense_1)
        if d0.ndim != 2 or d0.shape[0] != SEGMENT_COUNT:
            raise ShapeError(f"dense_0 must be ({SEGMENT_COUNT}, h), got {d0.shape}")
        if d1.shape != (d0.shape[1], DIGIT_COUNT):
            raise ShapeError(
                f"dense_1 must be ({d0.shape[1]}, {DIGIT_COUNT}) to follow "
                f"dense_0 {d0.shape}, got {d1.shape}"
            )
        # frozen dataclass: bypass __setattr__ for the normalised copies
        object.__setattr__(self, "dense_0", d0)
        object.__setattr__(self, "dense_1", d1)

    @property
    def hidden_width(self) -> int:
        return self.dense_0.shape[1]

    @classmethod
    def from_module(cls, model, version: int = 0) -> "WeightSnapshot":
        """
        Export the two weighted layers of a model built by new_model().

        Any layer with a `weight` counts; activations have none.
        """
        layers = [m for m in model if getattr(m, "weight", None) is not None]
        if len(layers) != 2:
            raise ShapeError(f"expected 2 weighted layers, found {len(layers)}")
        dense_0, dense_1 = layers
        return cls(
            dense_0=dense_0.weight.detach().cpu().numpy().T,
            dense_1=dense_1.weight.detach().cpu().numpy().T,
            version=version,
        )


class SnapshotHolder:
    """Shared cell holding the latest WeightSnapshot."""

    def __init__(self, snapshot: WeightSnapshot) -> None:
        self._snapshot = snapshot
        self._cond     = threading.Condition()

    def get(self) -> WeightSnapshot:
        """Current snapshot.  Never blocks."""
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def publish(self, snapshot: WeightSnapshot) -> None:
        """Replace the current snapshot wholesale and wake any waiters."""
        with self._cond:
            self._snapshot = snapshot
            self._cond.notify_all()

    def wait_for_version(self, version: int, timeout: float | None = None) -> bool:
        """
        Block until a snapshot with at least `version` epochs is published.
        Returns False on timeout.
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._snapshot.version >= version, timeout)


def softmax(z: np.ndarray) -> np.ndarray:
    e = np.exp(z - np.max(z))
    return e / e.sum()


def predict(snapshot: WeightSnapshot, digit: int) -> np.ndarray:
    """Class distribution (10 probabilities) for `digit` under `snapshot`."""
    x = np.asarray(pattern_codec.encode(digit), dtype=np.float64)
    hidden = np.maximum(x @ snapshot.dense_0, 0.0)
    return softmax(hidden @ snapshot.dense_1)


def predict_class(snapshot: WeightSnapshot, digit: int) -> int:
    """Most likely digit class for `digit` under `snapshot`."""
    return int(np.argmax(predict(snapshot, digit)))

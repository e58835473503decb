# =============================================================================
# activations.py - Per-Wire Activation Trace
# =============================================================================
#
# A plain forward pass only keeps layer outputs.  The board needs every
# wire: the contribution x_i · w_ij of input i to unit j, before summing.
# trace() replays the forward pass from a WeightSnapshot and keeps all of it.
#
# For each dense layer, in order:
#   products = x[:, None] * W          (in, out) - one value per wire
#   sums     = products.sum(axis=0)    (out,)    - the layer output
#   next x   = relu(sums)   for the hidden layer
#            = softmax(sums) for the output layer
#
# Trace order (ActivationTrace fields, always seven entries):
#   inputs, dense_0_products, dense_0_sums, relu_0,
#   dense_1_products, dense_1_sums, softmax_0
#
# Ephemeral: recomputed on every render tick, never stored.

from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np

from NDE.SMM.constants import SEGMENT_COUNT
from NDE.SMM.errors import ShapeError
from NDE.NNM.snapshot import WeightSnapshot, softmax


class ActivationTrace(NamedTuple):
    inputs:           np.ndarray   # (7,)    segment bits
    dense_0_products: np.ndarray   # (7, h)  input → hidden wires
    dense_0_sums:     np.ndarray   # (h,)
    relu_0:           np.ndarray   # (h,)    hidden unit outputs, >= 0
    dense_1_products: np.ndarray   # (h, 10) hidden → output wires
    dense_1_sums:     np.ndarray   # (10,)   logits
    softmax_0:        np.ndarray   # (10,)   class distribution

    @property
    def hidden_width(self) -> int:
        return self.dense_0_products.shape[1]


def layer_products(x: np.ndarray, weights: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Per-wire products and their per-unit sums for one dense layer.

    Args:
        x:       (in,) layer input
        weights: (in, out)

    Returns:
        (products (in, out), sums (out,))
    """
    products = x[:, None] * weights
    return products, products.sum(axis=0)


def trace(snapshot: WeightSnapshot, input_pattern: Sequence[float]) -> ActivationTrace:
    """
    Replay the forward pass for one input, keeping every intermediate.

    Args:
        snapshot:      weights to use; never modified.
        input_pattern: 7 segment values (0/1, or brightness in [0, 1]).

    Returns:
        ActivationTrace with freshly allocated arrays.
    """
    x = np.asarray(input_pattern, dtype=np.float64)
    if x.shape != (SEGMENT_COUNT,):
        raise ShapeError(f"input pattern must have {SEGMENT_COUNT} segments, got shape {x.shape}")

    d0_products, d0_sums = layer_products(x, snapshot.dense_0)
    relu_0 = np.maximum(d0_sums, 0.0)
    d1_products, d1_sums = layer_products(relu_0, snapshot.dense_1)

    return ActivationTrace(
        inputs=x,
        dense_0_products=d0_products,
        dense_0_sums=d0_sums,
        relu_0=relu_0,
        dense_1_products=d1_products,
        dense_1_sums=d1_sums,
        softmax_0=softmax(d1_sums),
    )

# =============================================================================
# model.py - Digit Classifier Model and Training Set
# =============================================================================
#
# The network maps a seven-segment bit pattern to the digit it shows:
#
#   input (7) ─ dense_0 ─ relu_0 (h) ─ dense_1 ─ softmax_0 (10)
#
# Both dense layers are bias-free.  Every value on the board is then a sum of
# per-wire products and nothing else, so the lit wires add up exactly to
# what the network computes.
#
# Compared to most AI problems this is extremely trivial: ten digits, one
# unambiguous pattern each, so the training set is exactly ten pairs.
#
# The trained weights leave this module as a WeightSnapshot (snapshot.py),
# which is numpy-only; torch stays on this side of the trainer.

from __future__ import annotations

import logging

import torch
from torch import nn

from NDE.SMM.constants import (
    SEGMENT_COUNT, DIGIT_COUNT, DIGIT_BITLISTS,
    DEFAULT_HIDDEN_WIDTH, LEARNING_RATE,
)
from NDE.NNM.snapshot import WeightSnapshot

log = logging.getLogger(__name__)


def new_model(hidden_width: int = DEFAULT_HIDDEN_WIDTH) -> nn.Sequential:
    """
    Create the fully-connected classifier.

    7 inputs (one per segment), `hidden_width` ReLU units, 10 outputs
    (logits; softmax is applied at prediction time and folded into the
    loss during training).
    """
    if hidden_width < 1:
        raise ValueError(f"hidden_width must be >= 1, got {hidden_width}")
    return nn.Sequential(
        nn.Linear(SEGMENT_COUNT, hidden_width, bias=False),
        nn.ReLU(),
        nn.Linear(hidden_width, DIGIT_COUNT, bias=False),
    )


def new_optimizer(model: nn.Module) -> torch.optim.Optimizer:
    return torch.optim.Adam(model.parameters(), lr=LEARNING_RATE)


def training_set() -> tuple[torch.Tensor, torch.Tensor]:
    """
    The full dataset: one example per digit.

    Returns:
        inputs:  float32 (10, 7), row d = bit pattern of digit d
        targets: float32 (10, 10), one-hot, row d has a 1 in column d
    """
    inputs  = torch.tensor(DIGIT_BITLISTS, dtype=torch.float32)
    targets = torch.eye(DIGIT_COUNT, dtype=torch.float32)
    return inputs, targets


def run_epoch(
    model:     nn.Module,
    optimizer: torch.optim.Optimizer,
    loss_fn:   nn.Module,
    inputs:    torch.Tensor,
    targets:   torch.Tensor,
) -> tuple[float, float]:
    """
    One pass over the dataset, one optimizer step per example.

    Returns:
        (mean loss, accuracy) for the pass.
    """
    model.train()
    total_loss = 0.0
    correct    = 0
    for x, y in zip(inputs, targets):
        x, y = x.unsqueeze(0), y.unsqueeze(0)
        optimizer.zero_grad()
        logits = model(x)
        loss   = loss_fn(logits, y)
        loss.backward()
        optimizer.step()
        total_loss += loss.item()
        correct    += int(logits.argmax(dim=1).item() == y.argmax(dim=1).item())
    n = len(inputs)
    return total_loss / n, correct / n


def train(
    model:  nn.Sequential,
    epochs: int = 500,
) -> WeightSnapshot:
    """
    Blocking offline training (categorical cross-entropy, Adam).

    Same loss, optimizer and per-example stepping as the background
    trainer; useful for scripts and tests that want a trained snapshot now.
    """
    inputs, targets = training_set()
    optimizer = new_optimizer(model)
    loss_fn   = nn.CrossEntropyLoss()
    loss = acc = float("nan")
    for _ in range(epochs):
        loss, acc = run_epoch(model, optimizer, loss_fn, inputs, targets)
    log.info("trained %d epochs: loss=%.4f accuracy=%.2f", epochs, loss, acc)
    return WeightSnapshot.from_module(model, version=epochs)

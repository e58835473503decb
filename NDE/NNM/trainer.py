# =============================================================================
# trainer.py - Incremental Background Trainer
# =============================================================================
#
# Training never runs to completion.  It runs ONE epoch, publishes the
# weights, sleeps briefly, and runs the next, forever, so the render loop
# sharing the process always gets CPU time.
#
# STATE MACHINE:
#
#     IDLE ──start()──▶ EPOCH_RUNNING ──epoch done──▶ COOLDOWN
#                             ▲                          │
#                             └──── delay elapsed ───────┘
#
#   - An epoch = one optimizer step per example over all ten examples.
#   - The optimizer object lives as long as the trainer: Adam's moment
#     estimates carry over from one epoch to the next.
#   - stop() returns to IDLE from any state (host shutdown, tests).
#   - start() after a stop() that timed out first waits for that epoch to
#     finish, so two epochs never run at once.
#
# SNAPSHOT PUBLICATION:
#   The trainer holds no lock while computing.  At the end of an epoch it
#   builds a new immutable WeightSnapshot and swaps it into the
#   SnapshotHolder under a short lock.  Readers never lock: get() is a single
#   reference read, so a reader sees the previous snapshot or the new one,
#   never a mix.

from __future__ import annotations

import enum
import logging
import threading

import torch
from torch import nn

from NDE.SMM.constants import DEFAULT_HIDDEN_WIDTH, INTER_EPOCH_DELAY
from NDE.NNM.snapshot import SnapshotHolder, WeightSnapshot
from NDE.NNM.model import new_model, new_optimizer, training_set, run_epoch

log = logging.getLogger(__name__)


class TrainerState(enum.Enum):
    IDLE          = "idle"
    EPOCH_RUNNING = "epoch_running"
    COOLDOWN      = "cooldown"


# Allowed transitions (stop() → IDLE is allowed from anywhere)
_TRANSITIONS = {
    TrainerState.IDLE:          {TrainerState.EPOCH_RUNNING},
    TrainerState.EPOCH_RUNNING: {TrainerState.COOLDOWN},
    TrainerState.COOLDOWN:      {TrainerState.EPOCH_RUNNING},
}


class IncrementalTrainer:
    """
    Trains the digit classifier one epoch at a time on a timer thread.

    Usage:
        trainer = IncrementalTrainer()
        trainer.start()
        ...
        snapshot = trainer.holder.get()    # from any thread, any time
        ...
        trainer.stop()

    step() runs a single epoch synchronously on the calling thread and
    does not schedule anything.
    """

    def __init__(
        self,
        hidden_width: int = DEFAULT_HIDDEN_WIDTH,
        delay:        float = INTER_EPOCH_DELAY,
        holder:       SnapshotHolder | None = None,
        seed:         int | None = None,
    ) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")

        if seed is None:
            self.model = new_model(hidden_width)
        else:
            # seed without disturbing the global torch RNG
            with torch.random.fork_rng():
                torch.manual_seed(seed)
                self.model = new_model(hidden_width)

        self.delay      = delay
        self.optimizer  = new_optimizer(self.model)
        self.loss_fn    = nn.CrossEntropyLoss()
        self._inputs, self._targets = training_set()

        self.epoch       = 0
        self.last_loss   = float("nan")
        self.last_accuracy = float("nan")

        initial = WeightSnapshot.from_module(self.model, version=0)
        if holder is None:
            holder = SnapshotHolder(initial)
        else:
            holder.publish(initial)
        self.holder = holder

        self._state      = TrainerState.IDLE
        self._lock       = threading.Lock()     # guards _state / _timer / _running
        self._timer: threading.Timer | None = None
        self._running    = False
        self._generation = 0                    # bumped by start(); stale timers never re-arm
        self._draining: threading.Timer | None = None   # epoch stop() timed out on

    # ── State ────────────────────────────────────────────────────────────────

    @property
    def state(self) -> TrainerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    def _transition(self, new: TrainerState) -> None:
        with self._lock:
            if new not in _TRANSITIONS[self._state]:
                raise RuntimeError(
                    f"illegal trainer transition {self._state.name} → {new.name}"
                )
            log.debug("trainer %s → %s", self._state.name, new.name)
            self._state = new

    # ── Epochs ───────────────────────────────────────────────────────────────

    def step(self) -> WeightSnapshot:
        """
        Run exactly one epoch and publish the result.

        EPOCH_RUNNING while computing, COOLDOWN afterwards.

        Returns:
            The snapshot just published.
        """
        self._transition(TrainerState.EPOCH_RUNNING)
        loss, acc = run_epoch(
            self.model, self.optimizer, self.loss_fn, self._inputs, self._targets,
        )
        self.epoch        += 1
        self.last_loss     = loss
        self.last_accuracy = acc

        snapshot = WeightSnapshot.from_module(self.model, version=self.epoch)
        self.holder.publish(snapshot)
        self._transition(TrainerState.COOLDOWN)

        log.debug("epoch %d: loss=%.4f accuracy=%.2f", self.epoch, loss, acc)
        return snapshot

    # ── Scheduling ───────────────────────────────────────────────────────────

    def start(self) -> None:
        """
        Begin background training.  Returns immediately, unless a previous
        stop() timed out mid-epoch: then it first waits for that epoch.
        """
        with self._lock:
            if self._running:
                raise RuntimeError("trainer already running")
            draining = self._draining
        if draining is not None and draining is not threading.current_thread():
            draining.join()
        with self._lock:
            if self._running:
                raise RuntimeError("trainer already running")
            self._running    = True
            self._draining   = None
            self._generation += 1
            generation = self._generation
        log.info("trainer started (delay=%.3fs)", self.delay)
        self._schedule(0.0, generation)

    def stop(self, timeout: float | None = None) -> None:
        """
        Stop scheduling epochs and return to IDLE.

        An epoch already in progress finishes and is published; no further
        epoch starts.  Waits up to `timeout` for it.
        """
        with self._lock:
            self._running = False
            timer = self._timer
            self._timer = None
        if timer is not None:
            timer.cancel()
            if timer is not threading.current_thread():
                timer.join(timeout)
            if timer.is_alive():
                # still mid-epoch; _continue() parks it in IDLE when done
                with self._lock:
                    self._draining = timer
                log.info("trainer stopping; epoch %d still in progress", self.epoch + 1)
                return
        with self._lock:
            self._state = TrainerState.IDLE
        log.info("trainer stopped after %d epochs", self.epoch)

    def _schedule(self, delay: float, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
            timer = threading.Timer(delay, self._continue, args=(generation,))
            timer.daemon = True
            timer.name   = f"nde-trainer-{self.epoch}"
            self._timer  = timer
        timer.start()

    def _continue(self, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
        try:
            self.step()
        except Exception:
            log.exception("training epoch %d failed; trainer halted", self.epoch + 1)
            with self._lock:
                if generation == self._generation:
                    self._running = False
                    self._state   = TrainerState.IDLE
            raise
        with self._lock:
            if generation != self._generation:
                return
            if not self._running:
                self._state = TrainerState.IDLE
                return
        self._schedule(self.delay, generation)

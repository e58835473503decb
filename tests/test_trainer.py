"""
Incremental Trainer Tests
=========================

State machine, snapshot publication and the background epoch timer.
"""

import threading
import time

import numpy as np
import pytest

from NDE.NNM import trainer as trainer_module
from NDE.NNM.snapshot import SnapshotHolder, WeightSnapshot
from NDE.NNM.trainer import IncrementalTrainer, TrainerState


def filled_snapshot(version, hidden_width=2):
    return WeightSnapshot(
        dense_0=np.full((7, hidden_width), float(version)),
        dense_1=np.full((hidden_width, 10), float(version)),
        version=version,
    )


# =============================================================================
# SnapshotHolder
# =============================================================================

class TestSnapshotHolder:

    def test_publish_replaces(self):
        holder = SnapshotHolder(filled_snapshot(0))
        new = filled_snapshot(1)
        holder.publish(new)
        assert holder.get() is new
        assert holder.version == 1

    def test_wait_for_version_times_out(self):
        holder = SnapshotHolder(filled_snapshot(0))
        assert holder.wait_for_version(1, timeout=0.05) is False

    def test_wait_for_version_wakes(self):
        holder = SnapshotHolder(filled_snapshot(0))
        threading.Timer(0.05, holder.publish, args=(filled_snapshot(2),)).start()
        assert holder.wait_for_version(2, timeout=5.0) is True

    def test_reader_never_sees_a_torn_snapshot(self):
        holder = SnapshotHolder(filled_snapshot(0))
        done = threading.Event()
        torn = []

        def reader():
            while not done.is_set():
                snap = holder.get()
                v = float(snap.version)
                if not (np.all(snap.dense_0 == v) and np.all(snap.dense_1 == v)):
                    torn.append(snap.version)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for version in range(1, 300):
            holder.publish(filled_snapshot(version))
        done.set()
        for t in threads:
            t.join()
        assert torn == []
        assert holder.version == 299


# =============================================================================
# Trainer
# =============================================================================

class TestIncrementalTrainer:

    def test_initial_snapshot(self):
        trainer = IncrementalTrainer(hidden_width=3, seed=1)
        assert trainer.state is TrainerState.IDLE
        assert trainer.holder.version == 0
        assert trainer.holder.get().hidden_width == 3

    def test_seed_reproducible(self):
        a = IncrementalTrainer(seed=5).holder.get()
        b = IncrementalTrainer(seed=5).holder.get()
        np.testing.assert_array_equal(a.dense_0, b.dense_0)
        np.testing.assert_array_equal(a.dense_1, b.dense_1)

    def test_step_publishes_and_cools_down(self):
        trainer = IncrementalTrainer(seed=0)
        snap = trainer.step()
        assert trainer.state is TrainerState.COOLDOWN
        assert trainer.holder.get() is snap
        assert snap.version == trainer.epoch == 1
        assert 0.0 <= trainer.last_accuracy <= 1.0
        assert trainer.last_loss > 0.0

    def test_versions_increase(self):
        trainer = IncrementalTrainer(seed=0)
        versions = [trainer.step().version for _ in range(5)]
        assert versions == [1, 2, 3, 4, 5]

    def test_published_snapshots_are_not_edited(self):
        trainer = IncrementalTrainer(seed=0)
        first = trainer.step()
        kept = first.dense_0.copy()
        for _ in range(3):
            trainer.step()
        np.testing.assert_array_equal(first.dense_0, kept)
        assert not np.array_equal(trainer.holder.get().dense_0, kept)

    def test_optimizer_state_carries_over(self):
        trainer = IncrementalTrainer(seed=0)
        trainer.step()
        trainer.step()
        steps = [int(s["step"]) for s in trainer.optimizer.state.values()]
        assert steps and all(n == 20 for n in steps)

    def test_shared_holder(self):
        holder = SnapshotHolder(filled_snapshot(9))
        trainer = IncrementalTrainer(holder=holder, seed=0)
        assert trainer.holder is holder
        assert holder.version == 0

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            IncrementalTrainer(delay=-1.0)

    def test_background_training(self):
        trainer = IncrementalTrainer(delay=0.001, seed=0)
        trainer.start()
        try:
            assert trainer.running
            assert trainer.holder.wait_for_version(3, timeout=30.0)
        finally:
            trainer.stop(timeout=30.0)
        assert not trainer.running
        assert trainer.state is TrainerState.IDLE
        stopped_at = trainer.holder.version
        time.sleep(0.05)
        assert trainer.holder.version == stopped_at

    def test_double_start_rejected(self):
        trainer = IncrementalTrainer(delay=0.5, seed=0)
        trainer.start()
        try:
            with pytest.raises(RuntimeError):
                trainer.start()
        finally:
            trainer.stop(timeout=30.0)

    def test_restart_after_stop(self):
        trainer = IncrementalTrainer(delay=0.001, seed=0)
        trainer.start()
        trainer.holder.wait_for_version(1, timeout=30.0)
        trainer.stop(timeout=30.0)
        resumed_from = trainer.holder.version
        trainer.start()
        try:
            assert trainer.holder.wait_for_version(resumed_from + 1, timeout=30.0)
        finally:
            trainer.stop(timeout=30.0)

    def test_restart_while_epoch_in_flight(self, monkeypatch, caplog):
        real_run_epoch = trainer_module.run_epoch

        def slow_run_epoch(*args):
            time.sleep(0.3)
            return real_run_epoch(*args)

        monkeypatch.setattr(trainer_module, "run_epoch", slow_run_epoch)
        trainer = IncrementalTrainer(delay=0.001, seed=0)
        trainer.start()
        deadline = time.monotonic() + 10.0
        while trainer.state is not TrainerState.EPOCH_RUNNING and time.monotonic() < deadline:
            time.sleep(0.005)

        trainer.stop(timeout=0.01)      # returns with the epoch still running
        trainer.start()
        try:
            assert trainer.holder.wait_for_version(3, timeout=30.0)
            assert trainer.running
        finally:
            trainer.stop(timeout=30.0)
        assert trainer.state is TrainerState.IDLE
        assert "halted" not in caplog.text
        assert trainer.holder.version == trainer.epoch

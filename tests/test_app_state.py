"""Tests for application state updates — proves cadence separation and stale-response rejection."""

import pytest

from halving.engine.state import (
    AppState,
    RefreshMode,
    apply_poll,
    apply_tick,
)
from halving.models.epoch import (
    ChainSnapshot,
    CountdownView,
    EpochDescriptor,
    HalvingTarget,
)


def _snapshot(block: int, number: int = 8750, index: int = 1) -> ChainSnapshot:
    return ChainSnapshot(block_number=block, epoch=EpochDescriptor(number, index, 1800))


def _target(epoch: int = 8760, millis: int = 1_000) -> HalvingTarget:
    return HalvingTarget(target_epoch=epoch, target_time_millis=millis)


@pytest.fixture
def state() -> AppState:
    return AppState()


class TestGenerations:
    def test_generations_increase(self, state: AppState) -> None:
        assert [state.begin_poll() for _ in range(3)] == [1, 2, 3]

    def test_not_loaded_initially(self, state: AppState) -> None:
        assert not state.is_loaded
        assert state.snapshot is None and state.target is None


class TestApplyPoll:
    def test_full_writes_both(self, state: AppState) -> None:
        gen = state.begin_poll()
        outcome = apply_poll(state, RefreshMode.FULL, gen, _snapshot(100), _target())
        assert outcome.snapshot_written and outcome.target_written
        assert state.snapshot.block_number == 100
        assert state.target == _target()
        assert state.is_loaded

    def test_partial_writes_snapshot_only(self, state: AppState) -> None:
        apply_poll(state, RefreshMode.FULL, state.begin_poll(), _snapshot(100), _target(millis=5))
        outcome = apply_poll(
            state, RefreshMode.PARTIAL, state.begin_poll(), _snapshot(101), _target(millis=9),
        )
        assert outcome.snapshot_written
        assert not outcome.target_written
        assert state.snapshot.block_number == 101
        assert state.target.target_time_millis == 5

    def test_full_without_target_rejected(self, state: AppState) -> None:
        with pytest.raises(ValueError, match="must carry"):
            apply_poll(state, RefreshMode.FULL, state.begin_poll(), _snapshot(1))

    def test_older_snapshot_dropped(self, state: AppState) -> None:
        old = state.begin_poll()
        new = state.begin_poll()
        apply_poll(state, RefreshMode.PARTIAL, new, _snapshot(200))
        outcome = apply_poll(state, RefreshMode.PARTIAL, old, _snapshot(199))
        assert outcome.stale
        assert state.snapshot.block_number == 200

    def test_older_full_keeps_newer_snapshot_but_lands_target(self, state: AppState) -> None:
        # Full poll issued first, partial issued second but answered first.
        full_gen = state.begin_poll()
        partial_gen = state.begin_poll()
        apply_poll(state, RefreshMode.PARTIAL, partial_gen, _snapshot(300))
        outcome = apply_poll(state, RefreshMode.FULL, full_gen, _snapshot(299), _target())
        assert not outcome.snapshot_written
        assert outcome.target_written
        assert state.snapshot.block_number == 300
        assert state.target == _target()

    def test_older_full_never_overwrites_newer_target(self, state: AppState) -> None:
        first = state.begin_poll()
        second = state.begin_poll()
        apply_poll(state, RefreshMode.FULL, second, _snapshot(10), _target(millis=2_000))
        outcome = apply_poll(state, RefreshMode.FULL, first, _snapshot(9), _target(millis=1_000))
        assert outcome.stale
        assert state.target.target_time_millis == 2_000
        assert state.snapshot.block_number == 10


class TestApplyTick:
    def test_tick_writes_view_fields_only(self, state: AppState) -> None:
        apply_poll(state, RefreshMode.FULL, state.begin_poll(), _snapshot(1), _target())
        view = CountdownView(remaining_millis=5, breakdown=None, is_past_due=False, text="x")
        apply_tick(state, view, "date")
        assert state.view is view
        assert state.target_date == "date"
        assert state.target == _target()
        assert state.snapshot.block_number == 1

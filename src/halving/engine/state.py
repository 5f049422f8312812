"""Application state and its update functions.

The three refresh cadences share one AppState but each writes only its
own fields:

- tick:    view fields (countdown frame, target-date sentence)
- partial: snapshot
- full:    snapshot and target

Polls may overlap, so every poll takes a generation number when it is
issued. A response only lands if it is newer than whatever last wrote
the same field; an older response that finishes late is dropped.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from halving.models.epoch import ChainSnapshot, CountdownView, HalvingTarget

logger = logging.getLogger(__name__)


class RefreshMode(str, enum.Enum):
    """Which fields a poll is allowed to write."""
    PARTIAL = "partial"  # snapshot only
    FULL = "full"  # snapshot and halving target


@dataclass
class AppState:
    """Mutable display state, owned by the service."""

    snapshot: Optional[ChainSnapshot] = None
    target: Optional[HalvingTarget] = None
    view: Optional[CountdownView] = None
    target_date: str = ""

    _issued: int = field(default=0, repr=False)
    _snapshot_generation: int = field(default=0, repr=False)
    _target_generation: int = field(default=0, repr=False)

    def begin_poll(self) -> int:
        """Issue the generation number for a poll about to start."""
        self._issued += 1
        return self._issued

    @property
    def is_loaded(self) -> bool:
        """True once a target has been projected at least once."""
        return self.target is not None


@dataclass(frozen=True)
class ApplyOutcome:
    """Which fields a poll response actually wrote."""
    snapshot_written: bool
    target_written: bool

    @property
    def stale(self) -> bool:
        return not (self.snapshot_written or self.target_written)


def apply_snapshot(state: AppState, generation: int, snapshot: ChainSnapshot) -> bool:
    if generation <= state._snapshot_generation:
        logger.debug(
            f"Dropping stale snapshot from poll {generation} "
            f"(have {state._snapshot_generation})"
        )
        return False
    state.snapshot = snapshot
    state._snapshot_generation = generation
    return True


def apply_target(state: AppState, generation: int, target: HalvingTarget) -> bool:
    if generation <= state._target_generation:
        logger.debug(
            f"Dropping stale target from poll {generation} "
            f"(have {state._target_generation})"
        )
        return False
    state.target = target
    state._target_generation = generation
    return True


def apply_poll(
    state: AppState,
    mode: RefreshMode,
    generation: int,
    snapshot: ChainSnapshot,
    target: Optional[HalvingTarget] = None,
) -> ApplyOutcome:
    """Apply one poll response according to its refresh mode.

    A PARTIAL poll never writes the target, even if one is passed.
    """
    if mode is RefreshMode.FULL and target is None:
        raise ValueError("A full refresh must carry a halving target")

    snapshot_written = apply_snapshot(state, generation, snapshot)
    target_written = False
    if mode is RefreshMode.FULL:
        target_written = apply_target(state, generation, target)
    return ApplyOutcome(snapshot_written=snapshot_written, target_written=target_written)


def apply_tick(state: AppState, view: CountdownView, target_date: str) -> None:
    state.view = view
    state.target_date = target_date

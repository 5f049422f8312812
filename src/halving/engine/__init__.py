"""Application state and refresh scheduling."""

from halving.engine.scheduler import RefreshScheduler
from halving.engine.state import (
    AppState,
    ApplyOutcome,
    RefreshMode,
    apply_poll,
    apply_snapshot,
    apply_target,
    apply_tick,
)

__all__ = [
    "RefreshScheduler",
    "AppState",
    "ApplyOutcome",
    "RefreshMode",
    "apply_poll",
    "apply_snapshot",
    "apply_target",
    "apply_tick",
]

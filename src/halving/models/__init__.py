"""Core data models for the halving countdown."""

from halving.models.epoch import (
    ChainSnapshot,
    CountdownBreakdown,
    CountdownView,
    EpochDescriptor,
    HalvingTarget,
)

__all__ = [
    "ChainSnapshot",
    "CountdownBreakdown",
    "CountdownView",
    "EpochDescriptor",
    "HalvingTarget",
]

"""Epoch and countdown models.

A CKB epoch is reported by the node as a single packed integer (the
"epoch number with fraction"). Decoded, it yields the epoch number, the
index of the current block inside the epoch, and the epoch length in
blocks. Everything downstream (halving target, countdown) is derived
from these three numbers plus a nominal hours-per-epoch constant.

All records here are immutable once constructed. The mutable display
state lives in ``halving.engine.state``.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Optional


@dataclass(frozen=True)
class EpochDescriptor:
    """Decoded epoch-with-fraction value."""

    number: int
    index: int
    length: int

    @property
    def is_consistent(self) -> bool:
        """True when 0 <= index < length."""
        return self.length > 0 and 0 <= self.index < self.length

    @property
    def fraction(self) -> Fraction:
        """Progress through the current epoch as an exact ratio.

        Raises ZeroDivisionError on a zero-length epoch; callers are
        expected to reject those before asking.
        """
        return Fraction(self.index, self.length)


@dataclass(frozen=True)
class ChainSnapshot:
    """Chain tip as seen by one successful poll.

    ``block_number`` is None when the RPC method does not report it.
    """

    block_number: Optional[int]
    epoch: EpochDescriptor


@dataclass(frozen=True)
class HalvingTarget:
    """Projected next halving: the epoch and its absolute time in Unix ms."""

    target_epoch: int
    target_time_millis: int


@dataclass(frozen=True)
class CountdownBreakdown:
    years: int
    months: int
    days: int
    hours: int
    minutes: int
    seconds: int

    def as_dict(self) -> dict[str, int]:
        return {
            "years": self.years,
            "months": self.months,
            "days": self.days,
            "hours": self.hours,
            "minutes": self.minutes,
            "seconds": self.seconds,
        }


@dataclass(frozen=True)
class CountdownView:
    """One rendered countdown frame.

    ``breakdown`` is None exactly when the target time has been reached.
    """

    remaining_millis: int
    breakdown: Optional[CountdownBreakdown]
    is_past_due: bool
    text: str

"""Halving projector — when does the next halving land?

CKB halves primary issuance every 8,760 epochs. An epoch is nominally
four hours, so the projection is simply:

    remaining epochs = target epoch - (current epoch + index / length)
    target time      = now + remaining epochs * hours per epoch

Actual epoch length drifts around the nominal four hours, which is why
the service re-projects on a slow cadence rather than trusting a single
projection forever.
"""

from __future__ import annotations

import math
from fractions import Fraction

from halving.chain.epoch_codec import EpochIntegrityError
from halving.models.epoch import EpochDescriptor, HalvingTarget


EPOCHS_PER_HALVING = 8760
HOURS_PER_EPOCH = 4
MILLIS_PER_HOUR = 3_600_000


def next_halving_epoch(epoch_number: int, epochs_per_halving: int) -> int:
    """First halving epoch strictly after ``epoch_number``.

    An epoch sitting exactly on a boundary has already halved, so the
    next target is one full interval ahead.
    """
    return (epoch_number // epochs_per_halving) * epochs_per_halving + epochs_per_halving


class HalvingProjector:
    """Projects the next halving epoch and its wall-clock time."""

    def __init__(
        self,
        epochs_per_halving: int = EPOCHS_PER_HALVING,
        hours_per_epoch: float = HOURS_PER_EPOCH,
    ) -> None:
        if epochs_per_halving <= 0:
            raise ValueError("epochs_per_halving must be positive")
        if hours_per_epoch <= 0:
            raise ValueError("hours_per_epoch must be positive")
        self._epochs_per_halving = epochs_per_halving
        self._millis_per_epoch = Fraction(hours_per_epoch) * MILLIS_PER_HOUR

    @property
    def epochs_per_halving(self) -> int:
        return self._epochs_per_halving

    def remaining_epochs(self, epoch: EpochDescriptor) -> Fraction:
        """Epochs left until the next halving, fractional part included."""
        if epoch.length == 0:
            raise EpochIntegrityError(
                f"Cannot project from epoch {epoch.number}: zero length"
            )
        target_epoch = next_halving_epoch(epoch.number, self._epochs_per_halving)
        return target_epoch - (epoch.number + epoch.fraction)

    def project(self, epoch: EpochDescriptor, now_millis: int) -> HalvingTarget:
        """Project the next halving from the current epoch.

        Args:
            epoch: Decoded current epoch.
            now_millis: Current Unix time in milliseconds.

        Raises:
            EpochIntegrityError: if the epoch length is zero.
        """
        remaining = self.remaining_epochs(epoch)
        duration = math.floor(remaining * self._millis_per_epoch)
        return HalvingTarget(
            target_epoch=next_halving_epoch(epoch.number, self._epochs_per_halving),
            target_time_millis=now_millis + duration,
        )

"""Halving projection and countdown rendering."""

from halving.countdown.formatter import CountdownFormatter
from halving.countdown.projector import HalvingProjector, next_halving_epoch

__all__ = ["CountdownFormatter", "HalvingProjector", "next_halving_epoch"]

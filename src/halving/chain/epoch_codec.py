"""Epoch-with-fraction codec.

CKB packs an epoch into one unsigned 64-bit integer:

    bits  0-23  epoch number
    bits 24-39  index of the block inside the epoch
    bits 40-55  epoch length in blocks

The masks below are protocol constants. ``decode_epoch`` is total: it
masks and shifts whatever it is given and never validates. Validation
is a separate step (``check_epoch``) so that callers decide where an
inconsistent feed becomes an error.
"""

from __future__ import annotations

from typing import Union

from halving.models.epoch import EpochDescriptor


LENGTH_MASK = 0x00FF_FF00_0000_0000
LENGTH_SHIFT = 40
INDEX_MASK = 0x0000_00FF_FF00_0000
INDEX_SHIFT = 24
NUMBER_MASK = 0x0000_0000_00FF_FFFF

MAX_NUMBER = NUMBER_MASK
MAX_INDEX = INDEX_MASK >> INDEX_SHIFT
MAX_LENGTH = LENGTH_MASK >> LENGTH_SHIFT


class EpochIntegrityError(ValueError):
    """The upstream feed produced an epoch value that cannot be used."""


def decode_epoch(packed: int) -> EpochDescriptor:
    """Split a packed epoch-with-fraction value into its three fields."""
    return EpochDescriptor(
        number=packed & NUMBER_MASK,
        index=(packed & INDEX_MASK) >> INDEX_SHIFT,
        length=(packed & LENGTH_MASK) >> LENGTH_SHIFT,
    )


def encode_epoch(number: int, index: int, length: int) -> int:
    """Pack three fields back into a single integer.

    Raises ValueError if a field does not fit its bit range.
    """
    for name, value, limit in (
        ("number", number, MAX_NUMBER),
        ("index", index, MAX_INDEX),
        ("length", length, MAX_LENGTH),
    ):
        if not 0 <= value <= limit:
            raise ValueError(f"Epoch {name} {value} outside 0..{limit}")
    return (length << LENGTH_SHIFT) | (index << INDEX_SHIFT) | number


def parse_packed(value: Union[str, int]) -> int:
    """Parse the wire form of a packed integer.

    The node sends 0x-prefixed hex strings; decimal strings and plain
    ints are accepted too.
    """
    if isinstance(value, bool):
        raise EpochIntegrityError(f"Not an integer: {value!r}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip().lower()
        try:
            parsed = int(text, 16) if text.startswith("0x") else int(text, 10)
        except ValueError:
            raise EpochIntegrityError(f"Unparseable integer: {value!r}") from None
    else:
        raise EpochIntegrityError(f"Not an integer: {value!r}")

    if parsed < 0:
        raise EpochIntegrityError(f"Negative value: {value!r}")
    return parsed


def check_epoch(epoch: EpochDescriptor) -> EpochDescriptor:
    """Return the epoch unchanged, or raise if it is unusable."""
    if epoch.length == 0:
        raise EpochIntegrityError(
            f"Epoch {epoch.number} reports zero length"
        )
    if epoch.index >= epoch.length:
        raise EpochIntegrityError(
            f"Epoch {epoch.number} index {epoch.index} "
            f"not below length {epoch.length}"
        )
    return epoch

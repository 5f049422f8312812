"""Countdown formatter.

Turns a millisecond duration into a years/months/days/hours/minutes/
seconds breakdown and a display sentence. Years and months are fixed
buckets (365 and 30 days), not calendar units; the output must stay
stable tick to tick, so this is kept as is.

Every unit is floored, seconds included. A remainder below one second
shows as "0 seconds" until the remaining time drops below 1 ms, at
which point the countdown reports the halving as reached.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Optional

from halving.models.epoch import CountdownBreakdown, CountdownView


SECOND = 1000
MINUTE = SECOND * 60
HOUR = MINUTE * 60
DAY = HOUR * 24
MONTH = DAY * 30
YEAR = DAY * 365

UNITS = (
    ("year", YEAR),
    ("month", MONTH),
    ("day", DAY),
    ("hour", HOUR),
    ("minute", MINUTE),
    ("second", SECOND),
)

REACHED_MESSAGE = "Happy Halving! 🎈🎉🎈🍾"
PLACEHOLDER = "..."


def _unit(value: int, name: str) -> str:
    return f"{value} {name}" + ("" if value == 1 else "s")


class CountdownFormatter:
    """Renders countdown frames and the target-date sentence."""

    def __init__(self, reached_message: str = REACHED_MESSAGE) -> None:
        self._reached_message = reached_message

    def breakdown(self, remaining_millis: int) -> Optional[CountdownBreakdown]:
        """Greedy decomposition, largest unit first. None once reached."""
        if remaining_millis < 1:
            return None

        values = []
        rest = remaining_millis
        for _, size in UNITS:
            count = rest // size
            values.append(count)
            rest -= count * size
        return CountdownBreakdown(*values)

    def format(self, remaining_millis: int) -> str:
        parts = self.breakdown(remaining_millis)
        if parts is None:
            return self._reached_message

        values = (parts.years, parts.months, parts.days, parts.hours, parts.minutes)
        larger = [_unit(value, name) for (name, _), value in zip(UNITS, values) if value > 0]
        seconds = _unit(parts.seconds, "second")
        if parts.minutes > 0:
            return ", ".join(larger) + f", and {seconds}."
        return ", ".join(larger + [seconds])

    def view(self, remaining_millis: int) -> CountdownView:
        parts = self.breakdown(remaining_millis)
        return CountdownView(
            remaining_millis=remaining_millis,
            breakdown=parts,
            is_past_due=parts is None,
            text=self.format(remaining_millis),
        )

    def target_date_string(
        self,
        target_time_millis: int,
        tz: Optional[tzinfo] = None,
    ) -> str:
        """Sentence naming the projected halving date.

        Uses the local timezone unless ``tz`` is given. Returns an empty
        string when the time falls outside what datetime can represent.
        """
        try:
            when = datetime.fromtimestamp(target_time_millis / 1000, tz=timezone.utc)
            when = when.astimezone(tz) if tz is not None else when.astimezone()
        except (OverflowError, ValueError, OSError):
            return ""
        date = f"{when:%A}, {when:%B} {when.day}, {when.year}"
        return f"The next halving is estimated to be reached on {date}."

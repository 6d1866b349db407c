"""
Time-of-day ranges on a single calendar date.

Ranges are half-open [start, end): a tour ending at 14:00 does not
overlap one starting at 14:00. Times travel as "HH:MM" strings and dates
as "YYYY-MM-DD" strings at the service boundary.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Tuple

from tourfleet.app.core.exceptions import InvalidRequestError

MINUTES_PER_DAY = 24 * 60


def parse_time(value: str) -> time:
    """Parse a 24-hour "HH:MM" string."""
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError):
        raise InvalidRequestError(f"Invalid time {value!r}, expected HH:MM") from None
    if len(value) != 5:
        raise InvalidRequestError(f"Invalid time {value!r}, expected HH:MM")
    return parsed.time()


def parse_date(value: str) -> date:
    """Parse a "YYYY-MM-DD" string."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


def format_time(value: time) -> str:
    """Canonical "HH:MM", leading zeros kept."""
    return f"{value.hour:02d}:{value.minute:02d}"


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def add_minutes(start: time, minutes: int) -> Tuple[time, int]:
    """
    Add a duration to a wall-clock time.

    Returns the resulting wall-clock time and the number of days rolled
    over (negative when the result falls before midnight of the start day).
    """
    days, remainder = divmod(to_minutes(start) + minutes, MINUTES_PER_DAY)
    return from_minutes(remainder), days


def hours_to_minutes(hours: float) -> int:
    return int(round(hours * 60))


@dataclass(frozen=True)
class TimeRange:
    """Half-open interval [start, end) on one date. Never crosses midnight."""

    day: date
    start: time
    end: time

    def __post_init__(self):
        if self.end <= self.start:
            raise InvalidRequestError(
                f"End time {format_time(self.end)} must be after start time {format_time(self.start)}"
            )

    @classmethod
    def from_duration(cls, day: date, start: time, minutes: int) -> "TimeRange":
        end, days_rolled = add_minutes(start, minutes)
        if days_rolled != 0:
            raise InvalidRequestError("Time range may not cross midnight")
        return cls(day, start, end)

    @property
    def start_minute(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minute(self) -> int:
        return to_minutes(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    def overlaps(self, other: "TimeRange") -> bool:
        return self.day == other.day and self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end)}"

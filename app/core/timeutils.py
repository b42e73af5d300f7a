"""
Calendar and time-of-day helpers shared by the slot engine.

Two conventions are fixed here and nowhere else:

* Weekdays are numbered 0 = Sunday ... 6 = Saturday. This is the numbering
  stored in ``schedule_templates.days_of_week``. ``weekday_of`` is the only
  place a calendar date becomes a weekday.
* Times of day are compared as integers (seconds since midnight) truncated
  to the whole minute. Formatted strings are never compared.
"""
import re
from datetime import date, time
from enum import IntEnum
from typing import Iterable, FrozenSet, Union

SECONDS_PER_MINUTE = 60
SECONDS_PER_DAY = 24 * 60 * 60

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::([0-5]\d)(?:\.\d{1,6})?)?$")


class Weekday(IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


def weekday_of(day: date) -> Weekday:
    # date.weekday() is 0=Monday..6=Sunday
    return Weekday((day.weekday() + 1) % 7)


def to_weekdays(values: Iterable[int]) -> FrozenSet[Weekday]:
    """Convert stored weekday integers to a set of ``Weekday``.

    Raises ``ValueError`` for anything outside 0..6.
    """
    result = set()
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Weekday must be an integer, got {value!r}")
        result.add(Weekday(value))
    return frozenset(result)


def parse_time_of_day(value: Union[str, time]) -> int:
    """
    Parse ``HH:MM``, ``HH:MM:SS`` or ``HH:MM:SS.fff`` (or a ``time``) into
    canonical seconds since midnight.

    Raises ``ValueError`` for malformed or out-of-range input.
    """
    if isinstance(value, time):
        return time_to_seconds(value)
    if not isinstance(value, str):
        raise ValueError(f"Invalid time of day: {value!r}")
    match = _TIME_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time of day: {value!r}. Use HH:MM or HH:MM:SS")
    hours, minutes = int(match.group(1)), int(match.group(2))
    return hours * 3600 + minutes * SECONDS_PER_MINUTE


def time_to_seconds(value: time) -> int:
    seconds = value.hour * 3600 + value.minute * SECONDS_PER_MINUTE + value.second
    return seconds - seconds % SECONDS_PER_MINUTE


def seconds_to_time(seconds: int) -> time:
    if not 0 <= seconds < SECONDS_PER_DAY:
        raise ValueError(f"Seconds since midnight out of range: {seconds}")
    return time(seconds // 3600, (seconds % 3600) // 60, seconds % 60)


def format_time(seconds: int) -> str:
    return f"{seconds // 3600:02d}:{(seconds % 3600) // 60:02d}"

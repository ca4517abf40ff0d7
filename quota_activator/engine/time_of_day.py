"""
Wall-clock time-of-day arithmetic.

All values are whole seconds since local midnight, taken modulo one day.
Ranges are half-open `[start, end)` and may span midnight.
"""

from typing import Union

from quota_activator.models.entities import SECONDS_PER_DAY, TimeOfDay
from quota_activator.models.exceptions import InvalidFormat

TimeLike = Union[TimeOfDay, int]


def parse_time_of_day(value: str) -> TimeOfDay:
    """
    Parse an `HH:MM` string.

    Args:
        value: Time string such as "09:00" or "9:05"

    Returns:
        Parsed TimeOfDay

    Raises:
        InvalidFormat: if the string is not two numeric fields separated by
            ':' or either field is out of range
    """
    if not isinstance(value, str):
        raise InvalidFormat(str(value))
    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() and p.isascii() for p in parts):
        raise InvalidFormat(value)
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidFormat(value)
    return TimeOfDay(hour, minute)


def is_valid_time_format(value: str) -> bool:
    try:
        parse_time_of_day(value)
    except InvalidFormat:
        return False
    return True


def to_seconds(t: TimeLike) -> int:
    if isinstance(t, TimeOfDay):
        return t.seconds
    return t % SECONDS_PER_DAY


def from_seconds(seconds: int) -> TimeOfDay:
    seconds %= SECONDS_PER_DAY
    return TimeOfDay(seconds // 3600, (seconds % 3600) // 60)


def shift_seconds(t: TimeLike, delta: int) -> int:
    """Move a time-of-day by `delta` seconds, wrapping around midnight."""
    return (to_seconds(t) + delta) % SECONDS_PER_DAY


def format_time_of_day(t: TimeLike) -> str:
    return str(from_seconds(to_seconds(t)))


def in_interval(t: TimeLike, start: TimeLike, end: TimeLike) -> bool:
    """
    Check whether `t` lies in `[start, end)`.

    When `start > end` the range spans midnight, e.g. [22:00, 02:00) holds
    23:30 and 01:00 but not 12:00. `start == end` is an empty range.

    Complexity: O(1)
    """
    t_sec, start_sec, end_sec = to_seconds(t), to_seconds(start), to_seconds(end)
    if start_sec <= end_sec:
        return start_sec <= t_sec < end_sec
    return t_sec >= start_sec or t_sec < end_sec

"""
Conflict validation for daily target times.

Each target time implies a trigger `interval_hours` earlier, and that trigger
opens a quota window `[trigger, trigger + interval_hours)`. Two targets
conflict when the trigger of one lands inside the window opened by the
other: the second trigger would be spent on a quota epoch that is still
running.

Every ordered pair is checked, not only neighbours in sorted order, because
wraparound makes targets at opposite ends of the day adjacent.

Window arithmetic is modulo one day, except for intervals of 24h or more:
such a window covers every time of day, so any two distinct targets
conflict. Reducing e.g. a 30h interval to 6h would let ["06:00", "18:00"]
pass even though one 30h quota window spans both.

Complexity: O(n^2) for n target times.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

from quota_activator.engine.time_of_day import (
    format_time_of_day,
    from_seconds,
    in_interval,
    parse_time_of_day,
    shift_seconds,
)
from quota_activator.models.entities import SECONDS_PER_DAY, QuotaWindow, TimeOfDay
from quota_activator.models.exceptions import ConflictError, DuplicateTargetError

logger = logging.getLogger(__name__)


def _parse_sorted(target_times: Iterable[str]) -> List[Tuple[str, TimeOfDay]]:
    parsed = [(raw, parse_time_of_day(raw)) for raw in target_times]
    # Stable sort keeps the reported pair deterministic for equal times
    return sorted(parsed, key=lambda item: item[1])


def _window_contains(trigger: int, window_start: int, interval_seconds: int) -> bool:
    # A window of a full day or more covers every time of day
    if interval_seconds >= SECONDS_PER_DAY:
        return True
    window_end = shift_seconds(window_start, interval_seconds)
    return in_interval(trigger, window_start, window_end)


def _iter_conflicts(target_times: Sequence[str], interval_hours: int):
    interval_seconds = interval_hours * 3600
    parsed = _parse_sorted(target_times)

    for i, (raw_a, time_a) in enumerate(parsed):
        trigger_a = shift_seconds(time_a, -interval_seconds)
        for j, (raw_b, time_b) in enumerate(parsed):
            if i == j:
                continue
            trigger_b = shift_seconds(time_b, -interval_seconds)
            if not _window_contains(trigger_a, trigger_b, interval_seconds):
                continue

            window = QuotaWindow(from_seconds(trigger_b), from_seconds(shift_seconds(trigger_b, interval_seconds)))

            error_cls = DuplicateTargetError if time_a == time_b else ConflictError
            yield error_cls(
                target_a=raw_a,
                target_b=raw_b,
                trigger_a=format_time_of_day(trigger_a),
                trigger_b=format_time_of_day(trigger_b),
                window_start=str(window.start),
                window_end=str(window.end),
                interval_hours=interval_hours,
            )


def find_conflicts(target_times: Sequence[str], interval_hours: int) -> List[ConflictError]:
    """Return every conflicting ordered pair, in the order validation reports them."""
    return list(_iter_conflicts(target_times, interval_hours))


def validate_target_times(target_times: Sequence[str], interval_hours: int) -> None:
    """
    Prove that no two target times produce overlapping quota windows.

    Args:
        target_times: "HH:MM" strings as configured
        interval_hours: Quota window length in hours

    Raises:
        InvalidFormat: if a target time does not parse
        DuplicateTargetError: if the same time is listed twice; reported
            ahead of any other conflict
        ConflictError: for the first conflicting pair found
    """
    conflicts = find_conflicts(target_times, interval_hours)
    if not conflicts:
        return

    logger.debug("Found %d conflicting target pair(s)", len(conflicts))
    duplicates = [c for c in conflicts if isinstance(c, DuplicateTargetError)]
    raise duplicates[0] if duplicates else conflicts[0]

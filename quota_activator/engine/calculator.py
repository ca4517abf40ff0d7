"""
Trigger time calculation.

For each target time the trigger instant is

    trigger = (day at target) - interval_hours + safety_buffer_seconds

computed on absolute local datetimes, so a trigger may fall on the previous
calendar day. A trigger equal to `now` counts as already passed.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Sequence, Tuple

from quota_activator.engine.time_of_day import parse_time_of_day
from quota_activator.models.entities import Trigger
from quota_activator.models.exceptions import InvalidFormat

logger = logging.getLogger(__name__)


def triggers_for_date(
    day: date,
    target_times: Sequence[str],
    interval_hours: int,
    buffer_seconds: int,
) -> List[Trigger]:
    """
    Calculate the triggers serving each target time on `day`.

    Args:
        day: Calendar date the target times refer to
        target_times: "HH:MM" strings; malformed entries are skipped
        interval_hours: Quota window length
        buffer_seconds: Safety delay added after the theoretical trigger

    Returns:
        Triggers sorted by ascending trigger instant
    """
    offset = timedelta(hours=interval_hours) - timedelta(seconds=buffer_seconds)
    triggers = []

    for raw in target_times:
        try:
            target = parse_time_of_day(raw)
        except InvalidFormat:
            logger.debug("Skipping malformed target time %r", raw)
            continue

        target_instant = datetime.combine(day, time(target.hour, target.minute))
        triggers.append(Trigger(target_time=raw, trigger_instant=target_instant - offset))

    triggers.sort(key=lambda t: t.trigger_instant)
    return triggers


def _search_horizon_days(interval_hours: int) -> int:
    # Triggers for day d land no earlier than d - interval, so this many days
    # ahead always yields one after now
    return interval_hours // 24 + 2


def next_trigger(
    now: datetime,
    target_times: Sequence[str],
    interval_hours: int,
    buffer_seconds: int,
) -> Tuple[Trigger, date]:
    """
    Find the first trigger strictly after `now`.

    Today's triggers are searched first, then tomorrow's. Intervals long
    enough to push tomorrow's triggers into the past keep the search moving
    forward one day at a time.

    Returns:
        (trigger, reference date the trigger's target time belongs to)
    """
    today = now.date()

    for days_ahead in range(_search_horizon_days(interval_hours) + 1):
        day = today + timedelta(days=days_ahead)
        for trigger in triggers_for_date(day, target_times, interval_hours, buffer_seconds):
            if trigger.trigger_instant > now:
                return trigger, day

    logger.warning("No trigger could be calculated from %s, falling back to +24h", target_times)
    return Trigger(target_time=None, trigger_instant=now + timedelta(hours=24)), today + timedelta(days=1)


def upcoming_triggers(
    now: datetime,
    target_times: Sequence[str],
    interval_hours: int,
    buffer_seconds: int,
    count: int = 5,
) -> List[Tuple[Trigger, date]]:
    """Return the next `count` triggers after `now`, in firing order."""
    upcoming = []
    cursor = now
    for _ in range(max(0, count)):
        trigger, day = next_trigger(cursor, target_times, interval_hours, buffer_seconds)
        if trigger.target_time is None:
            break
        upcoming.append((trigger, day))
        cursor = trigger.trigger_instant
    return upcoming

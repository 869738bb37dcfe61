"""Weekly schedule window arithmetic.

Every computation happens in one civil timezone: weekdays are calendar
concepts, so a UTC instant is first converted to the deployment's local time.
Windows are half-open, ``start <= now < end``, and must not cross midnight.
"""

from __future__ import annotations

import math
from datetime import datetime, tzinfo
from typing import Iterable, Optional


def time_to_minutes(time_str: str) -> int:
    """Parse an "HH:MM" string into minutes since midnight.

    Raises:
        ValueError: If the string is not a valid 24h time of day.
    """
    try:
        hours_text, minutes_text = time_str.strip().split(":")
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid time of day: {time_str!r}") from exc
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time of day: {time_str!r}")
    return hours * 60 + minutes


def civil_weekday(moment: datetime) -> int:
    """Return the weekday with 0 = Sunday through 6 = Saturday."""
    return moment.isoweekday() % 7


def to_civil(moment: datetime, tz: tzinfo) -> datetime:
    """Express ``moment`` in ``tz``; naive datetimes are taken as already local."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def is_time_in_window(current_minutes: int, start_time: str, end_time: str) -> bool:
    return time_to_minutes(start_time) <= current_minutes < time_to_minutes(end_time)


def is_window_open(
    days_of_week: Iterable[int],
    start_time: str,
    end_time: str,
    now: datetime,
    tz: tzinfo,
) -> bool:
    """Return True when ``now`` falls inside the weekly window in ``tz``."""
    local = to_civil(now, tz)
    if civil_weekday(local) not in set(days_of_week):
        return False
    return is_time_in_window(local.hour * 60 + local.minute, start_time, end_time)


def is_schedule_active(schedule, now: datetime, tz: tzinfo) -> bool:
    """Evaluate a ScheduleRecord-like object against ``now``."""
    if not getattr(schedule, "is_active", True):
        return False
    return is_window_open(schedule.days_of_week, schedule.start_time, schedule.end_time, now, tz)


def schedule_end_time(end_time: str, now: datetime, tz: tzinfo) -> datetime:
    """Apply the "HH:MM" end time of day to the civil date of ``now``."""
    local = to_civil(now, tz)
    minutes = time_to_minutes(end_time)
    return local.replace(hour=minutes // 60, minute=minutes % 60, second=0, microsecond=0)


def minutes_remaining(ends_at: datetime, now: Optional[datetime] = None) -> int:
    """Whole minutes left before ``ends_at``, never negative."""
    now = now or datetime.now(ends_at.tzinfo)
    seconds = (ends_at - now).total_seconds()
    return max(0, math.floor(seconds / 60))

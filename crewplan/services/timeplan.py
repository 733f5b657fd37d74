"""Time-of-day parsing, interval arithmetic and timezone boundary helpers."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import List, Tuple

import pandas as pd

from crewplan.domain.types import Commitment, TimeOfDay, TimeWindow

MINUTES_PER_DAY = 24 * 60

# (start_minute, end_minute) within one day; end may be 1440 (midnight)
Interval = Tuple[int, int]


def parse_time_string(value: str | TimeOfDay) -> TimeOfDay:
    """Parse 'HH:MM' (leading zero optional) into a TimeOfDay."""
    if isinstance(value, TimeOfDay):
        return value
    return TimeOfDay.parse(value)


def calculate_shift_hours(start: str | TimeOfDay, end: str | TimeOfDay, break_minutes: int = 0) -> float:
    """Net hours between two times on the same day, never negative."""
    span = parse_time_string(end).minutes - parse_time_string(start).minutes
    return max(0.0, (span - break_minutes) / 60.0)


def intervals_overlap(a: Interval, b: Interval) -> bool:
    """Half-open overlap: touching endpoints do not overlap."""
    return a[0] < b[1] and b[0] < a[1]


def subtract_interval(windows: List[Interval], cut: Interval) -> List[Interval]:
    """Remove ``cut`` from every window, splitting where needed."""
    result: List[Interval] = []
    for start, end in windows:
        if not intervals_overlap((start, end), cut):
            result.append((start, end))
            continue
        if start < cut[0]:
            result.append((start, cut[0]))
        if cut[1] < end:
            result.append((cut[1], end))
    return result


def day_segments(window: TimeWindow) -> List[Tuple[date, Interval]]:
    """
    Split a window at midnight into per-date minute intervals.

    Args:
        window: Naive local window

    Returns:
        List of (date, (start_minute, end_minute)); a segment running to the
        end of its day has end_minute == 1440
    """
    segments = []
    for day in window.dates():
        day_start = datetime.combine(day, time(0, 0), tzinfo=window.start.tzinfo)
        day_end = day_start + timedelta(days=1)
        seg_start = max(window.start, day_start)
        seg_end = min(window.end, day_end)
        start_min = int((seg_start - day_start).total_seconds() // 60)
        end_min = int((seg_end - day_start).total_seconds() // 60)
        segments.append((day, (start_min, end_min)))
    return segments


def window_on(day: date, start: TimeOfDay, end: TimeOfDay) -> TimeWindow:
    """Naive window on ``day``; an end of 24:00 is the following midnight."""
    midnight = datetime.combine(day, time(0, 0))
    return TimeWindow(
        midnight + timedelta(minutes=start.minutes),
        midnight + timedelta(minutes=end.minutes),
    )


def to_local_naive(moment: datetime, tz: str) -> datetime:
    """
    Convert an aware datetime to naive wall-clock time in ``tz``.

    Naive datetimes are assumed to be local already and returned unchanged.
    """
    if moment.tzinfo is None:
        return moment
    ts = pd.Timestamp(moment).tz_convert(tz).tz_localize(None)
    return ts.to_pydatetime()


def localize_window(window: TimeWindow, tz: str) -> TimeWindow:
    """
    Convert a window to naive wall-clock time in ``tz``.

    The local end is the local start plus the elapsed duration, so a window
    crossing a daylight-saving change keeps its real length and never
    collapses or inverts when clocks fall back.
    """
    if window.start.tzinfo is None:
        return window
    start = to_local_naive(window.start, tz)
    return TimeWindow(start, start + (window.end - window.start))


def localize_commitment(commitment: Commitment, tz: str) -> Commitment:
    local = localize_window(commitment.window, tz)
    return replace(commitment, start=local.start, end=local.end)

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Protocol

from fieldclock.models import ClockEventType


class ClockMark(Protocol):
    type: ClockEventType
    ts_utc: datetime


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class DaySegment:
    day: date
    start: datetime
    end: datetime

    @property
    def hours(self) -> float:
        return hours_between(self.start, self.end)


@dataclass(frozen=True)
class IntervalBuildResult:
    intervals: list[Interval]
    unpaired_in: int
    unpaired_out: int

    @property
    def unpaired_total(self) -> int:
        return self.unpaired_in + self.unpaired_out


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def site_timezone(utc_offset_hours: float) -> tzinfo:
    return timezone(timedelta(hours=utc_offset_hours))


def hours_between(start: datetime, end: datetime) -> float:
    seconds = (end - start).total_seconds()
    return seconds / 3600 if seconds > 0 else 0.0


def overlap_hours(start: datetime, end: datetime, window_start: datetime, window_end: datetime) -> float:
    """Length in hours of [start, end) intersected with [window_start, window_end)."""
    return hours_between(max(start, window_start), min(end, window_end))


def build_intervals(events: Iterable[ClockMark]) -> IntervalBuildResult:
    """Pair each check-out with the latest preceding check-in.

    Events must already be ordered by timestamp. A check-in followed by another
    check-in is dropped, as is a check-out with nothing open.
    """
    intervals: list[Interval] = []
    pending_in: datetime | None = None
    unpaired_in = 0
    unpaired_out = 0

    for event in events:
        if event.type == ClockEventType.IN:
            if pending_in is not None:
                unpaired_in += 1
            pending_in = to_utc(event.ts_utc)
        elif pending_in is not None:
            intervals.append(Interval(start=pending_in, end=to_utc(event.ts_utc)))
            pending_in = None
        else:
            unpaired_out += 1

    if pending_in is not None:
        unpaired_in += 1

    return IntervalBuildResult(intervals=intervals, unpaired_in=unpaired_in, unpaired_out=unpaired_out)


def local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def split_by_day(interval: Interval, tz: tzinfo) -> list[DaySegment]:
    """Clip an interval to local calendar days.

    Days are closed-open [00:00, next 00:00) in ``tz`` so consecutive segments
    share their boundary instant and together cover the interval exactly.
    """
    end = interval.end.astimezone(tz)
    cursor = interval.start.astimezone(tz)
    segments: list[DaySegment] = []

    while cursor < end:
        day = cursor.date()
        next_midnight = local_midnight(day + timedelta(days=1), tz)
        segment_end = min(end, next_midnight)
        segments.append(DaySegment(day=day, start=cursor, end=segment_end))
        cursor = next_midnight

    return segments


def split_all_by_day(intervals: Iterable[Interval], tz: tzinfo) -> list[DaySegment]:
    segments: list[DaySegment] = []
    for interval in intervals:
        segments.extend(split_by_day(interval, tz))
    return segments

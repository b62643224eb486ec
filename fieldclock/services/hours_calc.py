from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal

from fieldclock.services.intervals import (
    DaySegment,
    local_midnight,
    overlap_hours,
    site_timezone,
)

DEFAULT_WEEKLY_CAP_HOURS = 45.0
SUNDAY_WEEKDAY = 6


@dataclass(frozen=True)
class DailyBlockPolicy:
    utc_offset_hours: float = 0.0
    morning_start: time = time(7, 0)
    morning_end: time = time(12, 0)
    afternoon_start: time = time(14, 0)
    afternoon_end: time = time(17, 0)
    evening_cutoff: time = time(17, 0)
    holidays: frozenset[date] = frozenset()

    name = "DAILY_BLOCK"


@dataclass(frozen=True)
class WeeklyCapPolicy:
    utc_offset_hours: float = 0.0
    weekly_cap_hours: float = DEFAULT_WEEKLY_CAP_HOURS
    night_window_start: time = time(19, 0)
    night_window_end: time = time(6, 0)

    name = "WEEKLY_CAP"


Policy = DailyBlockPolicy | WeeklyCapPolicy


@dataclass
class ClassifiedDay:
    day: date
    is_sunday: bool
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    sunday_hours: float = 0.0
    night_hours: float = 0.0
    total_hours: float = 0.0
    week_start: date | None = None


@dataclass
class WeekBucket:
    week_start: date
    week_end: date
    total_hours: float = 0.0
    night_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0


@dataclass
class ClassificationResult:
    policy: str
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    sunday_hours: float = 0.0
    night_hours: float = 0.0
    total_hours: float = 0.0
    days: list[ClassifiedDay] = field(default_factory=list)
    weeks: list[WeekBucket] = field(default_factory=list)


def round_hours(value: float) -> float:
    """Round to 2 decimals, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def week_bounds(day: date) -> tuple[date, date]:
    week_start = day - timedelta(days=day.weekday())
    return week_start, week_start + timedelta(days=6)


def _at(day: date, clock: time, tz: tzinfo) -> datetime:
    return datetime.combine(day, clock, tzinfo=tz)


def _band_hours(segment: DaySegment, band_start: time, band_end: time | None, tz: tzinfo) -> float:
    # band_end None means the band runs to the next local midnight.
    start_dt = _at(segment.day, band_start, tz)
    if band_end is None:
        end_dt = local_midnight(segment.day + timedelta(days=1), tz)
    else:
        end_dt = _at(segment.day, band_end, tz)
    return overlap_hours(segment.start, segment.end, start_dt, end_dt)


def classify_daily_block(segments: Iterable[DaySegment], policy: DailyBlockPolicy) -> ClassificationResult:
    tz = site_timezone(policy.utc_offset_hours)
    days: dict[date, ClassifiedDay] = {}

    for segment in segments:
        is_premium_day = segment.day.weekday() == SUNDAY_WEEKDAY or segment.day in policy.holidays
        morning = _band_hours(segment, policy.morning_start, policy.morning_end, tz)
        afternoon = _band_hours(segment, policy.afternoon_start, policy.afternoon_end, tz)
        evening = _band_hours(segment, policy.evening_cutoff, None, tz)

        day = days.setdefault(segment.day, ClassifiedDay(day=segment.day, is_sunday=is_premium_day))
        if is_premium_day:
            day.sunday_hours += morning + afternoon + evening
        else:
            day.regular_hours += morning + afternoon
            day.overtime_hours += evening
        day.total_hours = day.regular_hours + day.overtime_hours + day.sunday_hours

    ordered = [days[key] for key in sorted(days)]
    result = ClassificationResult(policy=policy.name, days=ordered)
    result.regular_hours = sum(item.regular_hours for item in ordered)
    result.overtime_hours = sum(item.overtime_hours for item in ordered)
    result.sunday_hours = sum(item.sunday_hours for item in ordered)
    result.total_hours = result.regular_hours + result.overtime_hours + result.sunday_hours
    return result


def night_hours(segment: DaySegment, policy: WeeklyCapPolicy) -> float:
    """Hours of a day segment that fall inside the nightly window.

    The window opens at ``night_window_start`` on one local day and closes at
    ``night_window_end`` (on the following day when it wraps midnight). A
    segment bounded to day D can touch the window opened on D-1 and the one
    opened on D.
    """
    tz = site_timezone(policy.utc_offset_hours)
    wraps = policy.night_window_end <= policy.night_window_start
    total = 0.0
    for anchor in (segment.day - timedelta(days=1), segment.day):
        window_start = _at(anchor, policy.night_window_start, tz)
        end_day = anchor + timedelta(days=1) if wraps else anchor
        window_end = _at(end_day, policy.night_window_end, tz)
        total += overlap_hours(segment.start, segment.end, window_start, window_end)
    return total


def apply_weekly_cap(bucket: WeekBucket, cap_hours: float) -> None:
    bucket.regular_hours = min(bucket.total_hours, cap_hours)
    bucket.overtime_hours = max(0.0, bucket.total_hours - cap_hours)


def classify_weekly_cap(segments: Iterable[DaySegment], policy: WeeklyCapPolicy) -> ClassificationResult:
    weeks: dict[date, WeekBucket] = {}
    days: dict[date, ClassifiedDay] = {}

    for segment in segments:
        hours = segment.hours
        night = night_hours(segment, policy)
        week_start, week_end = week_bounds(segment.day)

        bucket = weeks.setdefault(week_start, WeekBucket(week_start=week_start, week_end=week_end))
        bucket.total_hours += hours
        bucket.night_hours += night

        day = days.setdefault(
            segment.day,
            ClassifiedDay(
                day=segment.day,
                is_sunday=segment.day.weekday() == SUNDAY_WEEKDAY,
                week_start=week_start,
            ),
        )
        day.total_hours += hours
        day.night_hours += night

    ordered_weeks = [weeks[key] for key in sorted(weeks)]
    for bucket in ordered_weeks:
        apply_weekly_cap(bucket, policy.weekly_cap_hours)

    result = ClassificationResult(
        policy=policy.name,
        days=[days[key] for key in sorted(days)],
        weeks=ordered_weeks,
    )
    result.total_hours = sum(item.total_hours for item in ordered_weeks)
    result.regular_hours = sum(item.regular_hours for item in ordered_weeks)
    result.overtime_hours = sum(item.overtime_hours for item in ordered_weeks)
    result.night_hours = sum(item.night_hours for item in ordered_weeks)
    return result


def classify(segments: Iterable[DaySegment], policy: Policy) -> ClassificationResult:
    if isinstance(policy, DailyBlockPolicy):
        return classify_daily_block(segments, policy)
    return classify_weekly_cap(segments, policy)

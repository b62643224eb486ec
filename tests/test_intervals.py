from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
import unittest

from fieldclock.models import ClockEventType
from fieldclock.services.intervals import (
    Interval,
    build_intervals,
    hours_between,
    site_timezone,
    split_all_by_day,
    split_by_day,
)

BOGOTA = site_timezone(-5)


@dataclass
class _Mark:
    type: ClockEventType
    ts_utc: datetime


def _in(ts: datetime) -> _Mark:
    return _Mark(type=ClockEventType.IN, ts_utc=ts)


def _out(ts: datetime) -> _Mark:
    return _Mark(type=ClockEventType.OUT, ts_utc=ts)


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class BuildIntervalsTests(unittest.TestCase):
    def test_pairs_in_with_following_out(self) -> None:
        result = build_intervals(
            [
                _in(_utc(2026, 3, 2, 12, 0)),
                _out(_utc(2026, 3, 2, 20, 0)),
                _in(_utc(2026, 3, 3, 12, 0)),
                _out(_utc(2026, 3, 3, 21, 30)),
            ]
        )

        self.assertEqual(len(result.intervals), 2)
        self.assertEqual(result.intervals[0], Interval(_utc(2026, 3, 2, 12, 0), _utc(2026, 3, 2, 20, 0)))
        self.assertEqual(result.unpaired_total, 0)

    def test_second_in_replaces_pending_in(self) -> None:
        result = build_intervals(
            [
                _in(_utc(2026, 3, 2, 12, 0)),
                _in(_utc(2026, 3, 2, 13, 0)),
                _out(_utc(2026, 3, 2, 20, 0)),
            ]
        )

        self.assertEqual(result.intervals, [Interval(_utc(2026, 3, 2, 13, 0), _utc(2026, 3, 2, 20, 0))])
        self.assertEqual(result.unpaired_in, 1)
        self.assertEqual(result.unpaired_out, 0)

    def test_orphan_out_and_trailing_in_are_counted(self) -> None:
        result = build_intervals(
            [
                _out(_utc(2026, 3, 2, 8, 0)),
                _in(_utc(2026, 3, 2, 12, 0)),
                _out(_utc(2026, 3, 2, 18, 0)),
                _in(_utc(2026, 3, 3, 12, 0)),
            ]
        )

        self.assertEqual(len(result.intervals), 1)
        self.assertEqual(result.unpaired_out, 1)
        self.assertEqual(result.unpaired_in, 1)

    def test_empty_input(self) -> None:
        result = build_intervals([])

        self.assertEqual(result.intervals, [])
        self.assertEqual(result.unpaired_total, 0)

    def test_naive_timestamps_are_treated_as_utc(self) -> None:
        result = build_intervals(
            [
                _in(datetime(2026, 3, 2, 12, 0)),
                _out(datetime(2026, 3, 2, 14, 0)),
            ]
        )

        self.assertEqual(result.intervals[0].start.tzinfo, timezone.utc)


class SplitByDayTests(unittest.TestCase):
    def test_interval_within_one_day_is_single_segment(self) -> None:
        interval = Interval(_utc(2026, 3, 4, 12, 0), _utc(2026, 3, 4, 20, 0))

        segments = split_by_day(interval, BOGOTA)

        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].day, date(2026, 3, 4))
        self.assertAlmostEqual(segments[0].hours, 8.0)

    def test_interval_crossing_local_midnight_is_split(self) -> None:
        # 22:00 local Tuesday to 06:00 local Wednesday.
        interval = Interval(_utc(2026, 3, 4, 3, 0), _utc(2026, 3, 4, 11, 0))

        segments = split_by_day(interval, BOGOTA)

        self.assertEqual([item.day for item in segments], [date(2026, 3, 3), date(2026, 3, 4)])
        self.assertAlmostEqual(segments[0].hours, 2.0)
        self.assertAlmostEqual(segments[1].hours, 6.0)
        self.assertEqual(segments[0].end, segments[1].start)

    def test_multi_day_interval_segments_are_contiguous(self) -> None:
        interval = Interval(_utc(2026, 3, 2, 15, 0), _utc(2026, 3, 5, 2, 30))

        segments = split_by_day(interval, BOGOTA)

        self.assertEqual(len(segments), 3)
        self.assertEqual(segments[0].start, interval.start)
        self.assertEqual(segments[-1].end, interval.end)
        for previous, current in zip(segments, segments[1:]):
            self.assertEqual(previous.end, current.start)
            self.assertEqual(current.day - previous.day, timedelta(days=1))
        self.assertAlmostEqual(sum(item.hours for item in segments), hours_between(interval.start, interval.end))

    def test_degenerate_interval_yields_no_segments(self) -> None:
        instant = _utc(2026, 3, 2, 15, 0)

        self.assertEqual(split_by_day(Interval(instant, instant), BOGOTA), [])
        self.assertEqual(split_by_day(Interval(instant, instant - timedelta(hours=1)), BOGOTA), [])

    def test_split_all_keeps_interval_order(self) -> None:
        intervals = [
            Interval(_utc(2026, 3, 2, 12, 0), _utc(2026, 3, 2, 14, 0)),
            Interval(_utc(2026, 3, 3, 12, 0), _utc(2026, 3, 3, 15, 0)),
        ]

        segments = split_all_by_day(intervals, BOGOTA)

        self.assertEqual([item.day for item in segments], [date(2026, 3, 2), date(2026, 3, 3)])
        self.assertAlmostEqual(segments[1].hours, 3.0)


if __name__ == "__main__":
    unittest.main()

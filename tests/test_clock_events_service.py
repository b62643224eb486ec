from __future__ import annotations

from datetime import date, datetime, timezone
import unittest

from sqlalchemy.exc import IntegrityError

from fieldclock.errors import ApiError
from fieldclock.models import ClockEvent, ClockEventType, ShiftLabel
from fieldclock.schemas import ClockEventCreate
from fieldclock.services.clock_events import (
    create_clock_event,
    delete_clock_events_in_range,
    list_recent_clock_events,
    local_date_range_to_utc_bounds,
    resolve_shift_label,
)
from fieldclock.services.sites import get_site_config

PTAP_LAT = 3.17253
PTAP_LON = -76.4588
PTAR_LAT = 3.17300
PTAR_LON = -76.4600


class _FakeExecuteResult:
    def __init__(self, rowcount: int):
        self.rowcount = rowcount


class FakeDB:
    def __init__(
        self,
        *,
        scalar_results: list[object | None] | None = None,
        scalars_result: list[object] | None = None,
        rowcount: int = 0,
    ):
        self._scalar_results = scalar_results or []
        self._scalars_result = scalars_result or []
        self._rowcount = rowcount
        self.added: list[object] = []
        self.committed = False

    def scalar(self, _statement):  # type: ignore[no-untyped-def]
        if not self._scalar_results:
            return None
        return self._scalar_results.pop(0)

    def scalars(self, _statement):  # type: ignore[no-untyped-def]
        return self

    def all(self):  # type: ignore[no-untyped-def]
        return list(self._scalars_result)

    def execute(self, _statement):  # type: ignore[no-untyped-def]
        return _FakeExecuteResult(self._rowcount)

    def add(self, obj: object) -> None:
        self.added.append(obj)

    def commit(self) -> None:
        self.committed = True

    def refresh(self, _obj: object) -> None:
        return


class RacingFakeDB(FakeDB):
    """Passes the duplicate lookup, then loses the insert to a concurrent request."""

    def __init__(self) -> None:
        super().__init__()
        self.rolled_back = False

    def commit(self) -> None:
        raise IntegrityError("INSERT INTO clock_events", {}, Exception("uq_clock_events_worker_site_type_day"))

    def rollback(self) -> None:
        self.rolled_back = True


def _payload(**overrides) -> ClockEventCreate:  # type: ignore[no-untyped-def]
    values = {
        "worker_id": "ana",
        "site": "PTAP",
        "type": ClockEventType.IN,
        "lat": PTAP_LAT,
        "lon": PTAP_LON,
    }
    values.update(overrides)
    return ClockEventCreate(**values)


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class CreateClockEventTests(unittest.TestCase):
    def test_check_in_inside_geofence_is_stored(self) -> None:
        fake_db = FakeDB()

        event = create_clock_event(fake_db, _payload(site=" ptap "), ts_utc=_utc(2026, 3, 4, 12, 0))  # type: ignore[arg-type]

        self.assertTrue(fake_db.committed)
        self.assertIs(fake_db.added[0], event)
        self.assertEqual(event.site, "PTAP")
        self.assertEqual(event.type, ClockEventType.IN)
        self.assertTrue(event.inside_geofence)
        self.assertEqual(event.distance_m, 0)
        self.assertEqual(event.day_key, "2026-03-04")
        self.assertIsNone(event.shift_label)

    def test_unknown_site_is_rejected(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            create_clock_event(FakeDB(), _payload(site="XYZ"))  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.code, "INVALID_SITE")

    def test_missing_location_is_rejected(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            create_clock_event(FakeDB(), _payload(lat=None))  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.code, "LOCATION_REQUIRED")

    def test_duplicate_type_same_local_day_is_rejected(self) -> None:
        existing = ClockEvent(id=11, worker_id="ana", site="PTAP", type=ClockEventType.IN, day_key="2026-03-04")
        fake_db = FakeDB(scalar_results=[existing])

        with self.assertRaises(ApiError) as ctx:
            create_clock_event(fake_db, _payload(), ts_utc=_utc(2026, 3, 4, 14, 0))  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.code, "DUPLICATE_EVENT")
        self.assertEqual(fake_db.added, [])

    def test_concurrent_duplicate_insert_maps_to_conflict(self) -> None:
        fake_db = RacingFakeDB()

        with self.assertRaises(ApiError) as ctx:
            create_clock_event(fake_db, _payload(), ts_utc=_utc(2026, 3, 4, 14, 0))  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.code, "DUPLICATE_EVENT")
        self.assertTrue(fake_db.rolled_back)

    def test_outside_geofence_reports_distance(self) -> None:
        fake_db = FakeDB()

        with self.assertRaises(ApiError) as ctx:
            create_clock_event(
                fake_db,  # type: ignore[arg-type]
                _payload(lat=PTAP_LAT + 0.001),
                ts_utc=_utc(2026, 3, 4, 12, 0),
            )

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.code, "OUTSIDE_GEOFENCE")
        self.assertFalse(ctx.exception.details["inside_geofence"])
        self.assertAlmostEqual(ctx.exception.details["distance_m"], 111, delta=2)
        self.assertEqual(fake_db.added, [])

    def test_late_check_out_requires_justification(self) -> None:
        # 18:30 local in UTC-5.
        with self.assertRaises(ApiError) as ctx:
            create_clock_event(
                FakeDB(),  # type: ignore[arg-type]
                _payload(type=ClockEventType.OUT),
                ts_utc=_utc(2026, 3, 4, 23, 30),
            )

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.code, "JUSTIFICATION_REQUIRED")

    def test_late_check_out_with_justification_is_stored(self) -> None:
        fake_db = FakeDB()

        event = create_clock_event(
            fake_db,  # type: ignore[arg-type]
            _payload(type=ClockEventType.OUT, justification="  Pump repair  "),
            ts_utc=_utc(2026, 3, 4, 23, 30),
        )

        self.assertEqual(event.justification, "Pump repair")
        self.assertEqual(event.day_key, "2026-03-04")

    def test_blank_justification_counts_as_missing(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            create_clock_event(
                FakeDB(),  # type: ignore[arg-type]
                _payload(type=ClockEventType.OUT, justification="   "),
                ts_utc=_utc(2026, 3, 4, 23, 30),
            )

        self.assertEqual(ctx.exception.code, "JUSTIFICATION_REQUIRED")

    def test_early_check_out_needs_no_justification(self) -> None:
        event = create_clock_event(
            FakeDB(),  # type: ignore[arg-type]
            _payload(type=ClockEventType.OUT),
            ts_utc=_utc(2026, 3, 4, 21, 0),
        )

        self.assertIsNone(event.justification)

    def test_weekly_cap_site_assigns_shift_labels(self) -> None:
        cases = [
            (_utc(2026, 3, 4, 11, 0), ShiftLabel.MORNING, "2026-03-04"),
            (_utc(2026, 3, 4, 19, 0), ShiftLabel.AFTERNOON, "2026-03-04"),
            (_utc(2026, 3, 5, 3, 0), ShiftLabel.NIGHT, "2026-03-04"),
        ]
        for ts, expected_label, expected_day in cases:
            with self.subTest(ts=ts):
                event = create_clock_event(
                    FakeDB(),  # type: ignore[arg-type]
                    _payload(site="PTAR", lat=PTAR_LAT, lon=PTAR_LON),
                    ts_utc=ts,
                )
                self.assertEqual(event.shift_label, expected_label)
                self.assertEqual(event.day_key, expected_day)


class ClockEventHelpersTests(unittest.TestCase):
    def test_resolve_shift_label_boundaries(self) -> None:
        self.assertEqual(resolve_shift_label(datetime(2026, 3, 4, 5, 59)), ShiftLabel.NIGHT)
        self.assertEqual(resolve_shift_label(datetime(2026, 3, 4, 6, 0)), ShiftLabel.MORNING)
        self.assertEqual(resolve_shift_label(datetime(2026, 3, 4, 14, 0)), ShiftLabel.AFTERNOON)
        self.assertEqual(resolve_shift_label(datetime(2026, 3, 4, 22, 0)), ShiftLabel.NIGHT)

    def test_local_date_range_bounds_use_site_offset(self) -> None:
        start_dt, end_dt = local_date_range_to_utc_bounds(
            get_site_config("PTAP"),
            date(2026, 3, 1),
            date(2026, 3, 31),
        )

        self.assertEqual(start_dt, _utc(2026, 3, 1, 5, 0))
        self.assertEqual(end_dt, _utc(2026, 4, 1, 5, 0))

    def test_list_recent_clock_events_returns_rows(self) -> None:
        rows = [ClockEvent(id=1, worker_id="ana", site="PTAP", type=ClockEventType.IN, day_key="2026-03-04")]

        result = list_recent_clock_events(FakeDB(scalars_result=rows), site="ptap")  # type: ignore[arg-type]

        self.assertEqual(result, rows)

    def test_delete_range_returns_rowcount(self) -> None:
        fake_db = FakeDB(rowcount=3)

        deleted = delete_clock_events_in_range(
            fake_db,  # type: ignore[arg-type]
            worker_id="ana",
            site="PTAP",
            start_date=date(2026, 3, 1),
            end_date=date(2026, 3, 31),
        )

        self.assertEqual(deleted, 3)
        self.assertTrue(fake_db.committed)


if __name__ == "__main__":
    unittest.main()

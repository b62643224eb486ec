from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from sqlalchemy.orm import Session

from fieldclock.models import Absence
from fieldclock.schemas import HoursReportDay, HoursReportResponse, HoursReportWeek
from fieldclock.services.absences import list_absences, sum_absence_hours, validate_date_range
from fieldclock.services.clock_events import list_clock_events_in_range
from fieldclock.services.hours_calc import Policy, classify, round_hours
from fieldclock.services.intervals import ClockMark, build_intervals, site_timezone, split_all_by_day
from fieldclock.services.sites import build_policy, get_site_config, normalize_site

logger = logging.getLogger("fieldclock.report")


def build_hours_report(
    *,
    worker_id: str,
    site: str,
    start_date: date,
    end_date: date,
    events: Sequence[ClockMark],
    absences: Sequence[Absence],
    policy: Policy,
) -> HoursReportResponse:
    pairing = build_intervals(events)
    if pairing.unpaired_total:
        logger.warning(
            "hours_report_unpaired_events",
            extra={
                "worker_id": worker_id,
                "site": site,
                "start_date": start_date,
                "end_date": end_date,
                "unpaired_in": pairing.unpaired_in,
                "unpaired_out": pairing.unpaired_out,
            },
        )

    segments = split_all_by_day(pairing.intervals, site_timezone(policy.utc_offset_hours))
    result = classify(segments, policy)
    absence_hours = sum_absence_hours(absences, start_date=start_date, end_date=end_date)

    return HoursReportResponse(
        worker_id=worker_id,
        site=site,
        policy=result.policy,  # type: ignore[arg-type]
        start_date=start_date,
        end_date=end_date,
        total_hours=round_hours(result.total_hours),
        regular_hours=round_hours(result.regular_hours),
        overtime_hours=round_hours(result.overtime_hours),
        sunday_hours=round_hours(result.sunday_hours),
        night_hours=round_hours(result.night_hours),
        absence_hours=round_hours(absence_hours),
        days=[
            HoursReportDay(
                date=item.day,
                is_sunday=item.is_sunday,
                total_hours=round_hours(item.total_hours),
                regular_hours=round_hours(item.regular_hours),
                overtime_hours=round_hours(item.overtime_hours),
                sunday_hours=round_hours(item.sunday_hours),
                night_hours=round_hours(item.night_hours),
                week_start=item.week_start,
            )
            for item in result.days
        ],
        weeks=[
            HoursReportWeek(
                week_start=item.week_start,
                week_end=item.week_end,
                total_hours=round_hours(item.total_hours),
                regular_hours=round_hours(item.regular_hours),
                overtime_hours=round_hours(item.overtime_hours),
                night_hours=round_hours(item.night_hours),
            )
            for item in result.weeks
        ],
    )


def compute_report(
    db: Session,
    *,
    worker_id: str,
    site: str,
    start_date: date,
    end_date: date,
) -> HoursReportResponse:
    validate_date_range(start_date, end_date)
    site_code = normalize_site(site)
    site_config = get_site_config(site_code)

    events = list_clock_events_in_range(
        db,
        worker_id=worker_id,
        site=site_code,
        start_date=start_date,
        end_date=end_date,
    )
    absences = list_absences(
        db,
        worker_id=worker_id,
        site=site_code,
        start_date=start_date,
        end_date=end_date,
    )

    report = build_hours_report(
        worker_id=worker_id,
        site=site_code,
        start_date=start_date,
        end_date=end_date,
        events=events,
        absences=absences,
        policy=build_policy(site_config),
    )
    logger.info(
        "hours_report_computed",
        extra={
            "worker_id": worker_id,
            "site": site_code,
            "policy": report.policy,
            "event_count": len(events),
            "total_hours": report.total_hours,
        },
    )
    return report

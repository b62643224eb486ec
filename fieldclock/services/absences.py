from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldclock.errors import ApiError
from fieldclock.models import Absence
from fieldclock.schemas import AbsenceCreateRequest
from fieldclock.services.sites import get_site_config, normalize_site


def validate_date_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ApiError(
            status_code=422,
            code="INVALID_DATE_RANGE",
            message="end_date must be greater than or equal to start_date",
        )


def sum_absence_hours(absences: Iterable[Absence], *, start_date: date, end_date: date) -> float:
    return sum(
        item.hours
        for item in absences
        if start_date <= item.absence_date <= end_date
    )


def create_absence(db: Session, payload: AbsenceCreateRequest) -> Absence:
    get_site_config(payload.site)

    absence = Absence(
        worker_id=payload.worker_id.strip(),
        site=normalize_site(payload.site),
        absence_date=payload.absence_date,
        hours=payload.hours,
        reason=payload.reason.strip(),
    )
    db.add(absence)
    db.commit()
    db.refresh(absence)
    return absence


def list_absences(
    db: Session,
    *,
    worker_id: str,
    site: str,
    start_date: date,
    end_date: date,
) -> list[Absence]:
    validate_date_range(start_date, end_date)
    stmt = (
        select(Absence)
        .where(
            Absence.worker_id == worker_id,
            Absence.site == normalize_site(site),
            Absence.absence_date >= start_date,
            Absence.absence_date <= end_date,
        )
        .order_by(Absence.absence_date.asc(), Absence.id.asc())
    )
    return list(db.scalars(stmt).all())


def delete_absence(db: Session, absence_id: int) -> Absence:
    absence = db.get(Absence, absence_id)
    if absence is None:
        raise ApiError(status_code=404, code="ABSENCE_NOT_FOUND", message="Absence not found")

    db.delete(absence)
    db.commit()
    return absence

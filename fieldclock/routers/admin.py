from datetime import date

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from fieldclock.audit import log_request_audit
from fieldclock.db import get_db
from fieldclock.schemas import (
    AbsenceCreateRequest,
    AbsenceRead,
    ClockEventRangeDeleteRequest,
    ClockEventRangeDeleteResponse,
    ClockEventRead,
    HoursReportResponse,
)
from fieldclock.services.absences import create_absence, delete_absence, list_absences
from fieldclock.services.clock_events import delete_clock_events_in_range, list_recent_clock_events
from fieldclock.services.exports import XLSX_MEDIA_TYPE, build_hours_report_xlsx_bytes
from fieldclock.services.report import compute_report

router = APIRouter(tags=["admin"])


@router.get("/api/clock-events", response_model=list[ClockEventRead])
def list_clock_events_endpoint(
    site: str | None = Query(default=None, min_length=1),
    db: Session = Depends(get_db),
) -> list[ClockEventRead]:
    return list_recent_clock_events(db, site=site)


@router.delete("/api/clock-events/range", response_model=ClockEventRangeDeleteResponse)
def delete_clock_events_range_endpoint(
    payload: ClockEventRangeDeleteRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> ClockEventRangeDeleteResponse:
    deleted = delete_clock_events_in_range(
        db,
        worker_id=payload.worker_id,
        site=payload.site,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    log_request_audit(
        db,
        request,
        action="CLOCK_EVENTS_RANGE_DELETED",
        entity_type="clock_event",
        entity_id=None,
        details={
            "worker_id": payload.worker_id,
            "site": payload.site,
            "start_date": payload.start_date.isoformat(),
            "end_date": payload.end_date.isoformat(),
            "deleted": deleted,
        },
    )
    return ClockEventRangeDeleteResponse(message="Clock events deleted", deleted=deleted)


@router.post("/api/absences", response_model=AbsenceRead, status_code=status.HTTP_201_CREATED)
def create_absence_endpoint(
    payload: AbsenceCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> AbsenceRead:
    absence = create_absence(db, payload)
    log_request_audit(
        db,
        request,
        action="ABSENCE_CREATED",
        entity_type="absence",
        entity_id=str(absence.id),
        details={
            "worker_id": absence.worker_id,
            "site": absence.site,
            "absence_date": absence.absence_date.isoformat(),
            "hours": absence.hours,
        },
    )
    return absence


@router.get("/api/absences", response_model=list[AbsenceRead])
def list_absences_endpoint(
    worker_id: str = Query(..., min_length=1),
    site: str = Query(..., min_length=1),
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
) -> list[AbsenceRead]:
    return list_absences(
        db,
        worker_id=worker_id,
        site=site,
        start_date=start_date,
        end_date=end_date,
    )


@router.delete("/api/absences/{absence_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_absence_endpoint(
    absence_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> None:
    absence = delete_absence(db, absence_id)
    log_request_audit(
        db,
        request,
        action="ABSENCE_DELETED",
        entity_type="absence",
        entity_id=str(absence_id),
        details={"worker_id": absence.worker_id, "site": absence.site},
    )


@router.get("/api/hours-report", response_model=HoursReportResponse)
def get_hours_report(
    worker_id: str = Query(..., min_length=1),
    site: str = Query(..., min_length=1),
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
) -> HoursReportResponse:
    return compute_report(
        db,
        worker_id=worker_id,
        site=site,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/api/hours-report/export.xlsx")
def export_hours_report_xlsx(
    request: Request,
    worker_id: str = Query(..., min_length=1),
    site: str = Query(..., min_length=1),
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
) -> Response:
    report = compute_report(
        db,
        worker_id=worker_id,
        site=site,
        start_date=start_date,
        end_date=end_date,
    )
    payload = build_hours_report_xlsx_bytes(report)

    log_request_audit(
        db,
        request,
        action="HOURS_REPORT_EXPORT_XLSX",
        entity_type="export",
        entity_id=report.site,
        details={
            "worker_id": worker_id,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        },
    )

    filename = f"hours-{report.site}-{start_date.isoformat()}-{end_date.isoformat()}.xlsx"
    return Response(
        content=payload,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

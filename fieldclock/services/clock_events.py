from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fieldclock.errors import ApiError
from fieldclock.models import ClockEvent, ClockEventType, ShiftLabel
from fieldclock.schemas import ClockEventCreate
from fieldclock.settings import SiteConfig, get_settings
from fieldclock.services.intervals import site_timezone, to_utc
from fieldclock.services.location import evaluate_geofence
from fieldclock.services.sites import find_site_config, get_site_config, normalize_site


def _local_now(site_config: SiteConfig, ts_utc: datetime) -> datetime:
    return to_utc(ts_utc).astimezone(site_timezone(site_config.utc_offset_hours))


def local_date_range_to_utc_bounds(
    site_config: SiteConfig,
    start_date: date,
    end_date: date,
) -> tuple[datetime, datetime]:
    tz = site_timezone(site_config.utc_offset_hours)
    start_local = datetime.combine(start_date, time.min, tzinfo=tz)
    end_local = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=tz)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def resolve_shift_label(local_ts: datetime) -> ShiftLabel:
    hour = local_ts.hour
    if 6 <= hour < 14:
        return ShiftLabel.MORNING
    if 14 <= hour < 22:
        return ShiftLabel.AFTERNOON
    return ShiftLabel.NIGHT


def _duplicate_event_id(
    db: Session,
    *,
    worker_id: str,
    site: str,
    event_type: ClockEventType,
    day_key: str,
) -> int | None:
    existing = db.scalar(
        select(ClockEvent).where(
            ClockEvent.worker_id == worker_id,
            ClockEvent.site == site,
            ClockEvent.type == event_type,
            ClockEvent.day_key == day_key,
        )
    )
    return existing.id if existing is not None else None


def _duplicate_event_error(event_type: ClockEventType, site: str) -> ApiError:
    return ApiError(
        status_code=409,
        code="DUPLICATE_EVENT",
        message=f"A {event_type.value} event was already registered today for {site}.",
    )


def _requires_justification(site_config: SiteConfig, event_type: ClockEventType, local_ts: datetime) -> bool:
    cutoff = site_config.justification_cutoff
    if cutoff is None or event_type != ClockEventType.OUT:
        return False
    return local_ts.time() >= cutoff


def create_clock_event(
    db: Session,
    payload: ClockEventCreate,
    *,
    ts_utc: datetime | None = None,
) -> ClockEvent:
    site = normalize_site(payload.site)
    site_config = find_site_config(site)
    if site_config is None:
        raise ApiError(status_code=400, code="INVALID_SITE", message=f"Invalid site: {payload.site}")

    if payload.lat is None or payload.lon is None:
        raise ApiError(status_code=400, code="LOCATION_REQUIRED", message="GPS location is required.")

    worker_id = payload.worker_id.strip()
    now_utc = to_utc(ts_utc) if ts_utc is not None else datetime.now(timezone.utc)
    local_ts = _local_now(site_config, now_utc)
    day_key = local_ts.date().isoformat()

    duplicate_of = _duplicate_event_id(
        db,
        worker_id=worker_id,
        site=site,
        event_type=payload.type,
        day_key=day_key,
    )
    if duplicate_of is not None:
        raise _duplicate_event_error(payload.type, site)

    inside, distance_value = evaluate_geofence(site_config, payload.lat, payload.lon)
    if not inside:
        raise ApiError(
            status_code=403,
            code="OUTSIDE_GEOFENCE",
            message=(
                f"Not inside the {site} zone. Distance: {distance_value:.0f}m "
                f"(maximum: {site_config.radius_m:.0f}m)"
            ),
            details={"inside_geofence": False, "distance_m": round(distance_value)},
        )

    justification = (payload.justification or "").strip() or None
    if justification is None and _requires_justification(site_config, payload.type, local_ts):
        cutoff = site_config.justification_cutoff
        raise ApiError(
            status_code=400,
            code="JUSTIFICATION_REQUIRED",
            message=f"Check-out at or after {cutoff:%H:%M} local time requires a justification.",
        )

    shift_label = resolve_shift_label(local_ts) if site_config.assign_shift_labels else None

    event = ClockEvent(
        worker_id=worker_id,
        site=site,
        type=payload.type,
        ts_utc=now_utc,
        lat=payload.lat,
        lon=payload.lon,
        distance_m=round(distance_value),
        inside_geofence=inside,
        day_key=day_key,
        justification=justification,
        shift_label=shift_label,
    )
    db.add(event)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _duplicate_event_error(payload.type, site)
    db.refresh(event)
    return event


def list_recent_clock_events(db: Session, *, site: str | None = None) -> list[ClockEvent]:
    stmt = select(ClockEvent).order_by(ClockEvent.ts_utc.desc(), ClockEvent.id.desc())
    if site:
        stmt = stmt.where(ClockEvent.site == normalize_site(site))
    stmt = stmt.limit(get_settings().clock_events_list_limit)
    return list(db.scalars(stmt).all())


def list_clock_events_in_range(
    db: Session,
    *,
    worker_id: str,
    site: str,
    start_date: date,
    end_date: date,
) -> list[ClockEvent]:
    site_config = get_site_config(site)
    start_dt, end_dt = local_date_range_to_utc_bounds(site_config, start_date, end_date)
    stmt = (
        select(ClockEvent)
        .where(
            ClockEvent.worker_id == worker_id,
            ClockEvent.site == normalize_site(site),
            ClockEvent.ts_utc >= start_dt,
            ClockEvent.ts_utc < end_dt,
        )
        .order_by(ClockEvent.ts_utc.asc(), ClockEvent.id.asc())
    )
    return list(db.scalars(stmt).all())


def delete_clock_events_in_range(
    db: Session,
    *,
    worker_id: str,
    site: str,
    start_date: date,
    end_date: date,
) -> int:
    site_config = get_site_config(site)
    start_dt, end_dt = local_date_range_to_utc_bounds(site_config, start_date, end_date)
    result = db.execute(
        delete(ClockEvent).where(
            ClockEvent.worker_id == worker_id,
            ClockEvent.site == normalize_site(site),
            ClockEvent.ts_utc >= start_dt,
            ClockEvent.ts_utc < end_dt,
        )
    )
    db.commit()
    return int(result.rowcount or 0)

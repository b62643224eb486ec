from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from fieldclock.audit import log_request_audit
from fieldclock.db import get_db
from fieldclock.models import AuditActorType
from fieldclock.schemas import (
    ClockEventCreate,
    ClockEventCreateResponse,
    ClockEventRead,
    SiteGeofenceRead,
)
from fieldclock.services.clock_events import create_clock_event
from fieldclock.services.sites import get_site_config, normalize_site

router = APIRouter(tags=["attendance"])


@router.get("/api/sites/{site}", response_model=SiteGeofenceRead)
def get_site_geofence(site: str) -> SiteGeofenceRead:
    config = get_site_config(site)
    return SiteGeofenceRead(
        site=normalize_site(site),
        lat=config.lat,
        lon=config.lon,
        radius_m=config.radius_m,
        policy=config.policy,
    )


@router.post(
    "/api/clock-events",
    response_model=ClockEventCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_clock_event(
    payload: ClockEventCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> ClockEventCreateResponse:
    request.state.actor = "operator"
    request.state.actor_id = payload.worker_id
    event = create_clock_event(db, payload)
    request.state.event_id = event.id
    request.state.site = event.site
    log_request_audit(
        db,
        request,
        action=f"CLOCK_EVENT_{event.type.value}_REGISTERED",
        entity_type="clock_event",
        entity_id=str(event.id),
        actor_type=AuditActorType.OPERATOR,
        details={
            "site": event.site,
            "day_key": event.day_key,
            "distance_m": event.distance_m,
            "shift_label": event.shift_label.value if event.shift_label else None,
        },
    )
    return ClockEventCreateResponse(
        message=f"{event.type.value} registered for {event.site}",
        inside_geofence=event.inside_geofence,
        distance_m=event.distance_m or 0.0,
        shift_label=event.shift_label,
        event=ClockEventRead.model_validate(event),
    )

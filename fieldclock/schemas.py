from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fieldclock.models import ClockEventType, ShiftLabel


class SiteGeofenceRead(BaseModel):
    site: str
    lat: float
    lon: float
    radius_m: float
    policy: Literal["DAILY_BLOCK", "WEEKLY_CAP"]


class ClockEventCreate(BaseModel):
    worker_id: str = Field(min_length=1, max_length=255)
    site: str = Field(min_length=1, max_length=32)
    type: ClockEventType
    lat: float | None = None
    lon: float | None = None
    justification: str | None = Field(default=None, max_length=1000)


class ClockEventRead(BaseModel):
    id: int | None = None
    worker_id: str
    site: str
    type: ClockEventType
    ts_utc: datetime
    lat: float | None
    lon: float | None
    distance_m: float | None
    inside_geofence: bool
    day_key: str
    justification: str | None = None
    shift_label: ShiftLabel | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ClockEventCreateResponse(BaseModel):
    message: str
    inside_geofence: bool
    distance_m: float
    shift_label: ShiftLabel | None = None
    event: ClockEventRead


class ClockEventRangeDeleteRequest(BaseModel):
    worker_id: str = Field(min_length=1, max_length=255)
    site: str = Field(min_length=1, max_length=32)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self) -> "ClockEventRangeDeleteRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be greater than or equal to start_date")
        return self


class ClockEventRangeDeleteResponse(BaseModel):
    message: str
    deleted: int


class AbsenceCreateRequest(BaseModel):
    worker_id: str = Field(min_length=1, max_length=255)
    site: str = Field(min_length=1, max_length=32)
    absence_date: date
    hours: float = Field(gt=0, le=24)
    reason: str = Field(min_length=1, max_length=1000)


class AbsenceRead(BaseModel):
    id: int | None = None
    worker_id: str
    site: str
    absence_date: date
    hours: float
    reason: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class HoursReportDay(BaseModel):
    date: date
    is_sunday: bool
    total_hours: float
    regular_hours: float
    overtime_hours: float
    sunday_hours: float
    night_hours: float
    week_start: date | None = None


class HoursReportWeek(BaseModel):
    week_start: date
    week_end: date
    total_hours: float
    regular_hours: float
    overtime_hours: float
    night_hours: float


class HoursReportResponse(BaseModel):
    worker_id: str
    site: str
    policy: Literal["DAILY_BLOCK", "WEEKLY_CAP"]
    start_date: date
    end_date: date
    total_hours: float
    regular_hours: float
    overtime_hours: float
    sunday_hours: float
    night_hours: float
    absence_hours: float
    days: list[HoursReportDay] = Field(default_factory=list)
    weeks: list[HoursReportWeek] = Field(default_factory=list)

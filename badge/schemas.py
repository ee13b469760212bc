from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from badge.models import EmployeeRole, NotificationType, SessionStatus


def _strip_required(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be blank")
    return stripped


class LocationPayload(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    name: str | None = Field(default=None, max_length=255)


class Location(BaseModel):
    latitude: float
    longitude: float
    name: str


class ClockActionRequest(BaseModel):
    location: LocationPayload


class EmployeeCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    employee_id: str = Field(min_length=1, max_length=64)

    @field_validator("first_name", "last_name", "employee_id")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return _strip_required(value)


class EmployeeUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: EmployeeRole | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _strip_required(value)


class EmployeeRead(BaseModel):
    id: int
    user_id: str
    employee_id: str = Field(validation_alias=AliasChoices("employee_code", "employee_id"))
    first_name: str
    last_name: str
    role: EmployeeRole

    model_config = ConfigDict(from_attributes=True)


class SessionRead(BaseModel):
    id: int
    employee_id: int
    start_time: int
    end_time: int | None = None
    start_location: Location
    end_location: Location | None = None
    status: SessionStatus
    duration: int | None = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _flatten_locations(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return data
        end_location = None
        if data.end_latitude is not None and data.end_longitude is not None:
            end_location = {
                "latitude": data.end_latitude,
                "longitude": data.end_longitude,
                "name": data.end_location_name or "",
            }
        return {
            "id": data.id,
            "employee_id": data.employee_id,
            "start_time": data.start_time,
            "end_time": data.end_time,
            "start_location": {
                "latitude": data.start_latitude,
                "longitude": data.start_longitude,
                "name": data.start_location_name,
            },
            "end_location": end_location,
            "status": data.status,
            "duration": data.duration,
        }


class TodayStatsRead(BaseModel):
    total_duration: int
    sessions_count: int
    total_duration_label: str


class EmployeeStatsRead(BaseModel):
    total_duration: int
    sessions_count: int
    total_duration_label: str
    sessions: list[SessionRead]


class EmployeeOverviewRead(BaseModel):
    today_duration: int
    month_duration: int
    active_session: SessionRead | None = None


class DeleteResponse(BaseModel):
    ok: bool
    id: int


class NotificationRead(BaseModel):
    id: int
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool
    created_at: int

    model_config = ConfigDict(from_attributes=True)


class MarkAllReadResponse(BaseModel):
    ok: bool
    updated: int


class NotificationPreferencesRead(BaseModel):
    id: int | None = None
    session_start: bool = True
    session_end: bool = True
    weekly_report: bool = True
    sound: bool = True

    model_config = ConfigDict(from_attributes=True)


class NotificationPreferencesUpdate(BaseModel):
    session_start: bool | None = None
    session_end: bool | None = None
    weekly_report: bool | None = None
    sound: bool | None = None

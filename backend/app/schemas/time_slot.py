from datetime import datetime

from pydantic import Field, computed_field, field_validator

from app.schemas.common import CamelModel, UtcDateTime, to_utc_naive
from app.schemas.day import DayOut
from app.services.time_slots import format_time_slot_display


def _clean_name(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Name cannot be empty")
    return trimmed


class TimeSlotCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    start_time: datetime
    end_time: datetime

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return _clean_name(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_instant(cls, value: datetime) -> datetime:
        return to_utc_naive(value)


class TimeSlotUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    start_time: datetime | None = None
    end_time: datetime | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _clean_name(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_instant(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return to_utc_naive(value)


class TimeSlotOut(CamelModel):
    id: int
    name: str
    start_time: UtcDateTime
    end_time: UtcDateTime
    is_active: bool

    @computed_field
    @property
    def display(self) -> str:
        return format_time_slot_display(self.name, self.start_time, self.end_time)


class TimeSlotListItem(TimeSlotOut):
    schedule_count: int = 0


class TimeSlotBrief(CamelModel):
    id: int
    name: str
    start_time: UtcDateTime
    end_time: UtcDateTime


class OccupyingUnitOut(CamelModel):
    id: int
    unit_code: str
    title: str


class TimeSlotScheduleOut(CamelModel):
    id: int
    semester: str
    academic_year: int
    tutor_name: str | None = None
    location: str | None = None
    unit: OccupyingUnitOut
    day: DayOut
    approved_enrollments: int = 0


class TimeSlotDetailOut(TimeSlotOut):
    schedules: list[TimeSlotScheduleOut] = Field(default_factory=list)


class AvailableTimeSlotOut(TimeSlotOut):
    is_available: bool = True
    schedules: list[TimeSlotScheduleOut] = Field(default_factory=list)


class OverlapCheckOut(CamelModel):
    has_overlap: bool
    overlapping_slots: list[TimeSlotBrief]


class TimeSlotUsageOut(CamelModel):
    id: int
    name: str
    start_time: UtcDateTime
    end_time: UtcDateTime
    schedule_count: int
    is_active: bool


class TimeSlotStatsOut(CamelModel):
    total_time_slots: int
    used_time_slots: int
    unused_time_slots: int
    utilization_rate: int
    time_slots: list[TimeSlotUsageOut]

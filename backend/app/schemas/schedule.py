from pydantic import Field, field_validator

from app.schemas.common import CamelModel
from app.schemas.day import DayOut
from app.schemas.enrollment import EnrollmentDetailOut
from app.schemas.time_slot import TimeSlotOut
from app.schemas.unit import UnitBrief, UnitOut
from app.services.capacity import CapacityStats, CapacitySummary


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class ScheduleCreate(CamelModel):
    unit_id: int = Field(gt=0)
    time_slot_id: int = Field(gt=0)
    day_id: int = Field(gt=0)
    semester: str = Field(min_length=1, max_length=50)
    academic_year: int = Field(ge=1900, le=9999)
    tutor_name: str | None = Field(default=None, max_length=200)
    location: str | None = Field(default=None, max_length=200)
    # Range is checked by the service so the message matches updates.
    max_capacity: int | None = None

    @field_validator("semester")
    @classmethod
    def normalize_semester(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Semester cannot be empty")
        return trimmed

    @field_validator("tutor_name", "location")
    @classmethod
    def normalize_optional_text(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class ScheduleUpdate(CamelModel):
    tutor_name: str | None = Field(default=None, max_length=200)
    location: str | None = Field(default=None, max_length=200)
    max_capacity: int | None = None
    time_slot_id: int | None = Field(default=None, gt=0)
    day_id: int | None = Field(default=None, gt=0)

    @field_validator("tutor_name", "location")
    @classmethod
    def normalize_optional_text(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class EnrollmentSummaryOut(CamelModel):
    approved_enrollments: int
    available_spots: int
    capacity: int
    utilization_rate: int

    @classmethod
    def from_stats(cls, stats: CapacityStats) -> "EnrollmentSummaryOut":
        return cls(
            approved_enrollments=stats.approved,
            available_spots=stats.available_spots,
            capacity=stats.capacity,
            utilization_rate=stats.utilization_rate,
        )


class EnrollmentBreakdownOut(CamelModel):
    total: int
    approved: int
    pending: int
    waitlisted: int
    rejected: int
    withdrawn: int
    capacity: int
    available_spots: int
    utilization_rate: int

    @classmethod
    def from_stats(cls, stats: CapacityStats) -> "EnrollmentBreakdownOut":
        return cls(
            total=stats.total,
            approved=stats.approved,
            pending=stats.pending,
            waitlisted=stats.waitlisted,
            rejected=stats.rejected,
            withdrawn=stats.withdrawn,
            capacity=stats.capacity,
            available_spots=stats.available_spots,
            utilization_rate=stats.utilization_rate,
        )


class ScheduleOut(CamelModel):
    id: int
    unit_id: int
    time_slot_id: int
    day_id: int
    semester: str
    academic_year: int
    tutor_name: str | None = None
    location: str | None = None
    max_capacity: int | None = None
    is_active: bool
    unit: UnitBrief
    time_slot: TimeSlotOut
    day: DayOut


class ScheduleListItem(ScheduleOut):
    enrollment_stats: EnrollmentSummaryOut | None = None


class ScheduleDetailOut(ScheduleOut):
    enrollments: list[EnrollmentDetailOut] = Field(default_factory=list)
    enrollment_stats: EnrollmentBreakdownOut | None = None


class AvailableScheduleOut(ScheduleOut):
    available_spots: int = 0
    capacity: int = 0
    enrolled_count: int = 0


class ConflictCheckOut(CamelModel):
    has_conflict: bool
    conflict_message: str | None = None


class ScheduleStatsOut(CamelModel):
    total_schedules: int
    total_capacity: int
    total_enrollments: int
    available_spots: int
    full_schedules: int
    empty_schedules: int
    utilization_rate: int

    @classmethod
    def from_summary(cls, summary: CapacitySummary) -> "ScheduleStatsOut":
        return cls(
            total_schedules=summary.total_schedules,
            total_capacity=summary.total_capacity,
            total_enrollments=summary.total_enrollments,
            available_spots=summary.available_spots,
            full_schedules=summary.full_schedules,
            empty_schedules=summary.empty_schedules,
            utilization_rate=summary.utilization_rate,
        )


class UnitScheduleOut(CamelModel):
    id: int
    semester: str
    academic_year: int
    tutor_name: str | None = None
    location: str | None = None
    max_capacity: int | None = None
    time_slot: TimeSlotOut
    day: DayOut
    enrollment_stats: EnrollmentSummaryOut | None = None


class UnitDetailOut(UnitOut):
    schedules: list[UnitScheduleOut] = Field(default_factory=list)

from pydantic import Field, field_validator

from app.schemas.common import CamelModel


class UnitBase(CamelModel):
    unit_code: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    credits: int = Field(ge=1, le=40)
    capacity: int = Field(ge=1, le=1000)

    @field_validator("unit_code")
    @classmethod
    def normalize_unit_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Unit code cannot be empty")
        return code


class UnitCreate(UnitBase):
    pass


class UnitUpdate(CamelModel):
    unit_code: str | None = Field(default=None, min_length=1, max_length=50)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    credits: int | None = Field(default=None, ge=1, le=40)
    capacity: int | None = Field(default=None, ge=1, le=1000)


class UnitOut(UnitBase):
    id: int
    is_active: bool


class UnitBrief(CamelModel):
    id: int
    unit_code: str
    title: str
    credits: int
    capacity: int


class UnitStatsOut(CamelModel):
    total_schedules: int
    total_enrollments: int
    approved_enrollments: int
    pending_enrollments: int
    waitlisted_enrollments: int
    rejected_enrollments: int
    total_capacity: int
    available_spots: int
    full_schedules: int
    empty_schedules: int
    utilization_rate: int


class UnitStatsEnvelope(CamelModel):
    unit: UnitOut
    stats: UnitStatsOut

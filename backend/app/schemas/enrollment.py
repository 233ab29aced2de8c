from pydantic import Field

from app.models.enrollment import EnrollmentStatus
from app.schemas.common import CamelModel, UtcDateTime


class EnrollmentCreate(CamelModel):
    schedule_id: int = Field(gt=0)
    student_profile_id: int | None = Field(default=None, gt=0)


class StudentProfileOut(CamelModel):
    id: int
    student_id: str
    first_name: str
    last_name: str
    program: str | None = None
    year_level: int | None = None


class EnrollmentOut(CamelModel):
    id: int
    schedule_id: int
    student_profile_id: int
    status: EnrollmentStatus
    enrolled_at: UtcDateTime | None = None


class EnrollmentDetailOut(EnrollmentOut):
    student_profile: StudentProfileOut

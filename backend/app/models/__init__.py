from app.models.day import Day, WEEKDAY_NAMES  # noqa: F401
from app.models.enrollment import (  # noqa: F401
    ACTIVE_ENROLLMENT_STATUSES,
    TERMINAL_ENROLLMENT_STATUSES,
    Enrollment,
    EnrollmentStatus,
)
from app.models.schedule import Schedule  # noqa: F401
from app.models.student_profile import StudentProfile  # noqa: F401
from app.models.time_slot import TimeSlot  # noqa: F401
from app.models.unit import Unit  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401

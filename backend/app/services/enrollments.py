from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.models.enrollment import ACTIVE_ENROLLMENT_STATUSES, Enrollment, EnrollmentStatus
from app.models.schedule import Schedule
from app.models.student_profile import StudentProfile
from app.models.user import User
from app.services.capacity import approved_count, effective_capacity

logger = logging.getLogger(__name__)

# Target status -> statuses it may be reached from.
ENROLLMENT_TRANSITIONS: dict[EnrollmentStatus, frozenset[EnrollmentStatus]] = {
    EnrollmentStatus.APPROVED: frozenset({EnrollmentStatus.PENDING, EnrollmentStatus.WAITLISTED}),
    EnrollmentStatus.WAITLISTED: frozenset({EnrollmentStatus.PENDING}),
    EnrollmentStatus.REJECTED: frozenset(ACTIVE_ENROLLMENT_STATUSES),
    EnrollmentStatus.WITHDRAWN: frozenset(ACTIVE_ENROLLMENT_STATUSES),
}


def get_enrollment_or_404(db: Session, enrollment_id: int) -> Enrollment:
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise ResourceNotFoundError("Enrollment", enrollment_id, message="Enrollment not found")
    return enrollment


def get_student_profile_or_404(db: Session, student_profile_id: int) -> StudentProfile:
    profile = db.get(StudentProfile, student_profile_id)
    if profile is None:
        raise ResourceNotFoundError("Student profile", student_profile_id, message="Student profile not found")
    return profile


def find_student_profile(db: Session, user: User) -> StudentProfile | None:
    return db.execute(select(StudentProfile).where(StudentProfile.user_id == user.id)).scalar_one_or_none()


def ensure_student_profile(db: Session, user: User) -> StudentProfile:
    profile = find_student_profile(db, user)
    if profile is not None:
        return profile
    first_name, _, last_name = user.name.strip().partition(" ")
    profile = StudentProfile(
        user_id=user.id,
        student_id=f"STU{user.id:06d}",
        first_name=first_name or user.name,
        last_name=last_name.strip(),
    )
    db.add(profile)
    db.flush()
    logger.info("Created student profile %s for user %s", profile.id, user.id)
    return profile


def request_enrollment(db: Session, *, schedule_id: int, student_profile_id: int) -> Enrollment:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None or not schedule.is_active:
        raise ResourceNotFoundError("Schedule", schedule_id, message="Schedule not found or inactive")
    get_student_profile_or_404(db, student_profile_id)

    existing = db.execute(
        select(func.count(Enrollment.id)).where(
            Enrollment.schedule_id == schedule_id,
            Enrollment.student_profile_id == student_profile_id,
            Enrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
        )
    ).scalar_one()
    if existing:
        raise ConflictError("Student already has an active enrollment for this schedule")

    enrollment = Enrollment(
        schedule_id=schedule_id,
        student_profile_id=student_profile_id,
        status=EnrollmentStatus.PENDING,
    )
    db.add(enrollment)
    db.commit()
    db.refresh(enrollment)
    logger.info("Enrollment %s requested for schedule %s", enrollment.id, schedule_id)
    return enrollment


def _move(enrollment: Enrollment, target: EnrollmentStatus) -> None:
    if enrollment.status not in ENROLLMENT_TRANSITIONS[target]:
        raise ValidationError(
            f"Cannot change enrollment from {enrollment.status.value} to {target.value}",
            details={"from": enrollment.status.value, "to": target.value},
        )
    enrollment.status = target


def approve_enrollment(db: Session, enrollment_id: int) -> Enrollment:
    enrollment = get_enrollment_or_404(db, enrollment_id)
    if enrollment.status in ENROLLMENT_TRANSITIONS[EnrollmentStatus.APPROVED]:
        capacity = effective_capacity(enrollment.schedule)
        if approved_count(db, enrollment.schedule_id) >= capacity:
            raise ConflictError("Schedule is at full capacity", details={"capacity": capacity})
    _move(enrollment, EnrollmentStatus.APPROVED)
    db.commit()
    db.refresh(enrollment)
    logger.info("Enrollment %s approved", enrollment.id)
    return enrollment


def change_enrollment_status(db: Session, enrollment_id: int, target: EnrollmentStatus) -> Enrollment:
    if target == EnrollmentStatus.APPROVED:
        return approve_enrollment(db, enrollment_id)
    enrollment = get_enrollment_or_404(db, enrollment_id)
    _move(enrollment, target)
    db.commit()
    db.refresh(enrollment)
    logger.info("Enrollment %s moved to %s", enrollment.id, target.value)
    return enrollment


def list_enrollments(
    db: Session,
    *,
    schedule_id: int | None = None,
    status: EnrollmentStatus | None = None,
    student_profile_id: int | None = None,
) -> list[Enrollment]:
    statement = select(Enrollment)
    if schedule_id:
        statement = statement.where(Enrollment.schedule_id == schedule_id)
    if status:
        statement = statement.where(Enrollment.status == status)
    if student_profile_id:
        statement = statement.where(Enrollment.student_profile_id == student_profile_id)
    return list(db.execute(statement.order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())).scalars())

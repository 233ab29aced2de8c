from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.models.day import Day
from app.models.enrollment import ACTIVE_ENROLLMENT_STATUSES, Enrollment, EnrollmentStatus
from app.models.schedule import Schedule
from app.models.time_slot import TimeSlot
from app.models.unit import Unit
from app.services.capacity import (
    CapacityStats,
    CapacitySummary,
    compute_capacity_stats,
    effective_capacity,
    schedule_capacity_stats,
    summarize_capacity,
)
from app.services.lifecycle import EntityKind, RecordState, state_of, transition
from app.services.persistence import commit_or_conflict

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Schedule already exists for this combination"
CONFLICT_PREFIX = "Schedule conflicts with existing schedules"


def get_schedule_or_404(db: Session, schedule_id: int) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", schedule_id, message="Schedule not found")
    return schedule


def _require_active_unit(db: Session, unit_id: int) -> Unit:
    unit = db.get(Unit, unit_id)
    if unit is None or not unit.is_active:
        raise ResourceNotFoundError("Unit", unit_id, message="Unit not found or inactive")
    return unit


def _require_active_time_slot(db: Session, time_slot_id: int) -> TimeSlot:
    time_slot = db.get(TimeSlot, time_slot_id)
    if time_slot is None or not time_slot.is_active:
        raise ResourceNotFoundError("Time slot", time_slot_id, message="Time slot not found or inactive")
    return time_slot


def _require_day(db: Session, day_id: int) -> Day:
    day = db.get(Day, day_id)
    if day is None:
        raise ResourceNotFoundError("Day", day_id, message="Day not found")
    return day


def _ordered(statement):
    return (
        statement.join(Schedule.unit)
        .join(Schedule.day)
        .join(Schedule.time_slot)
        .order_by(Unit.unit_code.asc(), Day.day_order.asc(), TimeSlot.start_time.asc(), Schedule.id.asc())
    )


def describe_schedule(schedule: Schedule) -> str:
    return f"{schedule.unit.unit_code} on {schedule.day.name} at {schedule.time_slot.name}"


def find_schedule_conflicts(
    db: Session,
    time_slot_id: int,
    day_id: int,
    semester: str,
    academic_year: int,
    exclude_id: int | None = None,
) -> list[Schedule]:
    statement = select(Schedule).where(
        Schedule.time_slot_id == time_slot_id,
        Schedule.day_id == day_id,
        Schedule.semester == semester,
        Schedule.academic_year == academic_year,
        Schedule.is_active.is_(True),
    )
    if exclude_id is not None:
        statement = statement.where(Schedule.id != exclude_id)
    return list(db.execute(statement.order_by(Schedule.id.asc())).scalars())


def check_schedule_conflicts(
    db: Session,
    time_slot_id: int,
    day_id: int,
    semester: str,
    academic_year: int,
    exclude_id: int | None = None,
) -> None:
    """Raise ConflictError when an active schedule already occupies the slot/day in this term."""
    conflicts = find_schedule_conflicts(db, time_slot_id, day_id, semester, academic_year, exclude_id)
    if conflicts:
        summary = ", ".join(describe_schedule(item) for item in conflicts)
        raise ConflictError(
            f"{CONFLICT_PREFIX}: {summary}",
            details={"conflictingIds": [item.id for item in conflicts]},
        )


def create_schedule(
    db: Session,
    *,
    unit_id: int | None,
    time_slot_id: int | None,
    day_id: int | None,
    semester: str | None,
    academic_year: int | None,
    tutor_name: str | None = None,
    location: str | None = None,
    max_capacity: int | None = None,
) -> Schedule:
    if not unit_id or not time_slot_id or not day_id or not semester or not academic_year:
        raise ValidationError("Unit ID, time slot ID, day ID, semester, and academic year are required")
    if max_capacity is not None and max_capacity <= 0:
        raise ValidationError("Max capacity must be a positive number")

    _require_active_unit(db, unit_id)
    _require_active_time_slot(db, time_slot_id)
    _require_day(db, day_id)

    duplicate = db.execute(
        select(Schedule.id).where(
            Schedule.unit_id == unit_id,
            Schedule.time_slot_id == time_slot_id,
            Schedule.day_id == day_id,
            Schedule.semester == semester,
            Schedule.academic_year == academic_year,
            Schedule.is_active.is_(True),
        )
    ).first()
    if duplicate is not None:
        logger.info("Rejected duplicate schedule for unit %s slot %s day %s", unit_id, time_slot_id, day_id)
        raise ConflictError(DUPLICATE_MESSAGE, details={"existingId": duplicate[0]})

    check_schedule_conflicts(db, time_slot_id, day_id, semester, academic_year)

    schedule = Schedule(
        unit_id=unit_id,
        time_slot_id=time_slot_id,
        day_id=day_id,
        semester=semester,
        academic_year=academic_year,
        tutor_name=tutor_name or None,
        location=location or None,
        max_capacity=max_capacity,
        is_active=True,
    )
    db.add(schedule)
    commit_or_conflict(db, CONFLICT_PREFIX)
    db.refresh(schedule)
    logger.info(
        "Created schedule %s (unit %s, slot %s, day %s, %s %s)",
        schedule.id,
        unit_id,
        time_slot_id,
        day_id,
        semester,
        academic_year,
    )
    return schedule


def update_schedule(db: Session, schedule_id: int, changes: Mapping[str, Any]) -> Schedule:
    schedule = get_schedule_or_404(db, schedule_id)
    live_enrollments = list(
        db.execute(
            select(Enrollment).where(
                Enrollment.schedule_id == schedule.id,
                Enrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
            )
        ).scalars()
    )

    new_time_slot_id = changes.get("time_slot_id")
    new_day_id = changes.get("day_id")
    moves_slot = new_time_slot_id is not None and new_time_slot_id != schedule.time_slot_id
    moves_day = new_day_id is not None and new_day_id != schedule.day_id

    # Supplying either reference is a structural change, even when it repeats the current value.
    if live_enrollments and (new_time_slot_id is not None or new_day_id is not None):
        raise ValidationError("Cannot change time or day for schedule with active enrollments")

    updates: dict[str, Any] = {}
    if "tutor_name" in changes:
        updates["tutor_name"] = changes["tutor_name"] or None
    if "location" in changes:
        updates["location"] = changes["location"] or None

    if "max_capacity" in changes:
        new_capacity = changes["max_capacity"]
        if new_capacity is not None and new_capacity <= 0:
            raise ValidationError("Max capacity must be a positive number")
        capacity = new_capacity if new_capacity is not None else schedule.unit.capacity
        approved = sum(1 for item in live_enrollments if item.status == EnrollmentStatus.APPROVED)
        if capacity < approved:
            raise ValidationError(
                f"Cannot set capacity below current approved enrollments ({approved})",
                details={"approvedEnrollments": approved},
            )
        updates["max_capacity"] = new_capacity

    if moves_slot:
        _require_active_time_slot(db, new_time_slot_id)
        updates["time_slot_id"] = new_time_slot_id
    if moves_day:
        _require_day(db, new_day_id)
        updates["day_id"] = new_day_id

    if moves_slot or moves_day:
        check_schedule_conflicts(
            db,
            updates.get("time_slot_id", schedule.time_slot_id),
            updates.get("day_id", schedule.day_id),
            schedule.semester,
            schedule.academic_year,
            exclude_id=schedule.id,
        )

    for key, value in updates.items():
        setattr(schedule, key, value)
    commit_or_conflict(db, CONFLICT_PREFIX)
    db.refresh(schedule)
    if updates:
        logger.info("Updated schedule %s fields %s", schedule.id, sorted(updates))
    return schedule


def delete_schedule(db: Session, schedule_id: int) -> None:
    schedule = get_schedule_or_404(db, schedule_id)
    live = db.execute(
        select(func.count(Enrollment.id)).where(
            Enrollment.schedule_id == schedule.id,
            Enrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
        )
    ).scalar_one()
    transition(
        EntityKind.schedule,
        state_of(schedule),
        RecordState.inactive,
        blocked_reason="Cannot delete schedule with active enrollments" if live else None,
    )
    schedule.is_active = False
    db.commit()
    logger.info("Deactivated schedule %s", schedule.id)


def list_schedules(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    unit_id: int | None = None,
    day_id: int | None = None,
    time_slot_id: int | None = None,
    semester: str | None = None,
    academic_year: int | None = None,
    location: str | None = None,
    tutor_name: str | None = None,
) -> tuple[list[tuple[Schedule, CapacityStats]], int]:
    conditions = [Schedule.is_active.is_(True)]
    if unit_id:
        conditions.append(Schedule.unit_id == unit_id)
    if day_id:
        conditions.append(Schedule.day_id == day_id)
    if time_slot_id:
        conditions.append(Schedule.time_slot_id == time_slot_id)
    if semester:
        conditions.append(Schedule.semester == semester)
    if academic_year:
        conditions.append(Schedule.academic_year == academic_year)
    if location:
        conditions.append(Schedule.location.icontains(location, autoescape=True))
    if tutor_name:
        conditions.append(Schedule.tutor_name.icontains(tutor_name, autoescape=True))

    total = db.execute(select(func.count(Schedule.id)).where(*conditions)).scalar_one()
    schedules = list(
        db.execute(_ordered(select(Schedule).where(*conditions)).offset((page - 1) * limit).limit(limit)).scalars()
    )
    stats = schedule_capacity_stats(db, schedules)
    return [(schedule, stats[schedule.id]) for schedule in schedules], total


def get_schedule(db: Session, schedule_id: int) -> tuple[Schedule, list[Enrollment], CapacityStats]:
    schedule = get_schedule_or_404(db, schedule_id)
    enrollments = list(
        db.execute(
            select(Enrollment)
            .where(Enrollment.schedule_id == schedule.id)
            .order_by(Enrollment.enrolled_at.asc(), Enrollment.id.asc())
        ).scalars()
    )
    counts = Counter(item.status for item in enrollments)
    return schedule, enrollments, compute_capacity_stats(effective_capacity(schedule), counts)


def list_schedules_by_unit(
    db: Session,
    unit_id: int,
    *,
    semester: str | None = None,
    academic_year: int | None = None,
) -> list[tuple[Schedule, CapacityStats]]:
    statement = select(Schedule).where(Schedule.unit_id == unit_id, Schedule.is_active.is_(True))
    if semester:
        statement = statement.where(Schedule.semester == semester)
    if academic_year:
        statement = statement.where(Schedule.academic_year == academic_year)
    statement = (
        statement.join(Schedule.day)
        .join(Schedule.time_slot)
        .order_by(Day.day_order.asc(), TimeSlot.start_time.asc(), Schedule.id.asc())
    )
    schedules = list(db.execute(statement).scalars())
    stats = schedule_capacity_stats(db, schedules)
    return [(schedule, stats[schedule.id]) for schedule in schedules]


def list_available_schedules(
    db: Session,
    *,
    semester: str | None = None,
    academic_year: int | None = None,
    unit_id: int | None = None,
    program: str | None = None,
) -> list[tuple[Schedule, CapacityStats]]:
    """Active schedules that still have room for another approved enrollment."""
    statement = select(Schedule).where(Schedule.is_active.is_(True))
    if semester:
        statement = statement.where(Schedule.semester == semester)
    if academic_year:
        statement = statement.where(Schedule.academic_year == academic_year)
    if unit_id:
        statement = statement.where(Schedule.unit_id == unit_id)
    if program:
        statement = statement.where(
            or_(
                Unit.title.icontains(program, autoescape=True),
                Unit.description.icontains(program, autoescape=True),
            )
        )
    schedules = list(db.execute(_ordered(statement)).scalars())
    stats = schedule_capacity_stats(db, schedules)
    return [(schedule, stats[schedule.id]) for schedule in schedules if not stats[schedule.id].is_full]


def get_schedule_stats(
    db: Session,
    *,
    semester: str | None = None,
    academic_year: int | None = None,
) -> CapacitySummary:
    statement = select(Schedule).where(Schedule.is_active.is_(True))
    if semester:
        statement = statement.where(Schedule.semester == semester)
    if academic_year:
        statement = statement.where(Schedule.academic_year == academic_year)
    schedules = list(db.execute(statement).scalars())
    return summarize_capacity(schedule_capacity_stats(db, schedules).values())

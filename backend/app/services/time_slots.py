from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.models.enrollment import ACTIVE_ENROLLMENT_STATUSES, Enrollment, EnrollmentStatus
from app.models.schedule import Schedule
from app.models.time_slot import TimeSlot
from app.services.capacity import utilization_rate
from app.services.lifecycle import EntityKind, RecordState, state_of, transition
from app.services.overlap import find_overlapping, validate_interval
from app.services.persistence import commit_or_conflict

logger = logging.getLogger(__name__)

OVERLAP_MESSAGE = "Time slot overlaps with existing time slot"


@dataclass(frozen=True)
class TimeSlotUsage:
    time_slot: TimeSlot
    schedule_count: int


@dataclass(frozen=True)
class TimeSlotStats:
    total_time_slots: int
    used_time_slots: int
    unused_time_slots: int
    utilization_rate: int
    time_slots: list[TimeSlotUsage]


def _format_clock(value: datetime) -> str:
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def format_time_slot_display(name: str, start_time: datetime, end_time: datetime) -> str:
    return f"{name} ({_format_clock(start_time)} - {_format_clock(end_time)})"


def get_time_slot_or_404(db: Session, time_slot_id: int) -> TimeSlot:
    time_slot = db.get(TimeSlot, time_slot_id)
    if time_slot is None:
        raise ResourceNotFoundError("Time slot", time_slot_id, message="Time slot not found")
    return time_slot


def _usage_query():
    return (
        select(TimeSlot, func.count(Schedule.id))
        .outerjoin(
            Schedule,
            and_(Schedule.time_slot_id == TimeSlot.id, Schedule.is_active.is_(True)),
        )
        .group_by(TimeSlot.id)
        .order_by(TimeSlot.start_time.asc(), TimeSlot.id.asc())
    )


def list_time_slots(db: Session, include_inactive: bool = False) -> list[TimeSlotUsage]:
    statement = _usage_query()
    if not include_inactive:
        statement = statement.where(TimeSlot.is_active.is_(True))
    return [TimeSlotUsage(time_slot=slot, schedule_count=count) for slot, count in db.execute(statement).all()]


def get_time_slot(db: Session, time_slot_id: int) -> tuple[TimeSlot, list[tuple[Schedule, int]]]:
    """Load a slot together with its active schedules and their approved counts."""
    time_slot = get_time_slot_or_404(db, time_slot_id)
    approved = func.count(Enrollment.id)
    rows = db.execute(
        select(Schedule, approved)
        .outerjoin(
            Enrollment,
            and_(Enrollment.schedule_id == Schedule.id, Enrollment.status == EnrollmentStatus.APPROVED),
        )
        .where(Schedule.time_slot_id == time_slot.id, Schedule.is_active.is_(True))
        .group_by(Schedule.id)
        .order_by(Schedule.id.asc())
    ).all()
    return time_slot, [(schedule, count) for schedule, count in rows]


def check_time_slot_overlap(
    db: Session,
    start_time: datetime,
    end_time: datetime,
    exclude_id: int | None = None,
) -> list[TimeSlot]:
    validate_interval(start_time, end_time)
    active_slots = db.execute(select(TimeSlot).where(TimeSlot.is_active.is_(True))).scalars()
    return find_overlapping(start_time, end_time, active_slots, exclude_id=exclude_id)


def create_time_slot(db: Session, *, name: str, start_time: datetime, end_time: datetime) -> TimeSlot:
    overlapping = check_time_slot_overlap(db, start_time, end_time)
    if overlapping:
        logger.info(
            "Rejected time slot %r: overlaps %s",
            name,
            [slot.id for slot in overlapping],
        )
        raise ConflictError(OVERLAP_MESSAGE, details={"overlappingIds": [slot.id for slot in overlapping]})

    time_slot = TimeSlot(name=name, start_time=start_time, end_time=end_time, is_active=True)
    db.add(time_slot)
    commit_or_conflict(db, OVERLAP_MESSAGE)
    db.refresh(time_slot)
    logger.info("Created time slot %s (%s)", time_slot.id, time_slot.name)
    return time_slot


def update_time_slot(
    db: Session,
    time_slot_id: int,
    *,
    name: str | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
) -> TimeSlot:
    time_slot = get_time_slot_or_404(db, time_slot_id)

    if start_time is not None or end_time is not None:
        start = start_time if start_time is not None else time_slot.start_time
        end = end_time if end_time is not None else time_slot.end_time
        overlapping = check_time_slot_overlap(db, start, end, exclude_id=time_slot.id)
        if overlapping:
            logger.info(
                "Rejected update of time slot %s: overlaps %s",
                time_slot_id,
                [slot.id for slot in overlapping],
            )
            raise ConflictError(OVERLAP_MESSAGE, details={"overlappingIds": [slot.id for slot in overlapping]})
        time_slot.start_time = start
        time_slot.end_time = end

    if name:
        time_slot.name = name

    commit_or_conflict(db, OVERLAP_MESSAGE)
    db.refresh(time_slot)
    logger.info("Updated time slot %s", time_slot.id)
    return time_slot


def delete_time_slot(db: Session, time_slot_id: int) -> None:
    time_slot = get_time_slot_or_404(db, time_slot_id)
    referencing = db.execute(
        select(Schedule.is_active, func.count(Schedule.id))
        .where(Schedule.time_slot_id == time_slot.id)
        .group_by(Schedule.is_active)
    ).all()
    counts = {bool(is_active): count for is_active, count in referencing}
    blocked_reason = None
    if counts.get(True):
        blocked_reason = "Cannot delete time slot with active schedules"
    elif counts.get(False):
        # Inactive schedules are kept as history and still point at the slot.
        blocked_reason = "Cannot delete time slot referenced by inactive schedules"
    transition(
        EntityKind.time_slot,
        state_of(time_slot),
        RecordState.removed,
        blocked_reason=blocked_reason,
    )
    db.delete(time_slot)
    db.commit()
    logger.info("Deleted time slot %s", time_slot_id)


def deactivate_time_slot(db: Session, time_slot_id: int) -> TimeSlot:
    time_slot = get_time_slot_or_404(db, time_slot_id)
    live_enrollments = db.execute(
        select(func.count(Enrollment.id))
        .join(Schedule, Schedule.id == Enrollment.schedule_id)
        .where(
            Schedule.time_slot_id == time_slot.id,
            Schedule.is_active.is_(True),
            Enrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
        )
    ).scalar_one()
    transition(
        EntityKind.time_slot,
        state_of(time_slot),
        RecordState.inactive,
        blocked_reason="Cannot deactivate time slot with active enrollments" if live_enrollments else None,
    )
    time_slot.is_active = False
    db.commit()
    db.refresh(time_slot)
    logger.info("Deactivated time slot %s", time_slot.id)
    return time_slot


def get_available_time_slots(
    db: Session,
    day_id: int,
    semester: str,
    academic_year: int,
) -> list[tuple[TimeSlot, list[Schedule]]]:
    """Active slots in start order, each with the active schedules occupying it for the given term and day."""
    if not day_id or not semester or not academic_year:
        raise ValidationError("Day ID, semester, and academic year are required")
    slots = list(
        db.execute(
            select(TimeSlot)
            .where(TimeSlot.is_active.is_(True))
            .order_by(TimeSlot.start_time.asc(), TimeSlot.id.asc())
        ).scalars()
    )
    occupying: dict[int, list[Schedule]] = {slot.id: [] for slot in slots}
    if slots:
        schedules = db.execute(
            select(Schedule).where(
                Schedule.time_slot_id.in_(list(occupying)),
                Schedule.day_id == day_id,
                Schedule.semester == semester,
                Schedule.academic_year == academic_year,
                Schedule.is_active.is_(True),
            )
        ).scalars()
        for schedule in schedules:
            occupying[schedule.time_slot_id].append(schedule)
    return [(slot, occupying[slot.id]) for slot in slots]


def get_time_slot_stats(db: Session) -> TimeSlotStats:
    usage = list_time_slots(db, include_inactive=False)
    total = len(usage)
    used = sum(1 for item in usage if item.schedule_count > 0)
    return TimeSlotStats(
        total_time_slots=total,
        used_time_slots=used,
        unused_time_slots=total - used,
        utilization_rate=utilization_rate(used, total),
        time_slots=usage,
    )

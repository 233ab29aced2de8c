from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ResourceNotFoundError
from app.models.day import Day
from app.models.enrollment import ACTIVE_ENROLLMENT_STATUSES, Enrollment
from app.models.schedule import Schedule
from app.models.time_slot import TimeSlot
from app.models.unit import Unit
from app.services.capacity import CapacityStats, schedule_capacity_stats, summarize_capacity
from app.services.lifecycle import EntityKind, RecordState, state_of, transition
from app.services.persistence import commit_or_conflict

logger = logging.getLogger(__name__)

DUPLICATE_CODE_MESSAGE = "Unit code already exists"


@dataclass(frozen=True)
class UnitStats:
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


def normalize_unit_code(value: str) -> str:
    return value.strip().upper()


def get_unit_or_404(db: Session, unit_id: int) -> Unit:
    unit = db.get(Unit, unit_id)
    if unit is None:
        raise ResourceNotFoundError("Unit", unit_id, message="Unit not found")
    return unit


def _search_condition(query: str):
    return or_(
        Unit.unit_code.icontains(query, autoescape=True),
        Unit.title.icontains(query, autoescape=True),
        Unit.description.icontains(query, autoescape=True),
    )


def list_units(
    db: Session,
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    credits: int | None = None,
    min_credits: int | None = None,
    max_credits: int | None = None,
) -> tuple[list[Unit], int]:
    conditions = [Unit.is_active.is_(True)]
    if search:
        conditions.append(_search_condition(search))
    if credits:
        conditions.append(Unit.credits == credits)
    if min_credits:
        conditions.append(Unit.credits >= min_credits)
    if max_credits:
        conditions.append(Unit.credits <= max_credits)

    total = db.execute(select(func.count(Unit.id)).where(*conditions)).scalar_one()
    units = list(
        db.execute(
            select(Unit)
            .where(*conditions)
            .order_by(Unit.unit_code.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()
    )
    return units, total


def search_units(db: Session, query: str, limit: int = 20) -> list[Unit]:
    return list(
        db.execute(
            select(Unit)
            .where(Unit.is_active.is_(True), _search_condition(query))
            .order_by(Unit.unit_code.asc(), Unit.title.asc())
            .limit(limit)
        ).scalars()
    )


def get_unit(db: Session, unit_id: int) -> tuple[Unit, list[tuple[Schedule, CapacityStats]]]:
    unit = get_unit_or_404(db, unit_id)
    schedules = list(
        db.execute(
            select(Schedule)
            .join(Schedule.day)
            .join(Schedule.time_slot)
            .where(Schedule.unit_id == unit.id, Schedule.is_active.is_(True))
            .order_by(Day.day_order.asc(), TimeSlot.start_time.asc())
        ).scalars()
    )
    stats = schedule_capacity_stats(db, schedules)
    return unit, [(schedule, stats[schedule.id]) for schedule in schedules]


def _ensure_unique_code(db: Session, unit_code: str, exclude_id: int | None = None) -> None:
    statement = select(Unit.id).where(func.upper(Unit.unit_code) == unit_code)
    if exclude_id is not None:
        statement = statement.where(Unit.id != exclude_id)
    if db.execute(statement).first() is not None:
        raise ConflictError(DUPLICATE_CODE_MESSAGE)


def create_unit(
    db: Session,
    *,
    unit_code: str,
    title: str,
    credits: int,
    capacity: int,
    description: str | None = None,
) -> Unit:
    code = normalize_unit_code(unit_code)
    _ensure_unique_code(db, code)
    unit = Unit(
        unit_code=code,
        title=title,
        description=description or None,
        credits=credits,
        capacity=capacity,
        is_active=True,
    )
    db.add(unit)
    commit_or_conflict(db, DUPLICATE_CODE_MESSAGE)
    db.refresh(unit)
    logger.info("Created unit %s (%s)", unit.id, unit.unit_code)
    return unit


def update_unit(db: Session, unit_id: int, changes: Mapping[str, Any]) -> Unit:
    unit = get_unit_or_404(db, unit_id)
    data = dict(changes)
    if data.get("unit_code"):
        data["unit_code"] = normalize_unit_code(data["unit_code"])
        if data["unit_code"] != unit.unit_code:
            _ensure_unique_code(db, data["unit_code"], exclude_id=unit.id)
    else:
        data.pop("unit_code", None)
    if "description" in data:
        data["description"] = data["description"] or None

    for key, value in data.items():
        if value is None and key != "description":
            continue
        setattr(unit, key, value)
    commit_or_conflict(db, DUPLICATE_CODE_MESSAGE)
    db.refresh(unit)
    logger.info("Updated unit %s", unit.id)
    return unit


def deactivate_unit(db: Session, unit_id: int) -> Unit:
    unit = get_unit_or_404(db, unit_id)
    live = db.execute(
        select(func.count(Enrollment.id))
        .join(Schedule, Schedule.id == Enrollment.schedule_id)
        .where(
            Schedule.unit_id == unit.id,
            Schedule.is_active.is_(True),
            Enrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
        )
    ).scalar_one()
    transition(
        EntityKind.unit,
        state_of(unit),
        RecordState.inactive,
        blocked_reason="Cannot deactivate unit with active enrollments" if live else None,
    )
    unit.is_active = False
    db.commit()
    db.refresh(unit)
    logger.info("Deactivated unit %s", unit.id)
    return unit


def get_unit_stats(db: Session, unit_id: int) -> tuple[Unit, UnitStats]:
    unit = get_unit_or_404(db, unit_id)
    schedules = list(
        db.execute(select(Schedule).where(Schedule.unit_id == unit.id, Schedule.is_active.is_(True))).scalars()
    )
    per_schedule = list(schedule_capacity_stats(db, schedules).values())
    summary = summarize_capacity(per_schedule)
    stats = UnitStats(
        total_schedules=summary.total_schedules,
        total_enrollments=sum(item.total for item in per_schedule),
        approved_enrollments=summary.total_enrollments,
        pending_enrollments=sum(item.pending for item in per_schedule),
        waitlisted_enrollments=sum(item.waitlisted for item in per_schedule),
        rejected_enrollments=sum(item.rejected for item in per_schedule),
        total_capacity=summary.total_capacity,
        available_spots=summary.available_spots,
        full_schedules=summary.full_schedules,
        empty_schedules=summary.empty_schedules,
        utilization_rate=summary.utilization_rate,
    )
    return unit, stats

"""Capacity and enrollment statistics derived from enrollment status tallies."""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.schedule import Schedule

StatusCounts = Mapping[EnrollmentStatus, int]


@dataclass(frozen=True)
class CapacityStats:
    capacity: int
    approved: int
    pending: int
    waitlisted: int
    rejected: int
    withdrawn: int
    available_spots: int
    utilization_rate: int

    @property
    def total(self) -> int:
        return self.approved + self.pending + self.waitlisted + self.rejected + self.withdrawn

    @property
    def is_full(self) -> bool:
        return self.approved >= self.capacity

    @property
    def is_empty(self) -> bool:
        return self.approved == 0


@dataclass(frozen=True)
class CapacitySummary:
    total_schedules: int
    total_capacity: int
    total_enrollments: int
    available_spots: int
    full_schedules: int
    empty_schedules: int
    utilization_rate: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def utilization_rate(approved: int, capacity: int) -> int:
    if capacity <= 0:
        return 0
    rate = round_half_up(approved / capacity * 100)
    return max(0, min(100, rate))


def effective_capacity(schedule: Schedule) -> int:
    if schedule.max_capacity is not None:
        return schedule.max_capacity
    return schedule.unit.capacity


def compute_capacity_stats(capacity: int, counts_by_status: StatusCounts | None = None) -> CapacityStats:
    counts = counts_by_status or {}
    approved = counts.get(EnrollmentStatus.APPROVED, 0)
    return CapacityStats(
        capacity=capacity,
        approved=approved,
        pending=counts.get(EnrollmentStatus.PENDING, 0),
        waitlisted=counts.get(EnrollmentStatus.WAITLISTED, 0),
        rejected=counts.get(EnrollmentStatus.REJECTED, 0),
        withdrawn=counts.get(EnrollmentStatus.WITHDRAWN, 0),
        # Not clamped: a reduced override can leave this negative.
        available_spots=capacity - approved,
        utilization_rate=utilization_rate(approved, capacity),
    )


def summarize_capacity(stats: Iterable[CapacityStats]) -> CapacitySummary:
    total_schedules = 0
    total_capacity = 0
    total_enrollments = 0
    available_spots = 0
    full_schedules = 0
    empty_schedules = 0
    for item in stats:
        total_schedules += 1
        total_capacity += item.capacity
        total_enrollments += item.approved
        available_spots += item.available_spots
        if item.is_full:
            full_schedules += 1
        if item.is_empty:
            empty_schedules += 1
    return CapacitySummary(
        total_schedules=total_schedules,
        total_capacity=total_capacity,
        total_enrollments=total_enrollments,
        available_spots=available_spots,
        full_schedules=full_schedules,
        empty_schedules=empty_schedules,
        utilization_rate=utilization_rate(total_enrollments, total_capacity),
    )


def enrollment_counts_by_schedule(
    db: Session,
    schedule_ids: Iterable[int],
) -> dict[int, dict[EnrollmentStatus, int]]:
    ids = list(schedule_ids)
    counts: dict[int, dict[EnrollmentStatus, int]] = defaultdict(dict)
    if not ids:
        return counts
    rows = db.execute(
        select(Enrollment.schedule_id, Enrollment.status, func.count(Enrollment.id))
        .where(Enrollment.schedule_id.in_(ids))
        .group_by(Enrollment.schedule_id, Enrollment.status)
    ).all()
    for schedule_id, status, count in rows:
        counts[schedule_id][status] = count
    return counts


def schedule_capacity_stats(db: Session, schedules: Iterable[Schedule]) -> dict[int, CapacityStats]:
    rows = list(schedules)
    counts = enrollment_counts_by_schedule(db, [schedule.id for schedule in rows])
    return {
        schedule.id: compute_capacity_stats(effective_capacity(schedule), counts.get(schedule.id))
        for schedule in rows
    }


def approved_count(db: Session, schedule_id: int) -> int:
    return db.execute(
        select(func.count(Enrollment.id)).where(
            Enrollment.schedule_id == schedule_id,
            Enrollment.status == EnrollmentStatus.APPROVED,
        )
    ).scalar_one()

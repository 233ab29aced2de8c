"""Half-open time interval overlap checks used for time slots."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol, TypeVar

from app.core.exceptions import ValidationError


class IntervalRecord(Protocol):
    id: int
    start_time: datetime
    end_time: datetime
    is_active: bool


R = TypeVar("R", bound=IntervalRecord)


def validate_interval(start: datetime, end: datetime) -> None:
    if start >= end:
        raise ValidationError("End time must be after start time")


def intervals_overlap(
    candidate_start: datetime,
    candidate_end: datetime,
    existing_start: datetime,
    existing_end: datetime,
) -> bool:
    """Return True when [candidate_start, candidate_end) and [existing_start, existing_end) overlap.

    The four clauses are kept as separate tests so boundary behaviour stays
    explicit. An interval ending exactly where another begins does not overlap.
    """
    # Candidate starts inside existing.
    if existing_start <= candidate_start < existing_end:
        return True
    # Candidate ends inside existing.
    if existing_start < candidate_end <= existing_end:
        return True
    # Candidate contains existing.
    if candidate_start <= existing_start and candidate_end >= existing_end:
        return True
    # Existing contains candidate.
    if existing_start <= candidate_start and existing_end >= candidate_end:
        return True
    return False


def find_overlapping(
    candidate_start: datetime,
    candidate_end: datetime,
    existing: Iterable[R],
    exclude_id: int | None = None,
) -> list[R]:
    """Return every active record in ``existing`` whose interval overlaps the candidate."""
    validate_interval(candidate_start, candidate_end)
    conflicts: list[R] = []
    for record in existing:
        if not record.is_active:
            continue
        if exclude_id is not None and record.id == exclude_id:
            continue
        if intervals_overlap(candidate_start, candidate_end, record.start_time, record.end_time):
            conflicts.append(record)
    return conflicts

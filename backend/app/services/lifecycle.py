"""Record lifecycle states and the transitions each entity kind permits."""

from __future__ import annotations

from enum import Enum

from app.core.exceptions import PreconditionError, ValidationError


class RecordState(str, Enum):
    active = "active"
    inactive = "inactive"
    removed = "removed"


class EntityKind(str, Enum):
    time_slot = "time_slot"
    schedule = "schedule"
    unit = "unit"


ALLOWED_TRANSITIONS: dict[EntityKind, set[tuple[RecordState, RecordState]]] = {
    EntityKind.time_slot: {
        (RecordState.active, RecordState.inactive),
        (RecordState.inactive, RecordState.inactive),
        (RecordState.active, RecordState.removed),
        (RecordState.inactive, RecordState.removed),
    },
    EntityKind.schedule: {
        (RecordState.active, RecordState.inactive),
        (RecordState.inactive, RecordState.inactive),
    },
    EntityKind.unit: {
        (RecordState.active, RecordState.inactive),
        (RecordState.inactive, RecordState.inactive),
    },
}


def state_of(record) -> RecordState:
    return RecordState.active if record.is_active else RecordState.inactive


def transition(
    kind: EntityKind,
    current: RecordState,
    target: RecordState,
    *,
    blocked_reason: str | None = None,
) -> RecordState:
    """Validate a lifecycle move and return the new state.

    ``blocked_reason`` is set by the caller when a guard (live dependents) fails.
    """
    if (current, target) not in ALLOWED_TRANSITIONS[kind]:
        raise ValidationError(
            f"Cannot move {kind.value.replace('_', ' ')} from {current.value} to {target.value}",
            details={"from": current.value, "to": target.value},
        )
    if blocked_reason:
        raise PreconditionError(blocked_reason, details={"from": current.value, "to": target.value})
    return target

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_admin
from app.core.exceptions import ValidationError
from app.models.user import User
from app.schemas.common import ApiResponse, to_utc_naive
from app.schemas.time_slot import (
    AvailableTimeSlotOut,
    OverlapCheckOut,
    TimeSlotBrief,
    TimeSlotCreate,
    TimeSlotDetailOut,
    TimeSlotListItem,
    TimeSlotOut,
    TimeSlotScheduleOut,
    TimeSlotStatsOut,
    TimeSlotUpdate,
    TimeSlotUsageOut,
)
from app.services import time_slots as time_slot_service

router = APIRouter()


@router.get("", response_model=ApiResponse[list[TimeSlotListItem]])
def list_time_slots(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[TimeSlotListItem]]:
    usage = time_slot_service.list_time_slots(db, include_inactive=include_inactive)
    items = [
        TimeSlotListItem.model_validate(item.time_slot).model_copy(update={"schedule_count": item.schedule_count})
        for item in usage
    ]
    return ApiResponse(message="Time slots fetched successfully", data=items)


@router.get("/available", response_model=ApiResponse[list[AvailableTimeSlotOut]])
def get_available_time_slots(
    day_id: int | None = Query(default=None, alias="dayId", gt=0),
    semester: str | None = Query(default=None),
    academic_year: int | None = Query(default=None, alias="academicYear"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[AvailableTimeSlotOut]]:
    rows = time_slot_service.get_available_time_slots(db, day_id, semester, academic_year)
    items = []
    for slot, schedules in rows:
        occupying = [TimeSlotScheduleOut.model_validate(schedule) for schedule in schedules]
        items.append(
            AvailableTimeSlotOut.model_validate(slot).model_copy(
                update={"is_available": not occupying, "schedules": occupying}
            )
        )
    return ApiResponse(message="Available time slots fetched successfully", data=items)


@router.get("/check-overlap", response_model=ApiResponse[OverlapCheckOut])
def check_time_slot_overlap(
    start_time: datetime | None = Query(default=None, alias="startTime"),
    end_time: datetime | None = Query(default=None, alias="endTime"),
    exclude_id: int | None = Query(default=None, alias="excludeId", gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[OverlapCheckOut]:
    if start_time is None or end_time is None:
        raise ValidationError("Start time and end time are required")
    overlaps = time_slot_service.check_time_slot_overlap(
        db,
        to_utc_naive(start_time),
        to_utc_naive(end_time),
        exclude_id=exclude_id,
    )
    result = OverlapCheckOut(
        has_overlap=bool(overlaps),
        overlapping_slots=[TimeSlotBrief.model_validate(slot) for slot in overlaps],
    )
    return ApiResponse(message="Time slot overlap check completed", data=result)


@router.get("/stats/usage", response_model=ApiResponse[TimeSlotStatsOut])
def get_time_slot_stats(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[TimeSlotStatsOut]:
    stats = time_slot_service.get_time_slot_stats(db)
    result = TimeSlotStatsOut(
        total_time_slots=stats.total_time_slots,
        used_time_slots=stats.used_time_slots,
        unused_time_slots=stats.unused_time_slots,
        utilization_rate=stats.utilization_rate,
        time_slots=[
            TimeSlotUsageOut.model_validate(item.time_slot).model_copy(update={"schedule_count": item.schedule_count})
            for item in stats.time_slots
        ],
    )
    return ApiResponse(message="Time slot statistics fetched successfully", data=result)


@router.get("/{time_slot_id}", response_model=ApiResponse[TimeSlotDetailOut])
def get_time_slot(
    time_slot_id: int = Path(gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[TimeSlotDetailOut]:
    time_slot, schedules = time_slot_service.get_time_slot(db, time_slot_id)
    detail = TimeSlotDetailOut.model_validate(time_slot).model_copy(
        update={
            "schedules": [
                TimeSlotScheduleOut.model_validate(schedule).model_copy(update={"approved_enrollments": approved})
                for schedule, approved in schedules
            ]
        }
    )
    return ApiResponse(message="Time slot fetched successfully", data=detail)


@router.post("", response_model=ApiResponse[TimeSlotOut], status_code=status.HTTP_201_CREATED)
def create_time_slot(
    payload: TimeSlotCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[TimeSlotOut]:
    time_slot = time_slot_service.create_time_slot(
        db,
        name=payload.name,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    return ApiResponse(message="Time slot created successfully", data=TimeSlotOut.model_validate(time_slot))


@router.put("/{time_slot_id}/deactivate", response_model=ApiResponse[TimeSlotOut])
def deactivate_time_slot(
    time_slot_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[TimeSlotOut]:
    time_slot = time_slot_service.deactivate_time_slot(db, time_slot_id)
    return ApiResponse(message="Time slot deactivated successfully", data=TimeSlotOut.model_validate(time_slot))


@router.put("/{time_slot_id}", response_model=ApiResponse[TimeSlotOut])
def update_time_slot(
    payload: TimeSlotUpdate,
    time_slot_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[TimeSlotOut]:
    time_slot = time_slot_service.update_time_slot(
        db,
        time_slot_id,
        name=payload.name,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    return ApiResponse(message="Time slot updated successfully", data=TimeSlotOut.model_validate(time_slot))


@router.delete("/{time_slot_id}", response_model=ApiResponse[None])
def delete_time_slot(
    time_slot_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[None]:
    time_slot_service.delete_time_slot(db, time_slot_id)
    return ApiResponse(message="Time slot deleted successfully")

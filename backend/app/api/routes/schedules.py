from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_admin
from app.core.config import get_settings
from app.core.exceptions import ConflictError, ValidationError
from app.models.user import User
from app.schemas.common import ApiResponse, PagedResponse, build_pagination
from app.schemas.enrollment import EnrollmentDetailOut
from app.schemas.schedule import (
    AvailableScheduleOut,
    ConflictCheckOut,
    EnrollmentBreakdownOut,
    EnrollmentSummaryOut,
    ScheduleCreate,
    ScheduleDetailOut,
    ScheduleListItem,
    ScheduleOut,
    ScheduleStatsOut,
    ScheduleUpdate,
)
from app.services import schedules as schedule_service

settings = get_settings()
router = APIRouter()


def _list_item(schedule, stats) -> ScheduleListItem:
    return ScheduleListItem.model_validate(schedule).model_copy(
        update={"enrollment_stats": EnrollmentSummaryOut.from_stats(stats)}
    )


@router.get("", response_model=PagedResponse[ScheduleListItem])
def list_schedules(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    unit_id: int | None = Query(default=None, alias="unitId", gt=0),
    day_id: int | None = Query(default=None, alias="dayId", gt=0),
    time_slot_id: int | None = Query(default=None, alias="timeSlotId", gt=0),
    semester: str | None = Query(default=None),
    academic_year: int | None = Query(default=None, alias="academicYear"),
    location: str | None = Query(default=None),
    tutor_name: str | None = Query(default=None, alias="tutorName"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PagedResponse[ScheduleListItem]:
    rows, total = schedule_service.list_schedules(
        db,
        page=page,
        limit=limit,
        unit_id=unit_id,
        day_id=day_id,
        time_slot_id=time_slot_id,
        semester=semester,
        academic_year=academic_year,
        location=location,
        tutor_name=tutor_name,
    )
    return PagedResponse(
        message="Schedules fetched successfully",
        data=[_list_item(schedule, stats) for schedule, stats in rows],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/available", response_model=ApiResponse[list[AvailableScheduleOut]])
def list_available_schedules(
    semester: str | None = Query(default=None),
    academic_year: int | None = Query(default=None, alias="academicYear"),
    unit_id: int | None = Query(default=None, alias="unitId", gt=0),
    program: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[AvailableScheduleOut]]:
    rows = schedule_service.list_available_schedules(
        db,
        semester=semester,
        academic_year=academic_year,
        unit_id=unit_id,
        program=program,
    )
    items = [
        AvailableScheduleOut.model_validate(schedule).model_copy(
            update={
                "available_spots": stats.available_spots,
                "capacity": stats.capacity,
                "enrolled_count": stats.approved,
            }
        )
        for schedule, stats in rows
    ]
    return ApiResponse(message="Available schedules fetched successfully", data=items)


@router.get("/check-conflicts", response_model=ApiResponse[ConflictCheckOut])
def check_schedule_conflicts(
    time_slot_id: int | None = Query(default=None, alias="timeSlotId", gt=0),
    day_id: int | None = Query(default=None, alias="dayId", gt=0),
    semester: str | None = Query(default=None),
    academic_year: int | None = Query(default=None, alias="academicYear"),
    exclude_id: int | None = Query(default=None, alias="excludeId", gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[ConflictCheckOut]:
    if not time_slot_id or not day_id or not semester or not academic_year:
        raise ValidationError("Time slot ID, day ID, semester, and academic year are required")
    # A clash is reported as data here, not as an HTTP error.
    try:
        schedule_service.check_schedule_conflicts(
            db,
            time_slot_id,
            day_id,
            semester,
            academic_year,
            exclude_id=exclude_id,
        )
    except ConflictError as exc:
        return ApiResponse(
            message="Schedule conflict detected",
            data=ConflictCheckOut(has_conflict=True, conflict_message=exc.message),
        )
    return ApiResponse(message="No schedule conflicts found", data=ConflictCheckOut(has_conflict=False))


@router.get("/stats/overview", response_model=ApiResponse[ScheduleStatsOut])
def get_schedule_stats(
    semester: str | None = Query(default=None),
    academic_year: int | None = Query(default=None, alias="academicYear"),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[ScheduleStatsOut]:
    summary = schedule_service.get_schedule_stats(db, semester=semester, academic_year=academic_year)
    return ApiResponse(
        message="Schedule statistics fetched successfully",
        data=ScheduleStatsOut.from_summary(summary),
    )


@router.get("/unit/{unit_id}", response_model=ApiResponse[list[ScheduleListItem]])
def list_schedules_by_unit(
    unit_id: int = Path(gt=0),
    semester: str | None = Query(default=None),
    academic_year: int | None = Query(default=None, alias="academicYear"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[ScheduleListItem]]:
    rows = schedule_service.list_schedules_by_unit(db, unit_id, semester=semester, academic_year=academic_year)
    return ApiResponse(
        message="Unit schedules fetched successfully",
        data=[_list_item(schedule, stats) for schedule, stats in rows],
    )


@router.get("/{schedule_id}", response_model=ApiResponse[ScheduleDetailOut])
def get_schedule(
    schedule_id: int = Path(gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[ScheduleDetailOut]:
    schedule, enrollments, stats = schedule_service.get_schedule(db, schedule_id)
    detail = ScheduleDetailOut.model_validate(schedule).model_copy(
        update={
            "enrollments": [EnrollmentDetailOut.model_validate(item) for item in enrollments],
            "enrollment_stats": EnrollmentBreakdownOut.from_stats(stats),
        }
    )
    return ApiResponse(message="Schedule fetched successfully", data=detail)


@router.post("", response_model=ApiResponse[ScheduleOut], status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[ScheduleOut]:
    schedule = schedule_service.create_schedule(db, **payload.model_dump())
    return ApiResponse(message="Schedule created successfully", data=ScheduleOut.model_validate(schedule))


@router.put("/{schedule_id}", response_model=ApiResponse[ScheduleOut])
def update_schedule(
    payload: ScheduleUpdate,
    schedule_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[ScheduleOut]:
    schedule = schedule_service.update_schedule(db, schedule_id, payload.model_dump(exclude_unset=True))
    return ApiResponse(message="Schedule updated successfully", data=ScheduleOut.model_validate(schedule))


@router.delete("/{schedule_id}", response_model=ApiResponse[None])
def delete_schedule(
    schedule_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[None]:
    schedule_service.delete_schedule(db, schedule_id)
    return ApiResponse(message="Schedule deleted successfully")

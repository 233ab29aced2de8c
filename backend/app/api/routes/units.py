from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_admin
from app.core.config import get_settings
from app.models.user import User
from app.schemas.common import ApiResponse, PagedResponse, build_pagination
from app.schemas.schedule import EnrollmentSummaryOut, UnitDetailOut, UnitScheduleOut
from app.schemas.unit import UnitBrief, UnitCreate, UnitOut, UnitStatsEnvelope, UnitStatsOut, UnitUpdate
from app.services import units as unit_service

settings = get_settings()
router = APIRouter()


@router.get("", response_model=PagedResponse[UnitOut])
def list_units(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=settings.max_page_size),
    search: str | None = Query(default=None),
    credits: int | None = Query(default=None, ge=1),
    min_credits: int | None = Query(default=None, alias="minCredits", ge=1),
    max_credits: int | None = Query(default=None, alias="maxCredits", ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PagedResponse[UnitOut]:
    units, total = unit_service.list_units(
        db,
        page=page,
        limit=limit,
        search=search,
        credits=credits,
        min_credits=min_credits,
        max_credits=max_credits,
    )
    return PagedResponse(
        message="Units fetched successfully",
        data=[UnitOut.model_validate(unit) for unit in units],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/search", response_model=ApiResponse[list[UnitBrief]])
def search_units(
    q: str = Query(min_length=1),
    limit: int = Query(default=20, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[UnitBrief]]:
    units = unit_service.search_units(db, q, limit=limit)
    return ApiResponse(message="Units search completed", data=[UnitBrief.model_validate(unit) for unit in units])


@router.get("/{unit_id}", response_model=ApiResponse[UnitDetailOut])
def get_unit(
    unit_id: int = Path(gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[UnitDetailOut]:
    unit, schedules = unit_service.get_unit(db, unit_id)
    detail = UnitDetailOut.model_validate(unit).model_copy(
        update={
            "schedules": [
                UnitScheduleOut.model_validate(schedule).model_copy(
                    update={"enrollment_stats": EnrollmentSummaryOut.from_stats(stats)}
                )
                for schedule, stats in schedules
            ]
        }
    )
    return ApiResponse(message="Unit fetched successfully", data=detail)


@router.post("", response_model=ApiResponse[UnitOut], status_code=status.HTTP_201_CREATED)
def create_unit(
    payload: UnitCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[UnitOut]:
    unit = unit_service.create_unit(db, **payload.model_dump())
    return ApiResponse(message="Unit created successfully", data=UnitOut.model_validate(unit))


@router.put("/{unit_id}", response_model=ApiResponse[UnitOut])
def update_unit(
    payload: UnitUpdate,
    unit_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[UnitOut]:
    unit = unit_service.update_unit(db, unit_id, payload.model_dump(exclude_unset=True))
    return ApiResponse(message="Unit updated successfully", data=UnitOut.model_validate(unit))


@router.delete("/{unit_id}", response_model=ApiResponse[UnitOut])
def deactivate_unit(
    unit_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[UnitOut]:
    unit = unit_service.deactivate_unit(db, unit_id)
    return ApiResponse(message="Unit deactivated successfully", data=UnitOut.model_validate(unit))


@router.get("/{unit_id}/stats", response_model=ApiResponse[UnitStatsEnvelope])
def get_unit_stats(
    unit_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[UnitStatsEnvelope]:
    unit, stats = unit_service.get_unit_stats(db, unit_id)
    result = UnitStatsEnvelope(unit=UnitOut.model_validate(unit), stats=UnitStatsOut.model_validate(stats))
    return ApiResponse(message="Unit statistics fetched successfully", data=result)

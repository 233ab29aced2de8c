from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_admin
from app.core.exceptions import ValidationError
from app.models.enrollment import EnrollmentStatus
from app.models.user import User, UserRole
from app.schemas.common import ApiResponse
from app.schemas.enrollment import EnrollmentCreate, EnrollmentDetailOut, EnrollmentOut
from app.services import enrollments as enrollment_service

router = APIRouter()


@router.get("", response_model=ApiResponse[list[EnrollmentDetailOut]])
def list_enrollments(
    schedule_id: int | None = Query(default=None, alias="scheduleId", gt=0),
    enrollment_status: EnrollmentStatus | None = Query(default=None, alias="status"),
    student_profile_id: int | None = Query(default=None, alias="studentProfileId", gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[EnrollmentDetailOut]]:
    if current_user.role != UserRole.admin:
        profile = enrollment_service.find_student_profile(db, current_user)
        if profile is None:
            return ApiResponse(message="Enrollments fetched successfully", data=[])
        student_profile_id = profile.id
    enrollments = enrollment_service.list_enrollments(
        db,
        schedule_id=schedule_id,
        status=enrollment_status,
        student_profile_id=student_profile_id,
    )
    return ApiResponse(
        message="Enrollments fetched successfully",
        data=[EnrollmentDetailOut.model_validate(item) for item in enrollments],
    )


@router.post("", response_model=ApiResponse[EnrollmentOut], status_code=status.HTTP_201_CREATED)
def create_enrollment(
    payload: EnrollmentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[EnrollmentOut]:
    if current_user.role == UserRole.admin:
        if payload.student_profile_id is None:
            raise ValidationError("Student profile ID is required")
        student_profile_id = payload.student_profile_id
    else:
        student_profile_id = enrollment_service.ensure_student_profile(db, current_user).id
    enrollment = enrollment_service.request_enrollment(
        db,
        schedule_id=payload.schedule_id,
        student_profile_id=student_profile_id,
    )
    return ApiResponse(message="Enrollment requested successfully", data=EnrollmentOut.model_validate(enrollment))


def _set_status(db: Session, enrollment_id: int, target: EnrollmentStatus, message: str) -> ApiResponse[EnrollmentOut]:
    enrollment = enrollment_service.change_enrollment_status(db, enrollment_id, target)
    return ApiResponse(message=message, data=EnrollmentOut.model_validate(enrollment))


@router.put("/{enrollment_id}/approve", response_model=ApiResponse[EnrollmentOut])
def approve_enrollment(
    enrollment_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[EnrollmentOut]:
    return _set_status(db, enrollment_id, EnrollmentStatus.APPROVED, "Enrollment approved successfully")


@router.put("/{enrollment_id}/waitlist", response_model=ApiResponse[EnrollmentOut])
def waitlist_enrollment(
    enrollment_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[EnrollmentOut]:
    return _set_status(db, enrollment_id, EnrollmentStatus.WAITLISTED, "Enrollment waitlisted successfully")


@router.put("/{enrollment_id}/reject", response_model=ApiResponse[EnrollmentOut])
def reject_enrollment(
    enrollment_id: int = Path(gt=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[EnrollmentOut]:
    return _set_status(db, enrollment_id, EnrollmentStatus.REJECTED, "Enrollment rejected successfully")


@router.put("/{enrollment_id}/withdraw", response_model=ApiResponse[EnrollmentOut])
def withdraw_enrollment(
    enrollment_id: int = Path(gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[EnrollmentOut]:
    if current_user.role != UserRole.admin:
        enrollment = enrollment_service.get_enrollment_or_404(db, enrollment_id)
        profile = enrollment_service.find_student_profile(db, current_user)
        if profile is None or enrollment.student_profile_id != profile.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return _set_status(db, enrollment_id, EnrollmentStatus.WITHDRAWN, "Enrollment withdrawn successfully")

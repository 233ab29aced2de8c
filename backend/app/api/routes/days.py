from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.models.day import Day
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.day import DayOut

router = APIRouter()


@router.get("", response_model=ApiResponse[list[DayOut]])
def list_days(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> ApiResponse[list[DayOut]]:
    days = db.execute(select(Day).order_by(Day.day_order.asc())).scalars()
    return ApiResponse(message="Days fetched successfully", data=[DayOut.model_validate(day) for day in days])

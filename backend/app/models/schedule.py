from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.day import Day
from app.models.time_slot import TimeSlot
from app.models.unit import Unit

ACTIVE_ONLY_SQLITE = text("is_active = 1")
ACTIVE_ONLY_POSTGRES = text("is_active")


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (
        # Only one active schedule may occupy a slot/day within a term, whatever the unit.
        Index(
            "uq_schedules_active_occupancy",
            "time_slot_id",
            "day_id",
            "semester",
            "academic_year",
            unique=True,
            sqlite_where=ACTIVE_ONLY_SQLITE,
            postgresql_where=ACTIVE_ONLY_POSTGRES,
        ),
        Index(
            "uq_schedules_active_unit_combination",
            "unit_id",
            "time_slot_id",
            "day_id",
            "semester",
            "academic_year",
            unique=True,
            sqlite_where=ACTIVE_ONLY_SQLITE,
            postgresql_where=ACTIVE_ONLY_POSTGRES,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_id: Mapped[int] = mapped_column(ForeignKey("units.id"), nullable=False, index=True)
    time_slot_id: Mapped[int] = mapped_column(ForeignKey("time_slots.id"), nullable=False, index=True)
    day_id: Mapped[int] = mapped_column(ForeignKey("days.id"), nullable=False, index=True)
    semester: Mapped[str] = mapped_column(String(50), nullable=False)
    academic_year: Mapped[int] = mapped_column(Integer, nullable=False)
    tutor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    max_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    unit: Mapped[Unit] = relationship()
    time_slot: Mapped[TimeSlot] = relationship()
    day: Mapped[Day] = relationship()

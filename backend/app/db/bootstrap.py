from __future__ import annotations

import logging

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.day import WEEKDAY_NAMES, Day

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("days", "time_slots", "units", "schedules", "student_profiles", "enrollments", "users")


def seed_days(db: Session) -> int:
    """Insert Monday..Sunday when the days table is empty. Returns rows added."""
    existing = db.execute(select(func.count(Day.id))).scalar_one()
    if existing:
        return 0
    for order, name in enumerate(WEEKDAY_NAMES, start=1):
        db.add(Day(name=name, day_order=order))
    db.commit()
    logger.info("Seeded %d days", len(WEEKDAY_NAMES))
    return len(WEEKDAY_NAMES)


def _assert_required_tables() -> None:
    with engine.begin() as connection:
        table_names = set(inspect(connection).get_table_names())
    missing_tables = [name for name in REQUIRED_TABLES if name not in table_names]
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")


def ensure_reference_data(seed: bool = True) -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_tables()
        if seed:
            with SessionLocal() as db:
                seed_days(db)
    except SQLAlchemyError as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Reference data bootstrap failed")
        raise RuntimeError("Reference data bootstrap failed") from exc

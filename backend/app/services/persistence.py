from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError

logger = logging.getLogger(__name__)


def commit_or_conflict(db: Session, conflict_message: str) -> None:
    """Commit the session, turning a unique-constraint violation into a 409."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Commit rejected by store constraint: %s", conflict_message)
        raise ConflictError(conflict_message) from exc

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taproom.services.exceptions import ServiceError, StorageError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def in_transaction(db: Session, action: str, work: Callable[[], T]) -> T:
    """Run ``work`` and commit, or roll the whole unit back.

    Service errors are re-raised as-is; any other database failure becomes
    a ``StorageError`` so callers never see a half-applied write.
    """
    try:
        result = work()
        db.commit()
    except ServiceError as exc:
        db.rollback()
        logger.warning(f"{action}_rolled_back", code=exc.code, message=exc.message)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"{action}_rolled_back")
        raise StorageError(f"{action.replace('_', ' ')} failed") from exc
    return result

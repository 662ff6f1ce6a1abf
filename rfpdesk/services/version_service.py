"""Optimistic locking helpers shared by lifecycle services.

Status transitions are compare-and-set writes: the UPDATE only matches if
the row still has the status and version the caller read. Zero matched rows
means someone else got there first.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from rfpdesk.core.errors import ConcurrentModificationError

logger = logging.getLogger(__name__)

TIMESTAMP_STEP = timedelta(microseconds=1)


def check_version(
    entity: str,
    entity_id: int,
    current_version: int,
    expected_version: int | None,
) -> None:
    """
    Check if expected version matches current.

    Raises:
        ConcurrentModificationError if mismatch
    """
    if expected_version is not None and current_version != expected_version:
        raise ConcurrentModificationError(entity, entity_id, expected_version)


def compare_and_set(
    db: Session,
    model,
    record_id: int,
    *,
    expected_status: Any,
    expected_version: int,
    values: dict[str, Any],
) -> None:
    """
    Conditionally update one row and bump its version.

    Does not commit. On conflict the transaction is rolled back so no partial
    write survives.

    Raises:
        ConcurrentModificationError if the row changed since it was read
    """
    stmt = (
        update(model)
        .where(
            model.id == record_id,
            model.status == expected_status,
            model.version == expected_version,
        )
        .values(**values, version=model.version + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount != 1:
        db.rollback()
        logger.warning(
            "Compare-and-set conflict on %s %s (expected version %s)",
            model.__name__,
            record_id,
            expected_version,
        )
        raise ConcurrentModificationError(model.__name__, record_id, expected_version)


def next_timestamp(previous: datetime | None, now: datetime) -> datetime:
    """Return ``now``, nudged forward if needed so timestamps strictly increase."""
    if previous is not None and now <= previous:
        return previous + TIMESTAMP_STEP
    return now

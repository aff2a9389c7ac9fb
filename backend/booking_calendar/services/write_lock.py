"""
Serialization point for the read-check-write sequence on bookings and windows.

Sync endpoints run in a thread pool, so a process-wide lock orders writers
inside one API process. On PostgreSQL a transaction-scoped advisory lock
extends the same ordering across processes; it is released by the commit or
rollback that ends the write.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from booking_calendar.core.errors import PersistenceError

logger = logging.getLogger(__name__)

# Arbitrary application-wide key for pg_advisory_xact_lock
SCHEDULE_LOCK_KEY = 7_302_519_401

_process_lock = threading.Lock()


def _acquire_advisory_lock(session: Session) -> None:
    if session.get_bind().dialect.name == "postgresql":
        session.execute(
            text("SELECT pg_advisory_xact_lock(:key)"), {"key": SCHEDULE_LOCK_KEY}
        )


@contextmanager
def serialized_write(session: Session) -> Iterator[None]:
    """Run a check-then-write block atomically; the block must commit itself.

    Any failure rolls the session back, so nothing is persisted unless the
    block reached its commit. Storage failures surface as PersistenceError.
    """
    with _process_lock:
        try:
            _acquire_advisory_lock(session)
            yield
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(f"Write aborted by storage failure: {exc}", exc_info=True)
            raise PersistenceError() from exc
        except BaseException:
            session.rollback()
            raise

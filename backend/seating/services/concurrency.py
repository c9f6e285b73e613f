# Overview: Service-layer helpers for row locking, retries and optimistic-lock conflicts.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError, InternalError, SeatingError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, session=None):
    """
    Execute a DB operation with retry on transient failures.

    Retries on OperationalError (deadlocks, locks). A StaleDataError means
    another writer committed first; it is not retried and surfaces as
    ConflictError. Any other SQLAlchemyError becomes InternalError.
    Domain errors raised by func roll back the session and propagate as-is.
    """
    session = session or db.session
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            session.rollback()
            if attempt >= attempts - 1:
                raise InternalError("Database unavailable") from exc
            time.sleep(backoff_base * (2 ** attempt))
        except StaleDataError as exc:
            session.rollback()
            raise ConflictError("Chart was modified concurrently; reload and retry") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise InternalError("Database error") from exc
        except SeatingError:
            session.rollback()
            raise

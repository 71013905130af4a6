# Overview: Service-layer helpers for transactions, row locks and retry on lock contention.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for stock and sale mutations.

    populate_existing() reloads rows already in the identity map so the
    values read under the lock are the committed ones.

    NOTE: SQLite ignores SELECT ... FOR UPDATE and serializes writers at
    the database level instead; PostgreSQL/MySQL honor the row lock.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts) and StaleDataError
    (version_id conflicts). Anything else propagates on the first failure.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning("Retrying after concurrency failure (attempt %d): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def atomic(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func inside one transaction: commit on success, roll back on any
    exception. Partial stock or item changes are never left behind.
    """
    def _op():
        try:
            result = func()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return result

    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)

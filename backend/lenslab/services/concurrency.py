# Overview: Service-layer operations for concurrency; transaction, retry and locking helpers.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConflictError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_immediate_if_sqlite() -> None:
    """
    Take the SQLite write lock up front for read-check-write paths.

    Only applies to file-backed databases with no transaction already open on
    the connection; every other engine relies on row locks instead.
    """
    engine = db.engine
    if engine.dialect.name != "sqlite":
        return
    if engine.url.database in (None, "", ":memory:"):
        return
    raw = db.session.connection().connection.driver_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
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
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(func, *, commit: bool = True, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func() as one unit of work.

    commit=True: commit on success, roll back on any failure, retry lock
    contention, and surface IntegrityError as ConflictError.
    commit=False: the caller owns the transaction; func() runs inline and only
    flushes, so a later failure in the caller still rolls everything back.
    """
    if not commit:
        return func()

    def _op():
        try:
            result = func()
            db.session.commit()
            return result
        except IntegrityError as exc:
            db.session.rollback()
            current_app.logger.warning("Integrity violation translated to conflict: %s", exc.orig)
            raise ConflictError("Operation conflicts with existing data (duplicate or missing reference)") from exc
        except (OperationalError, StaleDataError):
            raise
        except Exception:
            db.session.rollback()
            raise

    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)


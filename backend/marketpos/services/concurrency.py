# Overview: Transaction scope and row-locking helpers shared by every stock-mutating workflow.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConcurrentUpdateError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Product.version_id still catches the lost update there.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work():
    """
    Run a block as one database transaction.

    Commits when the block exits normally; rolls back on any exception and
    re-raises it. Optimistic-lock failures surface as ConcurrentUpdateError.
    Nothing is retried.
    """
    session = db.session
    try:
        yield session
        session.commit()
    except StaleDataError as exc:
        session.rollback()
        raise ConcurrentUpdateError(
            "Product was modified by another transaction, please retry"
        ) from exc
    except Exception:
        session.rollback()
        raise

# Overview: Transaction scope and row locking helpers shared by the order, account and catalog services.

from __future__ import annotations

from contextlib import contextmanager

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    Run the enclosed work as one transaction.

    Commits when the block exits normally; any exception rolls back every
    statement issued inside the block and is re-raised unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise

# Overview: Transaction scoping and row locking for multi-statement writes.

from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InternalError
from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; write_transaction() takes the
    database write lock up front there instead.
    """
    return query.with_for_update()


def _begin_immediate() -> None:
    if db.engine.dialect.name != "sqlite":
        return
    dbapi_conn = db.session.connection().connection.dbapi_connection
    if getattr(dbapi_conn, "in_transaction", False):
        return
    db.session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def write_transaction():
    """
    Run a block of reads and writes as one all-or-nothing unit.

    Checks performed inside the block see the same state the writes land on:
    on SQLite the write lock is taken before the first read, elsewhere callers
    lock the rows they read with lock_for_update(). The block commits once on
    exit. Any exception rolls everything back; storage failures are re-raised
    as InternalError. Nothing is retried.
    """
    try:
        _begin_immediate()
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning("Write transaction rolled back after storage failure", exc_info=True)
        raise InternalError() from exc
    except Exception:
        db.session.rollback()
        raise

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConcurrentModification, DateConflict, PersistenceError, ValidationError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

_CONTENTION_ERRNOS = {errorcode.ER_LOCK_WAIT_TIMEOUT, errorcode.ER_LOCK_DEADLOCK}


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)`` inside one transaction.

    Commits when the block exits normally, rolls back on any exception.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def translate_mysql_errors():
    """Map MySQL failures onto domain errors.

    Lock contention becomes ``ConcurrentModification``, duplicate keys become
    ``DateConflict`` and rejected values become ``ValidationError``. Anything
    else is wrapped in ``PersistenceError`` so callers only handle domain errors.
    """
    try:
        yield
    except mysql.connector.IntegrityError as e:
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise DateConflict("A promotion already exists on this date") from e
        logger.error("Integrity error (errno=%s): %s", e.errno, e.msg)
        raise PersistenceError(f"Database rejected the change: {e.msg}") from e
    except mysql.connector.DataError as e:
        raise ValidationError(f"Value rejected by the database: {e.msg}") from e
    except mysql.connector.Error as e:
        if e.errno in _CONTENTION_ERRNOS:
            logger.warning("Lock contention (errno=%s): %s", e.errno, e.msg)
            raise ConcurrentModification("The record is being modified by another request, please retry") from e
        logger.error("Database error (errno=%s): %s", e.errno, e.msg)
        raise PersistenceError("Database error, the change was not applied") from e


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])

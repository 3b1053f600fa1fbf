from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on error."""
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


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_placeholders(values: Sequence[Any]) -> str:
    """``%s,%s,%s`` for an ``IN (...)`` clause."""
    if not values:
        raise ValueError("IN clause needs at least one value")
    return ",".join(["%s"] * len(values))


def is_duplicate_key(exc: Exception) -> bool:
    return isinstance(exc, IntegrityError) and getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def load_json_list(value: Any) -> list:
    """Normalize a MySQL JSON column into a Python list.

    mysql-connector can return JSON as:
    - str / bytes (pure-python and C extension differ)
    - already-decoded list
    - None for SQL NULL
    """

    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.warning("Unparseable JSON column value: %r", value[:200])
            return []
        return parsed if isinstance(parsed, list) else []
    return []

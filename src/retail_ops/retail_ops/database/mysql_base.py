from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector

from ..core.exceptions import PersistenceError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    shared = conn_factory.current()
    if shared is not None:
        # Commit/rollback belong to the enclosing transaction().
        cur = shared.cursor(dictionary=dictionary)
        try:
            yield shared, cur
        except mysql.connector.Error as exc:
            raise PersistenceError(str(exc), cause=exc) from exc
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        raise PersistenceError(str(exc), cause=exc) from exc
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


def in_clause(column: str, values: Sequence[object]) -> str:
    """Build ``column IN (%s,%s,...)`` for a non-empty value list."""
    if not values:
        raise ValueError("in_clause needs at least one value")
    return f"{column} IN ({','.join(['%s'] * len(values))})"


def as_decimal(value: Any) -> Decimal:
    """Normalize DECIMAL/float/str columns across connector implementations."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

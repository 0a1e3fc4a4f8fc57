from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..core.enums import UnitStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, in_clause
from .model import ProductAssignment, ProductAssignmentUnit
from .repository import AssignmentRepository, AssignmentUnitRepository

_ASSIGNMENT_COLUMNS = "id, product_id, employee_id, store_id, created_at"
_UNIT_COLUMNS = "id, assignment_id, unit_id, price_pc, is_active, created_at"


def _to_assignment(r: Dict[str, Any]) -> ProductAssignment:
    return ProductAssignment(
        assignment_id=str(r["id"]),
        product_id=str(r["product_id"]),
        employee_id=str(r["employee_id"]),
        store_id=(str(r["store_id"]) if r.get("store_id") is not None else None),
        created_at=r["created_at"],
    )


def _to_assignment_unit(r: Dict[str, Any]) -> ProductAssignmentUnit:
    return ProductAssignmentUnit(
        assignment_unit_id=str(r["id"]),
        assignment_id=str(r["assignment_id"]),
        unit_id=str(r["unit_id"]),
        price_pc=as_decimal(r["price_pc"]),
        status=UnitStatus.from_flag(bool(r["is_active"])),
        created_at=r["created_at"],
    )


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, assignment_id: str) -> Optional[ProductAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ASSIGNMENT_COLUMNS} FROM product_assignments WHERE id=%s", (assignment_id,))
            r = fetchone(cur)
            return _to_assignment(r) if r else None

    def find_by_key(
        self,
        *,
        product_id: str,
        employee_id: str,
        store_id: Optional[str],
    ) -> Optional[ProductAssignment]:
        clauses = ["product_id=%s", "employee_id=%s"]
        params: list[object] = [product_id, employee_id]
        if store_id is None:
            clauses.append("store_id IS NULL")
        else:
            clauses.append("store_id=%s")
            params.append(store_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ASSIGNMENT_COLUMNS} FROM product_assignments WHERE {' AND '.join(clauses)}",
                tuple(params),
            )
            r = fetchone(cur)
            return _to_assignment(r) if r else None

    def list_filtered(
        self,
        *,
        employee_id: Optional[str] = None,
        store_id: Optional[str] = None,
    ) -> Sequence[ProductAssignment]:
        clauses = ["1=1"]
        params: list[object] = []
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(employee_id)
        if store_id is not None:
            clauses.append("store_id=%s")
            params.append(store_id)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM product_assignments
                WHERE {where}
                ORDER BY created_at ASC
                """,
                tuple(params),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def list_for_product(self, *, product_id: str) -> Sequence[ProductAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ASSIGNMENT_COLUMNS} FROM product_assignments WHERE product_id=%s",
                (product_id,),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        product_id: str,
        employee_id: str,
        store_id: Optional[str],
        now: datetime,
    ) -> str:
        assignment_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO product_assignments(id, product_id, employee_id, store_id, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (assignment_id, product_id, employee_id, store_id, now),
            )
        return assignment_id

    def delete_many(self, *, assignment_ids: Sequence[str]) -> int:
        if not assignment_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM product_assignments WHERE {in_clause('id', assignment_ids)}",
                tuple(assignment_ids),
            )
            return cur.rowcount


class MySQLAssignmentUnitRepository(AssignmentUnitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_assignments(self, assignment_ids: Sequence[str]) -> Sequence[ProductAssignmentUnit]:
        if not assignment_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_UNIT_COLUMNS}
                FROM product_assignment_units
                WHERE {in_clause('assignment_id', assignment_ids)}
                """,
                tuple(assignment_ids),
            )
            return [_to_assignment_unit(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        assignment_id: str,
        unit_id: str,
        price_pc: Decimal,
        now: datetime,
    ) -> str:
        assignment_unit_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO product_assignment_units(id, assignment_id, unit_id, price_pc, is_active, created_at)
                VALUES(%s,%s,%s,%s,1,%s)
                """,
                (assignment_unit_id, assignment_id, unit_id, price_pc, now),
            )
        return assignment_unit_id

    def update(self, *, assignment_unit_id: str, price_pc: Decimal, status: UnitStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE product_assignment_units SET price_pc=%s, is_active=%s WHERE id=%s",
                (price_pc, int(status.is_active), assignment_unit_id),
            )
            return cur.rowcount > 0

    def deactivate(self, *, assignment_id: str, unit_ids: Sequence[str]) -> int:
        if not unit_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE product_assignment_units
                SET is_active=0
                WHERE assignment_id=%s AND {in_clause('unit_id', unit_ids)}
                """,
                (assignment_id, *unit_ids),
            )
            return cur.rowcount

    def delete_for_units(self, *, unit_ids: Sequence[str]) -> int:
        if not unit_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM product_assignment_units WHERE {in_clause('unit_id', unit_ids)}",
                tuple(unit_ids),
            )
            return cur.rowcount

    def delete_for_assignments(self, *, assignment_ids: Sequence[str]) -> int:
        if not assignment_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM product_assignment_units WHERE {in_clause('assignment_id', assignment_ids)}",
                tuple(assignment_ids),
            )
            return cur.rowcount

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, in_clause
from .model import Product, ProductUnit
from .repository import ProductRepository, ProductUnitRepository

_PRODUCT_COLUMNS = "id, code, name, description, is_active, created_at, updated_at"
_UNIT_COLUMNS = "id, product_id, name, sku, is_base, multiplier_to_base, created_at"


def _to_product(r: Dict[str, Any]) -> Product:
    return Product(
        product_id=str(r["id"]),
        code=r["code"],
        name=r["name"],
        description=r.get("description"),
        is_active=bool(r["is_active"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


def _to_unit(r: Dict[str, Any]) -> ProductUnit:
    return ProductUnit(
        unit_id=str(r["id"]),
        product_id=str(r["product_id"]),
        name=r["name"],
        sku=r.get("sku"),
        is_base=bool(r["is_base"]),
        multiplier_to_base=as_decimal(r["multiplier_to_base"]),
        created_at=r["created_at"],
    )


class MySQLProductRepository(ProductRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products ORDER BY created_at ASC, code ASC")
            return [_to_product(r) for r in fetchall(cur)]

    def get_by_id(self, product_id: str) -> Optional[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id=%s", (product_id,))
            r = fetchone(cur)
            return _to_product(r) if r else None

    def list_by_ids(self, product_ids: Sequence[str]) -> Sequence[Product]:
        if not product_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE {in_clause('id', product_ids)}",
                tuple(product_ids),
            )
            return [_to_product(r) for r in fetchall(cur)]

    def get_by_code(self, code: str) -> Optional[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE code=%s", (code,))
            r = fetchone(cur)
            return _to_product(r) if r else None

    def create(
        self,
        *,
        code: str,
        name: str,
        description: Optional[str],
        is_active: bool,
        now: datetime,
    ) -> str:
        product_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO products(id, code, name, description, is_active, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (product_id, code, name, description, int(is_active), now, now),
            )
        return product_id

    def update(
        self,
        *,
        product_id: str,
        code: str,
        name: str,
        description: Optional[str],
        is_active: bool,
        now: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE products
                SET code=%s, name=%s, description=%s, is_active=%s, updated_at=%s
                WHERE id=%s
                """,
                (code, name, description, int(is_active), now, product_id),
            )
            return cur.rowcount > 0

    def delete(self, *, product_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM products WHERE id=%s", (product_id,))
            return cur.rowcount > 0


class MySQLProductUnitRepository(ProductUnitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_products(self, product_ids: Sequence[str]) -> Sequence[ProductUnit]:
        if not product_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_UNIT_COLUMNS} FROM product_units WHERE {in_clause('product_id', product_ids)}",
                tuple(product_ids),
            )
            return [_to_unit(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        product_id: str,
        name: str,
        sku: Optional[str],
        is_base: bool,
        multiplier_to_base: Decimal,
        now: datetime,
    ) -> str:
        unit_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO product_units(id, product_id, name, sku, is_base, multiplier_to_base, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (unit_id, product_id, name, sku, int(is_base), multiplier_to_base, now),
            )
        return unit_id

    def update(
        self,
        *,
        unit_id: str,
        product_id: str,
        name: str,
        sku: Optional[str],
        is_base: bool,
        multiplier_to_base: Decimal,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE product_units
                SET name=%s, sku=%s, is_base=%s, multiplier_to_base=%s
                WHERE id=%s AND product_id=%s
                """,
                (name, sku, int(is_base), multiplier_to_base, unit_id, product_id),
            )
            return cur.rowcount > 0

    def delete_many(self, *, unit_ids: Sequence[str]) -> int:
        if not unit_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM product_units WHERE {in_clause('id', unit_ids)}", tuple(unit_ids))
            return cur.rowcount

    def delete_for_product(self, *, product_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM product_units WHERE product_id=%s", (product_id,))
            return cur.rowcount

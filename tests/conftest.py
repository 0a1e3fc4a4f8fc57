from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

import pytest

from src.retail_ops.retail_ops.assignments.model import ProductAssignment, ProductAssignmentUnit
from src.retail_ops.retail_ops.assignments.service import AssignmentReconciler
from src.retail_ops.retail_ops.catalog.model import CatalogItem, Product, ProductUnit, UnitSpec, UpsertProductInput
from src.retail_ops.retail_ops.catalog.service import CatalogService
from src.retail_ops.retail_ops.container import Container
from src.retail_ops.retail_ops.core.enums import UnitStatus


class MemoryDB:
    """Shared tables for the in-memory repositories, plus a write log."""

    def __init__(self):
        self.products: dict[str, Product] = {}
        self.units: dict[str, ProductUnit] = {}
        self.assignments: dict[str, ProductAssignment] = {}
        self.assignment_units: dict[str, ProductAssignmentUnit] = {}
        self.writes: list[tuple[str, str]] = []
        self._seq = 0
        self._clock = datetime(2026, 1, 1, 8, 0, 0)

    def next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._seq}"

    def tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def log(self, table: str, op: str) -> None:
        self.writes.append((table, op))


class InMemoryProducts:
    def __init__(self, db: MemoryDB):
        self._db = db

    def list_all(self):
        return sorted(self._db.products.values(), key=lambda p: p.created_at)

    def list_by_ids(self, product_ids):
        return [p for pid, p in self._db.products.items() if pid in set(product_ids)]

    def get_by_id(self, product_id: str) -> Optional[Product]:
        return self._db.products.get(product_id)

    def get_by_code(self, code: str) -> Optional[Product]:
        return next((p for p in self._db.products.values() if p.code == code), None)

    def create(self, *, code, name, description, is_active, now):
        pid = self._db.next_id("prod")
        created = self._db.tick()
        self._db.products[pid] = Product(
            product_id=pid,
            code=code,
            name=name,
            description=description,
            is_active=is_active,
            created_at=created,
            updated_at=created,
        )
        self._db.log("products", "insert")
        return pid

    def update(self, *, product_id, code, name, description, is_active, now):
        p = self._db.products.get(product_id)
        if not p:
            return False
        self._db.products[product_id] = replace(
            p, code=code, name=name, description=description, is_active=is_active, updated_at=self._db.tick()
        )
        self._db.log("products", "update")
        return True

    def delete(self, *, product_id):
        self._db.log("products", "delete")
        return self._db.products.pop(product_id, None) is not None


class InMemoryUnits:
    def __init__(self, db: MemoryDB):
        self._db = db

    def list_for_products(self, product_ids):
        wanted = set(product_ids)
        return [u for u in self._db.units.values() if u.product_id in wanted]

    def create(self, *, product_id, name, sku, is_base, multiplier_to_base, now):
        uid = self._db.next_id("unit")
        self._db.units[uid] = ProductUnit(
            unit_id=uid,
            product_id=product_id,
            name=name,
            sku=sku,
            is_base=is_base,
            multiplier_to_base=Decimal(multiplier_to_base),
            created_at=now,
        )
        self._db.log("product_units", "insert")
        return uid

    def update(self, *, unit_id, product_id, name, sku, is_base, multiplier_to_base):
        u = self._db.units.get(unit_id)
        if not u or u.product_id != product_id:
            return False
        self._db.units[unit_id] = replace(u, name=name, sku=sku, is_base=is_base, multiplier_to_base=multiplier_to_base)
        self._db.log("product_units", "update")
        return True

    def delete_many(self, *, unit_ids):
        self._db.log("product_units", "delete")
        return sum(1 for uid in unit_ids if self._db.units.pop(uid, None) is not None)

    def delete_for_product(self, *, product_id):
        doomed = [uid for uid, u in self._db.units.items() if u.product_id == product_id]
        return self.delete_many(unit_ids=doomed)


class InMemoryAssignments:
    def __init__(self, db: MemoryDB):
        self._db = db

    def get_by_id(self, assignment_id):
        return self._db.assignments.get(assignment_id)

    def find_by_key(self, *, product_id, employee_id, store_id):
        return next(
            (
                a
                for a in self._db.assignments.values()
                if a.product_id == product_id and a.employee_id == employee_id and a.store_id == store_id
            ),
            None,
        )

    def list_filtered(self, *, employee_id=None, store_id=None):
        return [
            a
            for a in self._db.assignments.values()
            if (employee_id is None or a.employee_id == employee_id) and (store_id is None or a.store_id == store_id)
        ]

    def list_for_product(self, *, product_id):
        return [a for a in self._db.assignments.values() if a.product_id == product_id]

    def create(self, *, product_id, employee_id, store_id, now):
        aid = self._db.next_id("asg")
        self._db.assignments[aid] = ProductAssignment(
            assignment_id=aid,
            product_id=product_id,
            employee_id=employee_id,
            store_id=store_id,
            created_at=now,
        )
        self._db.log("product_assignments", "insert")
        return aid

    def delete_many(self, *, assignment_ids):
        self._db.log("product_assignments", "delete")
        return sum(1 for aid in assignment_ids if self._db.assignments.pop(aid, None) is not None)


class InMemoryAssignmentUnits:
    def __init__(self, db: MemoryDB):
        self._db = db

    def list_for_assignments(self, assignment_ids):
        wanted = set(assignment_ids)
        return [r for r in self._db.assignment_units.values() if r.assignment_id in wanted]

    def create(self, *, assignment_id, unit_id, price_pc, now):
        rid = self._db.next_id("au")
        self._db.assignment_units[rid] = ProductAssignmentUnit(
            assignment_unit_id=rid,
            assignment_id=assignment_id,
            unit_id=unit_id,
            price_pc=price_pc,
            status=UnitStatus.ACTIVE,
            created_at=now,
        )
        self._db.log("product_assignment_units", "insert")
        return rid

    def update(self, *, assignment_unit_id, price_pc, status):
        r = self._db.assignment_units.get(assignment_unit_id)
        if not r:
            return False
        self._db.assignment_units[assignment_unit_id] = replace(r, price_pc=price_pc, status=status)
        self._db.log("product_assignment_units", "update")
        return True

    def deactivate(self, *, assignment_id, unit_ids):
        count = 0
        for rid, r in list(self._db.assignment_units.items()):
            if r.assignment_id == assignment_id and r.unit_id in set(unit_ids):
                self._db.assignment_units[rid] = replace(r, status=UnitStatus.INACTIVE)
                count += 1
        self._db.log("product_assignment_units", "deactivate")
        return count

    def delete_for_units(self, *, unit_ids):
        doomed = [rid for rid, r in self._db.assignment_units.items() if r.unit_id in set(unit_ids)]
        for rid in doomed:
            del self._db.assignment_units[rid]
        self._db.log("product_assignment_units", "delete")
        return len(doomed)

    def delete_for_assignments(self, *, assignment_ids):
        doomed = [rid for rid, r in self._db.assignment_units.items() if r.assignment_id in set(assignment_ids)]
        for rid in doomed:
            del self._db.assignment_units[rid]
        self._db.log("product_assignment_units", "delete")
        return len(doomed)


class RecordingTransaction:
    def __init__(self):
        self.opened = 0
        self.failed = 0

    @contextmanager
    def __call__(self):
        self.opened += 1
        try:
            yield
        except Exception:
            self.failed += 1
            raise


@pytest.fixture
def db() -> MemoryDB:
    return MemoryDB()


@pytest.fixture
def transaction() -> RecordingTransaction:
    return RecordingTransaction()


@pytest.fixture
def repos(db):
    return {
        "products": InMemoryProducts(db),
        "units": InMemoryUnits(db),
        "assignments": InMemoryAssignments(db),
        "assignment_units": InMemoryAssignmentUnits(db),
    }


@pytest.fixture
def catalog_service(repos, transaction) -> CatalogService:
    return CatalogService(
        repos["products"],
        repos["units"],
        repos["assignments"],
        repos["assignment_units"],
        transaction=transaction,
    )


@pytest.fixture
def reconciler(repos, transaction) -> AssignmentReconciler:
    return AssignmentReconciler(
        repos["assignments"],
        repos["assignment_units"],
        repos["products"],
        repos["units"],
        transaction=transaction,
    )


@pytest.fixture
def container(repos, catalog_service, reconciler) -> Container:
    return Container(
        products_repo=repos["products"],
        units_repo=repos["units"],
        assignments_repo=repos["assignments"],
        assignment_units_repo=repos["assignment_units"],
        catalog_service=catalog_service,
        assignment_reconciler=reconciler,
    )


@pytest.fixture
def make_product(catalog_service):
    """Create a product with a 'piece' base unit plus extra (name, multiplier) units."""

    def _make(code: str = "P-1", extra=(("box", 12),)) -> CatalogItem:
        units = [UnitSpec(name="piece", multiplier_to_base=1, is_base=True)]
        units += [UnitSpec(name=n, multiplier_to_base=m) for n, m in extra]
        return catalog_service.upsert_product(UpsertProductInput(code=code, name=f"Product {code}", units=units))

    return _make


def unit_id(item: CatalogItem, name: str) -> str:
    return next(u.unit_id for u in item.units if u.name == name)


@pytest.fixture
def unit_of():
    return unit_id

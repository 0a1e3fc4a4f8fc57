"""Seed a demo catalog and one assignment through the service layer.

Safe to run repeatedly: products are matched by code and the assignment is
reconciled, so a second run converges to the same rows.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.retail_ops.retail_ops.assignments.model import DesiredUnit, ReconcileInput
from src.retail_ops.retail_ops.catalog.model import UnitSpec, UpsertProductInput
from src.retail_ops.retail_ops.container import build_container

DEMO_PRODUCTS = [
    ("DRINK-001", "Green Tea 500ml", [("piece", 1, True), ("pack", 6, False), ("box", 24, False)]),
    ("SNACK-001", "Rice Cracker", [("piece", 1, True), ("box", 12, False)]),
]


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=dict(settings.DB_CONFIG))
    catalog = container.catalog_service

    for code, name, units in DEMO_PRODUCTS:
        existing = container.products_repo.get_by_code(code)
        current = catalog.get_item(existing.product_id) if existing else None
        ids_by_name = {u.name: u.unit_id for u in current.units} if current else {}
        item = catalog.upsert_product(
            UpsertProductInput(
                product_id=existing.product_id if existing else None,
                code=code,
                name=name,
                units=[
                    UnitSpec(unit_id=ids_by_name.get(n), name=n, multiplier_to_base=m, is_base=b)
                    for n, m, b in units
                ],
            )
        )
        print(f"OK: {item.product.code} ({len(item.units)} units)")

    first = catalog.get_item(container.products_repo.get_by_code(DEMO_PRODUCTS[0][0]).product_id)
    result = container.assignment_reconciler.reconcile(
        ReconcileInput(
            product_id=first.product.product_id,
            employee_id="demo-employee",
            store_id=None,
            units=[DesiredUnit(unit_id=u.unit_id, price_pc=10 * u.multiplier_to_base, enabled=True) for u in first.units],
        )
    )
    print(f"OK: assignment {result.assignment_id} (+{result.inserted} ~{result.updated} -{result.deactivated})")


if __name__ == "__main__":
    main()

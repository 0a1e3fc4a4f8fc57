"""Example: use the service layer directly (without Flask)."""

import importlib

from config import get_settings_module

from src.retail_ops.retail_ops.assignments.model import AssignmentFilter
from src.retail_ops.retail_ops.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    for item in container.catalog_service.list_catalog():
        print(item.product.code, [(u.name, str(u.multiplier_to_base)) for u in item.units])
    for assignment in container.assignment_reconciler.list_assignments(AssignmentFilter(only_active_units=True)):
        print(assignment.employee_id, assignment.product_code, [(u.unit_name, str(u.price_pc)) for u in assignment.units])


if __name__ == "__main__":
    main()

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import replace
from decimal import Decimal
from typing import Callable, ContextManager, Dict, List, Optional, Sequence, Set, Tuple

from ..catalog.model import ProductUnit, sort_units
from ..catalog.repository import ProductRepository, ProductUnitRepository
from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, require_max_length, require_non_empty, to_decimal, to_scale
from ..core.constants import MAX_PRICE, MAX_REF_LENGTH, PRICE_STEP
from ..core.enums import UnitStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import (
    AssignmentDetail,
    AssignmentFilter,
    AssignmentUnitView,
    AssignmentView,
    DesiredUnit,
    ProductAssignment,
    ProductAssignmentUnit,
    ReconcileInput,
    ReconcileResult,
)
from .repository import AssignmentRepository, AssignmentUnitRepository

logger = logging.getLogger(__name__)


class AssignmentReconciler:
    """Use case: keep an assignment's unit/price rows equal to a desired state.

    Callers always send the complete desired unit set. Rows for units that
    drop out of it are switched to INACTIVE, never deleted, so sales rows
    pointing at an assignment-unit id stay valid. Applying the same desired
    state twice issues no writes the second time.
    """

    def __init__(
        self,
        assignments: AssignmentRepository,
        assignment_units: AssignmentUnitRepository,
        products: ProductRepository,
        units: ProductUnitRepository,
        *,
        transaction: Optional[Callable[[], ContextManager]] = None,
    ):
        self._assignments = assignments
        self._assignment_units = assignment_units
        self._products = products
        self._units = units
        self._transaction = transaction or nullcontext

    @staticmethod
    def validate_units(units: Sequence[DesiredUnit]) -> Tuple[Dict[str, Decimal], Set[str]]:
        """Return (enabled unit id -> price, every requested unit id)."""
        if not units:
            raise ValidationError("no units supplied")

        requested: Set[str] = set()
        enabled: Dict[str, Decimal] = {}
        for unit in units:
            unit_id = require_non_empty(unit.unit_id, "Unit id")
            if unit_id in requested:
                raise ValidationError(f"unit {unit_id} listed more than once")
            requested.add(unit_id)

            # price_pc is DECIMAL(12,2): a sub-cent price is stored as 0.
            price = to_scale(to_decimal(unit.price_pc, "Unit price"), "Unit price", PRICE_STEP, MAX_PRICE)
            if unit.enabled and price > 0:
                enabled[unit_id] = price

        if not enabled:
            raise ValidationError("no enabled units with positive price")
        return enabled, requested

    def _product_units(self, product_id: str) -> List[ProductUnit]:
        if not self._products.get_by_id(product_id):
            raise NotFoundError(f"product {product_id} not found")
        return list(self._units.list_for_products([product_id]))

    def _check_units_belong(self, product_id: str, unit_ids: Set[str]) -> None:
        known = {u.unit_id for u in self._product_units(product_id)}
        if unit_ids - known:
            raise ValidationError("unit does not belong to product")

    def reconcile(self, data: ReconcileInput) -> ReconcileResult:
        product_id = require_non_empty(data.product_id, "Product id")
        employee_id = require_max_length(require_non_empty(data.employee_id, "Employee id"), "Employee id", MAX_REF_LENGTH)
        store_id = require_max_length(optional_text(data.store_id), "Store id", MAX_REF_LENGTH)
        enabled, requested = self.validate_units(data.units)

        with self._transaction():
            self._check_units_belong(product_id, requested)

            created = False
            assignment = self._assignments.find_by_key(
                product_id=product_id,
                employee_id=employee_id,
                store_id=store_id,
            )
            if assignment:
                assignment_id = assignment.assignment_id
            else:
                assignment_id = self._assignments.create(
                    product_id=product_id,
                    employee_id=employee_id,
                    store_id=store_id,
                    now=now_utc(),
                )
                created = True

            result = replace(self._apply(assignment_id, enabled), created=created)

        logger.info(
            "Reconciled assignment %s (product=%s employee=%s store=%s): +%d ~%d -%d",
            assignment_id,
            product_id,
            employee_id,
            store_id,
            result.inserted,
            result.updated,
            result.deactivated,
        )
        return result

    def update_assignment_units(self, assignment_id: str, units: Sequence[DesiredUnit]) -> ReconcileResult:
        """Reconcile an existing assignment addressed by its id."""
        enabled, requested = self.validate_units(units)

        with self._transaction():
            assignment = self._require(assignment_id)
            self._check_units_belong(assignment.product_id, requested)
            result = self._apply(assignment.assignment_id, enabled)

        logger.info(
            "Updated assignment %s units: +%d ~%d -%d",
            assignment_id,
            result.inserted,
            result.updated,
            result.deactivated,
        )
        return result

    def _apply(self, assignment_id: str, enabled: Dict[str, Decimal]) -> ReconcileResult:
        existing: Dict[str, ProductAssignmentUnit] = {
            row.unit_id: row for row in self._assignment_units.list_for_assignments([assignment_id])
        }
        now = now_utc()
        inserted = updated = 0

        for unit_id, price in enabled.items():
            row = existing.get(unit_id)
            if row is None:
                self._assignment_units.create(assignment_id=assignment_id, unit_id=unit_id, price_pc=price, now=now)
                inserted += 1
            elif row.price_pc != price or not row.is_active:
                self._assignment_units.update(
                    assignment_unit_id=row.assignment_unit_id,
                    price_pc=price,
                    status=UnitStatus.ACTIVE,
                )
                updated += 1

        # Price of a deactivated row keeps its last enabled value.
        to_disable = sorted(uid for uid, row in existing.items() if uid not in enabled and row.is_active)
        if to_disable:
            self._assignment_units.deactivate(assignment_id=assignment_id, unit_ids=to_disable)

        return ReconcileResult(
            assignment_id=assignment_id,
            inserted=inserted,
            updated=updated,
            deactivated=len(to_disable),
        )

    def _require(self, assignment_id: str) -> ProductAssignment:
        assignment = self._assignments.get_by_id(assignment_id)
        if not assignment:
            raise NotFoundError(f"assignment {assignment_id} not found")
        return assignment

    def delete_assignment(self, assignment_id: str) -> None:
        """Hard-delete an assignment and all of its unit rows (missing id: no-op)."""
        with self._transaction():
            removed_units = self._assignment_units.delete_for_assignments(assignment_ids=[assignment_id])
            removed = self._assignments.delete_many(assignment_ids=[assignment_id])

        if removed:
            logger.info("Deleted assignment %s (%d units)", assignment_id, removed_units)

    def list_assignments(self, query: Optional[AssignmentFilter] = None) -> List[AssignmentView]:
        query = query or AssignmentFilter()
        assignments = self._assignments.list_filtered(
            employee_id=optional_text(query.employee_id),
            store_id=optional_text(query.store_id),
        )
        if not assignments:
            return []

        product_ids = sorted({a.product_id for a in assignments})
        products = {p.product_id: p for p in self._products.list_by_ids(product_ids)}
        units_by_id = {u.unit_id: u for u in self._units.list_for_products(product_ids)}
        rows = self._assignment_units.list_for_assignments([a.assignment_id for a in assignments])

        views_by_assignment: Dict[str, List[AssignmentUnitView]] = {}
        for row in rows:
            if query.only_active_units and not row.is_active:
                continue
            view = self._unit_view(row, units_by_id)
            if view:
                views_by_assignment.setdefault(row.assignment_id, []).append(view)

        out: List[AssignmentView] = []
        for a in assignments:
            product = products.get(a.product_id)
            out.append(
                AssignmentView(
                    assignment_id=a.assignment_id,
                    product_id=a.product_id,
                    product_code=product.code if product else "",
                    product_name=product.name if product else "",
                    employee_id=a.employee_id,
                    store_id=a.store_id,
                    units=_by_multiplier(views_by_assignment.get(a.assignment_id, [])),
                )
            )
        return out

    def get_assignment(self, assignment_id: str) -> AssignmentDetail:
        assignment = self._require(assignment_id)
        product = self._products.get_by_id(assignment.product_id)
        if not product:
            raise NotFoundError(f"product {assignment.product_id} not found")

        product_units = sort_units(self._units.list_for_products([product.product_id]))
        units_by_id = {u.unit_id: u for u in product_units}
        views = [
            view
            for view in (
                self._unit_view(row, units_by_id)
                for row in self._assignment_units.list_for_assignments([assignment.assignment_id])
            )
            if view
        ]

        return AssignmentDetail(
            assignment_id=assignment.assignment_id,
            product_id=product.product_id,
            product_code=product.code,
            product_name=product.name,
            product_description=product.description,
            employee_id=assignment.employee_id,
            store_id=assignment.store_id,
            created_at=assignment.created_at,
            units=_by_multiplier(views),
            product_units=product_units,
        )

    @staticmethod
    def _unit_view(row: ProductAssignmentUnit, units_by_id: Dict[str, ProductUnit]) -> Optional[AssignmentUnitView]:
        unit = units_by_id.get(row.unit_id)
        if not unit:
            logger.warning("Assignment unit %s points at unknown unit %s", row.assignment_unit_id, row.unit_id)
            return None
        return AssignmentUnitView(
            assignment_unit_id=row.assignment_unit_id,
            unit_id=row.unit_id,
            unit_name=unit.name,
            multiplier_to_base=unit.multiplier_to_base,
            price_pc=row.price_pc,
            status=row.status,
            unit_sku=unit.sku,
            is_base=unit.is_base,
        )


def _by_multiplier(views: Sequence[AssignmentUnitView]) -> Tuple[AssignmentUnitView, ...]:
    return tuple(sorted(views, key=lambda v: v.multiplier_to_base))

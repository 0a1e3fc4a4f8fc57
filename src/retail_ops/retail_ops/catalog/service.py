from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, ContextManager, List, Optional, Sequence

from ..assignments.repository import AssignmentRepository, AssignmentUnitRepository
from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, require_max_length, require_non_empty, to_decimal, to_scale
from ..core.constants import (
    BASE_MULTIPLIER,
    MAX_CODE_LENGTH,
    MAX_MULTIPLIER,
    MAX_NAME_LENGTH,
    MAX_SKU_LENGTH,
    MULTIPLIER_STEP,
)
from ..core.exceptions import NotFoundError, ValidationError
from .model import CatalogItem, Product, UpsertProductInput, sort_units
from .repository import ProductRepository, ProductUnitRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ValidUnit:
    unit_id: Optional[str]
    name: str
    sku: Optional[str]
    is_base: bool
    multiplier_to_base: Decimal


@dataclass(frozen=True)
class _ValidProduct:
    product_id: Optional[str]
    code: str
    name: str
    description: Optional[str]
    is_active: bool
    units: tuple


class CatalogService:
    """Use case: manage the product catalog and its measurement units.

    Every product keeps exactly one base unit. Units are replaced as a whole
    list per call; units dropped from the list are deleted together with the
    assignment-unit rows that reference them.
    """

    def __init__(
        self,
        products: ProductRepository,
        units: ProductUnitRepository,
        assignments: AssignmentRepository,
        assignment_units: AssignmentUnitRepository,
        *,
        transaction: Optional[Callable[[], ContextManager]] = None,
    ):
        self._products = products
        self._units = units
        self._assignments = assignments
        self._assignment_units = assignment_units
        self._transaction = transaction or nullcontext

    def list_catalog(self) -> List[CatalogItem]:
        return self._materialize(self._products.list_all())

    def get_item(self, product_id: str) -> CatalogItem:
        product = self._products.get_by_id(product_id)
        if not product:
            raise NotFoundError(f"product {product_id} not found")
        return self._materialize([product])[0]

    def _materialize(self, products: Sequence[Product]) -> List[CatalogItem]:
        if not products:
            return []
        by_product = defaultdict(list)
        for unit in self._units.list_for_products([p.product_id for p in products]):
            by_product[unit.product_id].append(unit)
        return [CatalogItem(product=p, units=sort_units(by_product.get(p.product_id, ()))) for p in products]

    @staticmethod
    def validate(data: UpsertProductInput) -> _ValidProduct:
        """Check and normalize an upsert request without touching the store."""
        units = list(data.units or ())
        if not units:
            raise ValidationError("at least one unit required")
        if sum(1 for u in units if u.is_base) != 1:
            raise ValidationError("single base unit required")

        code = require_max_length(require_non_empty(data.code, "Product code"), "Product code", MAX_CODE_LENGTH)
        name = require_max_length(require_non_empty(data.name, "Product name"), "Product name", MAX_NAME_LENGTH)

        seen_ids: set[str] = set()
        valid_units = []
        for spec in units:
            # Stored as DECIMAL(18,6); compare what will be persisted.
            multiplier = to_scale(
                to_decimal(spec.multiplier_to_base, "Unit multiplier"), "Unit multiplier", MULTIPLIER_STEP, MAX_MULTIPLIER
            )
            if multiplier <= 0:
                raise ValidationError("Unit multiplier must be greater than 0")
            if spec.is_base and multiplier != BASE_MULTIPLIER:
                raise ValidationError("base unit multiplier must be 1")
            if not spec.is_base and multiplier < BASE_MULTIPLIER:
                raise ValidationError("unit multiplier must be at least 1")

            unit_id = optional_text(spec.unit_id)
            if unit_id:
                if unit_id in seen_ids:
                    raise ValidationError("duplicate unit id")
                seen_ids.add(unit_id)

            valid_units.append(
                _ValidUnit(
                    unit_id=unit_id,
                    name=require_max_length(require_non_empty(spec.name, "Unit name"), "Unit name", MAX_NAME_LENGTH),
                    sku=require_max_length(optional_text(spec.sku), "Unit SKU", MAX_SKU_LENGTH),
                    is_base=bool(spec.is_base),
                    multiplier_to_base=multiplier,
                )
            )

        return _ValidProduct(
            product_id=optional_text(data.product_id),
            code=code,
            name=name,
            description=optional_text(data.description),
            is_active=bool(data.is_active),
            units=tuple(valid_units),
        )

    def upsert_product(self, data: UpsertProductInput) -> CatalogItem:
        valid = self.validate(data)
        now = now_utc()

        with self._transaction():
            if valid.product_id:
                product_id = self._update_product(valid, now)
            else:
                product_id = self._create_product(valid, now)
            item = self.get_item(product_id)

        logger.info("Saved product %s (%s) with %d units", item.product.code, product_id, len(item.units))
        return item

    def _check_code_free(self, code: str, product_id: Optional[str]) -> None:
        holder = self._products.get_by_code(code)
        if holder and holder.product_id != product_id:
            raise ValidationError("product code already exists")

    def _create_product(self, valid: _ValidProduct, now: datetime) -> str:
        if any(u.unit_id for u in valid.units):
            raise ValidationError("unit does not belong to product")
        self._check_code_free(valid.code, None)

        product_id = self._products.create(
            code=valid.code,
            name=valid.name,
            description=valid.description,
            is_active=valid.is_active,
            now=now,
        )
        for unit in valid.units:
            self._insert_unit(product_id, unit, now)
        return product_id

    def _update_product(self, valid: _ValidProduct, now: datetime) -> str:
        product_id = valid.product_id
        if not self._products.get_by_id(product_id):
            raise NotFoundError(f"product {product_id} not found")

        persisted_ids = {u.unit_id for u in self._units.list_for_products([product_id])}
        submitted_ids = {u.unit_id for u in valid.units if u.unit_id}
        if submitted_ids - persisted_ids:
            raise ValidationError("unit does not belong to product")
        self._check_code_free(valid.code, product_id)

        self._products.update(
            product_id=product_id,
            code=valid.code,
            name=valid.name,
            description=valid.description,
            is_active=valid.is_active,
            now=now,
        )

        # A unit that stops existing takes its assignment rows with it.
        obsolete = sorted(persisted_ids - submitted_ids)
        if obsolete:
            removed = self._assignment_units.delete_for_units(unit_ids=obsolete)
            self._units.delete_many(unit_ids=obsolete)
            logger.info(
                "Removed %d units from product %s (%d assignment units deleted)",
                len(obsolete),
                product_id,
                removed,
            )

        for unit in valid.units:
            if unit.unit_id:
                self._units.update(
                    unit_id=unit.unit_id,
                    product_id=product_id,
                    name=unit.name,
                    sku=unit.sku,
                    is_base=unit.is_base,
                    multiplier_to_base=unit.multiplier_to_base,
                )
            else:
                self._insert_unit(product_id, unit, now)
        return product_id

    def _insert_unit(self, product_id: str, unit: _ValidUnit, now: datetime) -> str:
        return self._units.create(
            product_id=product_id,
            name=unit.name,
            sku=unit.sku,
            is_base=unit.is_base,
            multiplier_to_base=unit.multiplier_to_base,
            now=now,
        )

    def delete_product(self, product_id: str) -> None:
        """Remove a product, its units and every assignment of it.

        Deleting an unknown id is a no-op.
        """
        with self._transaction():
            assignment_ids = [a.assignment_id for a in self._assignments.list_for_product(product_id=product_id)]
            if assignment_ids:
                self._assignment_units.delete_for_assignments(assignment_ids=assignment_ids)
                self._assignments.delete_many(assignment_ids=assignment_ids)
            self._units.delete_for_product(product_id=product_id)
            deleted = self._products.delete(product_id=product_id)

        if deleted:
            logger.info("Deleted product %s (%d assignments)", product_id, len(assignment_ids))

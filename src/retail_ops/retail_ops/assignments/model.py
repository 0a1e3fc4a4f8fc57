from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence, Tuple, Union

from ..catalog.model import ProductUnit
from ..core.enums import UnitStatus


@dataclass(frozen=True)
class ProductAssignment:
    """Binding of a product to an employee, optionally scoped to one store.

    ``store_id`` None means the assignment applies at all stores; it is a
    distinct key from any concrete store id.
    """

    assignment_id: str
    product_id: str
    employee_id: str
    store_id: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class ProductAssignmentUnit:
    assignment_unit_id: str
    assignment_id: str
    unit_id: str
    price_pc: Decimal
    status: UnitStatus
    created_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status.is_active


@dataclass(frozen=True)
class DesiredUnit:
    unit_id: str
    price_pc: Union[int, float, str, Decimal]
    enabled: bool = True


@dataclass(frozen=True)
class ReconcileInput:
    """Complete desired unit/price state for one (product, employee, store)."""

    product_id: str
    employee_id: str
    store_id: Optional[str]
    units: Sequence[DesiredUnit] = field(default_factory=tuple)


@dataclass(frozen=True)
class ReconcileResult:
    assignment_id: str
    created: bool = False
    inserted: int = 0
    updated: int = 0
    deactivated: int = 0

    @property
    def changed(self) -> int:
        return self.inserted + self.updated + self.deactivated


@dataclass(frozen=True)
class AssignmentFilter:
    employee_id: Optional[str] = None
    store_id: Optional[str] = None
    only_active_units: bool = False


@dataclass(frozen=True)
class AssignmentUnitView:
    assignment_unit_id: str
    unit_id: str
    unit_name: str
    multiplier_to_base: Decimal
    price_pc: Decimal
    status: UnitStatus
    unit_sku: Optional[str] = None
    is_base: bool = False

    @property
    def is_active(self) -> bool:
        return self.status.is_active


@dataclass(frozen=True)
class AssignmentView:
    assignment_id: str
    product_id: str
    product_code: str
    product_name: str
    employee_id: str
    store_id: Optional[str]
    units: Tuple[AssignmentUnitView, ...] = ()


@dataclass(frozen=True)
class AssignmentDetail:
    """Single assignment with everything an edit screen needs."""

    assignment_id: str
    product_id: str
    product_code: str
    product_name: str
    product_description: Optional[str]
    employee_id: str
    store_id: Optional[str]
    created_at: datetime
    units: Tuple[AssignmentUnitView, ...] = ()
    product_units: Tuple[ProductUnit, ...] = ()

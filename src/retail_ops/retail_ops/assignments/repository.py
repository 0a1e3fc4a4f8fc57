from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import UnitStatus
from .model import ProductAssignment, ProductAssignmentUnit


class AssignmentRepository(Protocol):
    def get_by_id(self, assignment_id: str) -> Optional[ProductAssignment]:
        raise NotImplementedError

    def find_by_key(
        self,
        *,
        product_id: str,
        employee_id: str,
        store_id: Optional[str],
    ) -> Optional[ProductAssignment]:
        """Exact key lookup; a None store only matches a None store."""

        raise NotImplementedError

    def list_filtered(
        self,
        *,
        employee_id: Optional[str] = None,
        store_id: Optional[str] = None,
    ) -> Sequence[ProductAssignment]:
        raise NotImplementedError

    def list_for_product(self, *, product_id: str) -> Sequence[ProductAssignment]:
        raise NotImplementedError

    def create(
        self,
        *,
        product_id: str,
        employee_id: str,
        store_id: Optional[str],
        now: datetime,
    ) -> str:
        raise NotImplementedError

    def delete_many(self, *, assignment_ids: Sequence[str]) -> int:
        raise NotImplementedError


class AssignmentUnitRepository(Protocol):
    def list_for_assignments(self, assignment_ids: Sequence[str]) -> Sequence[ProductAssignmentUnit]:
        raise NotImplementedError

    def create(
        self,
        *,
        assignment_id: str,
        unit_id: str,
        price_pc: Decimal,
        now: datetime,
    ) -> str:
        """Insert an ACTIVE row and return its id."""

        raise NotImplementedError

    def update(self, *, assignment_unit_id: str, price_pc: Decimal, status: UnitStatus) -> bool:
        raise NotImplementedError

    def deactivate(self, *, assignment_id: str, unit_ids: Sequence[str]) -> int:
        """Set INACTIVE; price and id stay untouched."""

        raise NotImplementedError

    def delete_for_units(self, *, unit_ids: Sequence[str]) -> int:
        raise NotImplementedError

    def delete_for_assignments(self, *, assignment_ids: Sequence[str]) -> int:
        raise NotImplementedError

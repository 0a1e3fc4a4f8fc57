from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import Product, ProductUnit


class ProductRepository(Protocol):
    def list_all(self) -> Sequence[Product]:
        """All products, oldest first."""

        raise NotImplementedError

    def get_by_id(self, product_id: str) -> Optional[Product]:
        raise NotImplementedError

    def list_by_ids(self, product_ids: Sequence[str]) -> Sequence[Product]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Product]:
        raise NotImplementedError

    def create(
        self,
        *,
        code: str,
        name: str,
        description: Optional[str],
        is_active: bool,
        now: datetime,
    ) -> str:
        """Insert a product and return its new id."""

        raise NotImplementedError

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
        raise NotImplementedError

    def delete(self, *, product_id: str) -> bool:
        raise NotImplementedError


class ProductUnitRepository(Protocol):
    def list_for_products(self, product_ids: Sequence[str]) -> Sequence[ProductUnit]:
        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError

    def delete_many(self, *, unit_ids: Sequence[str]) -> int:
        raise NotImplementedError

    def delete_for_product(self, *, product_id: str) -> int:
        raise NotImplementedError

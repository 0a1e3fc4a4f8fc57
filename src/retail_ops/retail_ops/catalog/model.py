from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class Product:
    product_id: str
    code: str
    name: str
    description: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ProductUnit:
    """One measurement unit of a product (box, pack, piece...).

    ``multiplier_to_base`` is how many base units one of this unit equals;
    the base unit itself has multiplier 1.
    """

    unit_id: str
    product_id: str
    name: str
    sku: Optional[str]
    is_base: bool
    multiplier_to_base: Decimal
    created_at: datetime


def sort_units(units: Iterable[ProductUnit]) -> Tuple[ProductUnit, ...]:
    """Base unit first, then ascending by multiplier."""
    return tuple(sorted(units, key=lambda u: (not u.is_base, u.multiplier_to_base)))


@dataclass(frozen=True)
class CatalogItem:
    product: Product
    units: Tuple[ProductUnit, ...] = ()

    @property
    def base_unit(self) -> Optional[ProductUnit]:
        return next((u for u in self.units if u.is_base), None)

    def unit_ids(self) -> set[str]:
        return {u.unit_id for u in self.units}


@dataclass(frozen=True)
class UnitSpec:
    name: str
    multiplier_to_base: Union[int, float, str, Decimal]
    is_base: bool = False
    sku: Optional[str] = None
    unit_id: Optional[str] = None


@dataclass(frozen=True)
class UpsertProductInput:
    """Desired state of one product: scalar fields plus its full unit list."""

    code: str
    name: str
    units: Sequence[UnitSpec] = field(default_factory=tuple)
    product_id: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True

from __future__ import annotations

from enum import Enum


class UnitStatus(str, Enum):
    """State of a unit-price pair within an assignment.

    Reconciliation only ever moves rows between these two states; rows are
    removed only when the catalog unit or the whole assignment goes away.
    """

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"

    @classmethod
    def from_flag(cls, is_active: bool) -> "UnitStatus":
        return cls.ACTIVE if is_active else cls.INACTIVE

    @property
    def is_active(self) -> bool:
        return self is UnitStatus.ACTIVE

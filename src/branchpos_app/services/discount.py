from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol


class DiscountPolicy(Protocol):
    def discount_for(self, subtotal: Decimal) -> Decimal: ...


@dataclass(frozen=True)
class FixedDiscount:
    """A constant discount; zero until a real pricing policy is plugged in."""

    amount: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("discount amount must be >= 0")

    def discount_for(self, subtotal: Decimal) -> Decimal:
        return self.amount


NO_DISCOUNT = FixedDiscount()

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from branchpos_sdk.models import Product, TransactionDraft, TransactionItem

from ..app.observable import Observable
from ..app.state import Scope
from .discount import NO_DISCOUNT, DiscountPolicy
from .errors import InvalidCheckout

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    product: Product
    quantity: int

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity

    def snapshot(self) -> TransactionItem:
        return TransactionItem(
            product_id=self.product.id,
            product_name=self.product.name,
            quantity=self.quantity,
            unit_price=self.product.price,
            line_total=to_money(self.line_total),
        )


@dataclass(frozen=True)
class CartChange:
    action: str
    product_id: str | None = None


class CartEngine(Observable[CartChange]):
    """The working sale for one (store, branch).

    Lines are keyed by product id in insertion order. A line never holds a
    quantity below one: decrementing to zero removes it. Operations on a
    product that is not in the cart are silent no-ops so that repeated UI
    events cannot corrupt the cart.
    """

    def __init__(self, discount_policy: DiscountPolicy = NO_DISCOUNT) -> None:
        super().__init__()
        self.discount_policy = discount_policy
        self._lines: dict[str, CartLine] = {}

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def line(self, product_id: str) -> CartLine | None:
        return self._lines.get(product_id)

    def quantity_of(self, product_id: str) -> int:
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def add_line(self, product: Product) -> CartLine:
        existing = self._lines.get(product.id)
        if existing is None:
            line = CartLine(product=product, quantity=1)
        else:
            # Stock is advisory; quantity is not capped.
            line = replace(existing, quantity=existing.quantity + 1)
        self._lines[product.id] = line
        self._notify(CartChange("add", product.id))
        return line

    def adjust_quantity(self, product_id: str, delta: int) -> CartLine | None:
        existing = self._lines.get(product_id)
        if existing is None:
            return None
        quantity = existing.quantity + delta
        if quantity <= 0:
            del self._lines[product_id]
            self._notify(CartChange("remove", product_id))
            return None
        line = replace(existing, quantity=quantity)
        self._lines[product_id] = line
        self._notify(CartChange("adjust", product_id))
        return line

    def remove_line(self, product_id: str) -> bool:
        if self._lines.pop(product_id, None) is None:
            return False
        self._notify(CartChange("remove", product_id))
        return True

    def reset(self) -> None:
        had_lines = bool(self._lines)
        self._lines.clear()
        if had_lines:
            logger.debug("Cart cleared")
            self._notify(CartChange("reset"))

    def settle(self, items: Iterable[TransactionItem]) -> None:
        """Take a recorded sale's quantities off the cart.

        Lines added or topped up while the sale was in flight stay behind.
        """
        settled = False
        for item in items:
            existing = self._lines.get(item.product_id)
            if existing is None:
                continue
            settled = True
            remaining = existing.quantity - item.quantity
            if remaining > 0:
                self._lines[item.product_id] = replace(existing, quantity=remaining)
            else:
                del self._lines[item.product_id]
        if settled:
            self._notify(CartChange("settle"))

    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def discount(self) -> Decimal:
        subtotal = self.subtotal()
        return min(self.discount_policy.discount_for(subtotal), subtotal)

    def total(self) -> Decimal:
        return self.subtotal() - self.discount()

    def to_transaction_draft(self, scope: Scope) -> TransactionDraft:
        if self.is_empty:
            raise InvalidCheckout(message="Cannot check out an empty cart")
        items = tuple(line.snapshot() for line in self._lines.values())
        subtotal = to_money(self.subtotal())
        discount = to_money(self.discount())
        return TransactionDraft(
            store_id=scope.store_id,
            store_name=scope.store.label,
            branch_id=scope.branch_id,
            branch_name=scope.branch.label,
            items=items,
            subtotal=subtotal,
            discount=discount,
            total=subtotal - discount,
        )

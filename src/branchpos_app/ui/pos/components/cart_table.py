from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from branchpos_app.services.cart_engine import CartLine
from branchpos_app.ui.shared.formatting import DEFAULT_CURRENCY_SYMBOL, format_price


@dataclass
class CartTable:
    lines: Sequence[CartLine]
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL

    def render(self) -> dict[str, Any]:
        rows = [
            {
                "product_id": line.product.id,
                "name": line.product.name,
                "quantity": line.quantity,
                "unit_price": line.product.price,
                "unit_price_display": format_price(line.product.price, self.currency_symbol),
                "line_total": line.line_total,
                "line_total_display": format_price(line.line_total, self.currency_symbol),
            }
            for line in self.lines
        ]
        return {
            "count": len(rows),
            "item_count": sum(line.quantity for line in self.lines),
            "rows": rows,
            "is_empty": not rows,
        }

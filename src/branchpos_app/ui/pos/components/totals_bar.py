from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from branchpos_app.ui.shared.formatting import DEFAULT_CURRENCY_SYMBOL, format_price


@dataclass
class TotalsBar:
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    checkout_enabled: bool
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL

    def render(self) -> dict[str, Any]:
        return {
            "subtotal": self.subtotal,
            "discount": self.discount,
            "total": self.total,
            "subtotal_display": format_price(self.subtotal, self.currency_symbol),
            "discount_display": format_price(self.discount, self.currency_symbol),
            "total_display": format_price(self.total, self.currency_symbol),
            "checkout_enabled": self.checkout_enabled,
        }

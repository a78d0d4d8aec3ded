from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from branchpos_sdk import ALL_CATEGORY_ID, Category, Product, filter_products, is_low_stock

from branchpos_app.ui.shared.formatting import DEFAULT_CURRENCY_SYMBOL, format_price
from branchpos_app.ui.shared.view_state import resolve_state


@dataclass
class ProductGrid:
    """Catalog for the active scope plus the search and category filters."""

    products: list[Product] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    search: str = ""
    category: str = ALL_CATEGORY_ID
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL

    def load(self, products: list[Product], categories: list[Category]) -> None:
        self.products = list(products)
        self.categories = list(categories)
        if not any(category.id == self.category for category in self.categories):
            self.category = ALL_CATEGORY_ID

    def reset_category(self) -> None:
        self.category = ALL_CATEGORY_ID

    def select_category(self, category_id: str) -> bool:
        if not any(category.id == category_id for category in self.categories):
            return False
        self.category = category_id
        return True

    def visible(self) -> list[Product]:
        return filter_products(self.products, search=self.search, category=self.category)

    def find(self, product_id: str) -> Product | None:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def render(self, quantities: dict[str, int] | None = None) -> dict[str, Any]:
        quantities = quantities or {}
        visible = self.visible()
        state = resolve_state(
            is_loading=False,
            error=None,
            has_data=bool(visible),
            empty_message="No products found",
        )
        return {
            "search": self.search,
            "category": self.category,
            "categories": [
                {"id": category.id, "label": category.label, "selected": category.id == self.category}
                for category in self.categories
            ],
            "products": [
                {
                    "id": product.id,
                    "name": product.name,
                    "price": product.price,
                    "price_display": format_price(product.price, self.currency_symbol),
                    "stock": product.stock,
                    "low_stock": is_low_stock(product),
                    "in_cart": quantities.get(product.id, 0),
                }
                for product in visible
            ],
            "view_state": state.render(),
        }

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

from branchpos_sdk import CatalogProvider

from branchpos_app.app.state import ScopeContext
from branchpos_app.services.cart_engine import CartEngine
from branchpos_app.services.errors import InvalidCheckout, RepositoryUnavailable
from branchpos_app.services.transaction_cache import TransactionCache
from branchpos_app.shared.telemetry import TelemetryLogger, build_event
from branchpos_app.ui.pos.components.cart_table import CartTable
from branchpos_app.ui.pos.components.product_grid import ProductGrid
from branchpos_app.ui.pos.components.totals_bar import TotalsBar
from branchpos_app.ui.shared.error_presenter import ErrorPresenter
from branchpos_app.ui.shared.formatting import DEFAULT_CURRENCY_SYMBOL

logger = logging.getLogger(__name__)


@dataclass
class PosView:
    scope: ScopeContext
    catalog: CatalogProvider
    cart: CartEngine
    cache: TransactionCache
    telemetry: TelemetryLogger | None = None
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    grid: ProductGrid = field(default_factory=ProductGrid)
    error_message: str | None = None
    trace_id: str | None = None
    last_transaction_id: str | None = None
    is_submitting: bool = False

    def __post_init__(self) -> None:
        self.grid.currency_symbol = self.currency_symbol
        self.reload_catalog()

    def reload_catalog(self, *, reset_category: bool = False) -> None:
        current = self.scope.scope
        self.grid.load(
            self.catalog.products_for(current.store_id, current.branch_id),
            self.catalog.categories_for(current.store_id),
        )
        if reset_category:
            self.grid.reset_category()

    def set_search(self, text: str) -> dict[str, Any]:
        self.grid.search = text
        return self.render()

    def select_category(self, category_id: str) -> dict[str, Any]:
        if not self.grid.select_category(category_id):
            return {"ok": False, "error": f"Unknown category {category_id!r}"}
        return {"ok": True, "products": self.grid.render(self._quantities())}

    def add_product(self, product_id: str) -> dict[str, Any]:
        product = self.grid.find(product_id)
        if product is None:
            return {"ok": False, "error": "Product is not sold at this branch"}
        self.cart.add_line(product)
        return {"ok": True, "cart": self._cart_table()}

    def increment(self, product_id: str) -> dict[str, Any]:
        self.cart.adjust_quantity(product_id, 1)
        return {"ok": True, "cart": self._cart_table()}

    def decrement(self, product_id: str) -> dict[str, Any]:
        self.cart.adjust_quantity(product_id, -1)
        return {"ok": True, "cart": self._cart_table()}

    def remove(self, product_id: str) -> dict[str, Any]:
        self.cart.remove_line(product_id)
        return {"ok": True, "cart": self._cart_table()}

    def can_checkout(self) -> bool:
        return not self.cart.is_empty and not self.is_submitting

    def checkout(self) -> dict[str, Any]:
        if self.is_submitting:
            return {"ok": False, "error": "Checkout already in progress"}
        started = perf_counter()
        try:
            draft = self.cart.to_transaction_draft(self.scope.scope)
        except InvalidCheckout as exc:
            presented = ErrorPresenter().present(exc, action="pos.checkout")
            return {"ok": False, "error": presented.user_message, "category": presented.category, "not_applied": True}

        self.is_submitting = True
        try:
            created = self.cache.create(draft)
        except RepositoryUnavailable as exc:
            presented = ErrorPresenter().present(exc, action="pos.checkout")
            self.error_message = presented.user_message
            self.trace_id = exc.trace_id
            self._emit(
                "checkout_failed",
                started,
                success=False,
                trace_id=exc.trace_id,
                error_code=type(exc).__name__,
            )
            # The repository may or may not have stored it; re-read before retrying.
            self.cache.refresh_current()
            return {
                "ok": False,
                "error": presented.user_message,
                "trace_id": exc.trace_id,
                "category": presented.category,
                "safe_to_retry": presented.safe_to_retry,
                "not_applied": True,
            }
        finally:
            self.is_submitting = False

        self.cart.settle(draft.items)
        self.error_message = None
        self.trace_id = None
        self.last_transaction_id = created.id
        self._emit(
            "checkout_completed",
            started,
            success=True,
            context={"transaction_id": created.id, "line_count": len(created.items)},
        )
        return {"ok": True, "transaction_id": created.id, "total": created.total}

    def render(self) -> dict[str, Any]:
        return {
            "scope": {
                "store_id": self.scope.selected_store.id,
                "store": self.scope.selected_store.label,
                "branch_id": self.scope.selected_branch.id,
                "branch": self.scope.selected_branch.label,
            },
            "catalog": self.grid.render(self._quantities()),
            "cart": self._cart_table(),
            "totals": TotalsBar(
                subtotal=self.cart.subtotal(),
                discount=self.cart.discount(),
                total=self.cart.total(),
                checkout_enabled=self.can_checkout(),
                currency_symbol=self.currency_symbol,
            ).render(),
            "error": self.error_message,
            "trace_id": self.trace_id,
            "last_transaction_id": self.last_transaction_id,
            "guards": {
                "disable_while_submitting": self.is_submitting,
                "double_submit_protection": True,
            },
        }

    def _quantities(self) -> dict[str, int]:
        return {line.product_id: line.quantity for line in self.cart.lines}

    def _cart_table(self) -> dict[str, Any]:
        return CartTable(self.cart.lines, currency_symbol=self.currency_symbol).render()

    def _emit(
        self,
        name: str,
        started: float,
        *,
        success: bool,
        trace_id: str | None = None,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        if self.telemetry is None:
            return
        event = build_event(
            category="checkout",
            name=name,
            module="pos",
            action="checkout",
            trace_id=trace_id,
            duration_ms=int((perf_counter() - started) * 1000),
            success=success,
            error_code=error_code,
            context={"store_id": self.scope.selected_store.id, "branch_id": self.scope.selected_branch.id, **(context or {})},
        )
        self.telemetry.emit(event)

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from branchpos_sdk import (
    ApiSession,
    CatalogProvider,
    ClientConfig,
    InMemoryTransactionRepository,
    ScopeStore,
    StaticCatalog,
    TransactionRepository,
    load_config,
)

from branchpos_app.app.state import Scope, ScopeChange, ScopeContext, ScopeError
from branchpos_app.config import AppConfig, load_app_config
from branchpos_app.services.cart_engine import CartEngine
from branchpos_app.services.transaction_cache import TransactionCache
from branchpos_app.shared.telemetry import TelemetryLogger, build_event
from branchpos_app.ui.context_switcher_view import ContextSwitcherView
from branchpos_app.ui.history.sales_history_view import SalesHistoryView
from branchpos_app.ui.pos.pos_view import PosView

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    scope: Scope
    restored: bool = False
    error_message: str | None = None


class PosAppBootstrap:
    """Wires the state holders and views, and owns the scope side effects.

    A branch change empties the cart. Any scope change reloads the catalog
    (category filter back to ``all`` when the store changed) and refreshes
    the transaction cache for the new scope.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        client_config: ClientConfig | None = None,
        repository: TransactionRepository | None = None,
        catalog: CatalogProvider | None = None,
        scope_store: ScopeStore | None = None,
        telemetry: TelemetryLogger | None = None,
    ) -> None:
        self.config = config or load_app_config()
        self.catalog = catalog or StaticCatalog()
        self.repository = repository or self._build_repository(client_config)
        self.scope_store = scope_store or ScopeStore()
        self.telemetry = telemetry or TelemetryLogger(app_name="pos_app", enabled=self.config.telemetry_enabled)

        self.scope = ScopeContext(self.catalog.stores())
        self.cart = CartEngine()
        self.cache = TransactionCache(self.repository)
        self.pos_view = PosView(
            scope=self.scope,
            catalog=self.catalog,
            cart=self.cart,
            cache=self.cache,
            telemetry=self.telemetry,
            currency_symbol=self.config.currency_symbol,
        )
        self.history_view = SalesHistoryView(
            scope=self.scope,
            cache=self.cache,
            telemetry=self.telemetry,
            currency_symbol=self.config.currency_symbol,
        )
        self.switcher_view = ContextSwitcherView(scope=self.scope, store=self.scope_store)
        self._unsubscribe = self.scope.subscribe(self._on_scope_change)

    def _build_repository(self, client_config: ClientConfig | None) -> TransactionRepository:
        if self.config.offline:
            logger.info("Using in-memory transaction repository")
            return InMemoryTransactionRepository()
        session = ApiSession(
            client_config or load_config(),
            app_id=self.config.app_id,
            device_id=self.config.device_id,
        )
        return session.transactions_client()

    def start(self) -> BootstrapResult:
        issued = self.cache.latest_sequence
        restored = self._restore_saved_scope() or self._apply_configured_default()
        # Restoring onto the initial scope emits no change, so refresh explicitly.
        if self.cache.latest_sequence == issued:
            self._refresh(self.scope.scope)
        current = self.scope.scope
        logger.info("POS ready at %s", current.describe())
        return BootstrapResult(scope=current, restored=restored, error_message=self.cache.last_error)

    def shutdown(self) -> None:
        self._unsubscribe()

    def _restore_saved_scope(self) -> bool:
        saved = self.scope_store.load()
        if saved is None:
            return False
        return self.scope.restore(saved.store_id, saved.branch_id)

    def _apply_configured_default(self) -> bool:
        store_id = self.config.default_store
        if not store_id:
            return False
        try:
            self.scope.select_store_by_id(store_id)
            if self.config.default_branch:
                self.scope.select_branch_by_id(self.config.default_branch)
        except ScopeError as exc:
            logger.warning("Ignoring configured default scope: %s", exc)
            return False
        return True

    def _on_scope_change(self, change: ScopeChange) -> None:
        if change.branch_changed:
            self.cart.reset()
        self.pos_view.reload_catalog(reset_category=change.store_changed)
        self._refresh(change.current)
        self.telemetry.emit(
            build_event(
                category="scope",
                name="scope_changed",
                module="context_switcher",
                action="select_store" if change.store_changed else "select_branch",
                success=True,
                context={"store_id": change.current.store_id, "branch_id": change.current.branch_id},
            )
        )

    def _refresh(self, scope: Scope) -> None:
        if not self.config.async_refresh:
            self.cache.refresh(scope.store_id, scope.branch_id)
            return
        threading.Thread(
            target=self.cache.refresh,
            args=(scope.store_id, scope.branch_id),
            daemon=True,
        ).start()

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any

from branchpos_sdk import Transaction

from branchpos_app.app.state import ScopeContext
from branchpos_app.services.errors import TransactionServiceError
from branchpos_app.services.transaction_cache import TransactionCache
from branchpos_app.shared.telemetry import TelemetryLogger, build_event
from branchpos_app.ui.shared.error_presenter import ErrorPresenter
from branchpos_app.ui.shared.formatting import DEFAULT_CURRENCY_SYMBOL, format_date, format_price, format_time
from branchpos_app.ui.shared.view_state import resolve_state

logger = logging.getLogger(__name__)


@dataclass
class SalesHistoryView:
    scope: ScopeContext
    cache: TransactionCache
    telemetry: TelemetryLogger | None = None
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    tz: tzinfo | None = None
    expanded_id: str | None = None
    void_modal_id: str | None = None
    void_reason: str = ""
    error_message: str | None = None
    trace_id: str | None = None

    def load(self) -> bool:
        current = self.scope.scope
        return self.cache.refresh(current.store_id, current.branch_id)

    def toggle_expanded(self, transaction_id: str) -> None:
        self.expanded_id = None if self.expanded_id == transaction_id else transaction_id

    def request_void(self, transaction_id: str) -> dict[str, Any]:
        record = self.cache.get(transaction_id)
        if record is None:
            return {"ok": False, "error": "Transaction is not in the current list"}
        if not record.can_void:
            return {"ok": False, "error": "Transaction is already voided"}
        self.void_modal_id = transaction_id
        self.void_reason = ""
        return {"ok": True, "void_modal_id": transaction_id}

    def set_void_reason(self, reason: str) -> None:
        self.void_reason = reason

    def cancel_void(self) -> None:
        self.void_modal_id = None
        self.void_reason = ""

    def confirm_void(self, *, async_mode: bool = False) -> dict[str, Any]:
        if self.void_modal_id is None:
            return {"ok": False, "error": "No transaction selected for void"}
        transaction_id = self.void_modal_id
        reason = self.void_reason.strip() or None
        self.cancel_void()
        if async_mode:
            # The optimistic flag is applied by the worker before the request
            # leaves; callers observe it through the cache subscription.
            threading.Thread(target=self._void, args=(transaction_id, reason), daemon=True).start()
            return {"ok": True, "transaction_id": transaction_id, "pending": True}
        return self._void(transaction_id, reason)

    def _void(self, transaction_id: str, reason: str | None) -> dict[str, Any]:
        try:
            self.cache.void(transaction_id, reason)
        except TransactionServiceError as exc:
            presented = ErrorPresenter().present(exc, action="sales_history.void")
            self.error_message = presented.user_message
            self.trace_id = exc.trace_id
            self._emit(transaction_id, success=False, trace_id=exc.trace_id, error_code=type(exc).__name__)
            return {
                "ok": False,
                "transaction_id": transaction_id,
                "error": presented.user_message,
                "category": presented.category,
                "trace_id": exc.trace_id,
                "safe_to_retry": presented.safe_to_retry,
            }
        self.error_message = None
        self.trace_id = None
        self._emit(transaction_id, success=True)
        return {"ok": True, "transaction_id": transaction_id, "pending": False}

    def render(self) -> dict[str, Any]:
        records = self.cache.records
        error = self.error_message or self.cache.last_error
        state = resolve_state(
            is_loading=self.cache.loading,
            error=error,
            has_data=bool(records),
            trace_id=self.trace_id or self.cache.last_trace_id,
            empty_message="No transactions yet",
        )
        return {
            "rows": [self._row(record) for record in records],
            "expanded_id": self.expanded_id,
            "void_dialog": {
                "open": self.void_modal_id is not None,
                "transaction_id": self.void_modal_id,
                "reason": self.void_reason,
            },
            "error": error,
            "view_state": state.render(),
        }

    def _row(self, record: Transaction) -> dict[str, Any]:
        expanded = record.id == self.expanded_id
        row: dict[str, Any] = {
            "id": record.id,
            "date": format_date(record.timestamp, self.tz),
            "time": format_time(record.timestamp, self.tz),
            "branch": record.branch_name,
            "status": record.status.value,
            "item_count": record.item_count,
            "total": format_price(record.total, self.currency_symbol),
            "can_void": record.can_void,
            "expanded": expanded,
            "void_reason": record.void_reason if record.is_voided else None,
        }
        if expanded:
            row["items"] = [
                {
                    "name": item.product_name,
                    "quantity": item.quantity,
                    "unit_price": format_price(item.unit_price, self.currency_symbol),
                    "line_total": format_price(item.line_total, self.currency_symbol),
                }
                for item in record.items
            ]
            row["subtotal"] = format_price(record.subtotal, self.currency_symbol)
            row["discount"] = format_price(record.discount, self.currency_symbol)
        return row

    def _emit(
        self,
        transaction_id: str,
        *,
        success: bool,
        trace_id: str | None = None,
        error_code: str | None = None,
    ) -> None:
        if self.telemetry is None:
            return
        self.telemetry.emit(
            build_event(
                category="void",
                name="void_completed" if success else "void_failed",
                module="sales_history",
                action="void",
                trace_id=trace_id,
                success=success,
                error_code=error_code,
                context={"transaction_id": transaction_id},
            )
        )

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from branchpos_sdk import SavedScope, ScopeStore

from branchpos_app.app.state import ScopeContext, ScopeError
from branchpos_app.ui.shared.error_presenter import ErrorPresenter

logger = logging.getLogger(__name__)


@dataclass
class ContextSwitcherView:
    scope: ScopeContext
    store: ScopeStore | None = None

    def render(self) -> dict[str, Any]:
        current = self.scope.scope
        return {
            "stores": [
                {"id": store.id, "label": store.label, "selected": store.id == current.store_id}
                for store in self.scope.stores
            ],
            "branches": [
                {"id": branch.id, "label": branch.label, "selected": branch.id == current.branch_id}
                for branch in current.store.branches
            ],
            "summary": current.describe(),
        }

    def choose_store(self, store_id: str) -> dict[str, Any]:
        return self._choose(lambda: self.scope.select_store_by_id(store_id), action="scope.store")

    def choose_branch(self, branch_id: str) -> dict[str, Any]:
        return self._choose(lambda: self.scope.select_branch_by_id(branch_id), action="scope.branch")

    def _choose(self, select, *, action: str) -> dict[str, Any]:
        try:
            current = select()
        except ScopeError as exc:
            presented = ErrorPresenter().present(exc, action=action)
            return {"ok": False, "error": presented.user_message, "category": presented.category, "details": str(exc)}
        self._persist()
        return {"ok": True, "store_id": current.store_id, "branch_id": current.branch_id}

    def _persist(self) -> None:
        if self.store is None:
            return
        current = self.scope.scope
        try:
            self.store.save(SavedScope(store_id=current.store_id, branch_id=current.branch_id))
        except OSError as exc:
            logger.warning("Could not persist scope selection: %s", exc)

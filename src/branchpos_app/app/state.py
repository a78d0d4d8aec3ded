from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from branchpos_sdk.models import Branch, Store

from .observable import Observable

logger = logging.getLogger(__name__)


class ScopeError(ValueError):
    """A branch was selected that does not belong to the selected store."""


@dataclass(frozen=True)
class Scope:
    store: Store
    branch: Branch

    @property
    def store_id(self) -> str:
        return self.store.id

    @property
    def branch_id(self) -> str:
        return self.branch.id

    @property
    def key(self) -> tuple[str, str]:
        return (self.store.id, self.branch.id)

    def describe(self) -> str:
        return f"{self.store.label} / {self.branch.label}"


@dataclass(frozen=True)
class ScopeChange:
    previous: Scope
    current: Scope

    @property
    def store_changed(self) -> bool:
        return self.previous.store_id != self.current.store_id

    @property
    def branch_changed(self) -> bool:
        # Keyed by store too: two stores may reuse a branch id.
        return self.previous.key != self.current.key


def _first_branch(store: Store) -> Branch:
    branch = store.first_branch
    if branch is None:
        raise ScopeError(f"Store {store.id!r} has no branches to select")
    return branch


class ScopeContext(Observable[ScopeChange]):
    """The process-wide (store, branch) selection.

    ``selected_branch`` always belongs to ``selected_store``: switching store
    moves the branch to that store's first branch in the same step, and
    selecting a foreign branch is rejected with ``ScopeError``.
    """

    def __init__(self, stores: Sequence[Store], initial: Scope | None = None) -> None:
        super().__init__()
        if not stores:
            raise ScopeError("At least one store is required")
        self._stores = tuple(stores)
        if initial is None:
            initial = Scope(store=self._stores[0], branch=_first_branch(self._stores[0]))
        elif not initial.store.has_branch(initial.branch_id):
            raise ScopeError(f"Branch {initial.branch_id!r} does not belong to store {initial.store_id!r}")
        self._scope = initial

    @property
    def stores(self) -> tuple[Store, ...]:
        return self._stores

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def selected_store(self) -> Store:
        return self._scope.store

    @property
    def selected_branch(self) -> Branch:
        return self._scope.branch

    def find_store(self, store_id: str) -> Store | None:
        for store in self._stores:
            if store.id == store_id:
                return store
        return None

    def select_store(self, store: Store) -> Scope:
        self._apply(Scope(store=store, branch=_first_branch(store)))
        return self._scope

    def select_branch(self, branch: Branch) -> Scope:
        store = self._scope.store
        if not store.has_branch(branch.id):
            raise ScopeError(f"Branch {branch.id!r} does not belong to store {store.id!r}")
        self._apply(Scope(store=store, branch=branch))
        return self._scope

    def select_store_by_id(self, store_id: str) -> Scope:
        store = self.find_store(store_id)
        if store is None:
            raise ScopeError(f"Unknown store {store_id!r}")
        return self.select_store(store)

    def select_branch_by_id(self, branch_id: str) -> Scope:
        branch = self._scope.store.branch(branch_id)
        if branch is None:
            raise ScopeError(f"Branch {branch_id!r} does not belong to store {self._scope.store_id!r}")
        return self.select_branch(branch)

    def restore(self, store_id: str, branch_id: str) -> bool:
        """Move to a saved selection if it still exists; returns whether it did."""
        store = self.find_store(store_id)
        if store is None or not store.has_branch(branch_id):
            logger.info("Saved scope %s/%s is no longer available", store_id, branch_id)
            return False
        self._apply(Scope(store=store, branch=store.branch(branch_id)))  # type: ignore[arg-type]
        return True

    def _apply(self, scope: Scope) -> None:
        previous = self._scope
        self._scope = scope
        if previous.key == scope.key:
            return
        logger.info("Scope changed from %s to %s", previous.describe(), scope.describe())
        self._notify(ScopeChange(previous=previous, current=scope))

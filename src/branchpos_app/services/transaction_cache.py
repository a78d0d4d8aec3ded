from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from branchpos_sdk import ApiError, NotFoundError, TransactionRepository, now_millis
from branchpos_sdk.models import Transaction, TransactionDraft, TransactionQuery
from branchpos_sdk.repository import Clock

from ..app.observable import Observable
from .errors import InvalidCheckout, not_found_from, unavailable_from

logger = logging.getLogger(__name__)

# Anything the repository can raise for a failed round trip. Malformed
# payloads surface as ValueError (pydantic's ValidationError included).
REPOSITORY_ERRORS = (ApiError, ValueError)


@dataclass(frozen=True)
class CacheChange:
    action: str
    transaction_id: str | None = None


def _newest_first(rows: list[Transaction]) -> list[Transaction]:
    return sorted(rows, key=lambda row: row.timestamp, reverse=True)


class TransactionCache(Observable[CacheChange]):
    """Client-side reflection of the transaction repository.

    Refreshes replace ``records`` wholesale and are sequence stamped: only
    the most recently issued refresh may write, so a slow response to an
    older query can never overwrite a newer one. A refresh that a create or
    void completed behind is re-issued instead of written, since its snapshot
    predates the mutation. Voids are applied locally before the repository
    answers, stay applied over any refresh that lands while they are in
    flight, and are reconciled by a full refresh when the repository call
    fails. Creates are only applied once the repository has assigned the id.
    """

    def __init__(self, repository: TransactionRepository, *, clock: Clock = now_millis) -> None:
        super().__init__()
        self.repository = repository
        self._clock = clock
        self._lock = threading.RLock()
        self._records: list[Transaction] = []
        self._query = TransactionQuery()
        self._issued = 0
        self._mutations = 0
        self._pending_voids: dict[str, Transaction] = {}
        self.loading = False
        self.last_error: str | None = None
        self.last_trace_id: str | None = None

    @property
    def records(self) -> tuple[Transaction, ...]:
        with self._lock:
            return tuple(self._records)

    @property
    def query(self) -> TransactionQuery:
        return self._query

    @property
    def latest_sequence(self) -> int:
        return self._issued

    def get(self, transaction_id: str) -> Transaction | None:
        with self._lock:
            for record in self._records:
                if record.id == transaction_id:
                    return record
        return None

    def refresh(self, store_id: str | None = None, branch_id: str | None = None) -> bool:
        """Reload records for the given scope; returns whether this response was applied."""
        query = TransactionQuery(store_id=store_id, branch_id=branch_id)
        with self._lock:
            self._issued += 1
            sequence = self._issued
            mutations = self._mutations
            self._query = query
            self.loading = True
            self.last_error = None
        self._notify(CacheChange("loading"))

        try:
            rows = self.repository.list_transactions(query)
        except REPOSITORY_ERRORS as exc:
            error = unavailable_from(exc)
            with self._lock:
                if sequence != self._issued:
                    logger.debug("Dropping failed refresh #%s, #%s is newer", sequence, self._issued)
                    return False
                self.loading = False
                self.last_error = error.message
                self.last_trace_id = error.trace_id
            logger.warning("Refresh #%s failed: %s", sequence, exc)
            self._notify(CacheChange("error"))
            return False

        with self._lock:
            if sequence != self._issued:
                logger.debug("Dropping stale refresh #%s, #%s is newer", sequence, self._issued)
                return False
            overtaken = mutations != self._mutations
            if not overtaken:
                self._records = _newest_first([self._with_pending_void(row) for row in rows])
                self.loading = False
                self.last_trace_id = None
        if overtaken:
            logger.debug("Refresh #%s predates a completed mutation, re-issuing", sequence)
            return self.refresh(query.store_id, query.branch_id)
        logger.debug("Refresh #%s applied %s records", sequence, len(rows))
        self._notify(CacheChange("refreshed"))
        return True

    def refresh_current(self) -> bool:
        query = self._query
        return self.refresh(query.store_id, query.branch_id)

    def create(self, draft: TransactionDraft) -> Transaction:
        if not draft.items:
            raise InvalidCheckout(message="Cannot check out an empty cart")
        try:
            created = self.repository.create_transaction(draft)
        except REPOSITORY_ERRORS as exc:
            error = unavailable_from(exc)
            with self._lock:
                # The store may have written it before failing.
                self._mutations += 1
                self.last_error = error.message
                self.last_trace_id = error.trace_id
            logger.warning("Create failed for %s/%s: %s", draft.store_id, draft.branch_id, exc)
            self._notify(CacheChange("error"))
            raise error from exc

        with self._lock:
            self._mutations += 1
            # A create that lands after a scope switch belongs to another view.
            if self._query.matches(created):
                self._records.insert(0, created)
        logger.info("Created transaction %s (total %s)", created.id, created.total)
        self._notify(CacheChange("created", created.id))
        return created

    def void(self, transaction_id: str, reason: str | None = None) -> Transaction | None:
        reason = (reason or "").strip() or None
        optimistic: Transaction | None = None
        with self._lock:
            for index, record in enumerate(self._records):
                if record.id != transaction_id:
                    continue
                if record.is_voided:
                    return record
                optimistic = record.voided(at=self._clock(), reason=reason)
                self._records[index] = optimistic
                self._pending_voids[transaction_id] = optimistic
                break
        if optimistic is not None:
            self._notify(CacheChange("voided", transaction_id))

        try:
            try:
                self.repository.void_transaction(transaction_id, reason)
            finally:
                with self._lock:
                    self._pending_voids.pop(transaction_id, None)
                    self._mutations += 1
        except NotFoundError as exc:
            error = not_found_from(exc, transaction_id)
            self._reconcile_after_failure(error.message, error.trace_id)
            logger.warning("Void of %s rejected: not found", transaction_id)
            raise error from exc
        except REPOSITORY_ERRORS as exc:
            error = unavailable_from(exc)
            self._reconcile_after_failure(error.message, error.trace_id)
            logger.warning("Void of %s failed: %s", transaction_id, exc)
            raise error from exc
        logger.info("Voided transaction %s", transaction_id)
        return optimistic

    def _with_pending_void(self, row: Transaction) -> Transaction:
        if row.is_voided:
            return row
        return self._pending_voids.get(row.id, row)

    def _reconcile_after_failure(self, message: str, trace_id: str | None) -> None:
        # No inverse mutation: re-derive ground truth from the repository.
        self.refresh_current()
        with self._lock:
            self.last_error = message
            self.last_trace_id = trace_id
        self._notify(CacheChange("error"))

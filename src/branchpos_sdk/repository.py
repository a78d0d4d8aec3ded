from __future__ import annotations

import logging
import random
import string
import threading
import time
from typing import Callable, Protocol

from .exceptions import transaction_not_found
from .models import Transaction, TransactionDraft, TransactionQuery, TransactionStatus

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def now_millis() -> int:
    return int(time.time() * 1000)


def new_transaction_id(timestamp: int, rng: random.Random | None = None) -> str:
    """``TXN-<epoch millis>-<9 base36 chars>``, the store of record's id format."""
    source = rng or random
    suffix = "".join(source.choice(_ID_ALPHABET) for _ in range(9))
    return f"TXN-{timestamp}-{suffix}"


class TransactionRepository(Protocol):
    """Store of record for transactions.

    ``list_transactions`` answers newest first. ``void_transaction`` is
    idempotent for an already voided record and raises ``NotFoundError`` for
    an unknown id. Every other failure surfaces as an ``ApiError``.
    """

    def list_transactions(self, query: TransactionQuery | None = None) -> list[Transaction]: ...

    def create_transaction(self, draft: TransactionDraft) -> Transaction: ...

    def void_transaction(self, transaction_id: str, reason: str | None = None) -> None: ...


class InMemoryTransactionRepository:
    """Process-local store of record, used offline and by tests."""

    def __init__(
        self,
        transactions: list[Transaction] | None = None,
        *,
        clock: Clock = now_millis,
        rng: random.Random | None = None,
    ) -> None:
        self._clock = clock
        self._rng = rng
        self._lock = threading.Lock()
        self._rows: dict[str, Transaction] = {}
        for transaction in transactions or []:
            self._rows[transaction.id] = transaction

    def list_transactions(self, query: TransactionQuery | None = None) -> list[Transaction]:
        query = query or TransactionQuery()
        with self._lock:
            rows = [row for row in self._rows.values() if query.matches(row)]
        return sorted(rows, key=lambda row: row.timestamp, reverse=True)

    def create_transaction(self, draft: TransactionDraft) -> Transaction:
        timestamp = self._clock()
        with self._lock:
            transaction_id = new_transaction_id(timestamp, self._rng)
            while transaction_id in self._rows:
                transaction_id = new_transaction_id(timestamp, self._rng)
            created = Transaction(
                **draft.model_dump(include=set(TransactionDraft.model_fields)),
                id=transaction_id,
                timestamp=timestamp,
                status=TransactionStatus.COMPLETED,
            )
            self._rows[transaction_id] = created
        logger.info("Recorded transaction %s for %s/%s", transaction_id, draft.store_id, draft.branch_id)
        return created

    def void_transaction(self, transaction_id: str, reason: str | None = None) -> None:
        with self._lock:
            current = self._rows.get(transaction_id)
            if current is None:
                raise transaction_not_found(transaction_id)
            if current.is_voided:
                return
            self._rows[transaction_id] = current.voided(at=self._clock(), reason=reason)
        logger.info("Voided transaction %s", transaction_id)

    def get(self, transaction_id: str) -> Transaction | None:
        with self._lock:
            return self._rows.get(transaction_id)

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import quote

from ..exceptions import NotFoundError, TransactionNotFoundError
from ..idempotency import idempotency_headers
from ..models import (
    Transaction,
    TransactionDraft,
    TransactionEnvelope,
    TransactionListResponse,
    TransactionQuery,
    VoidRequest,
    VoidResponse,
)
from .base import BaseClient

TRANSACTIONS_PATH = "/api/transactions"


@dataclass
class TransactionsClient(BaseClient):
    """HTTP implementation of the transaction repository contract."""

    def list_transactions(
        self, query: TransactionQuery | Mapping[str, Any] | None = None
    ) -> list[Transaction]:
        params = None
        if query is not None:
            params = _coerce_model(query, TransactionQuery).to_params()
        data = self._request(
            "GET",
            TRANSACTIONS_PATH,
            params=params,
            module="transactions",
            operation="list",
        )
        if not isinstance(data, dict):
            raise ValueError("Expected list transactions response to be a JSON object")
        return TransactionListResponse.model_validate(data).transactions

    def create_transaction(
        self,
        draft: TransactionDraft | Mapping[str, Any],
        idempotency_key: str | None = None,
    ) -> Transaction:
        request = _coerce_model(draft, TransactionDraft)
        body = request.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            include=set(TransactionDraft.model_fields),
        )
        data = self._request(
            "POST",
            TRANSACTIONS_PATH,
            json_body=body,
            headers=idempotency_headers(idempotency_key),
            module="transactions",
            operation="create",
        )
        if not isinstance(data, dict):
            raise ValueError("Expected create transaction response to be a JSON object")
        return TransactionEnvelope.model_validate(data).transaction

    def void_transaction(self, transaction_id: str, reason: str | None = None) -> None:
        try:
            data = self._request(
                "PATCH",
                f"{TRANSACTIONS_PATH}/{quote(transaction_id, safe='')}",
                json_body=VoidRequest(reason=reason or None).to_wire(),
                module="transactions",
                operation="void",
            )
        except NotFoundError as exc:
            raise TransactionNotFoundError(
                code=exc.code if exc.code != "HTTP_ERROR" else "TRANSACTION_NOT_FOUND",
                message=exc.message,
                details=exc.details or {"transaction_id": transaction_id},
                trace_id=exc.trace_id,
                status_code=exc.status_code,
                raw_payload=exc.raw_payload,
            ) from exc
        if isinstance(data, dict) and not VoidResponse.model_validate(data).success:
            raise ValueError(f"Void of {transaction_id} was not acknowledged")


def _coerce_model(value: Any, model_type: type[Any]):
    if isinstance(value, model_type):
        return value
    return model_type.model_validate(value)

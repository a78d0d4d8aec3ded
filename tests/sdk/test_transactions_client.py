from __future__ import annotations

import json
from decimal import Decimal

import pytest
import requests
import responses
from responses import matchers

from branchpos_sdk.clients.transactions_client import TransactionsClient
from branchpos_sdk.config import ClientConfig
from branchpos_sdk.exceptions import ServerError, TransactionNotFoundError, TransportError
from branchpos_sdk.http_client import HttpClient
from branchpos_sdk.idempotency import IDEMPOTENCY_HEADER
from branchpos_sdk.models import TransactionDraft, TransactionItem, TransactionQuery, TransactionStatus
from branchpos_sdk.session import ApiSession
from branchpos_sdk.tracing import TraceContext

BASE_URL = "https://pos.example.com"


def _client() -> TransactionsClient:
    cfg = ClientConfig(env_name="test", api_base_url=BASE_URL, retries=0, retry_backoff_seconds=0)
    return TransactionsClient(http=HttpClient(cfg, trace=TraceContext()), app_id="pos", device_id="till-1")


def _wire_transaction(transaction_id: str, *, timestamp: int = 1767600000000, status: str = "completed") -> dict:
    return {
        "id": transaction_id,
        "timestamp": timestamp,
        "storeId": "daily-dope",
        "storeName": "Daily Dope Vape Shop",
        "branchId": "vicas",
        "branchName": "Vicas",
        "items": [
            {
                "productId": "blue-razz-60ml",
                "productName": "Blue Razz E-Liquid 60ml",
                "quantity": 2,
                "unitPrice": 24.99,
                "lineTotal": 49.98,
            }
        ],
        "subtotal": 49.98,
        "discount": 0,
        "total": 49.98,
        "status": status,
    }


def _draft() -> TransactionDraft:
    return TransactionDraft(
        store_id="daily-dope",
        store_name="Daily Dope Vape Shop",
        branch_id="vicas",
        branch_name="Vicas",
        items=(
            TransactionItem(
                product_id="blue-razz-60ml",
                product_name="Blue Razz E-Liquid 60ml",
                quantity=2,
                unit_price=Decimal("24.99"),
                line_total=Decimal("49.98"),
            ),
        ),
        subtotal=Decimal("49.98"),
        discount=Decimal("0"),
        total=Decimal("49.98"),
    )


@responses.activate
def test_list_transactions_sends_scope_params() -> None:
    responses.add(
        responses.GET,
        f"{BASE_URL}/api/transactions",
        json={"transactions": [_wire_transaction("TXN-2"), _wire_transaction("TXN-1", timestamp=1)]},
        status=200,
        match=[matchers.query_param_matcher({"storeId": "daily-dope", "branchId": "vicas"})],
    )

    rows = _client().list_transactions(TransactionQuery(store_id="daily-dope", branch_id="vicas"))

    assert [row.id for row in rows] == ["TXN-2", "TXN-1"]
    assert rows[0].items[0].unit_price == Decimal("24.99")
    assert rows[0].status is TransactionStatus.COMPLETED
    assert responses.calls[0].request.headers["X-App-ID"] == "pos"
    assert responses.calls[0].request.headers["X-Device-ID"] == "till-1"


@responses.activate
def test_list_without_scope_sends_no_params() -> None:
    responses.add(responses.GET, f"{BASE_URL}/api/transactions", json={"transactions": []}, status=200)

    assert _client().list_transactions() == []
    assert "?" not in responses.calls[0].request.url


@responses.activate
def test_create_transaction_posts_camel_case_with_idempotency_key() -> None:
    responses.add(
        responses.POST,
        f"{BASE_URL}/api/transactions",
        json={"transaction": _wire_transaction("TXN-1767600000000-abc123xyz")},
        status=201,
    )

    created = _client().create_transaction(_draft(), idempotency_key="idem-1")

    assert created.id == "TXN-1767600000000-abc123xyz"
    request = responses.calls[0].request
    assert request.headers[IDEMPOTENCY_HEADER] == "idem-1"
    body = json.loads(request.body)
    assert body["storeId"] == "daily-dope"
    assert body["items"][0]["unitPrice"] == 24.99
    assert "id" not in body


@responses.activate
def test_create_is_posted_once_when_the_answer_times_out() -> None:
    responses.add(responses.POST, f"{BASE_URL}/api/transactions", body=requests.ReadTimeout("read timed out"))
    responses.add(
        responses.POST,
        f"{BASE_URL}/api/transactions",
        json={"transaction": _wire_transaction("TXN-duplicate")},
        status=201,
    )
    cfg = ClientConfig(env_name="test", api_base_url=BASE_URL, retries=2, retry_backoff_seconds=0)
    client = TransactionsClient(http=HttpClient(cfg, trace=TraceContext()))

    with pytest.raises(TransportError) as exc_info:
        client.create_transaction(_draft())

    assert len(responses.calls) == 1
    assert exc_info.value.details == {"type": "ReadTimeout", "attempts": 1}


@responses.activate
def test_create_server_error_is_not_replayed() -> None:
    responses.add(responses.POST, f"{BASE_URL}/api/transactions", json={"error": "Failed"}, status=503)
    cfg = ClientConfig(env_name="test", api_base_url=BASE_URL, retries=2, retry_backoff_seconds=0)
    client = TransactionsClient(http=HttpClient(cfg, trace=TraceContext()))

    with pytest.raises(ServerError):
        client.create_transaction(_draft())

    assert len(responses.calls) == 1


@responses.activate
def test_void_transaction_patches_reason() -> None:
    responses.add(
        responses.PATCH,
        f"{BASE_URL}/api/transactions/TXN-1",
        json={"success": True},
        status=200,
        match=[matchers.json_params_matcher({"reason": "damaged"})],
    )

    assert _client().void_transaction("TXN-1", "damaged") is None


@responses.activate
def test_void_without_reason_sends_empty_body() -> None:
    responses.add(responses.PATCH, f"{BASE_URL}/api/transactions/TXN-1", json={"success": True}, status=200)

    _client().void_transaction("TXN-1")

    assert json.loads(responses.calls[0].request.body) == {}


@responses.activate
def test_void_unknown_transaction_raises_not_found() -> None:
    responses.add(
        responses.PATCH,
        f"{BASE_URL}/api/transactions/TXN-missing",
        json={"error": "Transaction not found"},
        status=404,
    )

    with pytest.raises(TransactionNotFoundError) as exc_info:
        _client().void_transaction("TXN-missing", "typo")

    assert exc_info.value.code == "TRANSACTION_NOT_FOUND"
    assert exc_info.value.message == "Transaction not found"


@responses.activate
def test_void_server_error_propagates() -> None:
    responses.add(
        responses.PATCH,
        f"{BASE_URL}/api/transactions/TXN-1",
        json={"error": "Failed to void transaction"},
        status=500,
    )

    with pytest.raises(ServerError):
        _client().void_transaction("TXN-1")


@responses.activate
def test_void_not_acknowledged_is_an_error() -> None:
    responses.add(responses.PATCH, f"{BASE_URL}/api/transactions/TXN-1", json={"success": False}, status=200)

    with pytest.raises(ValueError, match="not acknowledged"):
        _client().void_transaction("TXN-1")


def test_api_session_shares_http_client() -> None:
    cfg = ClientConfig(env_name="test", api_base_url=BASE_URL)
    session = ApiSession(cfg, app_id="pos")

    first = session.transactions_client()
    second = session.transactions_client()

    assert first.http is second.http
    assert first.app_id == "pos"

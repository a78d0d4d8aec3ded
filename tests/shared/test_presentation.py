from __future__ import annotations

from datetime import timezone
from decimal import Decimal

import pytest

from branchpos_sdk.exceptions import ServerError, TransportError, ValidationError

from branchpos_app.app.state import ScopeError
from branchpos_app.services.errors import (
    InvalidCheckout,
    RepositoryUnavailable,
    TransactionNotFound,
    unavailable_from,
)
from branchpos_app.ui.shared.error_presenter import ErrorPresenter
from branchpos_app.ui.shared.formatting import format_date, format_price, format_time
from branchpos_app.ui.shared.view_state import ViewStateStatus, resolve_state


@pytest.mark.parametrize(
    ("error", "category", "retry"),
    [
        (InvalidCheckout(message="empty"), "validation", False),
        (TransactionNotFound(message="gone", transaction_id="t"), "not_found", False),
        (RepositoryUnavailable(message="down"), "unavailable", True),
        (ScopeError("foreign branch"), "scope", False),
        (RuntimeError("??"), "unknown", False),
    ],
)
def test_error_presenter_categories(error: Exception, category: str, retry: bool) -> None:
    presented = ErrorPresenter().present(error, action="test")

    assert presented.category == category
    assert presented.safe_to_retry is retry
    assert presented.render()["details"]["action"] == "test"


def test_transport_failure_becomes_unavailable() -> None:
    exc = TransportError(code="TRANSPORT_ERROR", message="timed out", details=None, trace_id="t-1", status_code=0)

    error = unavailable_from(exc)

    assert error.message == "Could not reach the transactions service"
    assert error.retryable is True
    assert error.trace_id == "t-1"
    assert "TRANSPORT_ERROR" in (error.details or "")


def test_rejected_request_is_not_offered_for_retry() -> None:
    rejected = ValidationError(
        code="HTTP_ERROR", message="Invalid transaction data", details=None, trace_id=None, status_code=400
    )
    overloaded = ServerError(code="HTTP_ERROR", message="Failed", details=None, trace_id=None, status_code=503)

    presented = ErrorPresenter().present(unavailable_from(rejected), action="pos.checkout")

    assert presented.category == "unavailable"
    assert presented.safe_to_retry is False
    assert ErrorPresenter().present(unavailable_from(overloaded), action="pos.checkout").safe_to_retry is True


def test_unavailable_from_non_api_error() -> None:
    error = unavailable_from(ValueError("bad payload"))

    assert error.message == "bad payload"
    assert error.retryable is True


@pytest.mark.parametrize(
    ("kwargs", "status"),
    [
        ({"is_loading": True, "error": None, "has_data": True}, ViewStateStatus.LOADING),
        ({"is_loading": False, "error": "x", "has_data": True}, ViewStateStatus.PARTIAL_ERROR),
        ({"is_loading": False, "error": "x", "has_data": False}, ViewStateStatus.FATAL_ERROR),
        ({"is_loading": False, "error": None, "has_data": False}, ViewStateStatus.EMPTY),
        ({"is_loading": False, "error": None, "has_data": True}, ViewStateStatus.SUCCESS),
    ],
)
def test_resolve_state(kwargs: dict, status: ViewStateStatus) -> None:
    assert resolve_state(**kwargs).status is status


def test_format_price_rounds_to_cents() -> None:
    assert format_price(Decimal("24.99")) == "₱24.99"
    assert format_price(Decimal("5")) == "₱5.00"
    assert format_price(Decimal("0.005"), "$") == "$0.01"


def test_format_date_and_time() -> None:
    stamp = 1767577800000  # 2026-01-05 01:50 UTC

    assert format_date(stamp, timezone.utc) == "Jan 05, 2026"
    assert format_time(stamp, timezone.utc) == "01:50 AM"

from __future__ import annotations

from dataclasses import dataclass

from branchpos_sdk import ApiError, TransportError
from branchpos_sdk.error_mapper import is_retryable

UNREACHABLE_MESSAGE = "Could not reach the transactions service"


@dataclass(frozen=True)
class TransactionServiceError(RuntimeError):
    message: str
    details: str | None = None
    trace_id: str | None = None

    def __str__(self) -> str:
        return self.message

    @property
    def retryable(self) -> bool:
        return False


@dataclass(frozen=True)
class RepositoryUnavailable(TransactionServiceError):
    """The store of record could not be reached or answered with a failure."""

    transient: bool = True

    @property
    def retryable(self) -> bool:
        return self.transient


@dataclass(frozen=True)
class TransactionNotFound(TransactionServiceError):
    transaction_id: str | None = None


@dataclass(frozen=True)
class InvalidCheckout(TransactionServiceError):
    """Checkout attempted on a cart with no lines."""


def _describe(exc: ApiError) -> tuple[str, str]:
    message = UNREACHABLE_MESSAGE if isinstance(exc, TransportError) else exc.message.strip() or "Request failed"
    details = f"{exc.code} (HTTP {exc.status_code})"
    if exc.details:
        details = f"{details}: {exc.details}"
    return message, details


def unavailable_from(exc: Exception) -> RepositoryUnavailable:
    """Wrap a failed round trip; 4xx answers other than 429 are not worth repeating."""
    if isinstance(exc, ApiError):
        message, details = _describe(exc)
        return RepositoryUnavailable(
            message=message,
            details=details,
            trace_id=exc.trace_id,
            transient=is_retryable(exc),
        )
    return RepositoryUnavailable(message=str(exc) or "Transactions service returned an unreadable response")


def not_found_from(exc: ApiError, transaction_id: str) -> TransactionNotFound:
    message, details = _describe(exc)
    return TransactionNotFound(
        message=message,
        details=details,
        trace_id=exc.trace_id,
        transaction_id=transaction_id,
    )

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class AuthError(UnauthorizedError):
    """Store of record rejected the caller's credentials."""


class PermissionError(ForbiddenError):
    """Store of record refused the operation for this caller."""


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class TransactionNotFoundError(NotFoundError):
    """Void or lookup targeted a transaction id the store of record does not hold."""


def transaction_not_found(transaction_id: str, trace_id: str | None = None) -> TransactionNotFoundError:
    return TransactionNotFoundError(
        code="TRANSACTION_NOT_FOUND",
        message="Transaction not found",
        details={"transaction_id": transaction_id},
        trace_id=trace_id,
        status_code=404,
        raw_payload=None,
    )

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from branchpos_app.app.state import ScopeError
from branchpos_app.services.errors import (
    InvalidCheckout,
    RepositoryUnavailable,
    TransactionNotFound,
    TransactionServiceError,
)


@dataclass(frozen=True)
class PresentedError:
    category: str
    user_message: str
    safe_to_retry: bool
    details: dict[str, Any]

    def render(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "message": self.user_message,
            "safe_to_retry": self.safe_to_retry,
            "details": self.details,
        }


class ErrorPresenter:
    """Maps service failures to consistent banner payloads."""

    _CATEGORY_MESSAGES = {
        "validation": "Add at least one product before checking out.",
        "not_found": "This transaction no longer exists. The list has been refreshed.",
        "unavailable": "Could not reach the transactions service. Please retry.",
        "scope": "That branch is not part of the selected store.",
        "unknown": "Unexpected error. Please try again.",
    }

    def present(self, error: Exception, *, action: str) -> PresentedError:
        category = self._categorize(error)
        technical = {
            "action": action,
            "error": str(error),
            "trace_id": getattr(error, "trace_id", None),
            "raw_details": getattr(error, "details", None),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return PresentedError(
            category=category,
            user_message=self._CATEGORY_MESSAGES[category],
            safe_to_retry=isinstance(error, TransactionServiceError) and error.retryable,
            details=technical,
        )

    @staticmethod
    def _categorize(error: Exception) -> str:
        if isinstance(error, InvalidCheckout):
            return "validation"
        if isinstance(error, TransactionNotFound):
            return "not_found"
        if isinstance(error, RepositoryUnavailable):
            return "unavailable"
        if isinstance(error, ScopeError):
            return "scope"
        return "unknown"

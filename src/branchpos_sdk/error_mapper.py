from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

_STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def _resolve_message(payload: Mapping[str, object]) -> str:
    # The transactions API answers {"error": "..."}; other gateways use the
    # {"code", "message", "details", "trace_id"} envelope.
    message = payload.get("message") or payload.get("error")
    return str(message or "Request failed")


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    code = str(payload.get("code") or "HTTP_ERROR")
    message = _resolve_message(payload)
    details = payload.get("details")
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped = _STATUS_ERRORS.get(status_code) or (ServerError if status_code >= 500 else ApiError)
    return mapped(
        code=code,
        message=message,
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )


def is_retryable(error: ApiError) -> bool:
    """Whether repeating the same request later can reasonably succeed."""
    return error.status_code <= 0 or error.status_code == 429 or error.status_code >= 500

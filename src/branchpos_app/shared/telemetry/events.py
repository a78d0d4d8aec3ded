from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Mapping

TELEMETRY_CATEGORIES = frozenset({"scope", "cart", "checkout", "void", "api_call_result", "error"})

# Free text typed at the till (void reasons, customer names) never leaves the device.
FORBIDDEN_CONTEXT_KEYS = frozenset(
    {
        "customer_name",
        "void_reason",
        "note",
        "email",
        "phone",
        "address",
        "token",
        "authorization",
        "card_number",
    }
)


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    module: str
    action: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: str | None = None
    duration_ms: int | None = None
    success: bool | None = None
    error_code: str | None = None
    context: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.category not in TELEMETRY_CATEGORIES:
            raise ValueError(f"Unsupported telemetry category: {self.category}")
        leaked = sorted(key for key in self.context or {} if key.lower() in FORBIDDEN_CONTEXT_KEYS)
        if leaked:
            raise ValueError(f"Free-text or PII-like keys are forbidden in telemetry context: {leaked}")

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is None:
                continue
            if item.name == "occurred_at":
                payload["timestamp_utc"] = value.isoformat()
            elif item.name == "context":
                payload["context"] = dict(value)
            else:
                payload[item.name] = value
        return payload


def build_event(
    *,
    category: str,
    name: str,
    module: str,
    action: str,
    trace_id: str | None = None,
    duration_ms: int | None = None,
    success: bool | None = None,
    error_code: str | None = None,
    context: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    """Keyword-only constructor used by the views; ``now`` pins the timestamp in tests."""
    extra: dict[str, Any] = {"occurred_at": now} if now is not None else {}
    return TelemetryEvent(
        category=category,
        name=name,
        module=module,
        action=action,
        trace_id=trace_id,
        duration_ms=duration_ms,
        success=success,
        error_code=error_code,
        context=context,
        **extra,
    )

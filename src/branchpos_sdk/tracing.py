from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Mapping

TRACE_HEADER = "X-Request-ID"


@dataclass
class TraceContext:
    """Correlation id sent with every request and echoed back in errors."""

    trace_id: str | None = None

    def ensure(self) -> str:
        self.trace_id = self.trace_id or f"pos-{uuid.uuid4().hex}"
        return self.trace_id

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        # requests exposes a case-insensitive mapping.
        self.trace_id = headers.get(TRACE_HEADER) or self.trace_id

    def update_from_payload(self, payload: Mapping[str, object]) -> None:
        trace_id = payload.get("trace_id")
        if isinstance(trace_id, str) and trace_id:
            self.trace_id = trace_id

from __future__ import annotations

import uuid

IDEMPOTENCY_HEADER = "Idempotency-Key"


def new_idempotency_key(prefix: str = "txn") -> str:
    return f"{prefix}-{uuid.uuid4()}"


def idempotency_headers(idempotency_key: str | None = None) -> dict[str, str]:
    """Tag a create so server logs can correlate a resubmitted sale with the first attempt."""
    return {IDEMPOTENCY_HEADER: idempotency_key or new_idempotency_key()}

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient
    app_id: str | None = None
    device_id: str | None = None

    def _request(self, method: str, path: str, *, headers: dict[str, str] | None = None, **kwargs: Any):
        # Per-request headers win over the till identity.
        identity = {"X-App-ID": self.app_id, "X-Device-ID": self.device_id}
        merged = {key: value for key, value in identity.items() if value}
        merged.update(headers or {})
        return self.http.request(method, path, headers=merged, **kwargs)

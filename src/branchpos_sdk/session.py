from __future__ import annotations

from dataclasses import dataclass

from .clients.transactions_client import TransactionsClient
from .config import ClientConfig
from .http_client import HttpClient
from .tracing import TraceContext


@dataclass
class ApiSession:
    """Builds transport clients that share one config and trace context."""

    config: ClientConfig
    trace: TraceContext | None = None
    app_id: str | None = None
    device_id: str | None = None
    _http_client: HttpClient | None = None

    def __post_init__(self) -> None:
        self.trace = self.trace or TraceContext()

    def http(self) -> HttpClient:
        if self._http_client is None:
            self._http_client = HttpClient(config=self.config, trace=self.trace)
        return self._http_client

    def transactions_client(self) -> TransactionsClient:
        return TransactionsClient(http=self.http(), app_id=self.app_id, device_id=self.device_id)

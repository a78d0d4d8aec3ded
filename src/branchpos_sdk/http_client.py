from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

REPLAYABLE_METHODS = frozenset({"GET", "HEAD"})


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None
    attempts: int = 1


@dataclass
class HttpClient:
    """JSON transport to the transactions service.

    Reads are replayed on connection failures and 5xx answers with
    exponential backoff. Writes go out exactly once: the store of record does
    not deduplicate, so a replayed create could record the same sale twice.
    Non-2xx answers are raised as ``ApiError`` subclasses.
    """

    config: ClientConfig
    trace: TraceContext = field(default_factory=TraceContext)
    session: requests.Session | None = None
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            pool = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", pool)
            self.session.mount("https://", pool)

    def url_for(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> dict[str, Any] | list[Any] | None:
        verb = method.upper()
        url = self.url_for(path)
        outgoing = {"Accept": "application/json", **(headers or {}), TRACE_HEADER: self.trace.ensure()}

        max_attempts = self.config.retries + 1 if verb in REPLAYABLE_METHODS else 1
        started = time.monotonic()
        try:
            response, attempts = self._send(verb, url, outgoing, json_body, params, max_attempts)
        except TransportError:
            self._record(module, operation, started, "error", max_attempts)
            raise

        self.trace.update_from_headers(response.headers)
        if not response.ok:
            self._record(module, operation, started, "error", attempts)
            self._raise_api_error(response)
        self._record(module, operation, started, "success", attempts)
        return response.json() if response.content else None

    def _send(
        self,
        verb: str,
        url: str,
        headers: dict[str, str],
        json_body: dict[str, Any] | None,
        params: dict[str, Any] | None,
        max_attempts: int,
    ) -> tuple[requests.Response, int]:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        attempt = 1
        while True:
            try:
                response = self.session.request(
                    method=verb,
                    url=url,
                    headers=headers,
                    json=json_body,
                    params=params,
                    timeout=self.config.timeout_seconds,
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= max_attempts:
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc) or "Could not reach the transactions service",
                        details={"type": type(exc).__name__, "attempts": attempt},
                        trace_id=self.trace.trace_id,
                        status_code=0,
                    ) from exc
                reason = type(exc).__name__
            else:
                if response.status_code < 500 or attempt >= max_attempts:
                    return response, attempt
                reason = f"HTTP {response.status_code}"
            logger.warning("%s %s failed (%s), attempt %s of %s", verb, url, reason, attempt, max_attempts)
            time.sleep(self.config.retry_backoff_seconds * (2 ** (attempt - 1)))
            attempt += 1

    def _raise_api_error(self, response: requests.Response) -> None:
        try:
            payload: Any = response.json()
        except ValueError:
            # requests' JSONDecodeError subclasses ValueError.
            payload = {"message": response.text}
        if not isinstance(payload, dict):
            payload = {"details": payload}
        self.trace.update_from_payload(payload)
        raise map_error(response.status_code, payload, self.trace.trace_id)

    def _record(self, module: str, operation: str, started: float, result: str, attempts: int) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=self.trace.trace_id,
            attempts=attempts,
        )

from __future__ import annotations

import io
import json
from datetime import datetime, timezone

import pytest

from branchpos_app.shared.telemetry import FORBIDDEN_CONTEXT_KEYS, TELEMETRY_CATEGORIES
from branchpos_app.shared.telemetry.events import build_event
from branchpos_app.shared.telemetry.logger import TelemetryLogger


def test_build_event_validates_category() -> None:
    with pytest.raises(ValueError):
        build_event(category="navigation", name="n", module="pos", action="a")


def test_build_event_blocks_free_text_context_keys() -> None:
    with pytest.raises(ValueError):
        build_event(
            category="void",
            name="void_completed",
            module="sales_history",
            action="void",
            context={"void_reason": "customer was rude"},
        )


def test_transaction_free_text_keys_are_forbidden() -> None:
    assert {"void_reason", "customer_name"} <= FORBIDDEN_CONTEXT_KEYS
    assert TELEMETRY_CATEGORIES == {"scope", "cart", "checkout", "void", "api_call_result", "error"}


def test_pinned_timestamp_is_serialised_in_utc() -> None:
    event = build_event(
        category="void",
        name="void_failed",
        module="sales_history",
        action="void",
        error_code="RepositoryUnavailable",
        now=datetime(2026, 1, 5, 14, 30, tzinfo=timezone.utc),
    )

    payload = event.to_dict()

    assert payload["timestamp_utc"] == "2026-01-05T14:30:00+00:00"
    assert payload["error_code"] == "RepositoryUnavailable"


def test_event_dict_drops_empty_fields() -> None:
    event = build_event(category="cart", name="line_added", module="pos", action="add")

    payload = event.to_dict()

    assert "trace_id" not in payload
    assert payload["category"] == "cart"


def test_logger_writes_local_file_and_stdout(tmp_path) -> None:
    stream = io.StringIO()
    logger = TelemetryLogger(
        app_name="pos_app",
        enabled=True,
        log_file=tmp_path / "telemetry.jsonl",
        stdout_sink=True,
        stdout_stream=stream,
    )
    event = build_event(category="checkout", name="checkout_completed", module="pos", action="checkout", success=True)

    assert logger.emit(event) is True

    written = (tmp_path / "telemetry.jsonl").read_text().strip().splitlines()
    assert len(written) == 1
    payload = json.loads(written[0])
    assert payload["category"] == "checkout"
    assert payload["app_name"] == "pos_app"
    assert "checkout_completed" in stream.getvalue()


def test_logger_respects_disabled_toggle(tmp_path) -> None:
    logger = TelemetryLogger(app_name="pos_app", enabled=False, log_file=tmp_path / "telemetry.jsonl")
    event = build_event(category="error", name="request_failed", module="sdk", action="fetch")

    assert logger.emit(event) is False
    assert not (tmp_path / "telemetry.jsonl").exists()


def test_logger_reads_toggle_from_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("BRANCHPOS_TELEMETRY_ENABLED", "1")

    logger = TelemetryLogger(app_name="pos_app", log_file=tmp_path / "telemetry.jsonl")

    assert logger.enabled is True


def test_unwritable_sink_does_not_raise(tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    logger = TelemetryLogger(app_name="pos_app", enabled=True, log_file=blocker / "telemetry.jsonl")
    event = build_event(category="scope", name="scope_changed", module="context_switcher", action="select_branch")

    assert logger.emit(event) is False

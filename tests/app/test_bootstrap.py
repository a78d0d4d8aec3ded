from __future__ import annotations

import json
import random

import pytest

from branchpos_sdk.repository import InMemoryTransactionRepository
from branchpos_sdk.scope_store import SavedScope, ScopeStore

from branchpos_app.app.bootstrap import PosAppBootstrap
from branchpos_app.config import AppConfig
from branchpos_app.shared.telemetry import TelemetryLogger


@pytest.fixture()
def telemetry_file(tmp_path):
    return tmp_path / "telemetry.jsonl"


def _bootstrap(tmp_path, telemetry_file=None, **config) -> PosAppBootstrap:
    telemetry = TelemetryLogger(
        app_name="pos_app",
        enabled=telemetry_file is not None,
        log_file=telemetry_file or tmp_path / "unused.jsonl",
    )
    return PosAppBootstrap(
        AppConfig(repository="memory", **config),
        repository=InMemoryTransactionRepository(rng=random.Random(5)),
        scope_store=ScopeStore(base_dir=tmp_path),
        telemetry=telemetry,
    )


def test_start_refreshes_initial_scope(tmp_path) -> None:
    app = _bootstrap(tmp_path)

    result = app.start()

    assert result.scope.key == ("daily-dope", "vicas")
    assert result.restored is False
    assert app.cache.latest_sequence == 1
    assert app.cache.query.branch_id == "vicas"


def test_start_restores_saved_scope(tmp_path) -> None:
    ScopeStore(base_dir=tmp_path).save(SavedScope(store_id="moto-masters", branch_id="uptown"))
    app = _bootstrap(tmp_path)

    result = app.start()

    assert result.restored is True
    assert result.scope.key == ("moto-masters", "uptown")
    assert app.cache.latest_sequence == 1
    assert app.pos_view.grid.products[0].id == "chain-lube"


def test_start_falls_back_to_configured_default(tmp_path) -> None:
    app = _bootstrap(tmp_path, default_store="daily-dope", default_branch="north-mall")

    result = app.start()

    assert result.restored is True
    assert result.scope.key == ("daily-dope", "north-mall")


def test_invalid_configured_default_is_ignored(tmp_path) -> None:
    app = _bootstrap(tmp_path, default_store="daily-dope", default_branch="uptown")

    result = app.start()

    assert result.restored is False
    assert result.scope.store_id == "daily-dope"


def test_branch_switch_clears_cart_and_refreshes(tmp_path) -> None:
    app = _bootstrap(tmp_path)
    app.start()
    app.pos_view.add_product("blue-razz-60ml")

    result = app.switcher_view.choose_branch("deparo")

    assert result["ok"] is True
    assert app.cart.is_empty
    assert app.cache.query.branch_id == "deparo"
    assert {product.id for product in app.pos_view.grid.products} >= {"menthol-ice-30ml"}


def test_store_switch_resets_branch_and_category_keeps_search(tmp_path) -> None:
    app = _bootstrap(tmp_path)
    app.start()
    app.pos_view.select_category("coils")
    app.pos_view.set_search("oil")
    app.pos_view.add_product("blue-razz-60ml")

    app.switcher_view.choose_store("moto-masters")

    assert app.scope.selected_branch.id == "westside"
    assert app.pos_view.grid.category == "all"
    assert app.pos_view.grid.search == "oil"
    assert app.cart.is_empty
    assert app.cache.query.store_id == "moto-masters"
    visible = [row["id"] for row in app.pos_view.render()["catalog"]["products"]]
    assert visible == ["engine-oil-10w40", "oil-filter-std"]


def test_history_follows_scope(tmp_path) -> None:
    app = _bootstrap(tmp_path)
    app.start()
    app.pos_view.add_product("blue-razz-60ml")
    sale = app.pos_view.checkout()

    app.switcher_view.choose_branch("deparo")
    assert app.history_view.render()["rows"] == []

    app.switcher_view.choose_branch("vicas")
    assert [row["id"] for row in app.history_view.render()["rows"]] == [sale["transaction_id"]]


def test_scope_choice_is_persisted(tmp_path) -> None:
    app = _bootstrap(tmp_path)
    app.start()

    app.switcher_view.choose_store("moto-masters")

    assert ScopeStore(base_dir=tmp_path).load() == SavedScope(store_id="moto-masters", branch_id="westside")


def test_foreign_branch_choice_is_reported(tmp_path) -> None:
    app = _bootstrap(tmp_path)
    app.start()

    result = app.switcher_view.choose_branch("uptown")

    assert result["ok"] is False
    assert result["category"] == "scope"
    assert app.scope.selected_branch.id == "vicas"


def test_scope_change_emits_telemetry(tmp_path, telemetry_file) -> None:
    app = _bootstrap(tmp_path, telemetry_file=telemetry_file)
    app.start()

    app.switcher_view.choose_branch("deparo")

    events = [json.loads(line) for line in telemetry_file.read_text().splitlines()]
    assert events[-1]["category"] == "scope"
    assert events[-1]["context"] == {"store_id": "daily-dope", "branch_id": "deparo"}


def test_switcher_render_marks_selection(tmp_path) -> None:
    app = _bootstrap(tmp_path)
    app.start()

    rendered = app.switcher_view.render()

    assert [store["selected"] for store in rendered["stores"]] == [True, False]
    assert [branch["id"] for branch in rendered["branches"]] == ["vicas", "deparo", "north-mall"]
    assert rendered["summary"] == "Daily Dope Vape Shop / Vicas"


def test_shutdown_detaches_scope_side_effects(tmp_path) -> None:
    app = _bootstrap(tmp_path)
    app.start()
    app.pos_view.add_product("blue-razz-60ml")

    app.shutdown()
    app.switcher_view.choose_branch("deparo")

    assert not app.cart.is_empty
    assert app.cache.query.branch_id == "vicas"

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from branchpos_sdk.config import coerce_bool

from branchpos_app.ui.shared.formatting import DEFAULT_CURRENCY_SYMBOL

REPOSITORY_KINDS = ("api", "memory")


class AppConfigError(ValueError):
    """Raised when the POS app configuration is invalid."""


@dataclass(frozen=True)
class AppConfig:
    repository: str = "api"
    default_store: str | None = None
    default_branch: str | None = None
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    telemetry_enabled: bool = False
    async_refresh: bool = False
    app_id: str | None = None
    device_id: str | None = None

    @property
    def offline(self) -> bool:
        return self.repository == "memory"


def load_app_config(env_file: str | None = None) -> AppConfig:
    load_dotenv(env_file)

    repository = (os.getenv("BRANCHPOS_REPOSITORY") or "api").strip().lower()
    if repository not in REPOSITORY_KINDS:
        raise AppConfigError(
            f"Invalid BRANCHPOS_REPOSITORY: expected one of {', '.join(REPOSITORY_KINDS)}, got {repository!r}"
        )

    default_store = (os.getenv("BRANCHPOS_DEFAULT_STORE") or "").strip() or None
    default_branch = (os.getenv("BRANCHPOS_DEFAULT_BRANCH") or "").strip() or None
    if default_branch and not default_store:
        raise AppConfigError("BRANCHPOS_DEFAULT_BRANCH requires BRANCHPOS_DEFAULT_STORE")

    return AppConfig(
        repository=repository,
        default_store=default_store,
        default_branch=default_branch,
        currency_symbol=os.getenv("BRANCHPOS_CURRENCY_SYMBOL") or DEFAULT_CURRENCY_SYMBOL,
        telemetry_enabled=coerce_bool(os.getenv("BRANCHPOS_TELEMETRY_ENABLED"), False),
        async_refresh=coerce_bool(os.getenv("BRANCHPOS_ASYNC_REFRESH"), False),
        app_id=os.getenv("BRANCHPOS_APP_ID"),
        device_id=os.getenv("BRANCHPOS_DEVICE_ID"),
    )

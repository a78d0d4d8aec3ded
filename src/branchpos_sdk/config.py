from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    timeout_seconds: float = 10.0
    retries: int = 2
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def coerce_bool(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_int(name: str, default: str, *, minimum: int) -> int:
    raw = os.getenv(name) or default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigError(f"Invalid {name}: expected >= {minimum}, got {value}")
    return value


def _read_float(name: str, default: str, *, positive: bool) -> float:
    raw = os.getenv(name) or default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc
    if value < 0 or (positive and value == 0):
        raise ConfigError(f"Invalid {name}: expected {'> 0' if positive else '>= 0'}, got {value}")
    return value


def resolve_base_url(env_name: str) -> str:
    per_env = os.getenv(f"BRANCHPOS_API_BASE_URL_{env_name.strip().upper()}") or ""
    return (per_env or os.getenv("BRANCHPOS_API_BASE_URL") or "").strip()


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load the transport config from the environment, with optional .env override.

    The base URL is looked up per environment first
    (``BRANCHPOS_API_BASE_URL_STAGING`` when ``BRANCHPOS_ENV=staging``) and
    then falls back to ``BRANCHPOS_API_BASE_URL``.
    """
    load_dotenv(env_file)

    env_name = (os.getenv("BRANCHPOS_ENV") or "dev").strip()
    api_base_url = resolve_base_url(env_name)
    if not api_base_url:
        raise ConfigError("Missing required config values: BRANCHPOS_API_BASE_URL")

    timeout_seconds = _read_float("BRANCHPOS_TIMEOUT_SECONDS", "10", positive=True)
    retries = _read_int("BRANCHPOS_RETRIES", "2", minimum=0)
    retry_backoff_seconds = _read_float("BRANCHPOS_RETRY_BACKOFF_SECONDS", "0.3", positive=False)
    max_connections = _read_int("BRANCHPOS_MAX_CONNECTIONS", "10", minimum=1)

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        timeout_seconds=timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        max_connections=max_connections,
        verify_ssl=coerce_bool(os.getenv("BRANCHPOS_VERIFY_SSL"), True),
    )

from __future__ import annotations

import argparse
import logging
from dataclasses import replace

from branchpos_sdk import ConfigError

from branchpos_app.app.bootstrap import PosAppBootstrap
from branchpos_app.config import AppConfigError, load_app_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="branchpos", description="Multi-branch point of sale shell")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    parser.add_argument("--offline", action="store_true", help="Use the in-memory transaction repository")
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        config = load_app_config(args.env_file)
        if args.offline:
            config = replace(config, repository="memory")
        bootstrap = PosAppBootstrap(config)
    except (AppConfigError, ConfigError) as exc:
        print(f"Configuration error: {exc}")
        return 2

    result = bootstrap.start()
    print(f"BranchPOS ready: {result.scope.describe()}")
    if result.error_message:
        print(f"Sales history unavailable: {result.error_message}")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)


class SavedScope(BaseModel):
    store_id: str
    branch_id: str


@dataclass
class ScopeStore:
    """Remembers the terminal's last (store, branch) selection between runs."""

    app_name: str = "branchpos"
    filename: str = "scope.json"
    base_dir: Path | None = None

    def _path(self) -> Path:
        base = self.base_dir or Path(user_data_dir(self.app_name, "BranchPOS"))
        base.mkdir(parents=True, exist_ok=True)
        return base / self.filename

    def save(self, scope: SavedScope) -> None:
        path = self._path()
        path.write_text(json.dumps(scope.model_dump(), indent=2))

    def load(self) -> SavedScope | None:
        path = self._path()
        if not path.exists():
            return None
        try:
            return SavedScope.model_validate(json.loads(path.read_text()))
        except (json.JSONDecodeError, PydanticValidationError):
            logger.warning("Discarding unreadable saved scope at %s", path)
            self.clear()
            return None

    def clear(self) -> None:
        path = self._path()
        if path.exists():
            path.unlink()

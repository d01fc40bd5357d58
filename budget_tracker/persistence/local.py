"""
Local JSON storage.

Each key is stored as `<data_dir>/<key>.json`. Files are written to a
temporary sibling first and moved into place, so a crash never leaves a
half-written collection behind.
"""
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

from budget_tracker.core.exceptions import PersistenceError, PersistenceErrorCategory

logger = logging.getLogger(__name__)


class JsonFileAdapter:
    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def get_path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def load(self, key: str, default: Any = None) -> Any:
        """
        Read a key from disk.

        A missing file returns `default`. A file that is not valid JSON is
        renamed to `<key>.json.corrupt-<timestamp>` before `default` is
        returned, so the next save cannot overwrite it. Any other read error
        raises PersistenceError.
        """
        path = self.get_path(key)
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return default
        except ValueError as exc:
            kept = self._set_aside(key, path)
            logger.warning("Could not read %s, moved it to %s and using defaults: %s", path, kept.name, exc)
            return default
        except PermissionError as exc:
            raise PersistenceError(f"Permission denied reading {path}: {exc}", PersistenceErrorCategory.AUTH, key) from exc
        except OSError as exc:
            raise PersistenceError(f"Could not read {path}: {exc}", PersistenceErrorCategory.NETWORK, key) from exc

    @staticmethod
    def _set_aside(key: str, path: Path) -> Path:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        target = path.with_name(f"{path.name}.corrupt-{stamp}")
        try:
            os.replace(path, target)
        except OSError as exc:
            raise PersistenceError(f"Could not move aside corrupt {path}: {exc}", PersistenceErrorCategory.NETWORK, key) from exc
        return target

    def save(self, key: str, value: Any) -> None:
        path = self.get_path(key)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except PermissionError as exc:
            raise PersistenceError(f"Permission denied writing {path}: {exc}", PersistenceErrorCategory.AUTH, key) from exc
        except OSError as exc:
            raise PersistenceError(f"Could not write {path}: {exc}", PersistenceErrorCategory.NETWORK, key) from exc

"""
JSON File Storage Implementation

Each collection lives in its own `<name>.json` file under a data directory,
which mirrors how a browser keeps one localStorage key per collection.

TRADEOFFS:
- The whole collection is rewritten on every save (fine for personal use)
- Writes go to a temp file first and are then renamed over the old one,
  so a crash mid-write never leaves half a collection behind
- No locking: a second process writing the same directory can lose
  updates (single-writer by design)
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.config import get_settings
from finance_tracker.services.storage.interface import (
    CollectionStorageInterface,
    StorageConnectionError,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileCollectionStorage(CollectionStorageInterface):
    """
    File-per-collection storage.

    Records must already be JSON-compatible (the entity store dumps its
    models in JSON mode, so Decimals arrive as strings and datetimes as
    ISO strings).
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        write_retries: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._data_dir = Path(data_dir or settings.data_dir)
        self._write_retries = write_retries or settings.write_retries

        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageConnectionError(
                f"Cannot use data directory {self._data_dir}: {e}"
            )

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, name: str) -> Path:
        if not name.isidentifier():
            raise StorageError(f"Invalid collection name: {name!r}")
        return self._data_dir / f"{name}.json"

    def load(self, name: str) -> Optional[list[dict]]:
        path = self._path_for(name)
        if not path.exists():
            return None

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"Collection '{name}' is corrupt: {e}")
        except OSError as e:
            raise StorageError(f"Could not read collection '{name}': {e}")

        if not isinstance(data, list):
            raise StorageError(
                f"Collection '{name}' must hold a list, found {type(data).__name__}"
            )
        return data

    def save(self, name: str, records: list[dict]) -> None:
        path = self._path_for(name)

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._write_retries),
                wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._write_atomically(path, records)
        except OSError as e:
            raise StorageError(f"Could not write collection '{name}': {e}")
        except TypeError as e:
            raise StorageError(f"Collection '{name}' is not JSON-serializable: {e}")

        logger.debug("collection_saved", collection=name, records=len(records))

    def _write_atomically(self, path: Path, records: list[dict]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._data_dir,
            prefix=f".{path.stem}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self, name: str) -> None:
        path = self._path_for(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not clear collection '{name}': {e}")

"""
File-Backed Key-Value Store

Each key is one file inside a data directory. Writes go to a temporary
sibling first and are moved into place with Path.replace, so a reader in
this process sees either the old value or the new one, never half a file.
"""

from pathlib import Path
from typing import Optional

import structlog

from bookkeeping.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class FileKeyValueStore(KeyValueStoreInterface):
    """Key-value store persisting one UTF-8 text file per key."""

    def __init__(self, base_path: Path):
        self._base_path = Path(base_path)
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create data directory {self._base_path}") from e

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._base_path / key

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Unable to read from {path}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        temp_path = path.with_name(path.name + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
            temp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Unable to write to {path}") from e
        logger.debug("file_store_written", key=key, size=len(value))

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to delete {path}") from e
        logger.debug("file_store_removed", key=key)

"""
JSON File Storage Implementation

DESIGN DECISION: One file per key inside a data directory.
1. Each collection is small (hundreds of records at most)
2. Files are human-readable and easy to back up by copying the folder
3. Every write replaces the whole file, matching the
   read-modify-write-whole-collection model of the ledger

TRADEOFFS:
- No locking: a single session owns the directory
- Writes go through a temporary file and an atomic rename, so a crash
  leaves either the old or the new collection, never half of one
"""

import os
from pathlib import Path
from typing import Optional

import structlog

from community_ledger.services.storage.interface import (
    BlobStoreInterface,
    CorruptStateError,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileBlobStore(BlobStoreInterface):
    """Blob store backed by <data_dir>/<key>.json files."""

    SUFFIX = ".json"

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}{self.SUFFIX}"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise CorruptStateError(key, [{"loc": ("blob",), "msg": f"not valid UTF-8: {e}"}]) from e
        except OSError as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def write(self, key: str, blob: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(blob, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e
        logger.debug("blob_written", key=key, bytes=len(blob))

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not delete {key}: {e}") from e

    def keys(self) -> list[str]:
        if not self._data_dir.exists():
            return []
        return sorted(p.stem for p in self._data_dir.glob(f"*{self.SUFFIX}"))

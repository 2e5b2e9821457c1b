"""In-memory blob store, used by tests and throwaway sessions."""

from typing import Optional

from community_ledger.services.storage.interface import BlobStoreInterface


class InMemoryBlobStore(BlobStoreInterface):

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._blobs: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def write(self, key: str, blob: str) -> None:
        self._blobs[key] = blob

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._blobs)

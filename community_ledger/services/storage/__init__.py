"""
Storage Services Package

Provides the abstract blob store interface, concrete JSON-file and
in-memory implementations, and the record repository that validates
collections at the load boundary.
"""

from typing import Optional

from community_ledger.config import StorageSettings, get_settings
from community_ledger.services.storage.interface import (
    AuditStorageInterface,
    BlobStoreInterface,
    CorruptStateError,
    NotFoundError,
    StorageError,
)
from community_ledger.services.storage.json_files import JsonFileBlobStore
from community_ledger.services.storage.memory import InMemoryBlobStore
from community_ledger.services.storage.repository import (
    BlobAuditStorage,
    RecordRepository,
)


def create_blob_store(settings: Optional[StorageSettings] = None) -> BlobStoreInterface:
    """Build the blob store selected by LEDGER_STORAGE_BACKEND."""
    settings = settings or get_settings().storage
    if settings.backend == "memory":
        return InMemoryBlobStore()
    return JsonFileBlobStore(settings.data_dir)


__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BlobStoreInterface",
    # Exceptions
    "CorruptStateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "BlobAuditStorage",
    "InMemoryBlobStore",
    "JsonFileBlobStore",
    "RecordRepository",
    "create_blob_store",
]

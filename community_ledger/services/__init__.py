"""Services package."""

from community_ledger.services.storage import (
    AuditStorageInterface,
    BlobAuditStorage,
    BlobStoreInterface,
    CorruptStateError,
    InMemoryBlobStore,
    JsonFileBlobStore,
    NotFoundError,
    RecordRepository,
    StorageError,
    create_blob_store,
)

__all__ = [
    "AuditStorageInterface",
    "BlobAuditStorage",
    "BlobStoreInterface",
    "CorruptStateError",
    "InMemoryBlobStore",
    "JsonFileBlobStore",
    "NotFoundError",
    "RecordRepository",
    "StorageError",
    "create_blob_store",
]

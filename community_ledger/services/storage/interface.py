"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the JSON-file blob store swappable for any key-value backend
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from storage implementation

The interface is intentionally tiny: the association's state is four
whole collections, each read and written as one blob under a string key.
Record-level semantics live in RecordRepository, not here.
"""

from abc import ABC, abstractmethod
from typing import Optional

from community_ledger.models.audit import AuditEvent


class BlobStoreInterface(ABC):
    """
    Abstract key-value blob store.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Returns:
            The stored text, or None if nothing was ever written

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, blob: str) -> None:
        """
        Replace the blob stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys currently stored, sorted."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific record.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Record not found in a collection."""
    pass


class CorruptStateError(StorageError):
    """
    A stored collection does not match its schema.

    Raised at the load boundary so that a malformed blob never reaches
    the aggregation code.
    """

    def __init__(self, key: str, errors: list[dict]):
        self.key = key
        self.errors = errors
        summary = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in errors[:5]
        )
        super().__init__(f"Stored collection '{key}' is corrupt: {summary}")

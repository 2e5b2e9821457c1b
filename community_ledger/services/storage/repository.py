"""
Record Repository

The load/persist boundary between the blob store and the ledger.

Loading validates every stored collection against its pydantic schema
before anything else sees it. A blob that does not match surfaces as a
CorruptStateError naming the key, instead of failing later inside a sum.

Persisting always writes a whole collection: there are no partial updates.
"""

import json
from typing import Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from community_ledger.config import StorageSettings, get_settings
from community_ledger.models.audit import AuditEvent
from community_ledger.models.records import Expense, Member, Payment, User
from community_ledger.services.storage.interface import (
    AuditStorageInterface,
    BlobStoreInterface,
    CorruptStateError,
    StorageError,
)


logger = structlog.get_logger(__name__)

_MEMBERS = TypeAdapter(list[Member])
_PAYMENTS = TypeAdapter(list[Payment])
_EXPENSES = TypeAdapter(list[Expense])
_USERS = TypeAdapter(list[User])


class RecordRepository:
    """
    Loads and persists the four record collections.

    One instance per blob store. Holds no state of its own; the
    RecordStore keeps the loaded collections.
    """

    def __init__(
        self,
        blob_store: BlobStoreInterface,
        settings: Optional[StorageSettings] = None,
    ):
        self._blobs = blob_store
        self._settings = settings or get_settings().storage

    def _load(self, key: str, adapter: TypeAdapter) -> list:
        blob = self._blobs.read(key)
        if blob is None or not blob.strip():
            return []
        try:
            records = adapter.validate_json(blob)
        except ValidationError as e:
            logger.error("corrupt_collection", key=key, error_count=e.error_count())
            raise CorruptStateError(key, e.errors(include_url=False)) from e
        logger.debug("collection_loaded", key=key, count=len(records))
        return records

    def _persist(self, key: str, adapter: TypeAdapter, records: list) -> None:
        blob = adapter.dump_json(records, by_alias=True, exclude_none=True)
        self._blobs.write(key, blob.decode("utf-8"))
        logger.debug("collection_persisted", key=key, count=len(records))

    # Members -----------------------------------------------------------------

    def load_members(self) -> list[Member]:
        return self._load(self._settings.members_key, _MEMBERS)

    def persist_members(self, members: list[Member]) -> None:
        self._persist(self._settings.members_key, _MEMBERS, members)

    # Payments ----------------------------------------------------------------

    def load_payments(self) -> list[Payment]:
        return self._load(self._settings.payments_key, _PAYMENTS)

    def persist_payments(self, payments: list[Payment]) -> None:
        self._persist(self._settings.payments_key, _PAYMENTS, payments)

    # Expenses ----------------------------------------------------------------

    def load_expenses(self) -> list[Expense]:
        return self._load(self._settings.expenses_key, _EXPENSES)

    def persist_expenses(self, expenses: list[Expense]) -> None:
        self._persist(self._settings.expenses_key, _EXPENSES, expenses)

    # Users -------------------------------------------------------------------

    def load_users(self) -> list[User]:
        return self._load(self._settings.users_key, _USERS)

    def persist_users(self, users: list[User]) -> None:
        self._persist(self._settings.users_key, _USERS, users)


class BlobAuditStorage(AuditStorageInterface):
    """
    Audit log kept as JSON lines under one blob key.

    Each append rewrites the blob with one extra line. Fine for the
    volumes of a neighborhood association.
    """

    def __init__(self, blob_store: BlobStoreInterface, key: str):
        self._blobs = blob_store
        self._key = key

    def _lines(self) -> list[str]:
        blob = self._blobs.read(self._key) or ""
        return [line for line in blob.splitlines() if line.strip()]

    def append_event(self, event: AuditEvent) -> bool:
        lines = self._lines()
        lines.append(event.to_json_line())
        self._blobs.write(self._key, "\n".join(lines) + "\n")
        return True

    def _events(self) -> list[AuditEvent]:
        events = []
        for line in self._lines():
            try:
                events.append(AuditEvent.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError) as e:
                raise StorageError(f"Unreadable audit line in '{self._key}': {e}") from e
        return events

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            event for event in self._events()
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events()))[:limit]

"""
Audit Logger

DESIGN DECISION: Every mutation of the association's records is logged.
The created-by/updated-by stamps on the records say who last touched a
record; this log additionally remembers deletions and refused attempts.

The audit logger:
- Is synchronous, like the rest of the ledger
- Gracefully handles storage failures (a failed audit write never
  rolls back or blocks the mutation it describes)
- Supports correlation IDs to trace all events of one session
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from community_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from community_ledger.models.records import User
from community_ledger.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def _actor_fields(actor: Optional[User]) -> tuple[Optional[str], Optional[str]]:
    if actor is None:
        return None, None
    return actor.id, actor.name


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and the audit views), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        correlation_id: Optional[UUID] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            correlation_id: Stamped on every event that does not carry its own.
        """
        self._storage = storage
        self._correlation_id = correlation_id
        self._logger = structlog.get_logger("community_ledger.audit")

    @property
    def correlation_id(self) -> Optional[UUID]:
        return self._correlation_id

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        if event.correlation_id is None and self._correlation_id is not None:
            event = event.model_copy(update={"correlation_id": self._correlation_id})

        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_saved(
        self,
        entity_type: str,
        entity_id: str,
        actor: Optional[User],
        created: bool,
        details: Optional[dict] = None,
    ) -> None:
        """Log creation or update of a record."""
        actor_id, actor_name = _actor_fields(actor)
        self.log(AuditEventBuilder.record_saved(
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            actor_name=actor_name,
            created=created,
            details=details,
        ))

    def log_deleted(
        self,
        entity_type: str,
        entity_id: str,
        actor: Optional[User],
    ) -> None:
        """Log a completed deletion."""
        actor_id, actor_name = _actor_fields(actor)
        self.log(AuditEventBuilder.record_deleted(
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            actor_name=actor_name,
        ))

    def log_delete_rejected(
        self,
        entity_type: str,
        entity_id: str,
        actor: Optional[User],
        reason: str,
    ) -> None:
        """Log a deletion refused by the password gate or account protection."""
        actor_id, actor_name = _actor_fields(actor)
        self.log(AuditEventBuilder.delete_rejected(
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            actor_name=actor_name,
            reason=reason,
        ))

    def log_permission_denied(self, action: str, actor: Optional[User]) -> None:
        actor_id, actor_name = _actor_fields(actor)
        self.log(AuditEventBuilder.permission_denied(
            action=action,
            actor_id=actor_id,
            actor_name=actor_name,
            role=actor.role.value if actor else None,
        ))

    def log_login(self, username: str, user: Optional[User]) -> None:
        """Log a login attempt; user is None when it failed."""
        actor_id, actor_name = _actor_fields(user)
        self.log(AuditEventBuilder.login(
            username=username,
            succeeded=user is not None,
            actor_id=actor_id,
            actor_name=actor_name,
        ))

    def log_password_changed(self, actor: User) -> None:
        self.log(AuditEventBuilder.password_changed(
            actor_id=actor.id,
            actor_name=actor.name,
        ))

    def log_state_loaded(self, counts: dict[str, int]) -> None:
        self.log(AuditEventBuilder.state_loaded(counts=counts))

    def log_corrupt_state(self, key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.corrupt_state(
            key=key,
            error_message=error_message,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this when a session starts and hand it to the AuditLogger.
    """
    return uuid4()

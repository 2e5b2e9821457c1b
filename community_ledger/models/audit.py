"""
Audit Models for Community Ledger

Every mutation of the association's records is logged for audit purposes,
on top of the created-by/updated-by stamps carried by the records
themselves. This provides:
1. Traceability of deletions (a deleted record keeps no stamp of its own)
2. A record of rejected attempts (wrong password, missing permission)
3. Debugging information when stored state turns out to be corrupt

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""

    # Members
    MEMBER_CREATED = "member_created"
    MEMBER_UPDATED = "member_updated"
    MEMBER_DELETED = "member_deleted"

    # Dues
    PAYMENT_RECORDED = "payment_recorded"
    PAYMENT_UPDATED = "payment_updated"
    PAYMENT_DELETED = "payment_deleted"

    # Cash flow
    EXPENSE_RECORDED = "expense_recorded"
    EXPENSE_DELETED = "expense_deleted"

    # Accounts
    USER_SAVED = "user_saved"
    USER_DELETED = "user_deleted"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    PASSWORD_CHANGED = "password_changed"

    # Rejections
    DELETE_REJECTED = "delete_rejected"
    PERMISSION_DENIED = "permission_denied"

    # Storage
    STATE_LOADED = "state_loaded"
    CORRUPT_STATE = "corrupt_state"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of record (e.g., 'member', 'payment', 'expense', 'user')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Id of the record this event relates to"
    )

    # Who did it
    actor_id: Optional[str] = None
    actor_name: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Id shared by all events of one session"
    )

    description: str = Field(..., max_length=500)

    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_json_line(self) -> str:
        """One line of the append-only audit blob."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_saved("member", member.id, actor, created=True)
        event = AuditEventBuilder.delete_rejected("payment", payment_id, actor)
    """

    _SAVED_TYPES = {
        ("member", True): AuditEventType.MEMBER_CREATED,
        ("member", False): AuditEventType.MEMBER_UPDATED,
        ("payment", True): AuditEventType.PAYMENT_RECORDED,
        ("payment", False): AuditEventType.PAYMENT_UPDATED,
        ("expense", True): AuditEventType.EXPENSE_RECORDED,
        ("user", True): AuditEventType.USER_SAVED,
        ("user", False): AuditEventType.USER_SAVED,
    }

    _DELETED_TYPES = {
        "member": AuditEventType.MEMBER_DELETED,
        "payment": AuditEventType.PAYMENT_DELETED,
        "expense": AuditEventType.EXPENSE_DELETED,
        "user": AuditEventType.USER_DELETED,
    }

    @staticmethod
    def record_saved(
        entity_type: str,
        entity_id: str,
        actor_id: Optional[str],
        actor_name: Optional[str],
        created: bool,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = "created" if created else "updated"
        return AuditEvent(
            event_type=AuditEventBuilder._SAVED_TYPES[(entity_type, created)],
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            actor_name=actor_name,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {entity_id} {verb}",
            details=details or {},
        )

    @staticmethod
    def record_deleted(
        entity_type: str,
        entity_id: str,
        actor_id: Optional[str],
        actor_name: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventBuilder._DELETED_TYPES[entity_type],
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            actor_name=actor_name,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {entity_id} deleted",
        )

    @staticmethod
    def delete_rejected(
        entity_type: str,
        entity_id: str,
        actor_id: Optional[str],
        actor_name: Optional[str],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            actor_name=actor_name,
            correlation_id=correlation_id,
            description=f"Deletion of {entity_type} {entity_id} rejected",
            error_message=reason,
        )

    @staticmethod
    def permission_denied(
        action: str,
        actor_id: Optional[str],
        actor_name: Optional[str],
        role: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            actor_id=actor_id,
            actor_name=actor_name,
            correlation_id=correlation_id,
            description=f"Permission denied: {action}",
            details={"action": action, "role": role},
        )

    @staticmethod
    def login(
        username: str,
        succeeded: bool,
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.LOGIN_SUCCEEDED
                if succeeded
                else AuditEventType.LOGIN_FAILED
            ),
            severity=AuditSeverity.INFO if succeeded else AuditSeverity.WARNING,
            entity_type="user",
            entity_id=actor_id,
            actor_id=actor_id,
            actor_name=actor_name,
            correlation_id=correlation_id,
            description=f"Login {'succeeded' if succeeded else 'failed'} for {username}",
            details={"username": username},
        )

    @staticmethod
    def password_changed(
        actor_id: str,
        actor_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_CHANGED,
            entity_type="user",
            entity_id=actor_id,
            actor_id=actor_id,
            actor_name=actor_name,
            correlation_id=correlation_id,
            description=f"Password changed for user {actor_id}",
        )

    @staticmethod
    def state_loaded(
        counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description="Record store loaded",
            details=counts,
        )

    @staticmethod
    def corrupt_state(
        key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CORRUPT_STATE,
            severity=AuditSeverity.CRITICAL,
            correlation_id=correlation_id,
            description=f"Stored collection {key} failed schema validation",
            error_message=error_message,
            details={"key": key},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

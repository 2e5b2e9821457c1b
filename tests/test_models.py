"""
Tests for Community Ledger

Test strategy:
1. Unit tests for individual components (models, validators, ledger functions)
2. Integration tests for the session flows (in-memory blob store)
3. No files outside pytest's tmp_path are ever written
"""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from community_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from community_ledger.models.forms import ValidationIssue, ValidationResult
from community_ledger.models.records import (
    Member,
    Payment,
    PaymentMethod,
    PaymentStatus,
    User,
    UserRole,
)
from community_ledger.models.views import CellState, DuesCell

from conftest import make_payment


class TestRecordModels:
    """Tests for the stored record models."""

    def test_member_reads_camel_case_record(self):
        """Test that a stored member record validates with its camelCase keys."""
        member = Member.model_validate({
            "id": "m1",
            "name": "Ana",
            "cpf": "111",
            "email": "ana@example.com",
            "phone": "84 9999-0000",
            "address": {
                "street": "Rua B",
                "number": "10",
                "neighborhood": "Praia do Meio",
                "zipCode": "59010-000",
            },
            "joinDate": "01/02/2024",
            "birthDate": "1990-05-17",
            "active": True,
            "createdByName": "Alice",
        })
        assert member.join_date == "01/02/2024"
        assert member.birth_date == date(1990, 5, 17)
        assert member.address.zip_code == "59010-000"
        assert member.created_by_name == "Alice"

    def test_member_empty_birth_date_is_none(self):
        """Test that the empty string written by the form means no birth date."""
        member = Member.model_validate({
            "id": "m1",
            "name": "Ana",
            "address": {"street": "R", "number": "1", "neighborhood": "N", "zipCode": "Z"},
            "birthDate": "",
        })
        assert member.birth_date is None

    def test_member_record_uses_stored_field_names(self):
        """Test that to_record emits camelCase keys and drops unset values."""
        member = Member.model_validate({
            "id": "m1",
            "name": "Ana",
            "address": {"street": "R", "number": "1", "neighborhood": "N", "zipCode": "Z"},
        })
        record = member.to_record()
        assert record["address"]["zipCode"] == "Z"
        assert "joinDate" in record
        assert "updatedAt" not in record
        assert "join_date" not in record

    def test_payment_month_is_zero_based(self):
        """Test that month 11 is valid and 12 is rejected."""
        assert make_payment("p", "m", 11).month == 11
        with pytest.raises(ValidationError):
            make_payment("p", "m", 12, payment_date=date(2024, 12, 5))

    def test_payment_rejects_unknown_status(self):
        """Test that the status enum is enforced."""
        with pytest.raises(ValidationError):
            Payment.model_validate({
                "id": "p1",
                "memberId": "m1",
                "month": 0,
                "year": 2024,
                "amount": 30,
                "paymentDate": "2024-01-05",
                "status": "late",
            })

    def test_amount_must_be_finite(self):
        with pytest.raises(ValidationError):
            make_payment("p", "m", 0, amount=float("inf"))

    def test_payment_method_uses_stored_labels(self):
        """Test that payment methods serialize as their Portuguese labels."""
        payment = make_payment("p", "m", 0, payment_method=PaymentMethod.CASH)
        assert payment.to_record()["paymentMethod"] == "Dinheiro"

    def test_user_password_key(self):
        """Test that the hash is stored under the 'password' key."""
        user = User.model_validate({
            "id": "u1",
            "username": "bob",
            "password": "hash",
            "name": "Bob",
            "role": "editor",
        })
        assert user.password_hash == "hash"
        assert user.to_record()["password"] == "hash"

    def test_user_role_capabilities(self):
        """Test the capability properties of each role."""
        def user(role):
            return User(id="x", username="x", password_hash="h", name="X", role=role)

        assert user(UserRole.ADMIN).can_manage_users
        assert user(UserRole.EDITOR).can_edit_records
        assert not user(UserRole.EDITOR).can_manage_users
        assert not user(UserRole.VIEWER).can_edit_records

    def test_bootstrap_admin_identity(self):
        """Test that only the reserved id marks the bootstrap admin."""
        admin = User(id="admin", username="root", password_hash="h", name="A", role=UserRole.ADMIN)
        other = User(id="a2", username="admin", password_hash="h", name="A", role=UserRole.ADMIN)
        assert admin.is_bootstrap_admin
        assert not other.is_bootstrap_admin


class TestViewModels:
    """Tests for derived view models."""

    def test_cell_states(self):
        """Test that an empty cell and a pending payment are distinct states."""
        assert DuesCell(member_id="m", month=0).state == CellState.EMPTY
        pending = make_payment("p", "m", 0, status=PaymentStatus.PENDING)
        assert DuesCell(member_id="m", month=0, payment=pending).state == CellState.PENDING
        paid = make_payment("p", "m", 0)
        assert DuesCell(member_id="m", month=0, payment=paid).state == CellState.PAID


class TestValidationModels:
    """Tests for validation result models."""

    def test_validation_result_counts_errors(self):
        """Test that warnings do not make a result invalid."""
        result = ValidationResult(form="member", issues=[
            ValidationIssue(field="name", issue_type="missing", message="name is required"),
            ValidationIssue(field="cpf", issue_type="format", message="odd", severity="warning"),
        ])
        assert result.has_errors
        assert result.error_count == 1
        assert not result.is_valid

    def test_validation_issue_rejects_unknown_severity(self):
        """Test that severity is constrained."""
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestAuditModels:
    """Tests for audit models."""

    def test_record_saved_event_type(self):
        """Test that created and updated saves map to different event types."""
        created = AuditEventBuilder.record_saved("member", "m1", "u1", "Bob", created=True)
        updated = AuditEventBuilder.record_saved("member", "m1", "u1", "Bob", created=False)
        assert created.event_type == AuditEventType.MEMBER_CREATED
        assert updated.event_type == AuditEventType.MEMBER_UPDATED

    def test_delete_rejected_is_warning(self):
        """Test that refused deletions are recorded as warnings with the reason."""
        event = AuditEventBuilder.delete_rejected("payment", "p1", "u1", "Bob", reason="Senha incorreta.")
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "Senha incorreta."

    def test_failed_login_event(self):
        """Test that a failed login carries the username but no actor."""
        event = AuditEventBuilder.login("mallory", succeeded=False)
        assert event.event_type == AuditEventType.LOGIN_FAILED
        assert event.actor_id is None
        assert event.details["username"] == "mallory"

    def test_json_line_reads_back(self):
        """Test that a JSON audit line validates back into an event."""
        event = AuditEventBuilder.corrupt_state("ampm_payments", "bad amount")
        restored = AuditEvent.model_validate(json.loads(event.to_json_line()))
        assert restored.event_id == event.event_id
        assert restored.event_type == AuditEventType.CORRUPT_STATE
        assert restored.severity == AuditSeverity.CRITICAL

"""Tests for the dues matrix and the cell open/save cycle."""

from datetime import date

import pytest
from pydantic import ValidationError

from community_ledger.config import LedgerSettings, get_settings
from community_ledger.ledger.dues import (
    build_dues_matrix,
    duplicate_slots,
    find_payment,
    open_dues_cell,
    save_dues_payment,
)
from community_ledger.models.forms import PaymentDraft
from community_ledger.models.records import PaymentMethod, PaymentStatus
from community_ledger.models.views import CellState
from community_ledger.security import PermissionDeniedError

from conftest import make_member, make_payment


class TestBuildDuesMatrix:
    """Tests for the yearly grid."""

    def test_single_payment_fills_one_cell(self):
        """Test that one payment yields one filled cell and eleven empty ones."""
        members = [make_member("m1", "Ana")]
        payments = [make_payment("p1", "m1", 2, year=2024)]

        matrix = build_dues_matrix(payments, 2024, members)

        assert matrix.member_count == 1
        cells = matrix.rows[0].cells
        assert len(cells) == 12
        assert cells[2].state == CellState.PAID
        assert cells[2].payment.id == "p1"
        assert sum(1 for c in cells if c.state == CellState.EMPTY) == 11
        assert matrix.paid_total == 30.0

    def test_inactive_members_are_not_rows(self, members, payments):
        """Test that only active members get a row."""
        matrix = build_dues_matrix(payments, 2024, members)
        assert [row.member.id for row in matrix.rows] == ["m1", "m2"]
        assert matrix.row_for("m3") is None

    def test_pending_payment_is_not_empty(self, members, payments):
        """Test that a recorded pending payment differs from a missing one."""
        matrix = build_dues_matrix(payments, 2024, members)
        row = matrix.row_for("m2")
        assert row.cells[2].state == CellState.PENDING
        assert row.cells[3].state == CellState.EMPTY

    def test_paid_total_ignores_pending_and_other_years(self, members, payments):
        """Test that only paid payments of the year are summed."""
        payments = payments + [make_payment("old", "m1", 0, year=2023, amount=999.0)]
        matrix = build_dues_matrix(payments, 2024, members)
        assert matrix.paid_total == 80.0

    def test_search_narrows_rows(self, members, payments):
        """Test the case-insensitive name search."""
        matrix = build_dues_matrix(payments, 2024, members, search_term="bruno")
        assert [row.member.id for row in matrix.rows] == ["m2"]

    def test_first_duplicate_wins(self):
        """Test that the first stored record of a slot is the one displayed."""
        members = [make_member("m1", "Ana")]
        payments = [
            make_payment("first", "m1", 0, amount=30.0),
            make_payment("second", "m1", 0, amount=60.0),
        ]
        matrix = build_dues_matrix(payments, 2024, members)
        assert matrix.rows[0].cells[0].payment.id == "first"
        assert duplicate_slots(payments) == [("m1", 0, 2024)]


class TestOpenDuesCell:
    """Tests for opening a cell."""

    def test_empty_cell_gets_defaults(self, editor):
        """Test that an empty cell opens a draft with the configured defaults."""
        editor_view = open_dues_cell([], "m1", 4, 2024, editor, today=date(2024, 5, 20))
        assert editor_view.is_new
        assert editor_view.amount == 30.0
        assert editor_view.status == PaymentStatus.PAID
        assert editor_view.payment_method == "Pix"
        assert editor_view.payment_date == date(2024, 5, 20)
        assert not editor_view.read_only

    def test_existing_payment_is_shown(self, editor, payments):
        """Test that an existing record is opened for editing."""
        cell = open_dues_cell(payments, "m1", 2, 2024, editor)
        assert cell.payment.id == "p1"
        assert cell.payment_method == "Pix"

    def test_viewer_sees_existing_read_only(self, viewer, payments):
        """Test that viewers can inspect a record but not edit it."""
        cell = open_dues_cell(payments, "m1", 2, 2024, viewer)
        assert cell.read_only

    def test_viewer_cannot_open_empty_cell(self, viewer, payments):
        """Test that an empty cell opens nothing for a viewer."""
        assert open_dues_cell(payments, "m1", 7, 2024, viewer) is None


class TestSaveDuesPayment:
    """Tests for saving a cell."""

    def test_creates_new_payment(self, editor):
        """Test that saving an empty cell appends a record."""
        draft = PaymentDraft(amount=30.0, payment_date=date(2024, 1, 3))
        updated, payment, created = save_dues_payment([], "m1", 0, 2024, draft, editor)

        assert created
        assert updated == [payment]
        assert payment.created_by_name == "Bob"
        assert payment.payment_method == PaymentMethod.PIX

    def test_update_keeps_id_and_overwrites_author(self, editor, payments):
        """Test that editing a payment recorded by Alice stamps Bob as author."""
        assert payments[0].created_by_name == "Alice"
        draft = PaymentDraft(
            amount=35.0,
            payment_date=date(2024, 3, 6),
            payment_method=PaymentMethod.CASH,
        )
        updated, payment, created = save_dues_payment(payments, "m1", 2, 2024, draft, editor)

        assert not created
        assert payment.id == "p1"
        assert payment.created_by_name == "Bob"
        assert len(updated) == len(payments)
        assert find_payment(updated, "m1", 2, 2024).amount == 35.0

    def test_input_collection_untouched(self, editor, payments):
        """Test that the caller's collection is never modified."""
        before = list(payments)
        draft = PaymentDraft(amount=10.0, payment_date=date(2024, 6, 1))
        save_dues_payment(payments, "m1", 5, 2024, draft, editor)
        assert payments == before

    def test_viewer_cannot_save(self, viewer):
        """Test that viewers are refused."""
        draft = PaymentDraft(amount=30.0, payment_date=date(2024, 1, 3))
        with pytest.raises(PermissionDeniedError):
            save_dues_payment([], "m1", 0, 2024, draft, viewer)


class TestDefaultPaymentMethod:
    """Tests for the configured default payment method."""

    def test_default_follows_environment(self, monkeypatch, editor):
        monkeypatch.setenv("LEDGER_DEFAULT_PAYMENT_METHOD", "Dinheiro")
        get_settings.cache_clear()

        cell = open_dues_cell([], "m1", 0, 2024, editor, today=date(2024, 1, 3))
        assert cell.payment_method == "Dinheiro"

        draft = PaymentDraft(amount=30.0, payment_date=date(2024, 1, 3))
        _, payment, _ = save_dues_payment([], "m1", 0, 2024, draft, editor)
        assert payment.payment_method == PaymentMethod.CASH

    def test_unknown_method_rejected_at_load(self):
        """Test that a bad configured method fails when settings load, not on first save."""
        with pytest.raises(ValidationError):
            LedgerSettings(default_payment_method="Cheque")

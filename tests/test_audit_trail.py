"""Tests for member registration stamps and the audit rollups."""

from datetime import date, datetime

import pytest

from community_ledger.ledger.audit_trail import recent_activity, save_member, top_operators
from community_ledger.ledger.clock import shift_month, stamp_to_epoch
from community_ledger.models.forms import MemberDraft
from community_ledger.models.records import Address
from community_ledger.security import PermissionDeniedError
from community_ledger.services.storage import NotFoundError

from conftest import make_member


def _draft(name: str = "Diego Alves", **extra) -> MemberDraft:
    return MemberDraft(
        name=name,
        cpf="999",
        email="diego@example.com",
        phone="84 9000-0000",
        address=Address(street="Rua C", number="7", neighborhood="Praia do Meio", zip_code="59010-000"),
        **extra,
    )


class TestSaveMember:
    """Tests for registering and editing members."""

    def test_registration_stamps(self, editor, members):
        """Test that a new member gets creator, updater and join date."""
        updated, member, created = save_member(
            members, _draft(), editor,
            now=datetime(2024, 6, 1, 10, 0, 0),
            today=date(2024, 6, 1),
        )

        assert created
        assert len(updated) == 4
        assert member.created_by_id == editor.id
        assert member.created_by_name == "Bob"
        assert member.updated_by_name == "Bob"
        assert member.updated_at == "01/06/2024 10:00:00"
        assert member.join_date == "01/06/2024"
        assert member.address.street == "Rua C"

    def test_edit_keeps_creator(self, admin, editor, members):
        """Test that an edit rewrites updater fields but never the creator."""
        members, member, _ = save_member(members, _draft(), editor)
        updated, edited, created = save_member(
            members, _draft(name="Diego A. Alves"), admin,
            member_id=member.id,
            now=datetime(2024, 7, 2, 8, 15, 0),
        )

        assert not created
        assert edited.id == member.id
        assert edited.name == "Diego A. Alves"
        assert edited.created_by_name == "Bob"
        assert edited.updated_by_name == "Administrador Geral"
        assert edited.updated_at == "02/07/2024 08:15:00"
        assert edited.join_date == member.join_date
        assert len(updated) == len(members)

    def test_edit_unknown_member(self, editor, members):
        """Test that editing a missing id raises instead of inserting."""
        with pytest.raises(NotFoundError):
            save_member(members, _draft(), editor, member_id="nope")

    def test_viewer_cannot_register(self, viewer, members):
        """Test that viewers are refused."""
        with pytest.raises(PermissionDeniedError):
            save_member(members, _draft(), viewer)


class TestRollups:
    """Tests for the audit section rollups."""

    def test_top_operators(self):
        """Test ranking, tie order and exclusion of unstamped members."""
        members = [
            make_member("m1", "A", created_by_name="Alice"),
            make_member("m2", "B", created_by_name="Bob"),
            make_member("m3", "C", created_by_name="Bob"),
            make_member("m4", "D", created_by_name="Carol"),
            make_member("m5", "E"),
        ]
        ranked = top_operators(members)
        assert [(o.name, o.count) for o in ranked] == [("Bob", 2), ("Alice", 1), ("Carol", 1)]

    def test_top_operators_limit(self):
        """Test that at most five operators are listed."""
        members = [make_member(f"m{i}", "X", created_by_name=f"Op {i}") for i in range(8)]
        assert len(top_operators(members)) == 5

    def test_recent_activity_order(self):
        """Test newest saves first and unstamped members last."""
        members = [
            make_member("old", "A", updated_at="01/01/2024 10:00:00"),
            make_member("none", "B"),
            make_member("new", "C", updated_at="15/03/2024, 09:00:00"),
            make_member("mid", "D", updated_at="2024-02-10T12:00:00"),
        ]
        assert [m.id for m in recent_activity(members)] == ["new", "mid", "old", "none"]


class TestClock:
    """Tests for timestamp parsing and month arithmetic."""

    def test_unparseable_stamp_is_epoch(self):
        """Test that garbage sorts as the epoch."""
        assert stamp_to_epoch("not a date") == 0.0
        assert stamp_to_epoch(None) == 0.0

    def test_shift_month(self):
        """Test month arithmetic across year boundaries."""
        assert shift_month(2024, 0, -1) == (2023, 11)
        assert shift_month(2023, 11, 1) == (2024, 0)
        assert shift_month(2024, 5, -17) == (2023, 0)

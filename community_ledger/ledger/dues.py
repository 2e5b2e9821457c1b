"""
Dues Matrix

Builds the 12-month dues grid of one year and handles the cell
open/save cycle of the payment form.

Two states must never be conflated:
- no payment record for (member, month, year): the cell is EMPTY
- a record exists with status "pending": the cell is PENDING

DESIGN DECISION: Storage does not enforce one payment per
(member, month, year). Lookups return the first record in collection
order, and saving a cell replaces that record instead of adding another.
"""

from datetime import date
from typing import Iterable, Optional, Sequence

from community_ledger.config import get_settings
from community_ledger.ledger.clock import new_record_id
from community_ledger.models.forms import PaymentDraft
from community_ledger.models.records import (
    Member,
    Payment,
    PaymentStatus,
    User,
)
from community_ledger.models.views import DuesCell, DuesCellEditor, DuesMatrix, DuesRow
from community_ledger.security import require_editor


def index_year(payments: Iterable[Payment], year: int) -> dict[tuple[str, int], Payment]:
    """
    Lookup of the year's payments keyed by (member_id, month).

    First record wins when storage holds duplicates.
    """
    index: dict[tuple[str, int], Payment] = {}
    for payment in payments:
        if payment.year != year:
            continue
        index.setdefault((payment.member_id, payment.month), payment)
    return index


def find_payment(
    payments: Iterable[Payment],
    member_id: str,
    month: int,
    year: int,
) -> Optional[Payment]:
    for payment in payments:
        if payment.member_id == member_id and payment.month == month and payment.year == year:
            return payment
    return None


def duplicate_slots(payments: Iterable[Payment]) -> list[tuple[str, int, int]]:
    """(member_id, month, year) slots holding more than one payment."""
    seen: set[tuple[str, int, int]] = set()
    duplicates: list[tuple[str, int, int]] = []
    for payment in payments:
        slot = (payment.member_id, payment.month, payment.year)
        if slot in seen and slot not in duplicates:
            duplicates.append(slot)
        seen.add(slot)
    return duplicates


def build_dues_matrix(
    payments: Sequence[Payment],
    year: int,
    members: Sequence[Member],
    search_term: str = "",
) -> DuesMatrix:
    """
    The dues grid of a year.

    Rows are the active members (optionally narrowed by a case-insensitive
    name search), each with exactly twelve cells. Join dates are ignored:
    a member registered in June still gets January to May evaluated.
    """
    index = index_year(payments, year)
    needle = search_term.strip().lower()

    rows = []
    for member in members:
        if not member.active:
            continue
        if needle and needle not in member.name.lower():
            continue
        cells = [
            DuesCell(member_id=member.id, month=month, payment=index.get((member.id, month)))
            for month in range(12)
        ]
        rows.append(DuesRow(member=member, cells=cells))

    paid_total = sum(
        payment.amount for payment in payments
        if payment.year == year and payment.is_paid
    )
    return DuesMatrix(year=year, rows=rows, paid_total=paid_total)


def open_dues_cell(
    payments: Sequence[Payment],
    member_id: str,
    month: int,
    year: int,
    actor: User,
    today: Optional[date] = None,
) -> Optional[DuesCellEditor]:
    """
    What the payment form shows when a cell is clicked.

    Returns None when a viewer clicks an empty cell: there is nothing to
    show and nothing they may create.
    """
    settings = get_settings().ledger
    existing = find_payment(payments, member_id, month, year)

    if existing is not None:
        method = (existing.payment_method or settings.default_payment_method).value
        return DuesCellEditor(
            member_id=member_id,
            month=month,
            year=year,
            payment=existing,
            amount=existing.amount,
            payment_date=existing.payment_date,
            status=existing.status,
            payment_method=method,
            read_only=not actor.can_edit_records,
        )

    if not actor.can_edit_records:
        return None

    return DuesCellEditor(
        member_id=member_id,
        month=month,
        year=year,
        amount=settings.default_dues_amount,
        payment_date=today or date.today(),
        status=PaymentStatus.PAID,
        payment_method=settings.default_payment_method.value,
    )


def save_dues_payment(
    payments: Sequence[Payment],
    member_id: str,
    month: int,
    year: int,
    draft: PaymentDraft,
    actor: User,
) -> tuple[list[Payment], Payment, bool]:
    """
    Upsert the payment of one matrix cell.

    The whole record is rebuilt from the draft, so createdByName becomes
    the acting user even when someone else recorded the payment first.

    Returns (new collection, saved payment, created).
    """
    require_editor(actor, "registrar pagamentos")

    existing = find_payment(payments, member_id, month, year)
    method = draft.payment_method
    if method is None:
        method = get_settings().ledger.default_payment_method

    payment = Payment(
        id=existing.id if existing else new_record_id(),
        member_id=member_id,
        month=month,
        year=year,
        amount=draft.amount,
        payment_date=draft.payment_date,
        status=draft.status,
        payment_method=method,
        created_by_name=actor.name,
    )

    if existing is None:
        return [*payments, payment], payment, True

    updated = [payment if p.id == existing.id else p for p in payments]
    return updated, payment, False

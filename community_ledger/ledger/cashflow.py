"""
Cash Flow Ledger

Merges paid dues (inflows) and expenses (outflows) into one feed,
newest first. Pending payments never reach the feed.

Filtering is a pure predicate applied after the merge. The base
collections are never touched.
"""

from datetime import datetime
from typing import Optional, Sequence

from community_ledger.config import LedgerSettings, get_settings
from community_ledger.ledger.clock import new_record_id, now_stamp
from community_ledger.models.forms import ExpenseDraft
from community_ledger.models.records import (
    Expense,
    Member,
    Payment,
    PaymentMethod,
    User,
)
from community_ledger.models.views import (
    Transaction,
    TransactionFilter,
    TransactionTotals,
    TransactionType,
)
from community_ledger.security import require_editor


def _method_label(method: Optional[PaymentMethod], settings: LedgerSettings) -> str:
    return method.value if method else settings.unknown_method_label


def unify_transactions(
    payments: Sequence[Payment],
    expenses: Sequence[Expense],
    members: Sequence[Member],
) -> list[Transaction]:
    """
    All paid payments and all expenses, sorted by date descending.

    A payment whose member no longer exists is described with the
    placeholder member label instead of failing.
    """
    settings = get_settings().ledger
    names = {member.id: member.name for member in members}

    incomes = [
        Transaction(
            id=p.id,
            type=TransactionType.INCOME,
            description=(
                f"{settings.dues_description_prefix}: "
                f"{names.get(p.member_id) or settings.unknown_member_label}"
            ),
            category=settings.dues_category_label,
            amount=p.amount,
            date=p.payment_date,
            payment_method=_method_label(p.payment_method, settings),
            operator=p.created_by_name or settings.system_operator_label,
        )
        for p in payments
        if p.is_paid
    ]

    outflows = [
        Transaction(
            id=e.id,
            type=TransactionType.EXPENSE,
            description=e.description,
            category=e.category.value,
            amount=e.amount,
            date=e.date,
            payment_method=_method_label(e.payment_method, settings),
            operator=e.created_by_name,
        )
        for e in expenses
    ]

    # Stable: same-day entries keep incomes-then-expenses collection order
    return sorted(incomes + outflows, key=lambda t: t.date.isoformat(), reverse=True)


def matches_filter(transaction: Transaction, flt: TransactionFilter) -> bool:
    if flt.type_filter != "all" and transaction.type.value != flt.type_filter:
        return False
    needle = flt.search_term.lower()
    if not needle:
        return True
    return any(
        needle in field.lower()
        for field in (
            transaction.description,
            transaction.category,
            transaction.operator,
            transaction.payment_method,
        )
    )


def filter_transactions(
    transactions: Sequence[Transaction],
    flt: Optional[TransactionFilter] = None,
) -> list[Transaction]:
    flt = flt or TransactionFilter()
    return [t for t in transactions if matches_filter(t, flt)]


def cash_flow(
    payments: Sequence[Payment],
    expenses: Sequence[Expense],
    members: Sequence[Member],
    flt: Optional[TransactionFilter] = None,
) -> list[Transaction]:
    """The cash-flow ledger as displayed: unified, sorted, then filtered."""
    return filter_transactions(unify_transactions(payments, expenses, members), flt)


def transaction_totals(transactions: Sequence[Transaction]) -> TransactionTotals:
    """Totals of whatever feed is displayed (filters included)."""
    income = sum(t.amount for t in transactions if t.type == TransactionType.INCOME)
    expense = sum(t.amount for t in transactions if t.type == TransactionType.EXPENSE)
    return TransactionTotals(income=income, expense=expense, balance=income - expense)


def record_expense(
    expenses: Sequence[Expense],
    draft: ExpenseDraft,
    actor: User,
    now: Optional[datetime] = None,
) -> tuple[list[Expense], Expense]:
    """Append a new expense stamped with the acting user."""
    require_editor(actor, "registrar despesas")

    method = draft.payment_method
    if method is None:
        method = get_settings().ledger.default_payment_method

    expense = Expense(
        id=new_record_id(),
        category=draft.category,
        description=draft.description,
        amount=draft.amount,
        date=draft.date,
        payment_method=method,
        created_by_name=actor.name,
        created_at=now_stamp(now),
    )
    return [*expenses, expense], expense

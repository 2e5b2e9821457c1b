"""
Aggregation Engine

Totals, series and breakdowns behind the dashboard, the financial panel
and the reports. Every function is a pure fold over the collections it
receives; nothing is cached between calls.

Amounts are plain floats summed without intermediate rounding. Display
code rounds to two decimals.
"""

from datetime import date
from typing import Iterable, Optional, Sequence

from community_ledger.config import get_settings
from community_ledger.ledger.clock import shift_month
from community_ledger.models.records import (
    MONTH_NAMES,
    Expense,
    ExpenseCategory,
    Member,
    Payment,
    PaymentStatus,
)
from community_ledger.models.views import (
    CategoryShare,
    DashboardKpis,
    FinancialSummary,
    MonthlyCollection,
    MonthlyFlow,
    YearlyCollection,
)


# =============================================================================
# SUBSET SELECTORS
# =============================================================================

def payments_in(
    payments: Iterable[Payment],
    year: int,
    month: Optional[int] = None,
    status: Optional[PaymentStatus] = None,
) -> list[Payment]:
    """Payments of a dues year (and month), optionally of one status."""
    return [
        p for p in payments
        if p.year == year
        and (month is None or p.month == month)
        and (status is None or p.status == status)
    ]


def expenses_in(
    expenses: Iterable[Expense],
    year: int,
    month: Optional[int] = None,
) -> list[Expense]:
    """Expenses whose date falls in the year (and 0-based month)."""
    return [
        e for e in expenses
        if e.date.year == year
        and (month is None or e.date.month - 1 == month)
    ]


# =============================================================================
# SCALAR TOTALS
# =============================================================================

def paid_total(payments: Iterable[Payment], year: int, month: Optional[int] = None) -> float:
    return sum(p.amount for p in payments_in(payments, year, month, PaymentStatus.PAID))


def pending_total(payments: Iterable[Payment], year: int, month: Optional[int] = None) -> float:
    return sum(p.amount for p in payments_in(payments, year, month, PaymentStatus.PENDING))


def expense_total(expenses: Iterable[Expense], year: int, month: Optional[int] = None) -> float:
    return sum(e.amount for e in expenses_in(expenses, year, month))


def balance(
    payments: Sequence[Payment],
    expenses: Sequence[Expense],
    year: int,
    month: Optional[int] = None,
) -> float:
    return paid_total(payments, year, month) - expense_total(expenses, year, month)


def financial_summary(
    payments: Sequence[Payment],
    expenses: Sequence[Expense],
    year: int,
) -> FinancialSummary:
    """Headline figures of the financial panel for one year."""
    paid = paid_total(payments, year)
    spent = expense_total(expenses, year)
    return FinancialSummary(
        year=year,
        paid_total=paid,
        expense_total=spent,
        balance=paid - spent,
        pending_total=pending_total(payments, year),
    )


# =============================================================================
# SERIES AND BREAKDOWNS
# =============================================================================

def monthly_series(
    payments: Sequence[Payment],
    expenses: Sequence[Expense],
    year: int,
) -> list[MonthlyFlow]:
    """Twelve (entradas, saidas) pairs, January first."""
    return [
        MonthlyFlow(
            month=month,
            label=MONTH_NAMES[month][:3],
            entradas=paid_total(payments, year, month),
            saidas=expense_total(expenses, year, month),
        )
        for month in range(12)
    ]


def category_breakdown(expenses: Sequence[Expense], year: int) -> list[CategoryShare]:
    """
    Amount and share of each fixed category in the year's expenses.

    All percentages are 0 when the year has no expenses.
    """
    total = expense_total(expenses, year)
    year_expenses = expenses_in(expenses, year)

    shares = []
    for category in ExpenseCategory:
        amount = sum(e.amount for e in year_expenses if e.category == category)
        percent = (amount / total) * 100 if total > 0 else 0.0
        shares.append(CategoryShare(category=category, amount=amount, percent=percent))
    return shares


def _monthly_collection(payments: Sequence[Payment], year: int, month: int) -> MonthlyCollection:
    paid = payments_in(payments, year, month, PaymentStatus.PAID)
    return MonthlyCollection(
        year=year,
        month=month,
        label=MONTH_NAMES[month][:3],
        total=sum(p.amount for p in paid),
        count=len(paid),
    )


def rolling_six_month(
    payments: Sequence[Payment],
    today: Optional[date] = None,
) -> list[MonthlyCollection]:
    """
    Paid dues of the six calendar months ending with the current one,
    oldest first.
    """
    today = today or date.today()
    points = []
    for back in range(5, -1, -1):
        year, month = shift_month(today.year, today.month - 1, -back)
        points.append(_monthly_collection(payments, year, month))
    return points


def yearly_collection(payments: Sequence[Payment], year: int) -> YearlyCollection:
    """Collection report: each month's paid dues and the monthly average."""
    months = [_monthly_collection(payments, year, month) for month in range(12)]
    total = sum(m.total for m in months)
    return YearlyCollection(
        year=year,
        months=months,
        total=total,
        average_monthly=total / 12,
    )


# =============================================================================
# DASHBOARD
# =============================================================================

def latest_members(members: Sequence[Member], limit: Optional[int] = None) -> list[Member]:
    """Most recently registered members (collection order), newest first."""
    limit = limit or get_settings().ledger.latest_members_limit
    return list(reversed(members[-limit:])) if members else []


def dashboard_kpis(
    members: Sequence[Member],
    payments: Sequence[Payment],
    today: Optional[date] = None,
) -> DashboardKpis:
    """
    Headline figures of the current month.

    pending_this_month counts active members with no payment record at
    all this month; a recorded "pending" payment is not counted again.
    """
    today = today or date.today()
    year, month = today.year, today.month - 1

    active = [m for m in members if m.active]
    recorded = {p.member_id for p in payments_in(payments, year, month)}

    return DashboardKpis(
        total_members=len(members),
        active_members=len(active),
        received_this_month=paid_total(payments, year, month),
        pending_this_month=sum(1 for m in active if m.id not in recorded),
        latest_members=latest_members(members),
    )

"""
Ledger core.

Pure functions over the record collections: they receive collections and
return new ones (mutations) or view models (derived views). None of them
touch storage.
"""

from community_ledger.ledger.aggregates import (
    balance,
    category_breakdown,
    dashboard_kpis,
    expense_total,
    expenses_in,
    financial_summary,
    latest_members,
    monthly_series,
    paid_total,
    payments_in,
    pending_total,
    rolling_six_month,
    yearly_collection,
)
from community_ledger.ledger.audit_trail import recent_activity, save_member, top_operators
from community_ledger.ledger.cashflow import (
    cash_flow,
    filter_transactions,
    record_expense,
    transaction_totals,
    unify_transactions,
)
from community_ledger.ledger.directory import (
    blank_address,
    group_by_street,
    search_members,
    upcoming_birthdays,
)
from community_ledger.ledger.dues import (
    build_dues_matrix,
    duplicate_slots,
    find_payment,
    open_dues_cell,
    save_dues_payment,
)
from community_ledger.ledger.users import (
    authenticate,
    bootstrap_admin,
    change_password,
    save_user,
)

__all__ = [
    # Aggregates
    "balance",
    "category_breakdown",
    "dashboard_kpis",
    "expense_total",
    "expenses_in",
    "financial_summary",
    "latest_members",
    "monthly_series",
    "paid_total",
    "payments_in",
    "pending_total",
    "rolling_six_month",
    "yearly_collection",
    # Audit trail
    "recent_activity",
    "save_member",
    "top_operators",
    # Cash flow
    "cash_flow",
    "filter_transactions",
    "record_expense",
    "transaction_totals",
    "unify_transactions",
    # Directory
    "blank_address",
    "group_by_street",
    "search_members",
    "upcoming_birthdays",
    # Dues
    "build_dues_matrix",
    "duplicate_slots",
    "find_payment",
    "open_dues_cell",
    "save_dues_payment",
    # Users
    "authenticate",
    "bootstrap_admin",
    "change_password",
    "save_user",
]

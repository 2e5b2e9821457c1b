"""
Data Models Package

This package contains all Pydantic models used in Community Ledger.
Stored records, derived views and audit events all conform to these schemas.
"""

from community_ledger.models.records import (
    BOOTSTRAP_ADMIN_ID,
    MONTH_NAMES,
    Address,
    Expense,
    ExpenseCategory,
    Member,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Record,
    User,
    UserRole,
)
from community_ledger.models.views import (
    CategoryShare,
    CellState,
    DashboardKpis,
    DuesCell,
    DuesCellEditor,
    DuesMatrix,
    DuesRow,
    FinancialSummary,
    MonthlyCollection,
    MonthlyFlow,
    OperatorCount,
    StreetGroup,
    Transaction,
    TransactionFilter,
    TransactionTotals,
    TransactionType,
    UpcomingBirthday,
    YearlyCollection,
)
from community_ledger.models.forms import (
    ExpenseDraft,
    MemberDraft,
    PaymentDraft,
    UserDraft,
    ValidationIssue,
    ValidationResult,
)
from community_ledger.models.queries import LedgerQuery, QueryResult
from community_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Stored records
    "BOOTSTRAP_ADMIN_ID",
    "MONTH_NAMES",
    "Address",
    "Expense",
    "ExpenseCategory",
    "Member",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Record",
    "User",
    "UserRole",
    # Derived views
    "CategoryShare",
    "CellState",
    "DashboardKpis",
    "DuesCell",
    "DuesCellEditor",
    "DuesMatrix",
    "DuesRow",
    "FinancialSummary",
    "MonthlyCollection",
    "MonthlyFlow",
    "OperatorCount",
    "StreetGroup",
    "Transaction",
    "TransactionFilter",
    "TransactionTotals",
    "TransactionType",
    "UpcomingBirthday",
    "YearlyCollection",
    # Form drafts
    "ExpenseDraft",
    "MemberDraft",
    "PaymentDraft",
    "UserDraft",
    "ValidationIssue",
    "ValidationResult",
    # Queries
    "LedgerQuery",
    "QueryResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

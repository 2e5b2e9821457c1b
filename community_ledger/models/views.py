"""
Derived View Models

Everything in this module is recomputed from the stored collections on
every request. Nothing here is ever persisted, and nothing here is
mutated after construction.
"""

from datetime import date
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from community_ledger.models.records import (
    ExpenseCategory,
    Member,
    Payment,
    PaymentStatus,
)


# =============================================================================
# DUES MATRIX
# =============================================================================

class CellState(str, Enum):
    """
    Display state of a matrix cell.

    EMPTY means no payment record exists for the slot.
    PENDING means a record exists and is marked unpaid.
    """
    EMPTY = "empty"
    PENDING = "pending"
    PAID = "paid"


class DuesCell(BaseModel):
    """One (member, month) slot of the dues grid."""

    member_id: str
    month: int = Field(..., ge=0, le=11)
    payment: Optional[Payment] = None

    @property
    def state(self) -> CellState:
        if self.payment is None:
            return CellState.EMPTY
        if self.payment.is_paid:
            return CellState.PAID
        return CellState.PENDING

    @property
    def has_record(self) -> bool:
        return self.payment is not None


class DuesRow(BaseModel):
    """A member and their twelve cells."""

    member: Member
    cells: list[DuesCell]


class DuesMatrix(BaseModel):
    """The 12-month dues grid of one year."""

    year: int
    rows: list[DuesRow] = Field(default_factory=list)
    paid_total: float = 0.0

    @property
    def member_count(self) -> int:
        return len(self.rows)

    def row_for(self, member_id: str) -> Optional[DuesRow]:
        for row in self.rows:
            if row.member.id == member_id:
                return row
        return None


class DuesCellEditor(BaseModel):
    """
    What the payment form shows after a cell is opened.

    Either the existing payment (payment is set) or a draft with the
    configured defaults.
    """

    member_id: str
    month: int = Field(..., ge=0, le=11)
    year: int
    payment: Optional[Payment] = None
    amount: float
    payment_date: date
    status: PaymentStatus
    payment_method: str
    read_only: bool = False

    @property
    def is_new(self) -> bool:
        return self.payment is None


# =============================================================================
# CASH FLOW
# =============================================================================

class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(BaseModel):
    """One line of the unified cash-flow ledger."""

    id: str
    type: TransactionType
    description: str
    category: str
    amount: float
    date: date
    payment_method: str
    operator: str


class TransactionFilter(BaseModel):
    """Search box and type toggle of the cash-flow ledger."""

    search_term: str = ""
    type_filter: Literal["all", "income", "expense"] = "all"


class TransactionTotals(BaseModel):
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


# =============================================================================
# AGGREGATES
# =============================================================================

class FinancialSummary(BaseModel):
    """Yearly consolidated figures of the financial panel."""

    year: int
    paid_total: float
    expense_total: float
    balance: float
    pending_total: float


class MonthlyFlow(BaseModel):
    """Inflow vs outflow of one calendar month."""

    month: int = Field(..., ge=0, le=11)
    label: str
    entradas: float
    saidas: float


class CategoryShare(BaseModel):
    category: ExpenseCategory
    amount: float
    percent: float


class MonthlyCollection(BaseModel):
    """Paid dues of one calendar month."""

    year: int
    month: int = Field(..., ge=0, le=11)
    label: str
    total: float
    count: int


class YearlyCollection(BaseModel):
    """Collection report of one year."""

    year: int
    months: list[MonthlyCollection]
    total: float
    average_monthly: float


class DashboardKpis(BaseModel):
    """Headline figures of the dashboard."""

    total_members: int
    active_members: int
    received_this_month: float
    pending_this_month: int
    latest_members: list[Member] = Field(default_factory=list)


# =============================================================================
# AUDIT AND DIRECTORY
# =============================================================================

class OperatorCount(BaseModel):
    """How many members one operator registered."""

    name: str
    count: int


class UpcomingBirthday(BaseModel):
    member: Member
    days_until: int
    birth_date: date


class StreetGroup(BaseModel):
    """Members living on one street."""

    street: str
    members: list[Member]

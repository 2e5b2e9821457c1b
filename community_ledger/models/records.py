"""
Stored Record Models for Community Ledger

These models define the strict schemas of the four stored collections:
members, payments, expenses and system users. They are designed to:
1. Validate whatever comes back from the blob store before it is trusted
2. Serialize with the exact camelCase field names already in storage
3. Stay plain data: no behavior beyond small derived properties

DESIGN DECISION: Python attributes are snake_case, stored keys are
camelCase aliases. Always dump with by_alias=True (see Record.to_record).
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]

BOOTSTRAP_ADMIN_ID = "admin"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PaymentStatus(str, Enum):
    """
    Dues payment status.

    A PENDING payment is a recorded entry marked unpaid. It is NOT the
    same as a month with no payment record at all.
    """
    PAID = "paid"
    PENDING = "pending"


class PaymentMethod(str, Enum):
    """How money changed hands."""
    PIX = "Pix"
    CASH = "Dinheiro"
    DEBIT_CARD = "Cartão de Débito"
    CREDIT_CARD = "Cartão de Crédito"
    TRANSFER = "Transferência"
    OTHER = "Outro"


class ExpenseCategory(str, Enum):
    """
    Fixed expense categories.

    The order here is the display order of the category breakdown.
    """
    MAINTENANCE = "Manutenção"
    UTILITIES = "Utilidades"
    ADMINISTRATIVE = "Administrativo"
    EVENTS = "Eventos"
    OTHER = "Outros"


class UserRole(str, Enum):
    """System account roles."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


# =============================================================================
# BASE
# =============================================================================

class Record(BaseModel):
    """Base for every stored record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_record(self) -> dict:
        """Plain structured data with the stored field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# MEMBERS
# =============================================================================

class Address(Record):
    """Postal address embedded in a member."""

    model_config = ConfigDict(str_strip_whitespace=True)

    street: str
    number: str
    complement: Optional[str] = None
    neighborhood: str
    zip_code: str


class Member(Record):
    """
    A household/resident of the association.

    The audit fields are optional because records registered before
    auditing existed do not carry them.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str
    cpf: str = Field(
        default="",
        description="Tax id, opaque (no checksum validation)"
    )
    email: str = ""
    phone: str = ""
    address: Address
    join_date: str = Field(
        default="",
        description="Display-formatted date (dd/mm/yyyy)"
    )
    birth_date: Optional[date] = None
    active: bool = True

    # Audit trail
    created_by_id: Optional[str] = None
    created_by_name: Optional[str] = None
    updated_by_id: Optional[str] = None
    updated_by_name: Optional[str] = None
    updated_at: Optional[str] = Field(
        default=None,
        description="Locale timestamp string of the last save"
    )

    @field_validator("birth_date", mode="before")
    @classmethod
    def empty_birth_date(cls, v):
        """The registration form stores an empty string when no date is given."""
        if v == "":
            return None
        return v


# =============================================================================
# PAYMENTS AND EXPENSES
# =============================================================================

class Payment(Record):
    """
    One dues record: one member, one calendar month, one year.

    memberId is not enforced as a reference. Payments outlive the
    member they belong to.
    """

    id: str = Field(..., min_length=1)
    member_id: str
    month: int = Field(..., ge=0, le=11, description="0 = January")
    year: int = Field(..., ge=1)
    amount: float = Field(..., allow_inf_nan=False)
    payment_date: date
    status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    created_by_name: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID


class Expense(Record):
    """One outflow of the association's cash."""

    id: str = Field(..., min_length=1)
    category: ExpenseCategory
    description: str
    amount: float = Field(..., allow_inf_nan=False)
    date: date
    payment_method: Optional[PaymentMethod] = None
    created_by_name: str
    created_at: str = Field(
        default="",
        description="Locale timestamp string of the registration"
    )


# =============================================================================
# SYSTEM USERS
# =============================================================================

class User(Record):
    """
    A system account (operator of the tool, not a member).

    The stored "password" key holds a bcrypt hash. Records written before
    hashing was introduced hold the plaintext value until they are
    upgraded at load.
    """

    id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password_hash: str = Field(..., alias="password")
    name: str
    role: UserRole

    @property
    def is_bootstrap_admin(self) -> bool:
        return self.id == BOOTSTRAP_ADMIN_ID

    @property
    def can_edit_records(self) -> bool:
        """Viewers read everything but never mutate members, payments or expenses."""
        return self.role in (UserRole.ADMIN, UserRole.EDITOR)

    @property
    def can_manage_users(self) -> bool:
        return self.role == UserRole.ADMIN

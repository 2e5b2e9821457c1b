"""
Form Drafts and Validation Results

A draft is what a form submits once its raw strings have been parsed.
The ledger functions only ever receive drafts, never raw input: a
non-numeric amount or a missing name is rejected by the FormValidator
before any collection is touched.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from community_ledger.models.records import (
    Address,
    ExpenseCategory,
    PaymentMethod,
    PaymentStatus,
    UserRole,
)


class MemberDraft(BaseModel):
    """Registration / edit form of a member."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    cpf: str = ""
    email: str = ""
    phone: str = ""
    birth_date: Optional[date] = None
    active: bool = True
    address: Address


class PaymentDraft(BaseModel):
    """Payment form opened from a dues matrix cell."""

    amount: float = Field(..., ge=0, allow_inf_nan=False)
    payment_date: date
    status: PaymentStatus = PaymentStatus.PAID
    payment_method: Optional[PaymentMethod] = None


class ExpenseDraft(BaseModel):
    """Expense form of the cash-flow ledger."""

    model_config = ConfigDict(str_strip_whitespace=True)

    category: ExpenseCategory = ExpenseCategory.OTHER
    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    date: date
    payment_method: Optional[PaymentMethod] = None


class UserDraft(BaseModel):
    """
    User management form.

    password is None when an existing user is edited without
    changing the password.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    role: UserRole = UserRole.VIEWER
    password: Optional[str] = None


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )


class ValidationResult(BaseModel):
    """Outcome of validating one submitted form."""

    form: str
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

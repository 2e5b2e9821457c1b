"""
Form Validation

DESIGN DECISION: Validation happens at the form boundary, in two stages:

STAGE 1 - FIELD VALIDATION:
- Required field presence
- Format validation (numbers, ISO dates, enumerated values)
- This catches typos and empty submissions

STAGE 2 - SEMANTIC VALIDATION:
- Cross-field checks (password confirmation, minimum length)
- This catches requests that are well-formed but not acceptable

Only a fully valid form becomes a draft. The ledger functions assume
well-typed input and never see raw strings.

IMPORTANT: Validation NEVER silently fixes issues.
It reports every problem found, not just the first one.
"""

import math
from datetime import date
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from community_ledger.config import SecuritySettings, get_settings
from community_ledger.models.forms import (
    ExpenseDraft,
    MemberDraft,
    PaymentDraft,
    UserDraft,
    ValidationIssue,
    ValidationResult,
)
from community_ledger.models.records import (
    Address,
    ExpenseCategory,
    PaymentMethod,
    PaymentStatus,
    UserRole,
)


class FormValidationError(Exception):
    """A submitted form was rejected."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.issues)
        super().__init__(f"Invalid {result.form} form: {messages}")

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues


class FormValidator:
    """
    Parses raw form submissions into drafts.

    Raw values are what a browser form posts: strings, possibly empty.
    """

    MEMBER_REQUIRED = ("name", "cpf", "email", "phone", "birthDate",
                       "street", "number", "neighborhood", "zipCode")

    def __init__(self, security: Optional[SecuritySettings] = None):
        self._security = security or get_settings().security

    # -------------------------------------------------------------------------
    # Field parsers
    # -------------------------------------------------------------------------

    @staticmethod
    def _text(form: Mapping[str, Any], field: str) -> str:
        value = form.get(field)
        if value is None:
            return ""
        return str(value).strip()

    def _require(
        self,
        form: Mapping[str, Any],
        fields: tuple[str, ...],
        issues: list[ValidationIssue],
    ) -> None:
        for field in fields:
            if not self._text(form, field):
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field} is required",
                ))

    def _amount(
        self,
        form: Mapping[str, Any],
        field: str,
        issues: list[ValidationIssue],
    ) -> Optional[float]:
        raw = self._text(form, field)
        if not raw:
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field} is required",
            ))
            return None
        try:
            amount = float(raw.replace(",", "."))
        except ValueError:
            amount = None
        if amount is None or not math.isfinite(amount):
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be a number (got {raw!r})",
            ))
            return None
        if amount < 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} cannot be negative",
            ))
            return None
        return amount

    def _date(
        self,
        form: Mapping[str, Any],
        field: str,
        issues: list[ValidationIssue],
        required: bool = True,
    ) -> Optional[date]:
        raw = self._text(form, field)
        if not raw:
            if required:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field} is required",
                ))
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be an ISO date YYYY-MM-DD (got {raw!r})",
            ))
            return None

    def _choice(
        self,
        form: Mapping[str, Any],
        field: str,
        enum_cls,
        issues: list[ValidationIssue],
        default=None,
    ):
        raw = self._text(form, field)
        if not raw:
            return default
        try:
            return enum_cls(raw)
        except ValueError:
            allowed = ", ".join(item.value for item in enum_cls)
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} must be one of: {allowed}",
            ))
            return None

    @staticmethod
    def _raise_if_invalid(form_name: str, issues: list[ValidationIssue]) -> None:
        result = ValidationResult(form=form_name, issues=issues)
        if result.has_errors:
            raise FormValidationError(result)

    @staticmethod
    def _build(form_name: str, model_cls, **values):
        """Final schema check; turns pydantic errors into issues."""
        try:
            return model_cls(**values)
        except ValidationError as e:
            issues = [
                ValidationIssue(
                    field=".".join(str(part) for part in err["loc"]) or form_name,
                    issue_type="invalid_value",
                    message=err["msg"],
                )
                for err in e.errors(include_url=False)
            ]
            raise FormValidationError(ValidationResult(form=form_name, issues=issues)) from e

    # -------------------------------------------------------------------------
    # Forms
    # -------------------------------------------------------------------------

    def parse_member_form(self, form: Mapping[str, Any]) -> MemberDraft:
        issues: list[ValidationIssue] = []
        self._require(form, self.MEMBER_REQUIRED, issues)
        birth_date = self._date(form, "birthDate", issues, required=False)
        self._raise_if_invalid("member", issues)

        active = form.get("active", True)
        if isinstance(active, str):
            active = active.strip().lower() not in ("false", "0", "off", "")

        return self._build(
            "member",
            MemberDraft,
            name=self._text(form, "name"),
            cpf=self._text(form, "cpf"),
            email=self._text(form, "email"),
            phone=self._text(form, "phone"),
            birth_date=birth_date,
            active=bool(active),
            address=Address(
                street=self._text(form, "street"),
                number=self._text(form, "number"),
                complement=self._text(form, "complement") or None,
                neighborhood=self._text(form, "neighborhood"),
                zip_code=self._text(form, "zipCode"),
            ),
        )

    def parse_payment_form(self, form: Mapping[str, Any]) -> PaymentDraft:
        issues: list[ValidationIssue] = []
        amount = self._amount(form, "amount", issues)
        payment_date = self._date(form, "paymentDate", issues)
        status = self._choice(form, "status", PaymentStatus, issues, PaymentStatus.PAID)
        method = self._choice(form, "paymentMethod", PaymentMethod, issues)
        self._raise_if_invalid("payment", issues)

        return self._build(
            "payment",
            PaymentDraft,
            amount=amount,
            payment_date=payment_date,
            status=status,
            payment_method=method,
        )

    def parse_expense_form(self, form: Mapping[str, Any]) -> ExpenseDraft:
        issues: list[ValidationIssue] = []
        self._require(form, ("description",), issues)
        amount = self._amount(form, "amount", issues)
        if amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="amount must be greater than zero",
            ))
        expense_date = self._date(form, "date", issues)
        category = self._choice(form, "category", ExpenseCategory, issues, ExpenseCategory.OTHER)
        method = self._choice(form, "paymentMethod", PaymentMethod, issues)
        self._raise_if_invalid("expense", issues)

        return self._build(
            "expense",
            ExpenseDraft,
            category=category,
            description=self._text(form, "description"),
            amount=amount,
            date=expense_date,
            payment_method=method,
        )

    def parse_user_form(
        self,
        form: Mapping[str, Any],
        require_password: bool = True,
    ) -> UserDraft:
        issues: list[ValidationIssue] = []
        self._require(form, ("name", "username"), issues)
        if require_password:
            self._require(form, ("password",), issues)
        role = self._choice(form, "role", UserRole, issues, UserRole.VIEWER)
        self._raise_if_invalid("user", issues)

        password = form.get("password") or None
        return self._build(
            "user",
            UserDraft,
            username=self._text(form, "username"),
            name=self._text(form, "name"),
            role=role,
            password=password,
        )

    def validate_password_change(
        self,
        current_matches: bool,
        new_password: str,
        confirmation: str,
    ) -> None:
        """
        Semantic checks of the change-password form.

        The caller verifies the current password (it needs the stored
        hash) and passes the outcome in.
        """
        issues: list[ValidationIssue] = []
        if not current_matches:
            issues.append(ValidationIssue(
                field="currentPassword",
                issue_type="mismatch",
                message="Senha atual incorreta.",
            ))
        elif new_password != confirmation:
            issues.append(ValidationIssue(
                field="confirmPassword",
                issue_type="mismatch",
                message="As novas senhas não coincidem.",
            ))
        elif len(new_password) < self._security.min_password_length:
            issues.append(ValidationIssue(
                field="newPassword",
                issue_type="too_short",
                message=(
                    "A nova senha deve ter pelo menos "
                    f"{self._security.min_password_length} caracteres."
                ),
            ))
        self._raise_if_invalid("password", issues)

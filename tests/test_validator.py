"""Tests for form parsing."""

from datetime import date

import pytest

from community_ledger.models.records import ExpenseCategory, PaymentMethod, PaymentStatus, UserRole
from community_ledger.validation import FormValidationError, FormValidator


MEMBER_FORM = {
    "name": " Ana Souza ",
    "cpf": "111.222.333-44",
    "email": "ana@example.com",
    "phone": "84 9999-0000",
    "birthDate": "1990-05-17",
    "street": "Rua B",
    "number": "10",
    "complement": "",
    "neighborhood": "Praia do Meio",
    "zipCode": "59010-000",
    "active": "true",
}


@pytest.fixture
def validator() -> FormValidator:
    return FormValidator()


class TestMemberForm:
    """Tests for the registration form."""

    def test_valid_form(self, validator):
        draft = validator.parse_member_form(MEMBER_FORM)
        assert draft.name == "Ana Souza"
        assert draft.birth_date == date(1990, 5, 17)
        assert draft.address.complement is None
        assert draft.active

    def test_every_missing_field_is_reported(self, validator):
        """Test that validation reports all problems, not just the first."""
        form = dict(MEMBER_FORM, name="", street="  ", zipCode=None)
        with pytest.raises(FormValidationError) as exc_info:
            validator.parse_member_form(form)
        fields = {issue.field for issue in exc_info.value.issues}
        assert fields == {"name", "street", "zipCode"}

    def test_inactive_flag(self, validator):
        assert not validator.parse_member_form(dict(MEMBER_FORM, active="false")).active
        assert not validator.parse_member_form(dict(MEMBER_FORM, active=False)).active


class TestPaymentForm:
    """Tests for the dues cell form."""

    def test_comma_decimal(self, validator):
        draft = validator.parse_payment_form({
            "amount": "30,50",
            "paymentDate": "2024-03-05",
            "status": "pending",
            "paymentMethod": "Dinheiro",
        })
        assert draft.amount == 30.5
        assert draft.status == PaymentStatus.PENDING
        assert draft.payment_method == PaymentMethod.CASH

    def test_defaults(self, validator):
        draft = validator.parse_payment_form({"amount": "30", "paymentDate": "2024-03-05"})
        assert draft.status == PaymentStatus.PAID
        assert draft.payment_method is None

    @pytest.mark.parametrize("amount,issue_type", [
        ("trinta", "invalid_format"),
        ("-5", "invalid_value"),
        ("", "missing"),
    ])
    def test_bad_amount(self, validator, amount, issue_type):
        """Test that bad amounts never reach a draft."""
        with pytest.raises(FormValidationError) as exc_info:
            validator.parse_payment_form({"amount": amount, "paymentDate": "2024-03-05"})
        assert [i.issue_type for i in exc_info.value.issues] == [issue_type]

    @pytest.mark.parametrize("amount", ["inf", "nan", "1e309", "-Infinity"])
    def test_non_finite_amount_rejected(self, validator, amount):
        """Test that amounts which cannot be stored as JSON numbers are refused."""
        with pytest.raises(FormValidationError) as exc_info:
            validator.parse_payment_form({"amount": amount, "paymentDate": "2024-03-05"})
        assert [i.issue_type for i in exc_info.value.issues] == ["invalid_format"]
        with pytest.raises(FormValidationError):
            validator.parse_expense_form({"description": "x", "amount": amount, "date": "2024-04-02"})

    def test_bad_date_and_status(self, validator):
        with pytest.raises(FormValidationError) as exc_info:
            validator.parse_payment_form({"amount": "30", "paymentDate": "05/03/2024", "status": "late"})
        assert {i.field for i in exc_info.value.issues} == {"paymentDate", "status"}


class TestExpenseForm:
    """Tests for the expense form."""

    def test_valid_form(self, validator):
        draft = validator.parse_expense_form({
            "category": "Utilidades",
            "description": "Conta de água",
            "amount": "85.20",
            "date": "2024-04-02",
        })
        assert draft.category == ExpenseCategory.UTILITIES
        assert draft.amount == 85.2

    def test_zero_amount_rejected(self, validator):
        with pytest.raises(FormValidationError) as exc_info:
            validator.parse_expense_form({"description": "x", "amount": "0", "date": "2024-04-02"})
        assert exc_info.value.issues[0].field == "amount"

    def test_category_defaults_to_other(self, validator):
        draft = validator.parse_expense_form({"description": "x", "amount": "1", "date": "2024-04-02"})
        assert draft.category == ExpenseCategory.OTHER


class TestUserForm:
    """Tests for the user management form."""

    def test_password_required_on_create(self, validator):
        with pytest.raises(FormValidationError):
            validator.parse_user_form({"name": "Dora", "username": "dora"})

    def test_password_optional_on_edit(self, validator):
        draft = validator.parse_user_form(
            {"name": "Dora", "username": "dora", "role": "editor", "password": ""},
            require_password=False,
        )
        assert draft.password is None
        assert draft.role == UserRole.EDITOR

"""
Shared fixtures.

Settings are read from the environment, so every test runs with fast
bcrypt and the in-memory blob store, and the settings cache is cleared
around each test.
"""

from datetime import date

import pytest

from community_ledger.config import get_settings
from community_ledger.models.records import (
    Address,
    Expense,
    ExpenseCategory,
    Member,
    Payment,
    PaymentMethod,
    PaymentStatus,
    User,
    UserRole,
)
from community_ledger.security import hash_password


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    monkeypatch.setenv("LEDGER_SECURITY_BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "memory")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_user(user_id: str, name: str, role: UserRole, password: str = "secret1") -> User:
    return User(
        id=user_id,
        username=user_id,
        password_hash=hash_password(password),
        name=name,
        role=role,
    )


def make_member(member_id: str, name: str, street: str = "Rua A", **extra) -> Member:
    return Member(
        id=member_id,
        name=name,
        cpf=extra.pop("cpf", "000.000.000-00"),
        address=Address(
            street=street,
            number="1",
            neighborhood="Praia do Meio",
            zip_code="59010-000",
        ),
        **extra,
    )


def make_payment(
    payment_id: str,
    member_id: str,
    month: int,
    year: int = 2024,
    amount: float = 30.0,
    status: PaymentStatus = PaymentStatus.PAID,
    **extra,
) -> Payment:
    return Payment(
        id=payment_id,
        member_id=member_id,
        month=month,
        year=year,
        amount=amount,
        payment_date=extra.pop("payment_date") if "payment_date" in extra else date(year, month + 1, 5),
        status=status,
        **extra,
    )


def make_expense(
    expense_id: str,
    amount: float,
    on: date,
    category: ExpenseCategory = ExpenseCategory.OTHER,
    **extra,
) -> Expense:
    return Expense(
        id=expense_id,
        category=category,
        description=extra.pop("description", f"Despesa {expense_id}"),
        amount=amount,
        date=on,
        created_by_name=extra.pop("created_by_name", "Alice"),
        **extra,
    )


@pytest.fixture
def admin() -> User:
    return make_user("admin", "Administrador Geral", UserRole.ADMIN, password="123456")


@pytest.fixture
def editor() -> User:
    return make_user("u-editor", "Bob", UserRole.EDITOR)


@pytest.fixture
def viewer() -> User:
    return make_user("u-viewer", "Carol", UserRole.VIEWER)


@pytest.fixture
def members() -> list[Member]:
    return [
        make_member("m1", "Ana Souza", street="Rua B", cpf="111.222.333-44"),
        make_member("m2", "Bruno Lima", street="Rua A"),
        make_member("m3", "Carla Dias", street="Rua B", active=False),
    ]


@pytest.fixture
def payments() -> list[Payment]:
    return [
        make_payment("p1", "m1", 2, payment_method=PaymentMethod.PIX, created_by_name="Alice"),
        make_payment("p2", "m2", 2, status=PaymentStatus.PENDING),
        make_payment("p3", "m1", 3, amount=50.0),
    ]


@pytest.fixture
def expenses() -> list[Expense]:
    return [
        make_expense("e1", 40.0, date(2024, 3, 10), ExpenseCategory.MAINTENANCE),
        make_expense("e2", 20.0, date(2024, 4, 1), ExpenseCategory.EVENTS),
    ]

"""
Association Session Orchestrator

This module ties together the record store, the ledger functions, the
form validator, the secure-delete gate and the audit logger, and
defines the end-to-end flows for one signed-in operator:
1. Mutations (raw form → validate → role check → new collection → persist → audit)
2. Deletions (role check → password re-check → new collection → persist → audit)
3. Views (collections → derived view models, never persisted)

DESIGN DECISION: The session enforces the boundaries:
- Nothing changes without a signed-in actor
- Nothing is deleted without the actor's password (users: explicit confirmation)
- Every mutation and every refusal is audited

Refusals are logged and then re-raised so the caller can show the
message to the operator.
"""

from datetime import date
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar

from community_ledger.audit import AuditLogger, create_correlation_id
from community_ledger.config import get_settings
from community_ledger.ledger import (
    authenticate,
    build_dues_matrix,
    cash_flow,
    category_breakdown,
    change_password,
    dashboard_kpis,
    financial_summary,
    group_by_street,
    monthly_series,
    open_dues_cell,
    recent_activity,
    record_expense,
    rolling_six_month,
    save_dues_payment,
    save_member,
    save_user,
    search_members,
    top_operators,
    transaction_totals,
    upcoming_birthdays,
    yearly_collection,
)
from community_ledger.models.queries import LedgerQuery, QueryResult
from community_ledger.models.records import Expense, Member, Payment, User
from community_ledger.models.views import (
    CategoryShare,
    DashboardKpis,
    DuesCellEditor,
    DuesMatrix,
    FinancialSummary,
    MonthlyCollection,
    MonthlyFlow,
    OperatorCount,
    StreetGroup,
    Transaction,
    TransactionFilter,
    TransactionTotals,
    UpcomingBirthday,
    YearlyCollection,
)
from community_ledger.queries import QueryExecutor
from community_ledger.security import (
    AuthorizationError,
    InvalidCredentialsError,
    PermissionDeniedError,
    ProtectedAccountError,
    delete_user,
    secure_delete,
)
from community_ledger.services.storage import (
    BlobAuditStorage,
    BlobStoreInterface,
    RecordRepository,
    create_blob_store,
)
from community_ledger.store import RecordStore
from community_ledger.validation import FormValidator


R = TypeVar("R", Member, Payment, Expense)


class NotAuthenticatedError(AuthorizationError):
    """An operation was attempted with nobody signed in."""

    def __init__(self):
        super().__init__("Faça login para continuar.")


class AssociationSession:
    """
    Orchestrates one operator's work against the ledger.

    Flow for every mutation:
    1. Parse → the raw form becomes a draft (FormValidationError otherwise)
    2. Authorize → the actor's role is checked by the ledger function
    3. Build → a new collection is computed; the old one is untouched
    4. Persist → the store writes the collection before exposing it
    5. Audit → the change (or the refusal) is logged

    Views read the store's current collections and are recomputed on
    every call.
    """

    def __init__(
        self,
        store: RecordStore,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[FormValidator] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or FormValidator()
        self._queries = QueryExecutor(store)
        self._current_user: Optional[User] = None

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    def _actor(self) -> User:
        if self._current_user is None:
            raise NotAuthenticatedError()
        return self._current_user

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def login(self, username: str, password: str) -> Optional[User]:
        """
        Sign in; returns the user, or None when the credentials don't match.

        The failure is deliberately uniform: an unknown username and a wrong
        password look the same to the caller.
        """
        user = authenticate(self._store.users, username, password)
        self._audit.log_login(username, user)
        self._current_user = user
        return user

    def logout(self) -> None:
        self._current_user = None

    def change_password(
        self,
        current_password: str,
        new_password: str,
        confirmation: str,
    ) -> None:
        """Change the signed-in user's own password."""
        actor = self._actor()
        users, updated_actor = change_password(
            self._store.users,
            actor,
            current_password,
            new_password,
            confirmation,
            validator=self._validator,
        )
        self._store.replace_users(users)
        self._current_user = updated_actor
        self._audit.log_password_changed(updated_actor)

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _authorized(self, action: str, operation: Callable[[User], Any]) -> Any:
        actor = self._actor()
        try:
            return operation(actor)
        except PermissionDeniedError:
            self._audit.log_permission_denied(action, actor)
            raise

    def _guarded_delete(
        self,
        entity_type: str,
        records: Sequence[R],
        record_id: str,
        password: str,
    ) -> list[R]:
        actor = self._actor()
        try:
            return secure_delete(records, record_id, actor, password)
        except PermissionDeniedError:
            self._audit.log_permission_denied(f"delete {entity_type}", actor)
            raise
        except InvalidCredentialsError as e:
            self._audit.log_delete_rejected(entity_type, record_id, actor, str(e))
            raise

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def save_member(
        self,
        form: Mapping[str, Any],
        member_id: Optional[str] = None,
    ) -> Member:
        """Create (member_id None) or edit a member from a raw form."""
        draft = self._validator.parse_member_form(form)
        members, member, created = self._authorized(
            "save member",
            lambda actor: save_member(self._store.members, draft, actor, member_id),
        )
        self._store.replace_members(members)
        self._audit.log_saved("member", member.id, self._current_user, created, {
            "name": member.name,
        })
        return member

    def delete_member(self, member_id: str, password: str) -> None:
        """
        Remove a member after re-checking the operator's password.

        The member's payments are kept; views show them under the
        placeholder member name.
        """
        members = self._guarded_delete("member", self._store.members, member_id, password)
        self._store.replace_members(members)
        self._audit.log_deleted("member", member_id, self._current_user)

    # -------------------------------------------------------------------------
    # Dues
    # -------------------------------------------------------------------------

    def open_cell(
        self,
        member_id: str,
        month: int,
        year: int,
        today: Optional[date] = None,
    ) -> Optional[DuesCellEditor]:
        """The editor for one cell, or None when the actor may not open it."""
        return open_dues_cell(
            self._store.payments, member_id, month, year, self._actor(), today=today
        )

    def save_payment(
        self,
        member_id: str,
        month: int,
        year: int,
        form: Mapping[str, Any],
    ) -> Payment:
        """Record or update the payment in one dues cell."""
        draft = self._validator.parse_payment_form(form)
        payments, payment, created = self._authorized(
            "save payment",
            lambda actor: save_dues_payment(
                self._store.payments, member_id, month, year, draft, actor
            ),
        )
        self._store.replace_payments(payments)
        self._audit.log_saved("payment", payment.id, self._current_user, created, {
            "member_id": member_id,
            "month": month,
            "year": year,
            "amount": payment.amount,
            "status": payment.status.value,
        })
        return payment

    def delete_payment(self, payment_id: str, password: str) -> None:
        payments = self._guarded_delete("payment", self._store.payments, payment_id, password)
        self._store.replace_payments(payments)
        self._audit.log_deleted("payment", payment_id, self._current_user)

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_expense(self, form: Mapping[str, Any]) -> Expense:
        draft = self._validator.parse_expense_form(form)
        expenses, expense = self._authorized(
            "record expense",
            lambda actor: record_expense(self._store.expenses, draft, actor),
        )
        self._store.replace_expenses(expenses)
        self._audit.log_saved("expense", expense.id, self._current_user, True, {
            "category": expense.category.value,
            "amount": expense.amount,
        })
        return expense

    def delete_expense(self, expense_id: str, password: str) -> None:
        expenses = self._guarded_delete("expense", self._store.expenses, expense_id, password)
        self._store.replace_expenses(expenses)
        self._audit.log_deleted("expense", expense_id, self._current_user)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def save_user(
        self,
        form: Mapping[str, Any],
        user_id: Optional[str] = None,
    ) -> User:
        """Create or edit a system user; a blank password on edit keeps the old one."""
        draft = self._validator.parse_user_form(form, require_password=user_id is None)
        users, user, created = self._authorized(
            "manage users",
            lambda actor: save_user(self._store.users, draft, actor, user_id),
        )
        self._store.replace_users(users)
        if self._current_user is not None and user.id == self._current_user.id:
            self._current_user = user
        self._audit.log_saved("user", user.id, self._current_user, created, {
            "username": user.username,
            "role": user.role.value,
        })
        return user

    def delete_user(self, user_id: str, confirmed: bool) -> bool:
        """
        Remove a system user once the operator confirmed.

        Returns False (nothing changed) when not confirmed.
        """
        actor = self._actor()
        try:
            users = delete_user(self._store.users, user_id, actor, confirmed)
        except PermissionDeniedError:
            self._audit.log_permission_denied("manage users", actor)
            raise
        except ProtectedAccountError as e:
            self._audit.log_delete_rejected("user", user_id, actor, str(e))
            raise

        if not confirmed:
            return False
        self._store.replace_users(users)
        self._audit.log_deleted("user", user_id, actor)
        return True

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def dues_matrix(self, year: int, search_term: str = "") -> DuesMatrix:
        return build_dues_matrix(self._store.payments, year, self._store.members, search_term)

    def cash_flow(
        self,
        flt: Optional[TransactionFilter] = None,
    ) -> tuple[list[Transaction], TransactionTotals]:
        """Filtered cash-flow lines and the totals of what is shown."""
        transactions = cash_flow(
            self._store.payments, self._store.expenses, self._store.members, flt
        )
        return transactions, transaction_totals(transactions)

    def financial_summary(self, year: int) -> FinancialSummary:
        return financial_summary(self._store.payments, self._store.expenses, year)

    def monthly_series(self, year: int) -> list[MonthlyFlow]:
        return monthly_series(self._store.payments, self._store.expenses, year)

    def category_breakdown(self, year: int) -> list[CategoryShare]:
        return category_breakdown(self._store.expenses, year)

    def rolling_six_month(self, today: Optional[date] = None) -> list[MonthlyCollection]:
        return rolling_six_month(self._store.payments, today=today)

    def yearly_collection(self, year: int) -> YearlyCollection:
        return yearly_collection(self._store.payments, year)

    def dashboard(self, today: Optional[date] = None) -> DashboardKpis:
        return dashboard_kpis(self._store.members, self._store.payments, today=today)

    def top_operators(self) -> list[OperatorCount]:
        return top_operators(self._store.members)

    def recent_activity(self) -> list[Member]:
        return recent_activity(self._store.members)

    def search_members(self, search_term: str = "", status: str = "all") -> list[Member]:
        return search_members(self._store.members, search_term, status)

    def directory(self, search_term: str = "") -> list[StreetGroup]:
        return group_by_street(self._store.members, search_term)

    def birthdays(self, today: Optional[date] = None) -> list[UpcomingBirthday]:
        return upcoming_birthdays(self._store.members, today=today)

    def query(self, query: LedgerQuery) -> QueryResult:
        return self._queries.execute(query)


def create_session(
    blob_store: Optional[BlobStoreInterface] = None,
) -> AssociationSession:
    """
    Factory function to create a loaded session.

    Args:
        blob_store: Where the collections live. Defaults to the backend
                    selected by LEDGER_STORAGE_BACKEND.

    Returns:
        A session with every collection loaded and nobody signed in.
    """
    settings = get_settings().storage
    blob_store = blob_store or create_blob_store(settings)

    audit_storage = None
    if settings.audit_enabled:
        audit_storage = BlobAuditStorage(blob_store, settings.audit_key)
    audit_logger = AuditLogger(audit_storage, correlation_id=create_correlation_id())

    store = RecordStore(RecordRepository(blob_store, settings), audit_logger)
    store.load()
    return AssociationSession(store, audit_logger=audit_logger)

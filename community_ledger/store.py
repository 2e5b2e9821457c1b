"""
Record Store

The single owner of the four record collections. Loaded once when a
session starts; every mutation replaces one whole collection and
persists it before the new value becomes visible.

Collections are exposed as tuples. Callers build new collections with
the ledger functions and hand them back through the replace_* methods.
"""

from typing import Callable, Optional

import structlog

from community_ledger.audit import AuditLogger
from community_ledger.ledger.dues import duplicate_slots
from community_ledger.ledger.users import bootstrap_admin
from community_ledger.models.records import Expense, Member, Payment, User
from community_ledger.security import upgrade_legacy_passwords
from community_ledger.services.storage import CorruptStateError, RecordRepository, StorageError


logger = structlog.get_logger(__name__)


class RecordStore:
    """In-memory owner of members, payments, expenses and users."""

    def __init__(
        self,
        repository: RecordRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit = audit_logger
        self._members: tuple[Member, ...] = ()
        self._payments: tuple[Payment, ...] = ()
        self._expenses: tuple[Expense, ...] = ()
        self._users: tuple[User, ...] = ()
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        """
        Read every collection from storage.

        Seeds the bootstrap administrator into an empty users collection
        and hashes any plaintext password left by older records.

        Raises:
            CorruptStateError: a stored collection fails schema validation
        """
        try:
            members = self._repository.load_members()
            payments = self._repository.load_payments()
            expenses = self._repository.load_expenses()
            users = self._repository.load_users()
        except CorruptStateError as e:
            if self._audit:
                self._audit.log_corrupt_state(e.key, str(e))
            raise

        if not users:
            users = [bootstrap_admin()]
            self._repository.persist_users(users)
            logger.info("bootstrap_admin_seeded")
        else:
            users, upgraded = upgrade_legacy_passwords(users)
            if upgraded:
                self._repository.persist_users(users)
                logger.info("legacy_passwords_upgraded")

        for member_id, month, year in duplicate_slots(payments):
            logger.warning(
                "duplicate_dues_payment",
                member_id=member_id,
                month=month,
                year=year,
            )

        self._members = tuple(members)
        self._payments = tuple(payments)
        self._expenses = tuple(expenses)
        self._users = tuple(users)
        self._loaded = True

        if self._audit:
            self._audit.log_state_loaded({
                "members": len(self._members),
                "payments": len(self._payments),
                "expenses": len(self._expenses),
                "users": len(self._users),
            })

    # Read access -------------------------------------------------------------

    @property
    def members(self) -> tuple[Member, ...]:
        return self._members

    @property
    def payments(self) -> tuple[Payment, ...]:
        return self._payments

    @property
    def expenses(self) -> tuple[Expense, ...]:
        return self._expenses

    @property
    def users(self) -> tuple[User, ...]:
        return self._users

    # Mutations ---------------------------------------------------------------

    def _persist(self, collection: str, write: Callable[[list], None], records: list) -> None:
        try:
            write(records)
        except StorageError as e:
            logger.error("persist_failed", collection=collection, error=str(e))
            if self._audit:
                self._audit.log_error("persist_failed", str(e), {"collection": collection})
            raise

    def replace_members(self, members: list[Member]) -> None:
        self._persist("members", self._repository.persist_members, members)
        self._members = tuple(members)

    def replace_payments(self, payments: list[Payment]) -> None:
        self._persist("payments", self._repository.persist_payments, payments)
        self._payments = tuple(payments)

    def replace_expenses(self, expenses: list[Expense]) -> None:
        self._persist("expenses", self._repository.persist_expenses, expenses)
        self._expenses = tuple(expenses)

    def replace_users(self, users: list[User]) -> None:
        self._persist("users", self._repository.persist_users, users)
        self._users = tuple(users)

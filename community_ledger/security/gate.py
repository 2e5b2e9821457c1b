"""
Authorization checks and the secure-delete gate.

Deleting a member, payment or expense requires the acting user to type
their password again. A mismatch raises before anything is touched, so
the collection either loses exactly the requested record or stays as it
was.

System users are deleted after a plain confirmation instead, except the
bootstrap administrator, which can never be deleted.
"""

from typing import Protocol, Sequence, TypeVar

from community_ledger.models.records import BOOTSTRAP_ADMIN_ID, User
from community_ledger.security.passwords import verify_password
from community_ledger.services.storage import NotFoundError


class AuthorizationError(Exception):
    """Base exception for refused operations."""
    pass


class InvalidCredentialsError(AuthorizationError):
    """The password typed does not match the stored one."""

    def __init__(self, message: str = "Senha incorreta."):
        super().__init__(message)


class PermissionDeniedError(AuthorizationError):
    """The actor's role does not allow the operation."""

    def __init__(self, action: str, role: str):
        self.action = action
        self.role = role
        super().__init__(f"Perfil '{role}' não pode {action}.")


class ProtectedAccountError(AuthorizationError):
    """Attempt to delete the bootstrap administrator."""

    def __init__(self):
        super().__init__("O administrador principal não pode ser removido.")


class _Identified(Protocol):
    id: str


R = TypeVar("R", bound=_Identified)


def require_editor(actor: User, action: str) -> None:
    """Raise unless the actor may mutate members, payments and expenses."""
    if not actor.can_edit_records:
        raise PermissionDeniedError(action, actor.role.value)


def require_admin(actor: User, action: str) -> None:
    """Raise unless the actor may manage system users."""
    if not actor.can_manage_users:
        raise PermissionDeniedError(action, actor.role.value)


def check_actor_password(actor: User, entered_password: str) -> None:
    if not verify_password(entered_password, actor.password_hash):
        raise InvalidCredentialsError()


def secure_delete(
    records: Sequence[R],
    record_id: str,
    actor: User,
    entered_password: str,
) -> list[R]:
    """
    Remove a record after re-checking the actor's password.

    Returns a new list; the input is never modified.

    Raises:
        PermissionDeniedError: viewer actor
        InvalidCredentialsError: password mismatch
        NotFoundError: no record with that id
    """
    require_editor(actor, "excluir registros")
    check_actor_password(actor, entered_password)

    remaining = [record for record in records if record.id != record_id]
    if len(remaining) == len(records):
        raise NotFoundError(f"Registro {record_id} não encontrado.")
    return remaining


def delete_user(
    users: Sequence[User],
    user_id: str,
    actor: User,
    confirmed: bool,
) -> list[User]:
    """
    Remove a system user.

    The bootstrap administrator is refused whatever the confirmation
    state. Without confirmation the collection comes back unchanged.
    """
    require_admin(actor, "gerenciar usuários")
    if user_id == BOOTSTRAP_ADMIN_ID:
        raise ProtectedAccountError()
    if not confirmed:
        return list(users)

    remaining = [user for user in users if user.id != user_id]
    if len(remaining) == len(users):
        raise NotFoundError(f"Usuário {user_id} não encontrado.")
    return remaining

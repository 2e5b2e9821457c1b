"""
System Users

Bootstrap account, login, account management (admin only) and the
change-own-password form.
"""

from typing import Optional, Sequence

from community_ledger.config import get_settings
from community_ledger.ledger.clock import new_record_id
from community_ledger.models.forms import UserDraft
from community_ledger.models.records import BOOTSTRAP_ADMIN_ID, User, UserRole
from community_ledger.security import hash_password, require_admin, verify_password
from community_ledger.services.storage import NotFoundError
from community_ledger.validation import FormValidator


def bootstrap_admin() -> User:
    """The account seeded into an empty users collection."""
    settings = get_settings().security
    return User(
        id=BOOTSTRAP_ADMIN_ID,
        username=settings.bootstrap_admin_username,
        password_hash=hash_password(settings.bootstrap_admin_password),
        name=settings.bootstrap_admin_name,
        role=UserRole.ADMIN,
    )


def authenticate(users: Sequence[User], username: str, password: str) -> Optional[User]:
    """The user matching both username and password, or None."""
    for user in users:
        if user.username == username and verify_password(password, user.password_hash):
            return user
    return None


def save_user(
    users: Sequence[User],
    draft: UserDraft,
    actor: User,
    user_id: Optional[str] = None,
) -> tuple[list[User], User, bool]:
    """
    Create (user_id None) or update a system user.

    An update without a password keeps the stored hash.
    Returns (new collection, saved user, created).
    """
    require_admin(actor, "gerenciar usuários")

    if user_id is None:
        if draft.password is None:
            raise ValueError("A new user needs a password")
        user = User(
            id=new_record_id(),
            username=draft.username,
            password_hash=hash_password(draft.password),
            name=draft.name,
            role=draft.role,
        )
        return [*users, user], user, True

    existing = next((u for u in users if u.id == user_id), None)
    if existing is None:
        raise NotFoundError(f"Usuário {user_id} não encontrado.")

    update = {"username": draft.username, "name": draft.name, "role": draft.role}
    if draft.password is not None:
        update["password_hash"] = hash_password(draft.password)
    user = existing.model_copy(update=update)
    return [user if u.id == user_id else u for u in users], user, False


def change_password(
    users: Sequence[User],
    actor: User,
    current_password: str,
    new_password: str,
    confirmation: str,
    validator: Optional[FormValidator] = None,
) -> tuple[list[User], User]:
    """
    Change the acting user's own password.

    Raises FormValidationError with the user-visible reason when the
    current password is wrong, the confirmation differs or the new
    password is too short.
    """
    validator = validator or FormValidator()
    validator.validate_password_change(
        current_matches=verify_password(current_password, actor.password_hash),
        new_password=new_password,
        confirmation=confirmation,
    )

    updated_actor = actor.model_copy(update={"password_hash": hash_password(new_password)})
    updated = [updated_actor if u.id == actor.id else u for u in users]
    return updated, updated_actor

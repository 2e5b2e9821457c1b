"""Credential hashing, role checks and the secure-delete gate."""

from community_ledger.security.gate import (
    AuthorizationError,
    InvalidCredentialsError,
    PermissionDeniedError,
    ProtectedAccountError,
    check_actor_password,
    delete_user,
    require_admin,
    require_editor,
    secure_delete,
)
from community_ledger.security.passwords import (
    hash_password,
    is_password_hash,
    upgrade_legacy_passwords,
    verify_password,
)

__all__ = [
    "AuthorizationError",
    "InvalidCredentialsError",
    "PermissionDeniedError",
    "ProtectedAccountError",
    "check_actor_password",
    "delete_user",
    "hash_password",
    "is_password_hash",
    "require_admin",
    "require_editor",
    "secure_delete",
    "upgrade_legacy_passwords",
    "verify_password",
]

"""
Password hashing (bcrypt hash, verify, legacy plaintext upgrade).

Stored user records written before hashing was introduced carry the
password itself in the "password" key. verify_password accepts both, and
upgrade_legacy_passwords rewrites such records with a hash at load.
"""

import hmac
from typing import Optional

import bcrypt

from community_ledger.config import get_settings
from community_ledger.models.records import User


_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password.
    We truncate to 72 bytes to avoid ValueError and to make behavior explicit.
    """
    pw = password.encode("utf-8")
    if len(pw) > 72:
        pw = pw[:72]
    return pw


def is_password_hash(value: str) -> bool:
    return value.startswith(_BCRYPT_PREFIXES) and len(value) == 60


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Returns a bcrypt hash as a UTF-8 string.
    """
    if rounds is None:
        rounds = get_settings().security.bcrypt_rounds
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_to_bcrypt_secret(password), salt).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    """
    Verify a password against the stored value.

    The stored value is a bcrypt hash, or the plaintext of a legacy record.
    """
    if not password or not stored:
        return False

    if not is_password_hash(stored):
        return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))

    try:
        return bcrypt.checkpw(_to_bcrypt_secret(password), stored.encode("utf-8"))
    except ValueError:
        return False


def upgrade_legacy_passwords(users: list[User]) -> tuple[list[User], bool]:
    """
    Hash every plaintext password left in the users collection.

    Returns the new collection and whether anything changed.
    """
    changed = False
    upgraded = []
    for user in users:
        if is_password_hash(user.password_hash):
            upgraded.append(user)
            continue
        upgraded.append(user.model_copy(update={
            "password_hash": hash_password(user.password_hash),
        }))
        changed = True
    return upgraded, changed

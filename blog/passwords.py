"""
Password policy and bcrypt hashing.

bcrypt is CPU-bound, so hashing and verification run off the event loop
via ``anyio.to_thread.run_sync``.
"""
import re

import bcrypt
from anyio import to_thread

from blog.config import settings

# bcrypt ignores everything past 72 bytes.
PASSWORD_MAX_BYTES = 72

_UPPERCASE_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


def is_valid_password(password: str) -> bool:
    """Accept iff *password* has an upper-case letter, a digit and a special character."""
    return bool(
        _UPPERCASE_RE.search(password)
        and _DIGIT_RE.search(password)
        and _SPECIAL_RE.search(password)
    )


async def hash_password(plain: str) -> str:
    encoded = plain.encode("utf-8")
    rounds = settings.BCRYPT_ROUNDS
    return await to_thread.run_sync(
        lambda: bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")
    )


async def verify_password(plain: str, hashed: str) -> bool:
    """Return False for malformed hashes rather than propagating a ValueError."""
    encoded_plain = plain.encode("utf-8")
    encoded_hash = hashed.encode("utf-8")
    try:
        return await to_thread.run_sync(lambda: bcrypt.checkpw(encoded_plain, encoded_hash))
    except ValueError:
        return False

"""
User service — signup, login and profile lookups for the User aggregate.

Users are created once at signup and never updated or deleted.  Only a
bcrypt hash of the password is stored; login recomputes the check with
``verify_password`` and never compares raw text.

Expected domain conditions are raised as exceptions carrying the
user-facing message; the router turns them into form errors.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import User
from blog.passwords import PASSWORD_MAX_BYTES, hash_password, is_valid_password, verify_password
from blog.schemas import UserCreate

logger = logging.getLogger(__name__)

PASSWORD_POLICY_MESSAGE = (
    "Password must contain at least one uppercase, one number and one special character"
)
PASSWORD_TOO_LONG_MESSAGE = f"Password must not exceed {PASSWORD_MAX_BYTES} bytes"
DUPLICATE_USERNAME_MESSAGE = "Pick a different username"
LOGIN_FAILED_MESSAGE = "Incorrect username or password"

# Verified against when the username is unknown; built on first use.
_dummy_hash: str | None = None


class SignupRejected(Exception):
    """Signup input was refused; nothing was created."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationFailed(Exception):
    """Login credentials did not match any user."""

    def __init__(self) -> None:
        super().__init__(LOGIN_FAILED_MESSAGE)
        self.message = LOGIN_FAILED_MESSAGE


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    """Serialise a User ORM instance; the password hash is never exposed."""
    return {
        "id": user.id,
        "username": user.username,
        "bio": user.bio,
        "profile_picture": user.profile_picture,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


async def _dummy_password_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = await hash_password("not-a-real-password")
    return _dummy_hash


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

def check_password_policy(password: str) -> None:
    """Raise ``SignupRejected`` unless *password* satisfies the signup policy."""
    if not is_valid_password(password):
        raise SignupRejected(PASSWORD_POLICY_MESSAGE)
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise SignupRejected(PASSWORD_TOO_LONG_MESSAGE)


async def get_user(db: AsyncSession, user_id: int) -> dict | None:
    """Return the user with *user_id*, or None when it does not exist."""
    user = await db.get(User, user_id)
    return _user_to_dict(user) if user is not None else None


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def signup(db: AsyncSession, data: UserCreate) -> dict:
    """
    Validate the password policy, check username availability and create
    the user.

    Raises ``SignupRejected`` (400) for a policy failure and
    ``SignupRejected`` (409) for a taken username.  The unique constraint
    on ``users.username`` backs the lookup against concurrent signups.
    """
    check_password_policy(data.password)

    if await get_user_by_username(db, data.username) is not None:
        logger.info("Signup rejected: username %r taken", data.username)
        raise SignupRejected(DUPLICATE_USERNAME_MESSAGE, status_code=409)

    user = User(
        username=data.username,
        password_hash=await hash_password(data.password),
        bio=data.bio,
        profile_picture=data.profile_picture,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.info("Signup rejected: username %r taken concurrently", data.username)
        raise SignupRejected(DUPLICATE_USERNAME_MESSAGE, status_code=409)

    await db.refresh(user)
    logger.info("User %s signed up as %r", user.id, user.username)
    return _user_to_dict(user)


async def login(db: AsyncSession, username: str, password: str) -> dict:
    """
    Return the user matching *username* (exact, case-sensitive) whose
    password verifies against the stored hash.

    Raises ``AuthenticationFailed`` without saying which field was wrong.
    """
    user = await get_user_by_username(db, username)
    stored_hash = user.password_hash if user is not None else await _dummy_password_hash()
    if not await verify_password(password, stored_hash) or user is None:
        logger.info("Login failed for username %r", username)
        raise AuthenticationFailed()
    logger.info("User %s logged in", user.id)
    return _user_to_dict(user)

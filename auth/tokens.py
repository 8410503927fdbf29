"""
auth/tokens.py -- JWT issuance/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       only user_id, iat and exp. The role is deliberately NOT a claim: the
       authorization gate re-reads it from the store on every request, so a
       role change or account deletion takes effect immediately. Verification
       returns None on any failure -- the dependency layer turns that into 401.

  Passwords: bcrypt, used directly. The cost factor makes brute-force
       expensive. _DUMMY_HASH lets authenticate_user() spend the same bcrypt
       work whether or not the email exists, so the admin portal does not
       reveal account existence through response time.

Layer rule: no imports from api/ or profiles/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import AccountStore

logger = logging.getLogger("campusdesk.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The API layer caps password
    length at 128 characters, which keeps the difference irrelevant in practice.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the store; treat as a mismatch.
        return False


_DUMMY_HASH: str = hash_password("campusdesk_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, expire_seconds: int = 0) -> str:
    """Encode a signed JWT identifying the user.

    Args:
        user_id:        Numeric user ID stored in the DB.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds (7 days).
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Covers bad signatures, expired tokens, garbage input, and payloads that
    lack a usable user_id.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if not isinstance(payload.get("user_id"), int):
        return None
    return payload


# ---------------------------------------------------------------------------
# Credential check (constant-work)
# ---------------------------------------------------------------------------


def authenticate_user(store: AccountStore, email: str, password: str) -> User | None:
    """Return the user if email and password match, otherwise None.

    Always runs bcrypt whether or not the user exists: an unknown email is
    checked against _DUMMY_HASH so it costs the same as a wrong password.
    The caller cannot tell the two failures apart.
    """
    user = store.get_user_by_email(email)
    if user is None or not user.hashed_password:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user

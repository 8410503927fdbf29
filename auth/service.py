"""
auth/service.py -- Authentication use cases: check_email, register, login,
admin_login, me.

Functions take the AccountStore as their first argument and raise
core.errors exceptions; they never build HTTP responses.

Two login flavours with deliberately different error behaviour:
  login()        -- self-service portal. An unknown email is reported as
                    EMAIL_NOT_FOUND, distinct from a wrong password, so the UI
                    can steer the user to registration.
  admin_login()  -- privileged portal. Unknown email and wrong password give
                    the same message and cost the same bcrypt work; only
                    after the password checks out is a non-admin told 403.

Layer rule: no imports from api/ or profiles/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from auth.models import ADMIN, FACULTY, STUDENT, Account, FacultyProfile, Profile, StudentProfile, User
from auth.store import AccountStore
from auth.tokens import authenticate_user, create_access_token, hash_password, verify_password
from core.errors import Conflict, Forbidden, Unauthenticated, ValidationFailed
from core.normalize import clean, normalize_email, normalize_subjects

logger = logging.getLogger("campusdesk.auth")


@dataclass
class AuthResult:
    """A freshly issued token plus the account it identifies."""

    token: str
    user: User
    profile: Profile | None = None


def check_email(store: AccountStore, email: str | None) -> bool:
    """Return True if the (normalized) email belongs to an account."""
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationFailed("Email is required.")
    return store.email_exists(normalized)


def register(
    store: AccountStore,
    name: str,
    email: str,
    password: str,
    role: str,
    fields: dict | None = None,
) -> AuthResult:
    """Create a student or faculty account and sign it in.

    `fields` holds the role-specific values (roll_no, department, course for
    students; employee_id, department, subjects for faculty). Student fields
    are checked before anything is written.
    """
    fields = fields or {}
    if role == ADMIN:
        raise ValidationFailed("Admin accounts cannot be registered. Ask an existing admin to add you.")

    if role == STUDENT:
        roll_no, department, course = (clean(fields.get(k)) for k in ("roll_no", "department", "course"))
        if not (roll_no and department and course):
            raise ValidationFailed("rollNo, department, course required for student.")
        profile: Profile = StudentProfile(roll_no=roll_no, department=department, course=course)
    elif role == FACULTY:
        profile = FacultyProfile(
            employee_id=clean(fields.get("employee_id")),
            department=clean(fields.get("department")),
            subjects=normalize_subjects(fields.get("subjects")),
        )
    else:
        raise ValidationFailed(f"Unknown role {role!r}.")

    normalized = normalize_email(email)
    if store.email_exists(normalized):
        raise Conflict("Email already registered.")

    user = User(name=clean(name), email=normalized, role=role, hashed_password=hash_password(password))
    try:
        account = store.create_account(user, profile)
    except IntegrityError as exc:
        # A concurrent request registered the same email after our pre-check.
        raise Conflict("Email already registered.") from exc

    logger.info("Registered %s account id=%s", role, account.user.id)
    return AuthResult(
        token=create_access_token(account.user.id),
        user=account.user,
        profile=account.profile,
    )


def login(store: AccountStore, email: str, password: str) -> AuthResult:
    """Self-service login. Distinguishes unknown email from wrong password."""
    user = store.get_user_by_email(normalize_email(email))
    if user is None:
        raise Unauthenticated("Email not registered. Please register first.", code="EMAIL_NOT_FOUND")
    if not verify_password(password, user.hashed_password or ""):
        raise Unauthenticated("Invalid password.")
    return AuthResult(
        token=create_access_token(user.id),
        user=user,
        profile=store.get_profile_for_user(user),
    )


def admin_login(store: AccountStore, email: str, password: str) -> AuthResult:
    """Admin-portal login. Never reveals whether the email exists."""
    user = authenticate_user(store, normalize_email(email), password)
    if user is None:
        logger.info("Admin portal login failed")
        raise Unauthenticated("Invalid email or password.")
    if user.role != ADMIN:
        logger.warning("Non-admin user id=%s attempted admin portal login", user.id)
        raise Forbidden("Access denied. This portal is for administrators only.")
    return AuthResult(
        token=create_access_token(user.id),
        user=user,
        profile=store.get_profile_for_user(user),
    )


def me(store: AccountStore, caller: User) -> Account:
    """Return the caller together with their role profile."""
    return Account(user=caller, profile=store.get_profile_for_user(caller))

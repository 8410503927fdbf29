"""
profiles/service.py -- Profile management: CRUD over student, faculty and
admin accounts, self-service updates, and the admin lifecycle guards.

All three roles share one shape; the role string selects the profile table
and the set of editable profile fields.

Update semantics are partial: `changes` contains only the keys the client
actually sent. Absent keys are left untouched, and an empty dict is a no-op
that returns the current record. `name` is stored on the linked User, not on
the profile.

Admin lifecycle:
  add_account(ADMIN, ...) falls back to Settings.admin_fallback_password when
    no password is supplied. This is a known weak default kept for client
    compatibility; each use is logged at WARNING.
  update_account(ADMIN, ...) may also change email (unique, excluding self)
    and password (written only when it meets Settings.min_password_length).
  delete_account(ADMIN, ...) refuses self-deletion, and refuses to remove the
    last admin. The second guard is enforced inside the store under its
    admin-count lock.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import ADMIN, FACULTY, PROFILE_TYPES, STUDENT, Account, User
from auth.store import AccountStore, LastAdminError
from auth.tokens import hash_password
from core.config import get_settings
from core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from core.normalize import clean, normalize_email, normalize_subjects

logger = logging.getLogger("campusdesk.profiles")

_LABELS: dict[str, str] = {STUDENT: "Student", FACULTY: "Faculty", ADMIN: "Admin"}

# Profile columns a client may edit, per role.
_PROFILE_FIELDS: dict[str, tuple[str, ...]] = {
    STUDENT: ("roll_no", "department", "course"),
    FACULTY: ("employee_id", "department", "subjects"),
    ADMIN: ("employee_id", "position", "department"),
}


def _normalize_field(name: str, value):
    if name == "subjects":
        return normalize_subjects(value)
    return clean(value)


def _profile_changes(role: str, changes: dict) -> dict:
    # An explicit null clears subjects but leaves text fields alone.
    return {
        k: _normalize_field(k, changes[k])
        for k in _PROFILE_FIELDS[role]
        if k in changes and (changes[k] is not None or k == "subjects")
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def list_accounts(store: AccountStore, role: str) -> list[Account]:
    return store.list_accounts(role)


def get_account(store: AccountStore, role: str, profile_id: int) -> Account:
    account = store.get_account(role, profile_id)
    if account is None:
        raise NotFound(f"{_LABELS[role]} not found.")
    return account


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def add_account(
    store: AccountStore,
    role: str,
    name: str,
    email: str,
    password: str | None,
    fields: dict | None = None,
) -> Account:
    """Create a user and its role profile as one unit.

    Raises Conflict if the normalized email is already registered.
    """
    fields = fields or {}
    if role == STUDENT and not all(clean(fields.get(k)) for k in _PROFILE_FIELDS[STUDENT]):
        raise ValidationFailed("rollNo, department, course required for student.")

    used_fallback = False
    if not password:
        if role != ADMIN:
            raise ValidationFailed("Password is required.")
        password = get_settings().admin_fallback_password
        used_fallback = True

    normalized = normalize_email(email)
    if store.email_exists(normalized):
        raise Conflict("Email already registered.")

    profile_type = PROFILE_TYPES[role]
    profile = profile_type(**{k: _normalize_field(k, fields.get(k)) for k in _PROFILE_FIELDS[role]})
    user = User(name=clean(name), email=normalized, role=role, hashed_password=hash_password(password))
    try:
        account = store.create_account(user, profile)
    except IntegrityError as exc:
        raise Conflict("Email already registered.") from exc

    logger.info("%s account created id=%s", _LABELS[role], account.user.id)
    if used_fallback:
        logger.warning("Admin id=%s was created with the fallback password", account.user.id)
    return account


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def update_account(store: AccountStore, role: str, profile_id: int, changes: dict) -> Account:
    """Apply a partial update to a profile and its linked user.

    Student and faculty updates may change `name` plus their profile fields.
    Admin updates may additionally change `email` and `password`.
    """
    account = get_account(store, role, profile_id)
    user_changes: dict = {}

    if "name" in changes and changes["name"] is not None:
        user_changes["name"] = clean(changes["name"])

    if role == ADMIN:
        if changes.get("email") is not None:
            normalized = normalize_email(changes["email"])
            if store.email_exists(normalized, exclude_user_id=account.user.id):
                raise Conflict("Email already in use.")
            user_changes["email"] = normalized
        password = changes.get("password")
        if password is not None and len(password) >= get_settings().min_password_length:
            user_changes["hashed_password"] = hash_password(password)

    try:
        store.update_user(account.user.id, **user_changes)
    except IntegrityError as exc:
        raise Conflict("Email already in use.") from exc
    store.update_profile(role, profile_id, **_profile_changes(role, changes))
    return get_account(store, role, profile_id)


def update_my_profile(store: AccountStore, caller: User, changes: dict) -> Account:
    """Self-service update for students and faculty, keyed by the caller's identity."""
    if caller.role not in (STUDENT, FACULTY):
        raise Forbidden("Only students and faculty can update profile here.")

    profile = store.get_profile_for_user(caller)
    if profile is None:
        raise NotFound(f"{_LABELS[caller.role]} profile not found.")

    if changes.get("name") is not None:
        store.update_user(caller.id, name=clean(changes["name"]))
    store.update_profile(caller.role, profile.id, **_profile_changes(caller.role, changes))
    return get_account(store, caller.role, profile.id)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


def delete_account(store: AccountStore, role: str, profile_id: int, caller: User | None = None) -> None:
    """Delete a profile together with its user.

    For admins, `caller` is the acting admin: deleting oneself is Forbidden,
    and so is deleting the last remaining admin.
    """
    if role != ADMIN:
        if not store.delete_account(role, profile_id):
            raise NotFound(f"{_LABELS[role]} not found.")
        logger.info("%s profile %s deleted", _LABELS[role], profile_id)
        return

    account = get_account(store, ADMIN, profile_id)
    if caller is not None and account.user.id == caller.id:
        raise Forbidden("You cannot delete your own account.")
    try:
        deleted = store.delete_admin_account(profile_id)
    except LastAdminError as exc:
        raise Forbidden(str(exc)) from exc
    if not deleted:
        # Removed by a concurrent request between the lookup and the delete.
        raise NotFound("Admin not found.")
    logger.info("Admin profile %s deleted by user id=%s", profile_id, caller.id if caller else None)

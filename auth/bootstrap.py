"""
auth/bootstrap.py -- Startup routine that guarantees an admin exists.

Called once from the FastAPI lifespan after the store is opened and before
the app serves traffic, and from `python main.py ensure-admin`.
"""

from __future__ import annotations

import logging

from auth.models import ADMIN, Account, AdminProfile, User
from auth.store import AccountStore
from auth.tokens import hash_password
from core.config import Settings, get_settings
from core.normalize import clean, normalize_email

logger = logging.getLogger("campusdesk.bootstrap")


def ensure_default_admin(store: AccountStore, settings: Settings | None = None) -> Account | None:
    """Create the default admin when the system has no admin profiles.

    Does nothing if any admin profile exists, or if a user already holds the
    configured default admin email (whatever its role). Returns the created
    account, or None when nothing was created.
    """
    settings = settings or get_settings()
    if store.count_admins() > 0:
        return None

    email = normalize_email(settings.default_admin_email)
    if store.email_exists(email):
        logger.warning("No admin profiles exist, but %s is already taken; default admin not created", email)
        return None

    account = store.create_account(
        User(
            name=clean(settings.default_admin_name),
            email=email,
            role=ADMIN,
            hashed_password=hash_password(settings.default_admin_password),
        ),
        AdminProfile(employee_id="ADM001", position="Admin", department="General"),
    )
    logger.info("Default admin created: %s (change password after first login in production)", email)
    return account

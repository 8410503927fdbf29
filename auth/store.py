"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts and profiles.

Pattern: Repository + Data Mapper. AccountStore is the repository; the
_row_to_* functions are the mappers. Services and routes never touch SQL
directly.

Tables:
  users     -- one row per identity; UNIQUE(email) across all roles.
  students  -- StudentProfile, UNIQUE(user_id).
  faculty   -- FacultyProfile, UNIQUE(user_id); subjects as a JSON array in TEXT.
  admins    -- AdminProfile, UNIQUE(user_id).

Atomicity:
  A user and its profile are always inserted and deleted together inside one
  engine.begin() transaction, so a failure between the two writes rolls both
  back instead of leaving an orphaned user.

  The "at least one admin" invariant is a check-then-act sequence. It runs
  under _admin_lock, a process-wide lock scoped to the admin count, inside the
  same transaction as the delete. Two concurrent deletes therefore observe the
  count one after the other and the second is refused.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or profiles/.
"""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, replace
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import ADMIN, FACULTY, STUDENT, Account, AdminProfile, FacultyProfile, Profile, StudentProfile, User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(20), nullable=False),
    Column("created_at", String(32), nullable=False),
)

_students = Table(
    "students",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, unique=True),
    Column("roll_no", String(50), nullable=False, server_default=""),
    Column("department", String(255), nullable=False, server_default=""),
    Column("course", String(255), nullable=False, server_default=""),
)

_faculty = Table(
    "faculty",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, unique=True),
    Column("employee_id", String(50), nullable=False, server_default=""),
    Column("department", String(255), nullable=False, server_default=""),
    Column("subjects", Text, nullable=False, server_default="[]"),  # JSON array serialized as text
)

_admins = Table(
    "admins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, unique=True),
    Column("employee_id", String(50), nullable=False, server_default=""),
    Column("position", String(255), nullable=False, server_default=""),
    Column("department", String(255), nullable=False, server_default=""),
)

_PROFILE_TABLES: dict[str, Table] = {
    STUDENT: _students,
    FACULTY: _faculty,
    ADMIN: _admins,
}

# User columns selected alongside a profile row. Both tables have an "id"
# column (and profiles have user_id), so the user side is labelled "u_*".
_USER_PREFIX = "u_"
_user_columns = [c.label(f"{_USER_PREFIX}{c.name}") for c in _users.c]


class LastAdminError(Exception):
    """Raised when a delete would leave the system with zero admin profiles."""


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _profile_values(profile: Profile) -> dict:
    """Column values for a profile insert/update, excluding keys the store owns."""
    values = asdict(profile)
    values.pop("id", None)
    values.pop("user_id", None)
    if "subjects" in values:
        values["subjects"] = json.dumps(values["subjects"])
    return values


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for User records and their role profiles.

    Usage:
        store = AccountStore()
        account = store.create_account(
            User(name="Ada", email="ada@campus.com", role="student", hashed_password=hash_password("secret1")),
            StudentProfile(roll_no="R1", department="CS", course="BTech"),
        )
        store.get_account("student", account.profile.id)
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)
        self._admin_lock = threading.Lock()

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user_by_email(self, email: str) -> User | None:
        """Look up a user by exact (already normalized) email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def email_exists(self, email: str, exclude_user_id: int | None = None) -> bool:
        """Return True if any user other than exclude_user_id holds this email."""
        stmt = select(_users.c.id).where(_users.c.email == email)
        if exclude_user_id is not None:
            stmt = stmt.where(_users.c.id != exclude_user_id)
        with self.engine.connect() as conn:
            return conn.execute(stmt.limit(1)).first() is not None

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: name, email, hashed_password. Raises
        sqlalchemy.exc.IntegrityError if an email change collides with
        another account.

        Returns True if a row was updated, False if user_id was not found.
        """
        if not fields:
            return self.get_user(user_id) is not None
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Account (user + profile) lifecycle
    # ------------------------------------------------------------------

    def create_account(self, user: User, profile: Profile) -> Account:
        """Insert a user and its profile in one transaction.

        profile.role must match user.role. Raises
        sqlalchemy.exc.IntegrityError if the email is already registered;
        in that case neither row is written.
        """
        if profile.role != user.role:
            raise ValueError(f"{type(profile).__name__} cannot belong to a {user.role!r} user")
        created_at = _now_iso()
        table = _PROFILE_TABLES[profile.role]
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.insert().values(
                    name=user.name,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    role=user.role,
                    created_at=created_at,
                )
            )
            user_id = result.inserted_primary_key[0]
            result = conn.execute(table.insert().values(user_id=user_id, **_profile_values(profile)))
            profile_id = result.inserted_primary_key[0]
        return Account(
            user=replace(user, id=user_id, created_at=created_at),
            profile=replace(profile, id=profile_id, user_id=user_id),
        )

    def get_profile_for_user(self, user: User) -> Profile | None:
        """Return the profile matching the user's role, or None if it is missing."""
        table = _PROFILE_TABLES.get(user.role)
        if table is None:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(table.select().where(table.c.user_id == user.id)).fetchone()
        return _row_to_profile(user.role, row) if row is not None else None

    def get_account(self, role: str, profile_id: int) -> Account | None:
        """Look up a profile by its own id, joined with its user."""
        table = _PROFILE_TABLES[role]
        stmt = (
            select(table, *_user_columns)
            .join(_users, _users.c.id == table.c.user_id)
            .where(table.c.id == profile_id)
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_account(role, row) if row is not None else None

    def list_accounts(self, role: str) -> list[Account]:
        """Return every profile of the given role with its user, oldest first."""
        table = _PROFILE_TABLES[role]
        stmt = select(table, *_user_columns).join(_users, _users.c.id == table.c.user_id).order_by(table.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_account(role, r) for r in rows]

    def update_profile(self, role: str, profile_id: int, **fields) -> bool:
        """Update profile columns. Only the keyword arguments given are written.

        Returns True if the profile exists, False otherwise.
        """
        table = _PROFILE_TABLES[role]
        if "subjects" in fields:
            fields["subjects"] = json.dumps(fields["subjects"])
        if not fields:
            with self.engine.connect() as conn:
                return conn.execute(select(table.c.id).where(table.c.id == profile_id)).first() is not None
        with self.engine.begin() as conn:
            result = conn.execute(table.update().where(table.c.id == profile_id).values(**fields))
        return result.rowcount > 0

    def delete_account(self, role: str, profile_id: int) -> bool:
        """Delete a profile and its user in one transaction.

        Returns True if deleted, False if profile_id was not found. Admin
        profiles must go through delete_admin_account() so the last-admin
        invariant is enforced.
        """
        if role == ADMIN:
            raise ValueError("admin accounts must be deleted with delete_admin_account()")
        with self.engine.begin() as conn:
            return _delete_pair(conn, _PROFILE_TABLES[role], profile_id)

    # ------------------------------------------------------------------
    # Admin invariant
    # ------------------------------------------------------------------

    def count_admins(self) -> int:
        """Return the number of admin profiles."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_admins)).scalar()
        return result or 0

    def delete_admin_account(self, profile_id: int) -> bool:
        """Delete an admin profile and its user unless it is the last admin.

        The count and the delete run under _admin_lock and inside one
        transaction. Raises LastAdminError when only one admin profile
        remains. Returns False if profile_id was not found.
        """
        with self._admin_lock, self.engine.begin() as conn:
            exists = conn.execute(select(_admins.c.id).where(_admins.c.id == profile_id)).first()
            if exists is None:
                return False
            count = conn.execute(select(func.count()).select_from(_admins)).scalar() or 0
            if count <= 1:
                raise LastAdminError("Cannot delete the last admin. At least one admin must remain.")
            return _delete_pair(conn, _admins, profile_id)

    def close(self) -> None:
        self.engine.dispose()


def _delete_pair(conn, table: Table, profile_id: int) -> bool:
    row = conn.execute(select(table.c.user_id).where(table.c.id == profile_id)).fetchone()
    if row is None:
        return False
    conn.execute(table.delete().where(table.c.id == profile_id))
    conn.execute(_users.delete().where(_users.c.id == row.user_id))
    return True


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row, prefix: str = "") -> User:
    m = row._mapping
    return User(
        id=m[f"{prefix}id"],
        name=m[f"{prefix}name"],
        email=m[f"{prefix}email"],
        hashed_password=m[f"{prefix}hashed_password"],
        role=m[f"{prefix}role"],
        created_at=m[f"{prefix}created_at"],
    )


def _row_to_profile(role: str, row) -> Profile:
    m = row._mapping
    if role == STUDENT:
        return StudentProfile(
            id=m["id"],
            user_id=m["user_id"],
            roll_no=m["roll_no"],
            department=m["department"],
            course=m["course"],
        )
    if role == FACULTY:
        return FacultyProfile(
            id=m["id"],
            user_id=m["user_id"],
            employee_id=m["employee_id"],
            department=m["department"],
            subjects=json.loads(m["subjects"] or "[]"),
        )
    return AdminProfile(
        id=m["id"],
        user_id=m["user_id"],
        employee_id=m["employee_id"],
        position=m["position"],
        department=m["department"],
    )


def _row_to_account(role: str, row) -> Account:
    return Account(user=_row_to_user(row, prefix=_USER_PREFIX), profile=_row_to_profile(role, row))

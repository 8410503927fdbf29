"""
auth/models.py -- Domain dataclasses for accounts and role profiles.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store and services do the work.

Profiles form a tagged variant keyed by role: each profile class carries a
class-level `role` tag and only the fields that belong to that role. Code that
needs to branch on the kind of profile reads `profile.role` (or the User's
role) rather than probing for field presence.

Layer rule: no imports from api/ or profiles/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

STUDENT = "student"
FACULTY = "faculty"
ADMIN = "admin"


@dataclass
class User:
    """An identity record. One per person, regardless of role.

    email is always stored normalized (lowercase, trimmed) and is unique
    across the whole system. hashed_password is None on identities handed to
    route code by the authorization gate -- it never leaves the auth layer.
    """

    name: str
    email: str
    role: str  # "student" | "faculty" | "admin"
    id: int | None = None
    hashed_password: str | None = None
    created_at: str | None = None


@dataclass
class StudentProfile:
    role: ClassVar[str] = STUDENT

    user_id: int | None = None
    roll_no: str = ""
    department: str = ""
    course: str = ""
    id: int | None = None


@dataclass
class FacultyProfile:
    role: ClassVar[str] = FACULTY

    user_id: int | None = None
    employee_id: str = ""
    department: str = ""
    subjects: list[str] = field(default_factory=list)
    id: int | None = None


@dataclass
class AdminProfile:
    role: ClassVar[str] = ADMIN

    user_id: int | None = None
    employee_id: str = ""
    position: str = ""
    department: str = ""
    id: int | None = None


Profile = Union[StudentProfile, FacultyProfile, AdminProfile]

PROFILE_TYPES: dict[str, type] = {
    STUDENT: StudentProfile,
    FACULTY: FacultyProfile,
    ADMIN: AdminProfile,
}


@dataclass
class Account:
    """A User together with its role profile.

    profile is None only when the store is inconsistent (a user whose profile
    row is missing); services report that rather than repairing it.
    """

    user: User
    profile: Profile | None = None

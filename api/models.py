"""
API request and response models for the CampusDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two via the
from_* factory methods below.

Wire format is camelCase (rollNo, employeeId, userId, createdAt) to match the
existing web client; Python attribute names stay snake_case. Every model
accepts either spelling on input (populate_by_name=True).

Profile responses are a tagged union discriminated by `role`.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from auth.models import AdminProfile, FacultyProfile, Profile, StudentProfile, User

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: any local part, any domain, TLD not required
# (campus intranets use addresses like admin@campus).
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

_Email = Annotated[str, Field(pattern=EMAIL_PATTERN, max_length=255)]
# Passwords are hashed exactly as sent; the model-level whitespace strip must not touch them.
_Password = Annotated[str, StringConstraints(strip_whitespace=False, min_length=6, max_length=128)]
_LoginPassword = Annotated[str, StringConstraints(strip_whitespace=False, min_length=1, max_length=128)]
_AnyPassword = Annotated[str, StringConstraints(strip_whitespace=False, max_length=128)]
_Name = Annotated[str, Field(min_length=1, max_length=255)]
# Faculty subjects: a list, a bare string, or nothing. The service normalizes.
_Subjects = Optional[Union[list[str], str]]


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _RequestModel(_ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class _ResponseModel(_ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    student = "student"
    faculty = "faculty"
    admin = "admin"


# ---------------------------------------------------------------------------
# Auth request models
# ---------------------------------------------------------------------------


class LoginRequest(_RequestModel):
    """Request body for POST /auth/login and POST /admin/login."""

    email: _Email
    password: _LoginPassword


class RegisterRequest(_RequestModel):
    """Request body for POST /auth/register.

    Role-specific fields are optional here; the service enforces the student
    requirements and rejects role=admin.
    """

    name: _Name
    email: _Email
    password: _Password
    role: RoleEnum
    roll_no: Optional[str] = None
    department: Optional[str] = None
    course: Optional[str] = None
    employee_id: Optional[str] = None
    subjects: _Subjects = None


# ---------------------------------------------------------------------------
# Profile request models
# ---------------------------------------------------------------------------


class StudentCreate(_RequestModel):
    """Request body for POST /users/students."""

    name: _Name
    email: _Email
    password: _Password
    roll_no: str = Field(min_length=1, max_length=50)
    department: str = Field(min_length=1, max_length=255)
    course: str = Field(min_length=1, max_length=255)


class StudentPatch(_RequestModel):
    """Request body for PATCH /users/students/{id}.

    Omitted fields are unchanged. A field sent as "" is stored as "", so an
    admin can clear a value; only null is treated like an omitted field.
    """

    name: Optional[_Name] = None
    roll_no: Optional[str] = Field(default=None, max_length=50)
    department: Optional[str] = Field(default=None, max_length=255)
    course: Optional[str] = Field(default=None, max_length=255)


class FacultyCreate(_RequestModel):
    """Request body for POST /users/faculty."""

    name: _Name
    email: _Email
    password: _Password
    employee_id: Optional[str] = Field(default=None, max_length=50)
    department: Optional[str] = Field(default=None, max_length=255)
    subjects: _Subjects = None


class FacultyPatch(_RequestModel):
    """Request body for PATCH /users/faculty/{id}. Omitted fields are unchanged."""

    name: Optional[_Name] = None
    employee_id: Optional[str] = Field(default=None, max_length=50)
    department: Optional[str] = Field(default=None, max_length=255)
    subjects: _Subjects = None


class AdminCreate(_RequestModel):
    """Request body for POST /admin/admins.

    password may be omitted; the service then applies the configured
    fallback password.
    """

    name: _Name
    email: _Email
    password: Optional[_Password] = None
    employee_id: Optional[str] = Field(default=None, max_length=50)
    position: Optional[str] = Field(default=None, max_length=255)
    department: Optional[str] = Field(default=None, max_length=255)


class AdminPatch(_RequestModel):
    """Request body for PATCH /admin/admins/{id}.

    A password shorter than the configured minimum is ignored rather than
    rejected, so this model does not enforce a minimum length.
    """

    name: Optional[_Name] = None
    email: Optional[_Email] = None
    password: Optional[_AnyPassword] = None
    employee_id: Optional[str] = Field(default=None, max_length=50)
    position: Optional[str] = Field(default=None, max_length=255)
    department: Optional[str] = Field(default=None, max_length=255)


class MyProfilePatch(_RequestModel):
    """Request body for PATCH /users/me. Student and faculty fields together;
    only those belonging to the caller's role are applied."""

    name: Optional[_Name] = None
    roll_no: Optional[str] = Field(default=None, max_length=50)
    course: Optional[str] = Field(default=None, max_length=255)
    employee_id: Optional[str] = Field(default=None, max_length=50)
    department: Optional[str] = Field(default=None, max_length=255)
    subjects: _Subjects = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(_ResponseModel):
    """A sanitized user record. The password hash is never part of it."""

    id: int
    name: str
    email: str
    role: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at or "",
        )


class UserSummary(_ResponseModel):
    """Linked-user block embedded in profile list and detail responses."""

    id: int
    name: str
    email: str
    created_at: str


class FacultyDirectoryUser(_ResponseModel):
    id: int
    name: str


class StudentResponse(_ResponseModel):
    role: Literal["student"] = "student"
    id: int
    user_id: int
    roll_no: str
    department: str
    course: str
    user: Optional[UserSummary] = None


class FacultyResponse(_ResponseModel):
    role: Literal["faculty"] = "faculty"
    id: int
    user_id: int
    employee_id: str
    department: str
    subjects: list[str]
    user: Optional[UserSummary] = None


class AdminResponse(_ResponseModel):
    role: Literal["admin"] = "admin"
    id: int
    user_id: int
    employee_id: str
    position: str
    department: str
    user: Optional[UserSummary] = None


ProfileResponse = Annotated[
    Union[StudentResponse, FacultyResponse, AdminResponse],
    Field(discriminator="role"),
]


def profile_to_response(profile: Optional[Profile], user: Optional[User] = None):
    """Map a domain profile (and optionally its user) to its response model.

    Returns None for a missing profile so handlers can pass the result
    straight into an Optional[ProfileResponse] field.
    """
    if profile is None:
        return None
    summary = None
    if user is not None:
        summary = UserSummary(id=user.id, name=user.name, email=user.email, created_at=user.created_at or "")
    if isinstance(profile, StudentProfile):
        return StudentResponse(
            id=profile.id,
            user_id=profile.user_id,
            roll_no=profile.roll_no,
            department=profile.department,
            course=profile.course,
            user=summary,
        )
    if isinstance(profile, FacultyProfile):
        return FacultyResponse(
            id=profile.id,
            user_id=profile.user_id,
            employee_id=profile.employee_id,
            department=profile.department,
            subjects=list(profile.subjects),
            user=summary,
        )
    if isinstance(profile, AdminProfile):
        return AdminResponse(
            id=profile.id,
            user_id=profile.user_id,
            employee_id=profile.employee_id,
            position=profile.position,
            department=profile.department,
            user=summary,
        )
    raise TypeError(f"Unknown profile type: {type(profile).__name__}")


class FacultyDirectoryRow(_ResponseModel):
    """One row of GET /users/faculty-list -- names only, no contact details."""

    role: Literal["faculty"] = "faculty"
    id: int
    user_id: int
    department: str
    subjects: list[str]
    user: FacultyDirectoryUser


class CheckEmailResponse(_ResponseModel):
    exists: bool


class AuthResponse(_ResponseModel):
    """Response for register, login and admin login."""

    token: str
    user: UserResponse
    profile: Optional[ProfileResponse] = None
    message: Optional[str] = None


class MeResponse(_ResponseModel):
    user: UserResponse
    profile: Optional[ProfileResponse] = None


class AccountResponse(_ResponseModel):
    """Response for admin create/update."""

    user: UserResponse
    profile: Optional[ProfileResponse] = None
    message: Optional[str] = None


class MessageResponse(_ResponseModel):
    message: str


class ErrorResponse(_ResponseModel):
    """Envelope returned on every 4xx/5xx response."""

    message: str
    code: str
    errors: Optional[list[dict]] = None


class HealthResponse(_ResponseModel):
    """Response for GET /api/health."""

    ok: bool = True
    version: str

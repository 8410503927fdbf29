"""
api/routes/users.py -- Student and faculty profile management.

Routes (in registration order to avoid FastAPI path capture conflicts):
  PATCH  /users/me                -- caller updates own profile (student/faculty)
  GET    /users/students-list     -- student directory (any authenticated user)
  GET    /users/faculty-list      -- faculty directory, names only (any authenticated user)
  GET    /users/students          -- list students (admin, faculty)
  POST   /users/students          -- add student (admin)
  GET    /users/students/{id}     -- student detail (admin, faculty)
  PATCH  /users/students/{id}     -- partial update (admin)
  DELETE /users/students/{id}     -- delete student and user (admin)
  GET    /users/faculty           -- list faculty (admin)
  POST   /users/faculty           -- add faculty (admin)
  GET    /users/faculty/{id}      -- faculty detail (admin)
  PATCH  /users/faculty/{id}      -- partial update (admin)
  DELETE /users/faculty/{id}      -- delete faculty and user (admin)

All routes require authentication (router-level dependency). Role
restrictions are added per route with require_role().
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    FacultyCreate,
    FacultyDirectoryRow,
    FacultyDirectoryUser,
    FacultyPatch,
    FacultyResponse,
    MessageResponse,
    MyProfilePatch,
    ProfileResponse,
    StudentCreate,
    StudentPatch,
    StudentResponse,
    profile_to_response,
)
from auth.dependencies import get_current_user, require_admin, require_role
from auth.models import ADMIN, FACULTY, STUDENT, User
from auth.store import AccountStore
from profiles import service as profiles

router = APIRouter(dependencies=[Depends(get_current_user)])

_staff = require_role(ADMIN, FACULTY)


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------


@router.patch("/users/me", response_model=ProfileResponse)
def update_my_profile(request: Request, body: MyProfilePatch, current_user: User = Depends(get_current_user)):
    """Update the caller's own profile. Admins use the admin portal instead (403)."""
    store: AccountStore = request.app.state.store
    account = profiles.update_my_profile(store, current_user, body.model_dump(exclude_unset=True))
    return profile_to_response(account.profile, account.user)


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


@router.get("/users/students-list", response_model=list[StudentResponse])
def students_directory(request: Request) -> list[StudentResponse]:
    store: AccountStore = request.app.state.store
    return [profile_to_response(a.profile, a.user) for a in profiles.list_accounts(store, STUDENT)]


@router.get("/users/faculty-list", response_model=list[FacultyDirectoryRow])
def faculty_directory(request: Request) -> list[FacultyDirectoryRow]:
    store: AccountStore = request.app.state.store
    return [
        FacultyDirectoryRow(
            id=a.profile.id,
            user_id=a.profile.user_id,
            department=a.profile.department,
            subjects=list(a.profile.subjects),
            user=FacultyDirectoryUser(id=a.user.id, name=a.user.name),
        )
        for a in profiles.list_accounts(store, FACULTY)
    ]


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------


@router.get("/users/students", response_model=list[StudentResponse], dependencies=[Depends(_staff)])
def list_students(request: Request) -> list[StudentResponse]:
    store: AccountStore = request.app.state.store
    return [profile_to_response(a.profile, a.user) for a in profiles.list_accounts(store, STUDENT)]


@router.post(
    "/users/students", response_model=StudentResponse, status_code=201, dependencies=[Depends(require_admin)]
)
def add_student(request: Request, body: StudentCreate) -> StudentResponse:
    store: AccountStore = request.app.state.store
    account = profiles.add_account(
        store,
        STUDENT,
        name=body.name,
        email=body.email,
        password=body.password,
        fields=body.model_dump(include={"roll_no", "department", "course"}),
    )
    return profile_to_response(account.profile, account.user)


@router.get("/users/students/{student_id}", response_model=StudentResponse, dependencies=[Depends(_staff)])
def get_student(request: Request, student_id: int) -> StudentResponse:
    store: AccountStore = request.app.state.store
    account = profiles.get_account(store, STUDENT, student_id)
    return profile_to_response(account.profile, account.user)


@router.patch("/users/students/{student_id}", response_model=StudentResponse, dependencies=[Depends(require_admin)])
def update_student(request: Request, student_id: int, body: StudentPatch) -> StudentResponse:
    store: AccountStore = request.app.state.store
    account = profiles.update_account(store, STUDENT, student_id, body.model_dump(exclude_unset=True))
    return profile_to_response(account.profile, account.user)


@router.delete("/users/students/{student_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
def delete_student(request: Request, student_id: int) -> MessageResponse:
    store: AccountStore = request.app.state.store
    profiles.delete_account(store, STUDENT, student_id)
    return MessageResponse(message="Student deleted.")


# ---------------------------------------------------------------------------
# Faculty
# ---------------------------------------------------------------------------


@router.get("/users/faculty", response_model=list[FacultyResponse], dependencies=[Depends(require_admin)])
def list_faculty(request: Request) -> list[FacultyResponse]:
    store: AccountStore = request.app.state.store
    return [profile_to_response(a.profile, a.user) for a in profiles.list_accounts(store, FACULTY)]


@router.post("/users/faculty", response_model=FacultyResponse, status_code=201, dependencies=[Depends(require_admin)])
def add_faculty(request: Request, body: FacultyCreate) -> FacultyResponse:
    store: AccountStore = request.app.state.store
    account = profiles.add_account(
        store,
        FACULTY,
        name=body.name,
        email=body.email,
        password=body.password,
        fields=body.model_dump(include={"employee_id", "department", "subjects"}),
    )
    return profile_to_response(account.profile, account.user)


@router.get("/users/faculty/{faculty_id}", response_model=FacultyResponse, dependencies=[Depends(require_admin)])
def get_faculty(request: Request, faculty_id: int) -> FacultyResponse:
    store: AccountStore = request.app.state.store
    account = profiles.get_account(store, FACULTY, faculty_id)
    return profile_to_response(account.profile, account.user)


@router.patch("/users/faculty/{faculty_id}", response_model=FacultyResponse, dependencies=[Depends(require_admin)])
def update_faculty(request: Request, faculty_id: int, body: FacultyPatch) -> FacultyResponse:
    store: AccountStore = request.app.state.store
    account = profiles.update_account(store, FACULTY, faculty_id, body.model_dump(exclude_unset=True))
    return profile_to_response(account.profile, account.user)


@router.delete("/users/faculty/{faculty_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
def delete_faculty(request: Request, faculty_id: int) -> MessageResponse:
    store: AccountStore = request.app.state.store
    profiles.delete_account(store, FACULTY, faculty_id)
    return MessageResponse(message="Faculty deleted.")

"""
api/routes/admin.py -- Admin portal endpoints.

Routes:
  POST   /admin/login         -- admin-only login (public, rate limited)
  GET    /admin/me            -- current admin and profile
  GET    /admin/admins        -- list admins
  POST   /admin/admins        -- add an admin
  PATCH  /admin/admins/{id}   -- partial update of an admin
  DELETE /admin/admins/{id}   -- delete an admin (not self, not the last one)

Everything except /admin/login requires a bearer token for an admin account.
There is no admin self-registration: admins are created here by other admins
or by the startup bootstrap.

Security:
  /admin/login returns one undifferentiated 401 for unknown email and wrong
  password; a valid non-admin login is answered 403.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import (
    AccountResponse,
    AdminCreate,
    AdminPatch,
    AdminResponse,
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    UserResponse,
    profile_to_response,
)
from auth import service
from auth.dependencies import require_admin
from auth.models import ADMIN, User
from auth.store import AccountStore
from profiles import service as profiles

router = APIRouter()


@limiter.limit(LOGIN_RATE_LIMIT)
@router.post("/admin/login", response_model=AuthResponse, response_model_exclude_none=True)
def admin_login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate an administrator. Non-admin accounts are refused with 403."""
    store: AccountStore = request.app.state.store
    result = service.admin_login(store, body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(
        token=result.token,
        user=UserResponse.from_user(result.user),
        profile=profile_to_response(result.profile),
    )


@router.get("/admin/me", response_model=MeResponse)
def admin_me(request: Request, current_user: User = Depends(require_admin)) -> MeResponse:
    store: AccountStore = request.app.state.store
    account = service.me(store, current_user)
    return MeResponse(user=UserResponse.from_user(account.user), profile=profile_to_response(account.profile))


@router.get("/admin/admins", response_model=list[AdminResponse])
def list_admins(request: Request, current_user: User = Depends(require_admin)) -> list[AdminResponse]:
    store: AccountStore = request.app.state.store
    return [profile_to_response(a.profile, a.user) for a in profiles.list_accounts(store, ADMIN)]


@router.post("/admin/admins", response_model=AccountResponse, status_code=201)
def add_admin(request: Request, body: AdminCreate, current_user: User = Depends(require_admin)) -> AccountResponse:
    """Create another admin account.

    If no password is given, the configured fallback password is used and a
    warning is logged; the new admin should change it on first login.
    """
    store: AccountStore = request.app.state.store
    account = profiles.add_account(
        store,
        ADMIN,
        name=body.name,
        email=body.email,
        password=body.password,
        fields=body.model_dump(include={"employee_id", "position", "department"}),
    )
    return AccountResponse(
        user=UserResponse.from_user(account.user),
        profile=profile_to_response(account.profile),
        message="Admin added.",
    )


@router.patch("/admin/admins/{admin_id}", response_model=AccountResponse)
def update_admin(
    request: Request,
    admin_id: int,
    body: AdminPatch,
    current_user: User = Depends(require_admin),
) -> AccountResponse:
    """Partially update an admin. Only the fields present in the body change."""
    store: AccountStore = request.app.state.store
    account = profiles.update_account(store, ADMIN, admin_id, body.model_dump(exclude_unset=True))
    return AccountResponse(
        user=UserResponse.from_user(account.user),
        profile=profile_to_response(account.profile),
        message="Admin updated.",
    )


@router.delete("/admin/admins/{admin_id}", response_model=MessageResponse)
def delete_admin(request: Request, admin_id: int, current_user: User = Depends(require_admin)) -> MessageResponse:
    """Delete an admin and its user.

    403 when deleting your own account or the last remaining admin.
    """
    store: AccountStore = request.app.state.store
    profiles.delete_account(store, ADMIN, admin_id, caller=current_user)
    return MessageResponse(message="Admin deleted.")

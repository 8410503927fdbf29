"""
api/routes/auth.py -- Self-service authentication endpoints.

Routes:
  GET  /auth/check-email?email=   -- does an account exist for this email (public)
  POST /auth/register             -- create a student or faculty account (public)
  POST /auth/login                -- password login (public, rate limited)
  GET  /auth/me                   -- current user and profile (requires auth)

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Cache-Control: no-store on every response that carries a token.
  Unlike the admin portal, login reports EMAIL_NOT_FOUND for unknown emails.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import (
    AuthResponse,
    CheckEmailResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserResponse,
    profile_to_response,
)
from auth import service
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import AccountStore

# Auth policy:
# - GET  /auth/check-email: public -- the sign-up form calls it before submitting
# - POST /auth/register:    public
# - POST /auth/login:       public
# - GET  /auth/me:          requires auth (get_current_user)
router = APIRouter()


def _auth_response(result: service.AuthResult, message: Optional[str] = None) -> AuthResponse:
    return AuthResponse(
        token=result.token,
        user=UserResponse.from_user(result.user),
        profile=profile_to_response(result.profile),
        message=message,
    )


@router.get("/auth/check-email", response_model=CheckEmailResponse)
def check_email(request: Request, email: Optional[str] = None) -> CheckEmailResponse:
    """Return whether an account already uses this email."""
    store: AccountStore = request.app.state.store
    return CheckEmailResponse(exists=service.check_email(store, email))


@router.post("/auth/register", response_model=AuthResponse, response_model_exclude_none=True, status_code=201)
def register(request: Request, response: Response, body: RegisterRequest) -> AuthResponse:
    """Register a student or faculty account and return a token for it.

    Admin accounts cannot be created here; see POST /admin/admins.
    """
    store: AccountStore = request.app.state.store
    result = service.register(
        store,
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role.value,
        fields=body.model_dump(include={"roll_no", "department", "course", "employee_id", "subjects"}),
    )
    response.headers["Cache-Control"] = "no-store"
    return _auth_response(result, message="Registration successful.")


@limiter.limit(LOGIN_RATE_LIMIT)  # brute-force mitigation -- must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=AuthResponse, response_model_exclude_none=True)
def login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate with email and password.

    An unknown email answers 401 with code EMAIL_NOT_FOUND; a wrong password
    answers 401 without it.
    """
    store: AccountStore = request.app.state.store
    result = service.login(store, body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return _auth_response(result)


@router.get("/auth/me", response_model=MeResponse)
def me(request: Request, current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return the authenticated user and their role profile."""
    store: AccountStore = request.app.state.store
    account = service.me(store, current_user)
    return MeResponse(user=UserResponse.from_user(account.user), profile=profile_to_response(account.profile))

"""
auth/dependencies.py -- FastAPI Depends() helpers: the authorization gate.

Only one transport is accepted: an `Authorization: Bearer <token>` header.

get_current_user() decodes the token, re-resolves the user from the store and
raises Unauthenticated (401) on any failure. The resolved identity is stored
on request.state.user with the password hash stripped.

require_role(*roles) builds a dependency that runs get_current_user() first
and then raises Forbidden (403) if the caller's role is not in `roles`.

Layer rule: no imports from api/ or profiles/.
"""

from __future__ import annotations

from dataclasses import replace

from fastapi import Depends, Request

from auth.models import User
from auth.store import AccountStore
from auth.tokens import decode_access_token
from core.errors import Forbidden, Unauthenticated


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(request: Request) -> User:
    """Require a valid bearer token. Raises Unauthenticated if absent or invalid.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise Unauthenticated("No token, authorization denied.")

    payload = decode_access_token(token)
    if payload is None:
        raise Unauthenticated("Token is not valid.")

    store: AccountStore = request.app.state.store
    user = store.get_user(payload["user_id"])
    if user is None:
        raise Unauthenticated("User not found.")

    identity = replace(user, hashed_password=None)
    request.state.user = identity
    return identity


def require_role(*roles: str):
    """Return a dependency that admits only callers whose role is in `roles`.

    Use as a FastAPI dependency:
        @router.post("/admin-only")
        def route(user: User = Depends(require_role("admin"))): ...
    """

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden("Access denied for this role.")
        return current_user

    return checker


require_admin = require_role("admin")

"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Tokens are read from the "Authorization: Bearer <token>" header and resolved
through app.state.auth_flow.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

Every failure -- missing header, malformed token, bad signature, expired
token, unknown user -- produces the same 401 body so a client cannot tell
them apart. The distinction is kept in the logs only.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.errors import InvalidSignatureError, MalformedTokenError
from auth.flow import AuthenticationFlow
from auth.models import User

logger = logging.getLogger("tokengate.auth")


def bearer_token(request: Request) -> str | None:
    """Return the token from the Authorization header, or None if absent."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def try_get_current_user(request: Request) -> User | None:
    """Attempt to authenticate the request via its bearer token.

    Returns the authenticated User on success, None on any failure.
    Never raises -- callers that need a hard 401 should use get_current_user().
    """
    token = bearer_token(request)
    if not token:
        return None

    flow: AuthenticationFlow = request.app.state.auth_flow
    try:
        return flow.authenticate_token(token)
    except (MalformedTokenError, InvalidSignatureError) as exc:
        logger.warning("Rejected bearer token on %s: %s", request.url.path, type(exc).__name__)
        return None


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

"""
api/routes/v1/auth.py -- Login and token-protected endpoints.

Routes:
  POST /api/v1/auth/login   -- password login; returns a bearer token
  GET  /api/v1/auth/me      -- subject and expiry of the presented token (requires auth)
  GET  /api/v1/welcome      -- greeting for an authenticated caller (requires auth)

Security:
  POST /login is rate-limited per client IP (Settings.login_rate_limit).
  Wrong username and wrong password return the same "bad_credentials" body.
  Cache-Control: no-store on login responses so tokens are not cached.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import AuthenticationResponse, ErrorDetail, ErrorResponse, LoginRequest, MeResponse, WelcomeResponse
from auth.dependencies import bearer_token, get_current_user
from auth.flow import AuthenticationFlow
from auth.models import User

# Auth policy:
# - POST /api/v1/auth/login: public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:    requires auth (get_current_user)
# - GET  /api/v1/welcome:    requires auth (get_current_user)
router = APIRouter()


@router.post("/auth/login", response_model=AuthenticationResponse)
@limiter.limit(login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed bearer token."""
    flow: AuthenticationFlow = request.app.state.auth_flow
    result = flow.login(body.username, body.password)
    if not result.ok:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                error=ErrorDetail(code="bad_credentials", message="Incorrect username or password.")
            ).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=AuthenticationResponse(
            jwt=result.token,
            expires_in=result.expires_in,
            username=result.subject,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
def me(request: Request, current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return the subject and expiry of the token used for this request."""
    flow: AuthenticationFlow = request.app.state.auth_flow
    expires_at = flow.token_verifier.extract_expiry(bearer_token(request))
    return MeResponse(username=current_user.username, expires_at=expires_at)


@router.get("/welcome", response_model=WelcomeResponse)
async def welcome(current_user: User = Depends(get_current_user)) -> WelcomeResponse:
    return WelcomeResponse(message="Welcome to the home page", username=current_user.username)

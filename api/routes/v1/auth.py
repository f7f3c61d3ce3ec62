"""
api/routes/v1/auth.py -- Registration, login and token renewal endpoints.

Routes:
  POST /api/v1/auth/register   -- create a user; 201, empty body
  POST /api/v1/auth/login      -- password login; returns access + refresh token
  POST /api/v1/auth/token      -- exchange a refresh token for a new access token
  GET  /api/v1/auth/me         -- current user info (requires bearer access token)

Security:
  POST /register and POST /login are rate-limited per client IP.
  Cache-Control: no-store on every response that carries a token.

Errors raised by AuthService propagate as ServiceError and are rendered by the
handler in api/main.py; nothing here maps errors to status codes by hand.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, MeResponse, RegisterRequest, RenewAccessTokenRequest, TokenPairResponse
from auth.dependencies import get_current_payload
from auth.errors import UserNotFoundError
from auth.models import ClientInfo, Credentials, LoginParams, RenewAccessTokenParams, TokenPair
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenPayload
from core.config import get_settings

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public
# - POST /api/v1/auth/token:    public -- the refresh token in the body is the credential
# - GET  /api/v1/auth/me:       requires bearer access token (get_current_payload)
router = APIRouter()

_settings = get_settings()


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("User-Agent", ""),
        client_ip=request.client.host if request.client else "",
    )


def _token_response(pair: TokenPair) -> JSONResponse:
    resp = JSONResponse(
        status_code=200,
        content=TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_settings.login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", status_code=201, response_class=Response)
def register(request: Request, body: RegisterRequest) -> Response:
    """Create a user with a unique phone number. Success has no body.

    Returns 400 "duplicate phone number" if the number is already registered.
    """
    service: AuthService = request.app.state.auth_service
    service.register(Credentials(phone_number=body.phone_number, password=body.password))
    return Response(status_code=201)


@limiter.limit(_settings.login_rate_limit)
@router.post("/auth/login", response_model=TokenPairResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Verify phone number and password; return a fresh access/refresh token pair.

    The refresh token is bound to a server-side session that records the
    caller's User-Agent and IP address.
    """
    service: AuthService = request.app.state.auth_service
    pair = service.login(
        LoginParams(
            credentials=Credentials(phone_number=body.phone_number, password=body.password),
            client=_client_info(request),
        )
    )
    return _token_response(pair)


@router.post("/auth/token", response_model=TokenPairResponse)
def renew_access_token(request: Request, body: RenewAccessTokenRequest) -> JSONResponse:
    """Issue a new access token for a valid refresh token.

    The refresh token is returned unchanged; it is not rotated.
    """
    service: AuthService = request.app.state.auth_service
    pair = service.renew_access_token(
        RenewAccessTokenParams(refresh_token=body.refresh_token, client=_client_info(request))
    )
    return _token_response(pair)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(request: Request, payload: TokenPayload = Depends(get_current_payload)) -> MeResponse:
    """Return identity information for the holder of the access token."""
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_user_by_id(payload.user_id)
    if user is None:
        raise UserNotFoundError()
    return MeResponse(user_id=user.id, phone_number=user.phone_number)

"""
auth/dependencies.py -- FastAPI Depends() helper for bearer access tokens.

Access tokens are trusted purely by signature, type and expiry: this dependency
never reads the sessions table. A revoked session therefore stops renewals
immediately, but access tokens already issued from it stay valid until they
expire (access_token_duration_seconds).

Header checks, in order (all 401):
  - no Authorization header            "authorization header is not provided"
  - fewer than two whitespace fields   "invalid authorization header format"
  - scheme other than "bearer"         "unsupported authorization type"
  - token rejected by the codec        "token is invalid" / "token has expired"
    (a refresh token is "token is invalid")

Layer rule: no imports from inventory/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.errors import TokenError
from auth.tokens import ACCESS_TOKEN, TokenPayload, verify_token

AUTHORIZATION_TYPE_BEARER = "bearer"


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(status_code=401, detail={"code": code, "message": message})


def get_current_payload(request: Request) -> TokenPayload:
    """Require a valid bearer access token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(payload: TokenPayload = Depends(get_current_payload)): ...
    """
    header = request.headers.get("Authorization", "")
    if not header:
        raise _unauthorized("missing_authorization", "authorization header is not provided")

    fields = header.split()
    if len(fields) < 2:
        raise _unauthorized("invalid_authorization", "invalid authorization header format")

    if fields[0].lower() != AUTHORIZATION_TYPE_BEARER:
        raise _unauthorized("unsupported_authorization", "unsupported authorization type")

    try:
        return verify_token(fields[1], request.app.state.secret_key, token_type=ACCESS_TOKEN)
    except TokenError as exc:
        raise _unauthorized(exc.code, exc.message) from exc

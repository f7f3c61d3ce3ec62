"""
auth/tokens.py -- Signed token issue and verification (python-jose, HS256).

Token claims:
  jti  -- fresh uuid4 per token. For refresh tokens this is the primary key
          of the matching row in the sessions table.
  sub  -- user id, as a string (JWT requires sub to be a string).
  typ  -- "access" or "refresh".
  iat  -- issued-at, integer UNIX seconds.
  exp  -- expires-at, integer UNIX seconds.

The same function issues access and refresh tokens; the duration and the typ
claim differ. The bearer dependency accepts only access tokens and renewal
accepts only refresh tokens, so a refresh token never authorizes a request.

Verification order:
  1. Signature and algorithm. jose is given algorithms=["HS256"], so a token
     whose header declares any other algorithm ("none", RS256, HS512, ...) is
     rejected before any claim is read.
  2. Claim structure (all five claims present and well-typed) and, when the
     caller names one, the token type.
  3. Expiry, checked here against `now` rather than by jose so callers and
     tests can supply the clock.
Any failure in 1-2 is InvalidTokenError. Only a well-formed, correctly signed
token past its exp is ExpiredTokenError.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import ExpiredTokenError, InvalidTokenError

ALGORITHM = "HS256"

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
TOKEN_TYPES = (ACCESS_TOKEN, REFRESH_TOKEN)

# jose turns any require_<claim> into verify_<claim>, so exp must not be
# required here; a missing exp is caught by _payload_from_claims().
_DECODE_OPTIONS = {
    "verify_exp": False,
    "require_iat": True,
    "require_jti": True,
    "require_sub": True,
}


class TokenIssueError(Exception):
    """The payload could not be built or signed."""


@dataclass(frozen=True)
class TokenPayload:
    """Claims embedded in, and recovered from, a signed token."""

    token_id: str
    user_id: int
    issued_at: datetime
    expired_at: datetime
    token_type: str = ACCESS_TOKEN

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _utcnow()) > self.expired_at

    def to_claims(self) -> dict:
        return {
            "jti": self.token_id,
            "sub": str(self.user_id),
            "typ": self.token_type,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expired_at.timestamp()),
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_payload(
    user_id: int,
    duration: timedelta,
    now: datetime | None = None,
    token_type: str = ACCESS_TOKEN,
) -> TokenPayload:
    """Build a payload with a fresh token id.

    Timestamps are truncated to whole seconds so the payload equals what
    verify_token() later recovers from the integer claims.
    """
    issued_at = (now or _utcnow()).astimezone(timezone.utc).replace(microsecond=0)
    return TokenPayload(
        token_id=str(uuid.uuid4()),
        user_id=user_id,
        issued_at=issued_at,
        expired_at=issued_at + duration,
        token_type=token_type,
    )


def create_token(
    user_id: int,
    secret: str,
    duration: timedelta,
    now: datetime | None = None,
    token_type: str = ACCESS_TOKEN,
) -> tuple[str, TokenPayload]:
    """Issue a signed token of `token_type` for user_id that expires after duration.

    Returns the encoded token and the payload it carries. Callers that persist
    a session use payload.token_id and payload.expired_at.
    """
    if token_type not in TOKEN_TYPES:
        raise TokenIssueError(f"unknown token type: {token_type!r}")
    payload = new_payload(user_id, duration, now, token_type)
    try:
        token = jwt.encode(payload.to_claims(), secret, algorithm=ALGORITHM)
    except (JWTError, TypeError, ValueError) as exc:
        raise TokenIssueError(f"failed to sign token: {exc}") from exc
    return token, payload


def verify_token(
    token: str,
    secret: str,
    now: datetime | None = None,
    token_type: str | None = None,
) -> TokenPayload:
    """Verify signature, algorithm, type and expiry; return the payload.

    With token_type=None any known type is accepted.
    Raises InvalidTokenError or ExpiredTokenError.
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options=_DECODE_OPTIONS,
        )
    except (JWTError, AttributeError) as exc:
        raise InvalidTokenError() from exc

    payload = _payload_from_claims(claims)
    if token_type is not None and payload.token_type != token_type:
        raise InvalidTokenError()
    if payload.is_expired(now):
        raise ExpiredTokenError()
    return payload


def _payload_from_claims(claims: dict) -> TokenPayload:
    try:
        token_id = claims["jti"]
        user_id = int(claims["sub"])
        token_type = claims["typ"]
        issued_at = datetime.fromtimestamp(claims["iat"], tz=timezone.utc)
        expired_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
        raise InvalidTokenError() from exc
    if not isinstance(token_id, str) or not token_id:
        raise InvalidTokenError()
    if token_type not in TOKEN_TYPES:
        raise InvalidTokenError()
    return TokenPayload(
        token_id=token_id,
        user_id=user_id,
        issued_at=issued_at,
        expired_at=expired_at,
        token_type=token_type,
    )

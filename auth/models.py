"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the auth
service do the work; these own the shape.

Service parameter types are composed explicitly: LoginParams holds a
Credentials and a ClientInfo as named fields rather than flattening them.
Credentials is also the RegisterParams of the register operation.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered identity. Immutable after registration.

    id is None before the record is written to the database.
    """

    phone_number: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store on insert


@dataclass
class Session:
    """Server-side state of one issued refresh token.

    id is the refresh token's jti, so a verified refresh token leads straight
    to its row. refresh_token is the exact signed string that was handed out.
    user_agent and client_ip are informational; renewal does not compare them.
    """

    id: str
    user_id: int
    refresh_token: str
    expired_at: datetime  # timezone-aware UTC
    user_agent: str = ""
    client_ip: str = ""
    is_blocked: bool = False
    created_at: str | None = None


# ---------------------------------------------------------------------------
# Service parameters and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Credentials:
    """Phone number + plaintext password, already format-checked by the caller."""

    phone_number: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(phone_number={self.phone_number!r}, password='***')"


@dataclass(frozen=True)
class ClientInfo:
    """Request metadata recorded on the session. Never validated."""

    user_agent: str = ""
    client_ip: str = ""


@dataclass(frozen=True)
class LoginParams:
    credentials: Credentials
    client: ClientInfo


@dataclass(frozen=True)
class RenewAccessTokenParams:
    refresh_token: str
    client: ClientInfo


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

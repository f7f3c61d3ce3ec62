"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as inventory/store.py).
UserStore and SessionStore are the repositories; _row_to_user /
_row_to_session are the mappers. The service layer never touches SQL.

Both stores share one Engine (core.db.create_db_engine). Each public method
opens its own connection and commits before returning, so every call is
independent and safe to run concurrently with any other.

Errors:
  Every query runs inside core.db.translate_errors(). A duplicate phone
  number surfaces as ConstraintViolation(kind=UNIQUE, field="phone_number");
  a session for a missing user as ConstraintViolation(kind=FOREIGN_KEY,
  field="user_id"); anything else as StoreError. "Not found" is a None
  return, not an exception.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Engine

from auth.models import Session, User
from core.db import translate_errors
from core.schema import sessions as _sessions
from core.schema import users as _users

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Naive timestamp -- written by another tool; assume UTC
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ---------------------------------------------------------------------------
# Credential store
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore(engine)
        user_id = store.create_user("01012345678", hash_password("secret"))
        user = store.get_user("01012345678")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_user(self, phone_number: str, hashed_password: str) -> int:
        """Insert a new user and return its assigned database ID.

        Raises ConstraintViolation (UNIQUE, "phone_number") if the phone number
        is already registered. The check is the table's UNIQUE constraint, so
        two concurrent registrations cannot both succeed.
        """
        with translate_errors(), self.engine.connect() as conn:
            result = conn.execute(
                insert(_users).values(
                    phone_number=phone_number,
                    hashed_password=hashed_password,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_user(self, phone_number: str) -> User | None:
        """Look up a user by exact phone number. Returns None if not found."""
        with translate_errors(), self.engine.connect() as conn:
            row = conn.execute(select(_users).where(_users.c.phone_number == phone_number)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with translate_errors(), self.engine.connect() as conn:
            row = conn.execute(select(_users).where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for Session records (one per issued refresh token).

    Rows are never updated by this service. Expiry is enforced by comparing
    expired_at at renewal time; purge_expired() only reclaims space.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_session(self, session: Session) -> None:
        """Insert a session row keyed by the refresh token's id."""
        with translate_errors(foreign_key_field="user_id"), self.engine.connect() as conn:
            conn.execute(
                insert(_sessions).values(
                    id=session.id,
                    user_id=session.user_id,
                    refresh_token=session.refresh_token,
                    user_agent=session.user_agent,
                    client_ip=session.client_ip,
                    is_blocked=1 if session.is_blocked else 0,
                    expired_at=_to_iso(session.expired_at),
                    created_at=_now_iso(),
                )
            )
            conn.commit()

    def get_session(self, session_id: str) -> Session | None:
        """Look up a session by id (the refresh token's jti). Returns None if not found."""
        with translate_errors(), self.engine.connect() as conn:
            row = conn.execute(select(_sessions).where(_sessions.c.id == session_id)).fetchone()
        return _row_to_session(row) if row is not None else None

    def purge_expired(self, before: datetime) -> int:
        """Delete sessions whose expired_at is earlier than `before`. Returns rows removed.

        expired_at is always written as a UTC ISO 8601 string, so string
        comparison orders the same way as the timestamps do.
        """
        with translate_errors(), self.engine.connect() as conn:
            result = conn.execute(delete(_sessions).where(_sessions.c.expired_at < _to_iso(before)))
            conn.commit()
        return result.rowcount


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        phone_number=row.phone_number,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )


def _row_to_session(row) -> Session:
    return Session(
        id=row.id,
        user_id=row.user_id,
        refresh_token=row.refresh_token,
        user_agent=row.user_agent,
        client_ip=row.client_ip,
        is_blocked=bool(row.is_blocked),
        expired_at=_from_iso(row.expired_at),
        created_at=row.created_at,
    )

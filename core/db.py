"""
core/db.py -- Engine construction and the storage error seam.

Every store in auth/ and inventory/ runs its SQL inside translate_errors().
Callers above the store layer therefore only ever see two exception types:

  StoreError           -- the storage backend failed (connection lost, table
                          missing, lock timeout, ...). Services turn this into
                          InternalServiceError.
  ConstraintViolation  -- a UNIQUE or FOREIGN KEY constraint rejected the
                          write. Carries the kind and, when it can be
                          recovered, the offending column name.

The driver-specific part (SQLite, MySQL and PostgreSQL all word their
integrity errors differently) is confined to _classify(). Services compare
ConstraintViolation.field against plain column names and never inspect a
driver error code or message.

Layer rule: core/ is the kernel. No imports from api/, auth/ or inventory/.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.schema import metadata

logger = logging.getLogger("inventory.db")

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ConstraintKind(str, Enum):
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    OTHER = "other"


class StoreError(Exception):
    """A persistence failure that is not the caller's fault."""


class ConstraintViolation(StoreError):
    """A write rejected by a UNIQUE or FOREIGN KEY constraint."""

    def __init__(self, kind: ConstraintKind, field: str | None, detail: str = "") -> None:
        self.kind = kind
        self.field = field
        self.detail = detail
        super().__init__(f"{kind.value} constraint violated on {field or 'unknown column'}")

    def is_unique(self, field: str) -> bool:
        return self.kind is ConstraintKind.UNIQUE and self.field == field

    def is_foreign_key(self, field: str) -> bool:
        return self.kind is ConstraintKind.FOREIGN_KEY and self.field == field


# ---------------------------------------------------------------------------
# Driver message parsing
# ---------------------------------------------------------------------------

# SQLite:     UNIQUE constraint failed: users.phone_number
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?:\w+\.)?(\w+)")
# MySQL:      Duplicate entry '0101234' for key 'users.phone_number'
_MYSQL_UNIQUE = re.compile(r"Duplicate entry .* for key '(?:[\w]+\.)?(\w+)'")
# MySQL:      ... FOREIGN KEY (`user_id`) REFERENCES `users` (`id`)
_MYSQL_FK = re.compile(r"FOREIGN KEY \(`(\w+)`\)")
# PostgreSQL: DETAIL:  Key (phone_number)=(0101234) already exists.
_PG_KEY = re.compile(r"Key \((\w+)\)=")

_UNIQUE_MARKERS = ("unique constraint", "duplicate entry", "duplicate key", "unique violation")
_FK_MARKERS = ("foreign key constraint", "foreign key mismatch")


def _classify(exc: IntegrityError, foreign_key_field: str | None) -> ConstraintViolation:
    message = str(getattr(exc, "orig", None) or exc)
    lowered = message.lower()

    if any(marker in lowered for marker in _UNIQUE_MARKERS):
        field = None
        for pattern in (_SQLITE_UNIQUE, _MYSQL_UNIQUE, _PG_KEY):
            match = pattern.search(message)
            if match:
                field = match.group(1)
                break
        return ConstraintViolation(ConstraintKind.UNIQUE, field, message)

    if any(marker in lowered for marker in _FK_MARKERS):
        match = _MYSQL_FK.search(message) or _PG_KEY.search(message)
        # SQLite does not name the column; fall back to the store's hint.
        field = match.group(1) if match else foreign_key_field
        return ConstraintViolation(ConstraintKind.FOREIGN_KEY, field, message)

    return ConstraintViolation(ConstraintKind.OTHER, None, message)


@contextmanager
def translate_errors(foreign_key_field: str | None = None) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as StoreError / ConstraintViolation.

    foreign_key_field names the column reported for a FOREIGN KEY violation
    when the driver message does not include one (SQLite).
    """
    try:
        yield
    except IntegrityError as exc:
        raise _classify(exc, foreign_key_field) from exc
    except SQLAlchemyError as exc:
        raise StoreError(f"{exc.__class__.__name__}: {exc}") from exc


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign key enforcement on every new SQLite connection.

    SQLite PRAGMAs are per-connection, so they are set from the "connect"
    event rather than once at startup. Foreign keys are off by default in
    SQLite; without this the sessions.user_id and products.user_id
    constraints would be silently ignored.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Build the shared Engine and create any missing tables.

    Usage:
        engine = create_db_engine("sqlite:///:memory:")
        users = UserStore(engine)
        sessions = SessionStore(engine)
        ...
        engine.dispose()
    """
    connect_args: dict = {}
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=not is_sqlite)
    if is_sqlite:
        event.listen(engine, "connect", _set_sqlite_pragmas)
    metadata.create_all(engine)
    logger.info("Database ready (%s)", engine.url.get_backend_name())
    return engine

"""
core/errors.py -- Base class for every failure a service reports to its caller.

Services raise ServiceError subclasses; the HTTP layer (api/main.py) owns the
translation of ErrorKind into a status code. Keeping the status code out of
the service layer lets the CLI reuse the same services and errors.

Each subclass fixes a stable `code` and a client-facing `message`. Both are
returned to the client verbatim, so they must never contain storage or
internal detail. InternalServiceError is the one kind whose cause is logged
and hidden.

Layer rule: core/ is the kernel. No imports from api/, auth/ or inventory/.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INTERNAL = "internal"


class ServiceError(Exception):
    """A terminal, client-reportable service failure."""

    code: str = "internal_error"
    message: str = "internal server error"
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InternalServiceError(ServiceError):
    """Wraps an unexpected failure. Raise it `from` the real cause after logging it."""

    code = "internal_error"
    message = "internal server error"
    kind = ErrorKind.INTERNAL

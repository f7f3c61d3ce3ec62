"""
auth/errors.py -- Client-reportable failures of the auth core.

Messages are part of the API contract: clients branch on them (an expired
session means log in again, a blocked one means contact support), so they are
specific. InternalServiceError (core/errors.py) covers everything else and
says nothing about the cause.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

from core.errors import ErrorKind, ServiceError

# ---------------------------------------------------------------------------
# Register / login
# ---------------------------------------------------------------------------


class DuplicatePhoneNumberError(ServiceError):
    code = "duplicate_phone_number"
    message = "duplicate phone number"
    kind = ErrorKind.BAD_REQUEST


class UserNotFoundError(ServiceError):
    code = "not_found_user"
    message = "not found user"
    kind = ErrorKind.NOT_FOUND


class WrongPasswordError(ServiceError):
    code = "wrong_password"
    message = "wrong password"
    kind = ErrorKind.BAD_REQUEST


# ---------------------------------------------------------------------------
# Token codec
#
# Raised directly by auth.tokens.verify_token(). A refresh token that fails
# here is bad client input (400); the bearer dependency reports the same
# errors as 401 for access tokens.
# ---------------------------------------------------------------------------


class TokenError(ServiceError):
    kind = ErrorKind.BAD_REQUEST


class InvalidTokenError(TokenError):
    """Malformed, wrongly signed, or signed with an unexpected algorithm."""

    code = "invalid_token"
    message = "token is invalid"


class ExpiredTokenError(TokenError):
    """Correctly signed and well-formed, but past its exp claim."""

    code = "expired_token"
    message = "token has expired"


# ---------------------------------------------------------------------------
# Session checks (renewal)
# ---------------------------------------------------------------------------


class SessionNotFoundError(ServiceError):
    code = "not_found_session"
    message = "not found session"
    kind = ErrorKind.NOT_FOUND


class BlockedSessionError(ServiceError):
    code = "blocked_session"
    message = "blocked session"
    kind = ErrorKind.UNAUTHORIZED


class IncorrectSessionUserError(ServiceError):
    code = "incorrect_session_user"
    message = "incorrect session user"
    kind = ErrorKind.UNAUTHORIZED


class MismatchedSessionTokenError(ServiceError):
    code = "mismatched_session_token"
    message = "mismatched session token"
    kind = ErrorKind.UNAUTHORIZED


class ExpiredSessionError(ServiceError):
    code = "expired_session"
    message = "expired session"
    kind = ErrorKind.UNAUTHORIZED

"""
auth/service.py -- Register, login and access-token renewal.

AuthService composes the password hasher, the token codec and the two stores.
It holds no mutable state: the signing secret and token durations are fixed
at construction and the stores hold only an Engine. One instance serves every
request concurrently.

Login issues two independent tokens (each with its own jti and expiry) and
persists a Session for the refresh token only. The session write is not
best-effort: if it fails, login fails, because a refresh token without a
session row could never be renewed or revoked.

Renewal checks, in this order, stopping at the first failure:
  1. refresh token signature, type, expiry  -> InvalidTokenError / ExpiredTokenError
  2. session row exists for the token's jti -> SessionNotFoundError
  3. session is not blocked                 -> BlockedSessionError
  4. session.user_id == token subject       -> IncorrectSessionUserError
  5. session.refresh_token == presented one -> MismatchedSessionTokenError
  6. now < session.expired_at               -> ExpiredSessionError
Only then is a new access token issued. The refresh token is echoed back
unchanged (no rotation), so renewing twice with the same refresh token gives
two different access tokens and the same refresh token.

user_agent / client_ip are recorded at login and accepted at renewal, but
renewal does not compare them.

Error policy: every client-actionable failure is a ServiceError subclass with
a precise message. Anything else (store failure, hashing or signing failure)
is logged here with its traceback and re-raised as InternalServiceError,
whose message reveals nothing.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from auth.errors import (
    BlockedSessionError,
    DuplicatePhoneNumberError,
    ExpiredSessionError,
    IncorrectSessionUserError,
    MismatchedSessionTokenError,
    SessionNotFoundError,
    UserNotFoundError,
    WrongPasswordError,
)
from auth.models import Credentials, LoginParams, RenewAccessTokenParams, Session, TokenPair, User
from auth.passwords import PasswordHashError, hash_password, verify_password
from auth.store import SessionStore, UserStore
from auth.tokens import ACCESS_TOKEN, REFRESH_TOKEN, TokenIssueError, TokenPayload, create_token, verify_token
from core.db import ConstraintViolation, StoreError
from core.errors import InternalServiceError

logger = logging.getLogger("inventory.auth")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _internal(operation: str, exc: Exception) -> InternalServiceError:
    """Log the real cause server-side and return the generic client error."""
    logger.error("%s failed: %s", operation, exc, exc_info=exc)
    return InternalServiceError()


class AuthService:
    """Orchestrates credential checks, token issue and session bookkeeping.

    Usage:
        service = AuthService(users, sessions, secret, timedelta(minutes=15), timedelta(days=1))
        service.register(Credentials("01012345678", "pw"))
        pair = service.login(LoginParams(Credentials("01012345678", "pw"), ClientInfo("ua", "1.2.3.4")))
        pair = service.renew_access_token(RenewAccessTokenParams(pair.refresh_token, ClientInfo()))
    """

    def __init__(
        self,
        user_store: UserStore,
        session_store: SessionStore,
        secret_key: str,
        access_token_duration: timedelta,
        refresh_token_duration: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.user_store = user_store
        self.session_store = session_store
        self._secret_key = secret_key
        self.access_token_duration = access_token_duration
        self.refresh_token_duration = refresh_token_duration
        self._clock = clock

    # ------------------------------------------------------------------
    # Register
    # ------------------------------------------------------------------

    def register(self, credentials: Credentials) -> int:
        """Create a user. Returns the new user id.

        Raises DuplicatePhoneNumberError only when the store reports a UNIQUE
        violation on phone_number; any other store failure is internal.
        """
        try:
            hashed = hash_password(credentials.password)
        except PasswordHashError as exc:
            raise _internal("register: hash password", exc) from exc

        try:
            user_id = self.user_store.create_user(credentials.phone_number, hashed)
        except ConstraintViolation as exc:
            if exc.is_unique("phone_number"):
                raise DuplicatePhoneNumberError() from exc
            raise _internal("register: create user", exc) from exc
        except StoreError as exc:
            raise _internal("register: create user", exc) from exc

        logger.info("Registered user %d", user_id)
        return user_id

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, params: LoginParams) -> TokenPair:
        """Verify credentials, issue an access/refresh pair, persist the session."""
        user = self._get_user(params.credentials.phone_number)

        if not verify_password(params.credentials.password, user.hashed_password):
            raise WrongPasswordError()

        access_token, _ = self._issue(user.id, ACCESS_TOKEN, self.access_token_duration, "login: create access token")
        refresh_token, refresh_payload = self._issue(
            user.id, REFRESH_TOKEN, self.refresh_token_duration, "login: create refresh token"
        )

        session = Session(
            id=refresh_payload.token_id,
            user_id=user.id,
            refresh_token=refresh_token,
            user_agent=params.client.user_agent,
            client_ip=params.client.client_ip,
            is_blocked=False,
            expired_at=refresh_payload.expired_at,
        )
        try:
            self.session_store.create_session(session)
        except StoreError as exc:
            raise _internal("login: create session", exc) from exc

        logger.info("User %d logged in (session %s, ip=%s)", user.id, session.id, session.client_ip)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    # ------------------------------------------------------------------
    # Renew
    # ------------------------------------------------------------------

    def renew_access_token(self, params: RenewAccessTokenParams) -> TokenPair:
        """Issue a new access token for a valid refresh token; echo the refresh token.

        InvalidTokenError / ExpiredTokenError from the codec propagate
        unchanged -- they are client input errors, not internal ones. An
        access token presented here is InvalidTokenError.
        """
        payload = verify_token(params.refresh_token, self._secret_key, now=self._clock(), token_type=REFRESH_TOKEN)

        try:
            session = self.session_store.get_session(payload.token_id)
        except StoreError as exc:
            raise _internal("renew: get session", exc) from exc
        if session is None:
            raise SessionNotFoundError()

        self._check_session(session, payload, params.refresh_token)

        access_token, _ = self._issue(
            payload.user_id, ACCESS_TOKEN, self.access_token_duration, "renew: create access token"
        )
        logger.info("Renewed access token for user %d (session %s)", payload.user_id, session.id)
        return TokenPair(access_token=access_token, refresh_token=params.refresh_token)

    def _check_session(self, session: Session, payload: TokenPayload, presented_token: str) -> None:
        if session.is_blocked:
            self._reject(session, BlockedSessionError())
        if session.user_id != payload.user_id:
            self._reject(session, IncorrectSessionUserError())
        if session.refresh_token != presented_token:
            self._reject(session, MismatchedSessionTokenError())
        if self._clock() >= session.expired_at:
            self._reject(session, ExpiredSessionError())

    @staticmethod
    def _reject(session: Session, error: Exception) -> None:
        logger.warning("Renewal rejected for session %s: %s", session.id, error)
        raise error

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def purge_expired_sessions(self, retention: timedelta) -> int:
        """Delete sessions that expired more than `retention` ago. Returns rows removed.

        A purged session could only ever have failed renewal, so the purge
        changes which error a stale refresh token gets, never whether it works.
        """
        cutoff = self._clock() - retention
        try:
            removed = self.session_store.purge_expired(cutoff)
        except StoreError as exc:
            raise _internal("purge sessions", exc) from exc
        logger.info("Purged %d expired session(s) older than %s", removed, cutoff.isoformat())
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_user(self, phone_number: str) -> User:
        try:
            user = self.user_store.get_user(phone_number)
        except StoreError as exc:
            raise _internal("login: get user", exc) from exc
        if user is None:
            raise UserNotFoundError()
        return user

    def _issue(self, user_id: int, token_type: str, duration: timedelta, operation: str) -> tuple[str, TokenPayload]:
        try:
            return create_token(user_id, self._secret_key, duration, now=self._clock(), token_type=token_type)
        except TokenIssueError as exc:
            raise _internal(operation, exc) from exc

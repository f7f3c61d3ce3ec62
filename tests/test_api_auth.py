"""
tests/test_api_auth.py -- Integration tests for /api/v1/auth routes.

These tests exercise the full stack: FastAPI routing -> request validation ->
AuthService -> stores -> error envelope. Status codes come from the ErrorKind
mapping in api/main.py, so they are asserted together with the error code.

Coverage:
  - POST /register: 201 with no body, duplicate 400, malformed phone / password 422
  - POST /login: 200 token pair with no-store, session records client info,
    unknown user 404, wrong password 400
  - POST /token: 200 with unchanged refresh token, invalid token 400, access
    token or whitespace-padded refresh token 400
  - GET /me and the bearer dependency: every 401 branch, refresh token as
    bearer 401 (also after its session is blocked)

Fixtures used (from conftest.py):
  - api_client: (client, token, uid) -- one shared database for this module
  - api_credentials: phone number and password of the fixture user
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from auth.tokens import REFRESH_TOKEN, create_token, verify_token
from core.config import get_settings
from core.schema import sessions


def _error(resp) -> dict:
    return resp.json()["error"]


def _login(client: TestClient, phone: str, password: str, **kwargs):
    return client.post("/api/v1/auth/login", json={"phone_number": phone, "password": password}, **kwargs)


class TestRegister:
    def test_register_returns_201(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/auth/register", json={"phone_number": "01020000001", "password": "pw-1"})
        assert resp.status_code == 201
        assert resp.content == b""

    def test_duplicate_phone_number_is_400(self, api_client, api_credentials) -> None:
        client, _token, _uid = api_client
        phone, _ = api_credentials
        resp = client.post("/api/v1/auth/register", json={"phone_number": phone, "password": "pw"})
        assert resp.status_code == 400
        assert _error(resp) == {"code": "duplicate_phone_number", "message": "duplicate phone number"}

    @pytest.mark.parametrize("phone", ["01112345678", "0101234567", "010123456789", "010-1234-5678", ""])
    def test_malformed_phone_number_is_422(self, api_client, phone) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/auth/register", json={"phone_number": phone, "password": "pw"})
        assert resp.status_code == 422
        assert _error(resp)["code"] == "validation_error"

    def test_empty_password_is_422(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/auth/register", json={"phone_number": "01020000002", "password": ""})
        assert resp.status_code == 422

    def test_password_over_72_bytes_is_422(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/auth/register", json={"phone_number": "01020000003", "password": "가" * 25})
        assert resp.status_code == 422

    def test_registered_user_can_log_in(self, api_client) -> None:
        client, _token, _uid = api_client
        client.post("/api/v1/auth/register", json={"phone_number": "01020000004", "password": "secret-4"})
        assert _login(client, "01020000004", "secret-4").status_code == 200


class TestLogin:
    def test_login_returns_token_pair(self, api_client, api_credentials) -> None:
        client, _token, uid = api_client
        resp = _login(client, *api_credentials)
        assert resp.status_code == 200
        assert resp.headers["Cache-Control"] == "no-store"
        body = resp.json()
        secret = get_settings().secret_key
        assert verify_token(body["access_token"], secret).user_id == uid
        assert verify_token(body["refresh_token"], secret).user_id == uid

    def test_session_records_user_agent(self, api_client, api_credentials) -> None:
        client, _token, uid = api_client
        resp = _login(client, *api_credentials, headers={"User-Agent": "inventory-tests/1.0"})
        refresh = verify_token(resp.json()["refresh_token"], get_settings().secret_key)
        session = client.app.state.session_store.get_session(refresh.token_id)
        assert session.user_id == uid
        assert session.user_agent == "inventory-tests/1.0"
        assert session.client_ip

    def test_unknown_user_is_404(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = _login(client, "01029999999", "whatever")
        assert resp.status_code == 404
        assert _error(resp)["message"] == "not found user"

    def test_wrong_password_is_400(self, api_client, api_credentials) -> None:
        client, _token, _uid = api_client
        phone, _ = api_credentials
        resp = _login(client, phone, "wrong-password")
        assert resp.status_code == 400
        assert _error(resp) == {"code": "wrong_password", "message": "wrong password"}


class TestRenewAccessToken:
    def test_renewal_returns_new_access_token(self, api_client, api_credentials) -> None:
        client, _token, uid = api_client
        pair = _login(client, *api_credentials).json()
        resp = client.post("/api/v1/auth/token", json={"refresh_token": pair["refresh_token"]})
        assert resp.status_code == 200
        assert resp.headers["Cache-Control"] == "no-store"
        body = resp.json()
        assert body["refresh_token"] == pair["refresh_token"]
        assert body["access_token"] != pair["access_token"]
        assert verify_token(body["access_token"], get_settings().secret_key).user_id == uid

    def test_renewed_access_token_works(self, api_client, api_credentials) -> None:
        client, _token, _uid = api_client
        pair = _login(client, *api_credentials).json()
        renewed = client.post("/api/v1/auth/token", json={"refresh_token": pair["refresh_token"]}).json()
        resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {renewed['access_token']}"})
        assert resp.status_code == 200

    def test_invalid_refresh_token_is_400(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/auth/token", json={"refresh_token": "garbage"})
        assert resp.status_code == 400
        assert _error(resp) == {"code": "invalid_token", "message": "token is invalid"}

    def test_access_token_is_rejected(self, api_client, api_credentials) -> None:
        client, _token, _uid = api_client
        pair = _login(client, *api_credentials).json()
        resp = client.post("/api/v1/auth/token", json={"refresh_token": pair["access_token"]})
        assert resp.status_code == 400
        assert _error(resp) == {"code": "invalid_token", "message": "token is invalid"}

    def test_padded_refresh_token_is_not_trimmed(self, api_client, api_credentials) -> None:
        client, _token, _uid = api_client
        pair = _login(client, *api_credentials).json()
        resp = client.post("/api/v1/auth/token", json={"refresh_token": f"  {pair['refresh_token']}\n"})
        assert resp.status_code == 400
        assert _error(resp)["code"] == "invalid_token"

    def test_missing_body_field_is_422(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/auth/token", json={})
        assert resp.status_code == 422


class TestBearerAuth:
    def test_me_returns_identity(self, api_client, api_credentials) -> None:
        client, token, uid = api_client
        resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json() == {"user_id": uid, "phone_number": api_credentials[0]}

    def test_scheme_is_case_insensitive(self, api_client) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/auth/me", headers={"Authorization": f"bEaReR {token}"})
        assert resp.status_code == 200

    def test_missing_header(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/auth/me")
        assert resp.status_code == 401
        assert _error(resp)["message"] == "authorization header is not provided"

    def test_single_field_header(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer"})
        assert resp.status_code == 401
        assert _error(resp)["message"] == "invalid authorization header format"

    def test_unsupported_scheme(self, api_client) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Basic {token}"})
        assert resp.status_code == 401
        assert _error(resp)["message"] == "unsupported authorization type"

    def test_invalid_token(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})
        assert resp.status_code == 401
        assert _error(resp) == {"code": "invalid_token", "message": "token is invalid"}

    def test_expired_token(self, api_client) -> None:
        client, _token, uid = api_client
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        expired, _ = create_token(uid, get_settings().secret_key, timedelta(minutes=15), now=issued)
        resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {expired}"})
        assert resp.status_code == 401
        assert _error(resp) == {"code": "expired_token", "message": "token has expired"}

    def test_refresh_token_is_not_a_bearer_token(self, api_client, api_credentials) -> None:
        client, _token, _uid = api_client
        pair = _login(client, *api_credentials).json()
        resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {pair['refresh_token']}"})
        assert resp.status_code == 401
        assert _error(resp) == {"code": "invalid_token", "message": "token is invalid"}

    def test_blocked_session_refresh_token_grants_nothing(self, api_client, api_credentials) -> None:
        client, _token, _uid = api_client
        pair = _login(client, *api_credentials).json()
        refresh = verify_token(pair["refresh_token"], get_settings().secret_key, token_type=REFRESH_TOKEN)
        with client.app.state.engine.connect() as conn:
            conn.execute(sessions.update().where(sessions.c.id == refresh.token_id).values(is_blocked=1))
            conn.commit()

        renew = client.post("/api/v1/auth/token", json={"refresh_token": pair["refresh_token"]})
        assert renew.status_code == 401
        assert _error(renew)["message"] == "blocked session"

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {pair['refresh_token']}"})
        assert me.status_code == 401
        # the access token from the same login stays valid until it expires
        ok = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {pair['access_token']}"})
        assert ok.status_code == 200

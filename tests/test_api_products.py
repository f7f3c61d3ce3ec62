"""
tests/test_api_products.py -- Integration tests for /api/v1/products routes.

Coverage:
  - Auth failures: 401 on every route without a bearer token
  - Happy path: POST 201, GET list, GET detail, PATCH partial update, DELETE 204
  - Ownership: another user's product is 403, an unknown id 404
  - Barcode uniqueness: 400 duplicate barcode
  - Validation: bad size / negative price / malformed date 422

Fixtures used (from conftest.py):
  - api_client: (client, token, uid) -- one shared database for this module
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

_BODY = {
    "category": "snack",
    "price": 1800,
    "cost": 900,
    "name": "Honey Butter Chips",
    "description": "60g bag",
    "expiration_date": "2030-06-30",
    "size": "small",
}


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _create(client: TestClient, token: str, barcode: str, **overrides):
    body = {**_BODY, "barcode": barcode, **overrides}
    return client.post("/api/v1/products", json=body, headers=_auth(token))


@pytest.fixture(scope="module")
def other_token(api_client) -> str:
    """Access token of a second registered user."""
    client, _token, _uid = api_client
    client.post("/api/v1/auth/register", json={"phone_number": "01030000001", "password": "other-pw"})
    resp = client.post("/api/v1/auth/login", json={"phone_number": "01030000001", "password": "other-pw"})
    return resp.json()["access_token"]


class TestProductAuthFailure:
    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/v1/products"),
            ("post", "/api/v1/products"),
            ("get", "/api/v1/products/1"),
            ("patch", "/api/v1/products/1"),
            ("delete", "/api/v1/products/1"),
        ],
    )
    def test_requires_bearer_token(self, api_client: tuple[TestClient, str, int], method: str, path: str) -> None:
        client, _token, _uid = api_client
        resp = client.request(method.upper(), path, json=_BODY if method in ("post", "patch") else None)
        assert resp.status_code == 401


class TestProductRoutes:
    def test_create_product(self, api_client) -> None:
        client, token, uid = api_client
        resp = _create(client, token, "BC-CREATE")
        assert resp.status_code == 201
        data = resp.json()
        assert data["user_id"] == uid
        assert data["barcode"] == "BC-CREATE"
        assert data["expiration_date"] == "2030-06-30"
        assert data["size"] == "small"

    def test_get_product(self, api_client) -> None:
        client, token, _uid = api_client
        pid = _create(client, token, "BC-GET").json()["id"]
        resp = client.get(f"/api/v1/products/{pid}", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json()["name"] == "Honey Butter Chips"

    def test_list_newest_first(self, api_client) -> None:
        client, token, _uid = api_client
        first = _create(client, token, "BC-LIST-1").json()["id"]
        second = _create(client, token, "BC-LIST-2").json()["id"]
        ids = [p["id"] for p in client.get("/api/v1/products", headers=_auth(token)).json()]
        assert ids.index(second) < ids.index(first)

    def test_patch_updates_only_given_fields(self, api_client) -> None:
        client, token, _uid = api_client
        pid = _create(client, token, "BC-PATCH").json()["id"]
        resp = client.patch(f"/api/v1/products/{pid}", json={"price": 2000, "size": "large"}, headers=_auth(token))
        assert resp.status_code == 200
        data = resp.json()
        assert data["price"] == 2000
        assert data["size"] == "large"
        assert data["cost"] == 900

    def test_delete_product(self, api_client) -> None:
        client, token, _uid = api_client
        pid = _create(client, token, "BC-DELETE").json()["id"]
        resp = client.delete(f"/api/v1/products/{pid}", headers=_auth(token))
        assert resp.status_code == 204
        assert client.get(f"/api/v1/products/{pid}", headers=_auth(token)).status_code == 404

    def test_unknown_product_is_404(self, api_client) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/products/999999", headers=_auth(token))
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "not found product"

    def test_duplicate_barcode_is_400(self, api_client) -> None:
        client, token, _uid = api_client
        _create(client, token, "BC-DUP")
        resp = _create(client, token, "BC-DUP")
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "duplicate barcode"


class TestProductOwnership:
    def test_other_user_cannot_read(self, api_client, other_token) -> None:
        client, token, _uid = api_client
        pid = _create(client, token, "BC-OWN-READ").json()["id"]
        resp = client.get(f"/api/v1/products/{pid}", headers=_auth(other_token))
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "only get your product"

    def test_other_user_cannot_modify(self, api_client, other_token) -> None:
        client, token, _uid = api_client
        pid = _create(client, token, "BC-OWN-WRITE").json()["id"]
        assert client.patch(f"/api/v1/products/{pid}", json={"price": 1}, headers=_auth(other_token)).status_code == 403
        assert client.delete(f"/api/v1/products/{pid}", headers=_auth(other_token)).status_code == 403

    def test_list_excludes_other_users_products(self, api_client, other_token) -> None:
        client, token, _uid = api_client
        _create(client, token, "BC-OWN-LIST")
        barcodes = [p["barcode"] for p in client.get("/api/v1/products", headers=_auth(other_token)).json()]
        assert "BC-OWN-LIST" not in barcodes


class TestProductValidation:
    @pytest.mark.parametrize(
        "overrides",
        [{"size": "medium"}, {"price": -1}, {"expiration_date": "31/12/2030"}, {"name": ""}],
        ids=["size", "price", "date", "name"],
    )
    def test_invalid_body_is_422(self, api_client, overrides) -> None:
        client, token, _uid = api_client
        resp = _create(client, token, "BC-INVALID", **overrides)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

from cargomail.auth import decode_access_token


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_register_and_authenticate(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"username": "carol", "email": "carol@example.com", "password": "pw"},
    )
    assert response.status_code == 201, response.text
    assert response.json()["username"] == "carol"
    assert "password" not in response.json()

    response = client.post(
        "/api/v1/auth/authenticate",
        json={"username": "carol", "password": "pw", "device_id": "phone"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["device_id"] == "phone"
    assert decode_access_token(body["access_token"]).device_id == "phone"
    assert "access_token" in response.cookies


def test_register_duplicate_is_conflict(client, user):
    response = client.post(
        "/api/v1/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": "pw"},
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "duplicate_key"


def test_authenticate_mints_a_device_id(client, user):
    response = client.post(
        "/api/v1/auth/authenticate", json={"username": "alice", "password": "secret"}
    )
    assert response.status_code == 200
    assert response.json()["device_id"]


def test_authenticate_by_email(client, user):
    response = client.post(
        "/api/v1/auth/authenticate",
        json={"username": "alice@example.com", "password": "secret"},
    )
    assert response.status_code == 200


def test_wrong_password_is_rejected(client, user):
    response = client.post(
        "/api/v1/auth/authenticate", json={"username": "alice", "password": "nope"}
    )
    assert response.status_code == 401


def test_entity_routes_require_authentication(client, user):
    assert client.get("/api/v1/contacts").status_code == 401
    assert client.get("/api/v1/files").status_code == 401

    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/api/v1/drafts", headers=bad).status_code == 401


def test_token_for_unknown_user_is_rejected(client, user, auth_headers):
    response = client.get("/api/v1/messages", headers=auth_headers(username="ghost"))
    assert response.status_code == 401


def test_cookie_session(client, user):
    client.post(
        "/api/v1/auth/authenticate",
        json={"username": "alice", "password": "secret", "device_id": "web"},
    )
    response = client.post("/api/v1/contacts", json={"email_address": "a@example.com"})
    assert response.status_code == 201

    client.post("/api/v1/auth/logout")
    assert client.get("/api/v1/contacts").status_code == 401


def test_profile(client, user, auth_headers):
    headers = auth_headers("D1")
    response = client.get("/api/v1/user/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"

    response = client.patch(
        "/api/v1/user/profile", json={"full_name": "Alice Liddell"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["full_name"] == "Alice Liddell"


def test_missing_auth_context_is_a_server_error():
    import pytest
    from starlette.requests import Request

    from cargomail.auth import get_authenticated_user
    from cargomail.errors import MissingAuthContextError

    request = Request(
        {
            "type": "http",
            "method": "GET",
            "scheme": "http",
            "server": ("testserver", 80),
            "path": "/api/v1/contacts",
            "root_path": "",
            "query_string": b"",
            "headers": [],
        }
    )
    with pytest.raises(MissingAuthContextError) as excinfo:
        get_authenticated_user(request)
    assert excinfo.value.status_code == 500
    assert excinfo.value.code == "missing_user_context"

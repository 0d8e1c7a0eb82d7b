from fastapi.testclient import TestClient

from conftest import make_user


def _register(client, username="alice", email="alice@example.com", password="password123", **extra):
    return client.post("/api/auth/register", json={"username": username, "email": email, "password": password, **extra})


def test_register_logs_user_in(client):
    r = _register(client, firstName="Alice")
    assert r.status_code == 201
    body = r.json()
    assert body["username"] == "alice"
    assert body["firstName"] == "Alice"
    assert "password" not in body and "passwordHash" not in body

    me = client.get("/api/auth/user")
    assert me.status_code == 200
    assert me.json()["id"] == body["id"]


def test_register_duplicate_username_and_email(client):
    assert _register(client).status_code == 201
    r = _register(client, email="other@example.com")
    assert r.status_code == 400
    assert r.json()["message"] == "Username already exists"
    r = _register(client, username="alice2", email="ALICE@example.com")
    assert r.status_code == 400


def test_register_validation_errors_have_field_detail(client):
    r = _register(client, email="not-an-email", password="short")
    assert r.status_code == 400
    body = r.json()
    assert body["message"].startswith("Validation error")
    assert {"email", "password"} <= {e["field"] for e in body["errors"]}


def test_login_and_logout(app, storage):
    make_user(storage, username="bob", password="password123")
    with TestClient(app) as client:
        r = client.post("/api/auth/login", json={"username": "bob", "password": "wrong-password"})
        assert r.status_code == 401
        assert r.json() == {"message": "Invalid username or password"}

        r = client.post("/api/auth/login", json={"username": "bob", "password": "password123"})
        assert r.status_code == 200
        assert client.get("/api/auth/user").json()["username"] == "bob"

        assert client.post("/api/auth/logout").status_code == 200
        assert client.get("/api/auth/user").status_code == 401


def test_current_user_requires_session(client):
    r = client.get("/api/auth/user")
    assert r.status_code == 401
    assert r.json() == {"message": "Not authenticated"}


def test_update_profile(logged_in, storage):
    make_user(storage, username="bob")
    r = logged_in.put("/api/auth/profile", json={"firstName": "Alice", "lastName": "Liddell", "email": "alice@wonderland.org"})
    assert r.status_code == 200
    assert r.json()["email"] == "alice@wonderland.org"
    assert r.json()["lastName"] == "Liddell"

    r = logged_in.put("/api/auth/profile", json={"email": "bob@example.com"})
    assert r.status_code == 400


def test_change_password(logged_in):
    r = logged_in.put("/api/auth/password", json={"currentPassword": "nope", "newPassword": "new-password-1"})
    assert r.status_code == 400

    r = logged_in.put("/api/auth/password", json={"currentPassword": "password123", "newPassword": "new-password-1"})
    assert r.status_code == 200

    logged_in.post("/api/auth/logout")
    assert logged_in.post("/api/auth/login", json={"username": "alice", "password": "password123"}).status_code == 401
    assert logged_in.post("/api/auth/login", json={"username": "alice", "password": "new-password-1"}).status_code == 200


def test_profile_requires_session(client):
    assert client.put("/api/auth/profile", json={"email": "x@example.com"}).status_code == 401


def test_request_id_header(client):
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]

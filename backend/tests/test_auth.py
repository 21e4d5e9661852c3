from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from spacevox.services.auth_service import AuthService


def _email():
    return f"signup-{uuid4().hex[:8]}@example.org"


def test_signup_login_me(client):
    email = _email()
    r = client.post(
        "/api/auth/signup",
        json={"email": email, "password": "correct-horse", "firstName": "Sam"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["user"]["email"] == email
    assert body["user"]["role"] == "user"
    assert "password" not in body["user"]

    r = client.post("/api/auth/login", json={"email": email, "password": "correct-horse"})
    assert r.status_code == 200
    token = r.json()["token"]

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["firstName"] == "Sam"


def test_signup_twice_fails(client):
    email = _email()
    payload = {"email": email, "password": "correct-horse"}
    assert client.post("/api/auth/signup", json=payload).status_code == 201
    r = client.post("/api/auth/signup", json=payload)
    assert r.status_code == 400
    assert r.json()["detail"] == "User already exists"


def test_bad_login(client):
    email = _email()
    client.post("/api/auth/signup", json={"email": email, "password": "correct-horse"})
    r = client.post("/api/auth/login", json={"email": email, "password": "wrong-horse"})
    assert r.status_code == 401
    r = client.post("/api/auth/login", json={"email": _email(), "password": "whatever"})
    assert r.status_code == 401


def test_me_rejects_bad_token(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.token"})
    assert r.status_code == 401


def test_admin_user_management(client, make_user, auth_headers):
    admin = make_user(role="admin")
    target = make_user()

    r = client.get("/api/admin/users", headers=auth_headers(target))
    assert r.status_code == 403

    r = client.get("/api/admin/users", headers=auth_headers(admin))
    assert r.status_code == 200
    assert target.id in [u["id"] for u in r.json()]

    r = client.patch(
        f"/api/admin/users/{target.id}/role", json={"role": "admin"}, headers=auth_headers(admin)
    )
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    r = client.patch(
        f"/api/admin/users/{target.id}/role", json={"role": "owner"}, headers=auth_headers(admin)
    )
    assert r.status_code == 400

    r = client.patch(
        "/api/admin/users/nobody/role", json={"role": "user"}, headers=auth_headers(admin)
    )
    assert r.status_code == 404


def test_signup_storage_failure_is_generic_500(client, monkeypatch):
    def broken(*args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(AuthService, "signup", broken)
    r = client.post(
        "/api/auth/signup",
        json={"email": _email(), "password": "long-enough-pass"},
    )
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to create account"

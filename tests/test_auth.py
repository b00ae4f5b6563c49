from jose import jwt

from conftest import ADMIN_EMAIL, PASSWORD, USER_EMAIL
from gadget_stock.config import get_settings
from gadget_stock.security import create_access_token


def test_login_returns_user_and_token(client):
    r = client.post("/auth/login", json={"email": USER_EMAIL, "password": PASSWORD})
    assert r.status_code == 200
    data = r.json()
    assert data["token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == USER_EMAIL
    assert data["user"]["role"] == "USER"
    assert "password_hash" not in data["user"]


def test_login_email_is_case_insensitive(client):
    r = client.post("/auth/login", json={"email": ADMIN_EMAIL.upper(), "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "ADMIN"


def test_login_invalid_credentials(client):
    r = client.post("/auth/login", json={"email": USER_EMAIL, "password": "wrong"})
    assert r.status_code == 401
    assert r.json() == {
        "detail": {"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"}
    }
    assert r.headers["www-authenticate"] == "Bearer"


def test_me(client, user_h):
    r = client.get("/auth/me", headers=user_h)
    assert r.status_code == 200
    assert r.json()["email"] == USER_EMAIL


def test_missing_token(client):
    r = client.get("/gadgets")
    assert r.status_code == 401
    assert r.json()["detail"]["code"] == "NOT_AUTHENTICATED"


def test_garbage_token(client):
    r = client.get("/gadgets", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["detail"]["code"] == "INVALID_TOKEN"


def test_expired_token(client, user):
    settings = get_settings()
    claims = {"sub": str(user.id), "email": user.email, "role": "USER", "iat": 1700000000, "exp": 1700000060}
    token = jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)

    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"]["code"] == "INVALID_TOKEN"
    assert r.headers["www-authenticate"] == "Bearer"


def test_token_for_deleted_user(client):
    token = create_access_token(9999, "ghost@stockmgmt.com", "ADMIN")
    r = client.get("/gadgets", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"]["code"] == "USER_NOT_FOUND"


def test_admin_routes_reject_regular_users(client, user_h):
    assert client.get("/users", headers=user_h).status_code == 403
    r = client.post("/gadgets", json={"name": "Hub", "quantity": 1}, headers=user_h)
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "FORBIDDEN"


def test_health(client):
    assert client.get("/health").json() == {"ok": True}

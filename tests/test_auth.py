import logging
import time

import jwt

from conftest import bearer, forge_token
from shop.config import FALLBACK_JWT_SECRET


def test_register_and_login(client, register):
    user, token = register()
    assert user["email"] == "alice@example.com"
    assert user["isAdmin"] is False
    claims = jwt.decode(token, FALLBACK_JWT_SECRET, algorithms=["HS256"])
    assert claims["userId"] == user["id"]
    assert "password" not in claims

    r = client.post("/auth/login", json={"email": "alice@example.com", "password": "alicepw"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["debug"]["jwtSecret"] == FALLBACK_JWT_SECRET
    claims = jwt.decode(body["token"], FALLBACK_JWT_SECRET, algorithms=["HS256"])
    assert claims["password"] == "alicepw"
    assert claims["fullAccess"] == "LIMITED"


def test_login_distinguishes_unknown_user_and_bad_password(client, register):
    register()
    r = client.post("/auth/login", json={"email": "nobody@example.com", "password": "x"})
    assert r.json()["message"] == "User not found"
    r = client.post("/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    body = r.json()
    assert body["message"] == "Invalid password"
    assert 0 <= body["attempts"] <= 4


def test_login_sql_injection_bypasses_credentials(client, register):
    register()
    injection = "' OR '1'='1"
    r = client.post("/auth/login", json={"email": injection, "password": injection})
    body = r.json()
    assert body["success"] is True
    assert body["token"]


def test_login_malformed_sql_reports_store_error(client):
    r = client.post("/auth/login", json={"email": "'", "password": "x"})
    body = r.json()
    assert body["success"] is False
    assert body["error"].startswith("Database error")


def test_duplicate_registration_returns_failure_envelope(client, register):
    register()
    r = client.post("/auth/register", json={"email": "alice@example.com", "username": "again", "password": "p"})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is False
    assert "UNIQUE" in body["constraint"]
    assert "stack" in body


def test_reset_password_without_verification(client, register):
    register(email="x@x.com", username="x", password="original")
    r = client.post("/auth/reset-password", json={"email": "x@x.com"})
    new_password = r.json()["newPassword"]
    assert len(new_password) == 8
    assert new_password.isalnum() and new_password == new_password.lower()

    r = client.post("/auth/login", json={"email": "x@x.com", "password": new_password})
    assert r.json()["success"] is True


def test_profile_requires_token(client):
    r = client.get("/auth/profile")
    assert r.status_code == 401
    assert r.json()["detail"]["message"] == "No token provided"


def test_invalid_token_is_echoed(client):
    r = client.get("/auth/profile", headers=bearer("not-a-jwt"))
    assert r.status_code == 401
    detail = r.json()["detail"]
    assert detail["message"] == "Invalid token"
    assert detail["tokenReceived"] == "not-a-jwt"


def test_lowercase_bearer_is_not_accepted(client, register):
    _, token = register()
    r = client.get("/auth/profile", headers={"Authorization": f"bearer {token}"})
    assert r.status_code == 401


def test_profile_returns_stored_password(client, register):
    user, token = register()
    r = client.get("/auth/profile", headers=bearer(token))
    body = r.json()["user"]
    assert body["password"] == "alicepw"
    assert body["internalId"] == user["id"]


def test_token_lifetimes(client, register):
    _, register_token = register()
    claims = jwt.decode(register_token, FALLBACK_JWT_SECRET, algorithms=["HS256"])
    assert claims["exp"] - claims["iat"] == 30 * 24 * 60 * 60

    login = client.post("/auth/login", json={"email": "alice@example.com", "password": "alicepw"}).json()
    claims = jwt.decode(login["token"], FALLBACK_JWT_SECRET, algorithms=["HS256"])
    assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60


def test_expired_token_rejected(client):
    token = forge_token(userId=1, email="old@example.com", isAdmin=True, exp=int(time.time()) - 60)
    r = client.get("/auth/profile", headers=bearer(token))
    assert r.status_code == 401
    assert r.json()["detail"]["message"] == "Invalid token"


def test_credential_query_logged_with_password(client, register, caplog):
    register()
    caplog.set_level(logging.INFO, logger="shop.crud")
    client.post("/auth/login", json={"email": "alice@example.com", "password": "alicepw"})
    assert "SELECT * FROM users WHERE email = 'alice@example.com' AND password = 'alicepw'" in caplog.text

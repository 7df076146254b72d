from datetime import timedelta

import jwt
import pytest
from sqlalchemy import func, select

from courseware.core.config import get_settings
from courseware.core.errors import ApiError
from courseware.core.security import create_access_token, decode_access_token, now_utc
from courseware.models import RefreshToken
from courseware.services import auth_service, user_service
from tests.factories import PASSWORD, auth_headers


def _register(client, username: str = "newbie", password: str = "pass-1234"):
    return client.post(
        "/v1/auth/register",
        json={"email": f"{username}@example.com", "username": username, "password": password},
    )


def _login(client, email: str, password: str):
    return client.post("/v1/auth/login", json={"email": email, "password": password})


def test_register_login_me(client):
    resp = _register(client)
    assert resp.status_code == 201, resp.text
    assert resp.json() == {"success": True}

    resp = _register(client)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "USER_EXISTS"

    resp = _login(client, "NEWBIE@example.com", "pass-1234")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["user"]["role"] == "USER"
    assert body["access_token_expires_in"] == get_settings().access_token_expire_seconds

    resp = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["username"] == "newbie"
    assert resp.json()["last_seen"] is not None


def test_register_validation(client):
    resp = client.post("/v1/auth/register", json={"email": "bad", "username": "ab", "password": "x"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_login_wrong_password(client, user):
    resp = _login(client, user.email, "wrong-password")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_refresh_rotation_is_single_use(client, user):
    login = _login(client, user.email, PASSWORD).json()

    resp = client.post("/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 200, resp.text
    rotated = resp.json()
    assert rotated["refresh_token"] != login["refresh_token"]

    resp = client.post("/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "TOKEN_EXPIRED"

    resp = client.post("/v1/auth/refresh", json={"refresh_token": rotated["refresh_token"]})
    assert resp.status_code == 200, resp.text


def test_logout_is_idempotent(client, db, user):
    login = _login(client, user.email, PASSWORD).json()

    for _ in range(2):
        resp = client.post("/v1/auth/logout", json={"refresh_token": login["refresh_token"]})
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"success": True}

    resp = client.post("/v1/auth/logout", json={})
    assert resp.status_code == 200

    db.refresh(user)
    assert user.is_online is False

    resp = client.post("/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 401


def test_sliding_session_headers(client, user):
    resp = client.get("/v1/auth/me", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.headers["X-Token-Refreshed"] == "true"
    refreshed = resp.headers["X-Access-Token"]
    assert resp.cookies["access_token"] == refreshed

    resp = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {refreshed}"})
    assert resp.status_code == 200


def test_guest_gets_no_sliding_headers(client):
    resp = client.get("/v1/courses")
    assert resp.status_code == 200
    assert "X-Access-Token" not in resp.headers


def test_access_token_cookie(client, user):
    token = auth_headers(user)["Authorization"].removeprefix("Bearer ")
    resp = client.get("/v1/auth/me", headers={"Cookie": f"access_token={token}"})
    assert resp.status_code == 200, resp.text


def test_invalid_and_expired_tokens_rejected(client, user):
    resp = client.get("/v1/courses", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_TOKEN"

    settings = get_settings()
    expired = jwt.encode(
        {"sub": str(user.id), "type": "access", "exp": now_utc() - timedelta(seconds=5)},
        settings.jwt_secret,
        algorithm="HS256",
    )
    resp = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_TOKEN"

    resp = client.get("/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_soft_deleted_user_is_gone(client, db, user):
    headers = auth_headers(user)
    login = _login(client, user.email, PASSWORD).json()

    user_service.soft_delete_user(db, user.id)

    resp = client.get("/v1/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_USER"

    resp = _login(client, "learner@example.com", PASSWORD)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"

    resp = client.post("/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 401


def test_delete_own_account_only(client, db, user, admin):
    resp = client.delete(f"/v1/users/{admin.id}", headers=auth_headers(user))
    assert resp.status_code == 403

    resp = client.delete(f"/v1/users/{user.id}", headers=auth_headers(user))
    assert resp.status_code == 204


def test_login_sets_httponly_cookie_and_logout_clears_it(client, user):
    resp = _login(client, user.email, PASSWORD)
    assert resp.status_code == 200, resp.text
    login = resp.json()
    assert resp.cookies["access_token"] == login["access_token"]
    assert "httponly" in resp.headers["set-cookie"].lower()

    resp = client.get("/v1/auth/me")
    assert resp.status_code == 200, resp.text
    assert resp.json()["username"] == user.username

    resp = client.post("/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 200, resp.text
    rotated = resp.json()
    assert resp.cookies["access_token"] == rotated["access_token"]

    resp = client.post("/v1/auth/logout", json={"refresh_token": rotated["refresh_token"]})
    assert resp.status_code == 200
    assert "max-age=0" in resp.headers["set-cookie"].lower()

    resp = client.get("/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_concurrent_refresh_issues_one_pair(db, session_factory, user, monkeypatch):
    login = auth_service.login(db, email=user.email, password=PASSWORD)
    lookup = auth_service._find_refresh_token
    winners = []

    def find_then_let_other_request_rotate(session, token_hash):
        row = lookup(session, token_hash)
        if not winners:
            with session_factory() as other:
                winners.append(auth_service.rotate_refresh_token(other, login.refresh_token))
        return row

    monkeypatch.setattr(auth_service, "_find_refresh_token", find_then_let_other_request_rotate)

    with pytest.raises(ApiError) as exc_info:
        auth_service.rotate_refresh_token(db, login.refresh_token)
    assert exc_info.value.code == "TOKEN_EXPIRED"
    assert exc_info.value.status_code == 401

    stored = db.execute(select(func.count(RefreshToken.id)).where(RefreshToken.user_id == user.id)).scalar_one()
    assert stored == 1

    rotated = auth_service.rotate_refresh_token(db, winners[0].refresh_token)
    assert rotated.refresh_token != winners[0].refresh_token


def test_access_token_claims(user):
    claims = decode_access_token(create_access_token(str(user.id), email=user.email, role=user.role))
    assert (claims["sub"], claims["email"], claims["role"], claims["type"]) == (
        str(user.id),
        user.email,
        "USER",
        "access",
    )

"""Tests for refresh-token rotation, logout and access-token handling."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest
from flask_jwt_extended import create_access_token

from helpers import bearer, login, register
from models import db
from models.user import User
from services.tokens import TokenIssuer, hash_token
from utils.errors import InvalidRefreshToken


def _refresh(client, refresh_token: str):
    return client.post("/api/auth/refresh-token", json={"refreshToken": refresh_token})


def test_refresh_issues_new_pair(client):
    tokens = register(client).get_json()

    response = _refresh(client, tokens["refreshToken"])

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    assert payload["refreshToken"] != tokens["refreshToken"]
    me = client.get("/api/auth/me", headers=bearer(payload["token"]))
    assert me.status_code == 200


def test_superseded_refresh_token_is_rejected(client):
    original = register(client).get_json()["refreshToken"]
    rotated = _refresh(client, original).get_json()["refreshToken"]

    replay = _refresh(client, original)

    assert replay.status_code == 401
    assert replay.get_json()["message"] == "Invalid refresh token."
    assert _refresh(client, rotated).status_code == 200


def test_login_supersedes_earlier_refresh_token(client):
    first = register(client).get_json()["refreshToken"]
    login(client)

    assert _refresh(client, first).status_code == 401


def test_only_refresh_token_hash_is_stored(client, app):
    payload = register(client).get_json()

    with app.app_context():
        user = db.session.get(User, payload["data"]["user"]["id"])
        assert user.refresh_token_hash == hash_token(payload["refreshToken"])


def test_logout_invalidates_refresh_token(client):
    tokens = register(client).get_json()

    response = client.post("/api/auth/logout", headers=bearer(tokens["token"]))

    assert response.status_code == 200
    assert _refresh(client, tokens["refreshToken"]).status_code == 401


def test_logout_requires_access_token(client):
    response = client.post("/api/auth/logout")

    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_refresh_requires_token(client):
    response = client.post("/api/auth/refresh-token", json={"other": "value"})

    assert response.status_code == 400


def test_access_token_cannot_be_used_as_refresh_token(client):
    access = register(client).get_json()["token"]

    assert _refresh(client, access).status_code == 401


def test_refresh_token_cannot_be_used_as_access_token(client):
    refresh = register(client).get_json()["refreshToken"]

    response = client.get("/api/auth/me", headers=bearer(refresh))

    assert response.status_code == 401


def test_refresh_token_signed_with_access_secret_is_rejected(client, app):
    user_id = register(client).get_json()["data"]["user"]["id"]
    now = datetime.now(timezone.utc)
    forged = pyjwt.encode(
        {"sub": str(user_id), "type": "refresh", "exp": now + timedelta(days=1)},
        app.config["JWT_SECRET_KEY"],
        algorithm="HS256",
    )

    assert _refresh(client, forged).status_code == 401


def test_garbage_bearer_token_returns_json_401(client):
    response = client.get("/api/auth/me", headers=bearer("not-a-jwt"))

    assert response.status_code == 401
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["request_id"]


def test_expired_access_token_rejected(client, app):
    user_id = register(client).get_json()["data"]["user"]["id"]
    with app.app_context():
        token = create_access_token(
            identity=str(user_id), expires_delta=timedelta(seconds=-1)
        )

    response = client.get("/api/auth/me", headers=bearer(token))

    assert response.status_code == 401
    assert "expired" in response.get_json()["message"]


def test_token_for_deleted_user_rejected(client, app):
    token = register(client).get_json()["token"]
    with app.app_context():
        db.session.delete(User.query.one())
        db.session.commit()

    response = client.get("/api/auth/me", headers=bearer(token))

    assert response.status_code == 401


def test_issuer_rejects_expired_refresh_token():
    issuer = TokenIssuer("refresh-secret", refresh_expires=timedelta(days=30))
    issued_at = datetime.now(timezone.utc) - timedelta(days=31)
    token = issuer.create_refresh_token(7, now=issued_at)

    with pytest.raises(InvalidRefreshToken):
        issuer.decode_refresh_token(token)


def test_issuer_decodes_valid_refresh_token():
    issuer = TokenIssuer("refresh-secret")

    assert issuer.decode_refresh_token(issuer.create_refresh_token(42)) == 42


def test_issuer_requires_secret():
    with pytest.raises(ValueError):
        TokenIssuer("")

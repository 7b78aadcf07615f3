"""Tests covering security and hardening features."""

from __future__ import annotations

import sys
from pathlib import Path

from flask import Flask

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app
from config import Config
from mail import MemoryMailer


class _SecurityBaseConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "security-access-secret"
    JWT_REFRESH_SECRET_KEY = "security-refresh-secret"
    MAIL_BACKEND = "memory"


def _build_app(tmp_path: Path, **overrides) -> Flask:
    upload_dir = tmp_path / "uploads"

    class TestConfig(_SecurityBaseConfig):
        UPLOAD_DIR = str(upload_dir)

    for key, value in overrides.items():
        setattr(TestConfig, key, value)

    return create_app(TestConfig, mailer=MemoryMailer())


def test_cors_allows_configured_origin(tmp_path):
    app = _build_app(tmp_path, CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get(
        "/health", headers={"Origin": "https://client.example"}
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("X-Request-ID")


def test_cors_ignores_unlisted_origin(tmp_path):
    app = _build_app(tmp_path, CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get("/health", headers={"Origin": "https://evil.example"})

    assert response.headers.get("Access-Control-Allow-Origin") is None


def test_rate_limit_exceeded_returns_json(tmp_path):
    app = _build_app(tmp_path, RATE_LIMIT="2 per minute")
    client = app.test_client()

    client.get("/health")
    client.get("/health")
    response = client.get("/health")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Too Many Requests"
    assert "request_id" in payload


def test_json_error_shape_for_invalid_request(tmp_path):
    app = _build_app(tmp_path)
    client = app.test_client()

    response = client.post(
        "/api/auth/register",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Bad Request"
    assert "Request content type" in payload["message"]
    assert payload["request_id"]
    assert response.headers["X-Request-ID"] == payload["request_id"]


def test_incoming_request_id_is_echoed(tmp_path):
    app = _build_app(tmp_path)
    client = app.test_client()

    response = client.post(
        "/api/auth/login",
        json={"email": "a@b.com"},
        headers={"X-Request-ID": "req-123"},
    )

    assert response.status_code == 400
    assert response.headers["X-Request-ID"] == "req-123"
    assert response.get_json()["request_id"] == "req-123"


def test_unknown_route_returns_json_404(tmp_path):
    app = _build_app(tmp_path)
    client = app.test_client()

    response = client.get("/api/auth/does-not-exist")

    assert response.status_code == 404
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Not Found"


def test_unexpected_error_returns_generic_500(tmp_path):
    app = _build_app(tmp_path)

    @app.route("/boom")
    def _boom():
        raise RuntimeError("database password is hunter2")

    client = app.test_client()

    response = client.get("/boom")

    assert response.status_code == 500
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Internal Server Error"
    assert payload["message"] == "An unexpected error occurred."
    assert "hunter2" not in response.get_data(as_text=True)
    assert response.headers.get("X-Request-ID") == payload["request_id"]


def test_empty_json_object_is_rejected(tmp_path):
    app = _build_app(tmp_path)
    client = app.test_client()

    response = client.post("/api/auth/refresh-token", json={})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Request JSON body must not be empty."

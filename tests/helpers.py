"""Helpers shared by the API tests."""

from __future__ import annotations

import re

from flask.testing import FlaskClient


def token_from_link(body: str, path: str) -> str:
    """Extract the raw token of a ``/<path>/<token>`` link in an email body."""

    match = re.search(rf"/{path}/([0-9a-f]+)", body)
    assert match is not None, f"no /{path}/ link in email"
    return match.group(1)


def register(
    client: FlaskClient,
    email: str = "a@b.com",
    password: str = "password123",
    name: str = "A",
    **extra,
):
    payload = {"email": email, "password": password, "name": name, **extra}
    return client.post("/api/auth/register", json=payload)


def login(client: FlaskClient, email: str = "a@b.com", password: str = "password123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}

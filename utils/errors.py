"""Typed application errors and the JSON error envelope."""

from __future__ import annotations

import uuid

from flask import Response, g, jsonify
from werkzeug.exceptions import BadRequest, ServiceUnavailable, Unauthorized


class EmailAlreadyRegistered(BadRequest):
    description = "Email already registered."


class InvalidOperatorCode(BadRequest):
    description = "Invalid operator signup code."


class InvalidOrExpiredLink(BadRequest):
    description = "Invalid or expired link."


class InvalidCredentials(Unauthorized):
    description = "Invalid email or password."


class InvalidRefreshToken(Unauthorized):
    description = "Invalid refresh token."


class AccountLocked(Unauthorized):
    """Raised while the lockout window of an account is still running."""

    def __init__(self, minutes_remaining: int) -> None:
        super().__init__(
            f"Account is locked. Try again in {minutes_remaining} minute(s)."
        )
        self.minutes_remaining = minutes_remaining


class MailDeliveryError(ServiceUnavailable):
    description = "Email could not be delivered. Please try again later."


def current_request_id() -> str:
    return g.get("request_id") or str(uuid.uuid4())


def error_payload(error: str, message: str) -> dict:
    """Build the error envelope shared by every endpoint."""

    return {
        "success": False,
        "error": error,
        "message": message,
        "request_id": current_request_id(),
    }


def error_response(status_code: int, error: str, message: str) -> Response:
    response = jsonify(error_payload(error, message))
    response.status_code = status_code
    return response

"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import re

from flask import Request
from werkzeug.exceptions import BadRequest

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def parse_json_request(req: Request) -> dict:
    """Return the parsed, non-empty JSON object body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data:
        raise BadRequest("Request JSON body must not be empty.")

    return data


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def string_field(payload: dict, key: str) -> str:
    """Return ``payload[key]`` stripped, treating non-strings as missing."""

    value = payload.get(key)
    if not isinstance(value, str):
        return ""
    return value.strip()


def raise_for_errors(errors: list[str]) -> None:
    if errors:
        raise BadRequest("; ".join(errors))

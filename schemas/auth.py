"""Request contracts for the authentication endpoints.

Each contract is built from a decoded request payload with ``from_payload``,
which collects every validation problem and raises a single ``BadRequest``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from models.user import USER_ROLES, normalize_email
from utils.request_validation import is_valid_email, raise_for_errors, string_field

PASSWORD_MIN_LENGTH = 8
NAME_MAX_LENGTH = 50


def _password(payload: dict, key: str = "password") -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def _check_email(email: str, errors: list[str]) -> None:
    if not email:
        errors.append("email is required")
    elif not is_valid_email(email):
        errors.append("email must be a valid email address")


def _check_new_password(password: str, errors: list[str]) -> None:
    if not password:
        errors.append("password is required")
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"password must be at least {PASSWORD_MIN_LENGTH} characters")


def _check_name(name: str, errors: list[str]) -> None:
    if not name:
        errors.append("name is required")
    elif len(name) > NAME_MAX_LENGTH:
        errors.append(f"name must be at most {NAME_MAX_LENGTH} characters")


@dataclass(frozen=True)
class RegisterRequest:
    email: str
    password: str
    name: str
    role: str = "user"
    operator_code: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "RegisterRequest":
        errors: list[str] = []
        email = normalize_email(string_field(payload, "email"))
        password = _password(payload)
        name = string_field(payload, "name")
        role = string_field(payload, "role").lower() or "user"

        _check_email(email, errors)
        _check_new_password(password, errors)
        _check_name(name, errors)
        if role not in USER_ROLES:
            errors.append("role must be one of: {}".format(", ".join(USER_ROLES)))
        raise_for_errors(errors)

        return cls(
            email=email,
            password=password,
            name=name,
            role=role,
            operator_code=string_field(payload, "operatorCode") or None,
        )


@dataclass(frozen=True)
class LoginRequest:
    email: str
    password: str

    @classmethod
    def from_payload(cls, payload: dict) -> "LoginRequest":
        errors: list[str] = []
        email = normalize_email(string_field(payload, "email"))
        password = _password(payload)

        _check_email(email, errors)
        if not password:
            errors.append("password is required")
        raise_for_errors(errors)

        return cls(email=email, password=password)


@dataclass(frozen=True)
class ForgotPasswordRequest:
    email: str

    @classmethod
    def from_payload(cls, payload: dict) -> "ForgotPasswordRequest":
        errors: list[str] = []
        email = normalize_email(string_field(payload, "email"))
        _check_email(email, errors)
        raise_for_errors(errors)
        return cls(email=email)


@dataclass(frozen=True)
class ResetPasswordRequest:
    password: str

    @classmethod
    def from_payload(cls, payload: dict) -> "ResetPasswordRequest":
        errors: list[str] = []
        password = _password(payload)
        _check_new_password(password, errors)
        raise_for_errors(errors)
        return cls(password=password)


@dataclass(frozen=True)
class RefreshRequest:
    refresh_token: str

    @classmethod
    def from_payload(cls, payload: dict) -> "RefreshRequest":
        token = string_field(payload, "refreshToken")
        raise_for_errors([] if token else ["refreshToken is required"])
        return cls(refresh_token=token)


@dataclass(frozen=True)
class ProfileUpdate:
    """Profile changes; ``name`` is None when it was not submitted."""

    name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "ProfileUpdate":
        if "name" not in payload:
            return cls()
        errors: list[str] = []
        name = string_field(payload, "name")
        _check_name(name, errors)
        raise_for_errors(errors)
        return cls(name=name)

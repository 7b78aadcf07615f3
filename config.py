"""Application configuration module."""

import os
import re
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d)?\s*$")
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def parse_duration(raw: str | None, default: timedelta, unit: str = "s") -> timedelta:
    """Parse values such as ``7d``, ``15m`` or ``900000`` into a timedelta.

    A bare number is interpreted in ``unit``.
    """

    if raw is None or not str(raw).strip():
        return default
    match = _DURATION_PATTERN.match(str(raw))
    if match is None:
        raise ValueError(f"Invalid duration: {raw!r}")
    amount, suffix = match.groups()
    return int(amount) * _DURATION_UNITS[suffix or unit]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///wanderlust.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET", SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = parse_duration(
        os.getenv("JWT_EXPIRES_IN"), timedelta(days=7)
    )
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET", f"{SECRET_KEY}-refresh")
    JWT_REFRESH_TOKEN_EXPIRES = parse_duration(
        os.getenv("JWT_REFRESH_EXPIRES_IN"), timedelta(days=30)
    )
    JWT_ALGORITHM = "HS256"

    # Registration and lockout
    OPERATOR_SIGNUP_CODE = os.getenv("OPERATOR_SIGNUP_CODE")
    MAX_LOGIN_ATTEMPTS = int(os.getenv("MAX_LOGIN_ATTEMPTS", "5"))
    LOGIN_LOCKOUT_WINDOW = parse_duration(
        os.getenv("LOGIN_WINDOW_MS"), timedelta(minutes=15), unit="ms"
    )

    # Single-use links
    EMAIL_VERIFICATION_TTL = parse_duration(
        os.getenv("EMAIL_VERIFICATION_TTL"), timedelta(hours=24)
    )
    PASSWORD_RESET_TTL = parse_duration(
        os.getenv("PASSWORD_RESET_TTL"), timedelta(hours=1)
    )
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Mail
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp")
    SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", True)
    SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "10"))
    MAIL_SENDER = os.getenv(
        "MAIL_SENDER", f"Wanderlust Travel <{SMTP_USER or 'no-reply@localhost'}>"
    )

    # Uploads
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path("workspace") / "uploads"))
    MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(5 * 1024 * 1024)))
    ALLOWED_IMAGE_TYPES = os.getenv("ALLOWED_IMAGE_TYPES", "jpeg,jpg,png,gif")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR")

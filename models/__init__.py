"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import USER_ROLES, User, user_favorites  # noqa: E402,F401
from .hotel import Hotel  # noqa: E402,F401

__all__ = [
    "db",
    "Hotel",
    "User",
    "USER_ROLES",
    "user_favorites",
]

"""Access and refresh token issuing.

Access tokens are regular Flask-JWT-Extended access tokens signed with
``JWT_SECRET_KEY``. Refresh tokens are signed with a separate secret so that
neither kind can be forged with the other's key, and only their hash is kept
on the user row.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask_jwt_extended import create_access_token

from models.user import User
from utils.errors import InvalidRefreshToken

logger = logging.getLogger(__name__)

REFRESH_TOKEN_TYPE = "refresh"


def hash_token(raw_token: str) -> str:
    """Return the sha256 hex digest stored in place of a raw token."""

    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    """Issue access/refresh pairs and validate refresh tokens."""

    def __init__(
        self,
        refresh_secret: str,
        access_expires: timedelta = timedelta(days=7),
        refresh_expires: timedelta = timedelta(days=30),
        algorithm: str = "HS256",
    ):
        if not refresh_secret:
            raise ValueError("A refresh token secret is required.")
        self.refresh_secret = refresh_secret
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires
        self.algorithm = algorithm

    def create_access_token(self, user_id: int) -> str:
        return create_access_token(
            identity=str(user_id), expires_delta=self.access_expires
        )

    def create_refresh_token(self, user_id: int, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "type": REFRESH_TOKEN_TYPE,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self.refresh_expires,
        }
        return jwt.encode(claims, self.refresh_secret, algorithm=self.algorithm)

    def issue_pair(self, user: User) -> TokenPair:
        """Create a new pair and store the refresh token hash on ``user``.

        Any refresh token issued earlier for the user stops matching.
        """

        pair = TokenPair(
            access_token=self.create_access_token(user.id),
            refresh_token=self.create_refresh_token(user.id),
        )
        user.refresh_token_hash = hash_token(pair.refresh_token)
        return pair

    def decode_refresh_token(self, raw_token: str) -> int:
        """Return the user id carried by a valid refresh token."""

        try:
            claims = jwt.decode(
                raw_token,
                self.refresh_secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as exc:
            logger.info("Rejected refresh token: %s", exc)
            raise InvalidRefreshToken() from exc

        if claims.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidRefreshToken()
        try:
            return int(claims["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidRefreshToken() from exc

    @staticmethod
    def matches_stored(user: User, raw_token: str) -> bool:
        """Return True if ``raw_token`` is the user's current refresh token."""

        if not user.refresh_token_hash:
            return False
        return hmac.compare_digest(user.refresh_token_hash, hash_token(raw_token))

    @staticmethod
    def revoke(user: User) -> None:
        user.refresh_token_hash = None

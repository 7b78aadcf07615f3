"""Single-use email verification and password reset tokens.

Only the sha256 digest of a token is stored, next to its expiry. Redeeming a
token clears both columns in the same UPDATE that applies the state change,
so a token works at most once.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from sqlalchemy import update
from werkzeug.security import generate_password_hash

from models import db
from models.user import User, utcnow
from services.tokens import hash_token
from utils.errors import InvalidOrExpiredLink


def generate_raw_token() -> str:
    return secrets.token_hex(32)


class SingleUseTokens:
    """Issue and redeem verification/reset tokens stored on the user row."""

    def __init__(
        self,
        verification_ttl: timedelta = timedelta(hours=24),
        reset_ttl: timedelta = timedelta(hours=1),
    ):
        self.verification_ttl = verification_ttl
        self.reset_ttl = reset_ttl

    def issue_verification_token(self, user: User, now: datetime | None = None) -> str:
        """Return a raw token for the emailed link; any earlier token is replaced."""

        now = now or utcnow()
        raw_token = generate_raw_token()
        user.email_verification_token = hash_token(raw_token)
        user.email_verification_expires = now + self.verification_ttl
        return raw_token

    def issue_password_reset_token(self, user: User, now: datetime | None = None) -> str:
        now = now or utcnow()
        raw_token = generate_raw_token()
        user.password_reset_token = hash_token(raw_token)
        user.password_reset_expires = now + self.reset_ttl
        return raw_token

    def redeem_verification_token(self, raw_token: str, now: datetime | None = None) -> User:
        """Mark the owner of ``raw_token`` verified.

        Raises:
            InvalidOrExpiredLink: unknown, already used or expired token.
        """

        now = now or utcnow()
        token_hash = hash_token(raw_token)
        conditions = (
            User.email_verification_token == token_hash,
            User.email_verification_expires > now,
        )
        user = self._find(conditions)
        return self._apply(
            user,
            conditions,
            is_email_verified=True,
            email_verification_token=None,
            email_verification_expires=None,
        )

    def redeem_password_reset_token(
        self, raw_token: str, new_password: str, now: datetime | None = None
    ) -> User:
        """Replace the password of the owner of ``raw_token``.

        Sessions are revoked and any lockout is lifted along with the reset.

        Raises:
            InvalidOrExpiredLink: unknown, already used or expired token.
        """

        now = now or utcnow()
        token_hash = hash_token(raw_token)
        conditions = (
            User.password_reset_token == token_hash,
            User.password_reset_expires > now,
        )
        user = self._find(conditions)
        # Only hash once a live token was found.
        return self._apply(
            user,
            conditions,
            password_hash=generate_password_hash(new_password),
            password_reset_token=None,
            password_reset_expires=None,
            refresh_token_hash=None,
            login_attempts=0,
            lock_until=None,
        )

    @staticmethod
    def _find(conditions) -> User:
        user = User.query.filter(*conditions).first()
        if user is None:
            raise InvalidOrExpiredLink()
        return user

    @staticmethod
    def _apply(user: User, conditions, **values) -> User:
        """Apply ``values`` if the token still matches; a concurrent redemption loses."""

        statement = (
            update(User)
            .where(User.id == user.id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(statement)
        if result.rowcount != 1:
            raise InvalidOrExpiredLink()
        db.session.refresh(user)
        return user

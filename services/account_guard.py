"""Failed-login tracking and temporary account lockout."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta

from sqlalchemy import case, or_, update

from models import db
from models.user import User, utcnow

logger = logging.getLogger(__name__)


class AccountGuard:
    """Lock an account for ``lockout_window`` after ``max_attempts`` failures.

    This is a counter with a cooldown, not a sliding window: the counter only
    resets on a successful login or on the first failure after a lock expired.
    """

    def __init__(self, max_attempts: int = 5, lockout_window: timedelta = timedelta(minutes=15)):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.max_attempts = max_attempts
        self.lockout_window = lockout_window

    def is_locked(self, user: User, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return user.lock_until is not None and user.lock_until > now

    def minutes_remaining(self, user: User, now: datetime | None = None) -> int:
        """Whole minutes left on the lock, rounded up; 0 when not locked."""

        now = now or utcnow()
        if not self.is_locked(user, now):
            return 0
        seconds = (user.lock_until - now).total_seconds()
        return max(1, math.ceil(seconds / 60))

    def register_failure(self, user: User, now: datetime | None = None) -> bool:
        """Record a failed password check and return whether the account is now locked.

        Two conditional UPDATEs in the caller's transaction: the first counts
        the failure on a row that is not locked, the second sets the lock once
        the count reaches the threshold. No SET expression reads a column
        assigned before it in the same statement.
        """

        now = now or utcnow()
        not_locked = or_(User.lock_until.is_(None), User.lock_until <= now)
        count_failure = (
            update(User)
            .where(User.id == user.id, not_locked)
            .ordered_values(
                # An expired lock restarts the count.
                (
                    User.login_attempts,
                    case(
                        (User.lock_until.is_not(None), 1),
                        else_=User.login_attempts + 1,
                    ),
                ),
                (User.lock_until, None),
            )
            .execution_options(synchronize_session=False)
        )
        apply_lock = (
            update(User)
            .where(
                User.id == user.id,
                User.lock_until.is_(None),
                User.login_attempts >= self.max_attempts,
            )
            .values(lock_until=now + self.lockout_window)
            .execution_options(synchronize_session=False)
        )
        if db.session.execute(count_failure).rowcount == 1:
            db.session.execute(apply_lock)
        db.session.refresh(user)

        locked = self.is_locked(user, now)
        if locked:
            logger.warning(
                "Account %s locked after %s failed login attempts",
                user.id,
                user.login_attempts,
            )
        return locked

    def register_success(self, user: User) -> None:
        user.login_attempts = 0
        user.lock_until = None

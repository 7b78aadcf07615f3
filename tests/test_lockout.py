"""Tests for failed-login counting and the temporary account lock."""

from __future__ import annotations

from datetime import timedelta

from helpers import login, register
from models import db
from models.user import User, utcnow
from services.account_guard import AccountGuard


def _fail_logins(client, times: int) -> list:
    return [login(client, password="wrong-password") for _ in range(times)]


def test_account_locks_after_max_attempts(client, app):
    register(client)

    responses = _fail_logins(client, app.config["MAX_LOGIN_ATTEMPTS"])

    assert all(response.status_code == 401 for response in responses)
    with app.app_context():
        user = User.query.filter_by(email="a@b.com").one()
        assert user.login_attempts == app.config["MAX_LOGIN_ATTEMPTS"]
        assert user.lock_until is not None
        assert user.lock_until > utcnow()


def test_correct_password_rejected_while_locked(client, app):
    register(client)
    _fail_logins(client, app.config["MAX_LOGIN_ATTEMPTS"])

    response = login(client)

    assert response.status_code == 401
    message = response.get_json()["message"]
    assert "locked" in message
    assert "15 minute" in message


def test_failures_while_locked_do_not_increment(client, app):
    register(client)
    _fail_logins(client, app.config["MAX_LOGIN_ATTEMPTS"] + 3)

    with app.app_context():
        user = User.query.filter_by(email="a@b.com").one()
        assert user.login_attempts == app.config["MAX_LOGIN_ATTEMPTS"]


def test_login_allowed_after_lock_window_elapses(client, app):
    register(client)
    _fail_logins(client, app.config["MAX_LOGIN_ATTEMPTS"])

    with app.app_context():
        user = User.query.filter_by(email="a@b.com").one()
        user.lock_until = utcnow() - timedelta(seconds=1)
        db.session.commit()

    response = login(client)

    assert response.status_code == 200
    with app.app_context():
        user = User.query.filter_by(email="a@b.com").one()
        assert user.login_attempts == 0
        assert user.lock_until is None


def test_one_failure_after_expired_lock_restarts_count(client, app):
    register(client)
    _fail_logins(client, app.config["MAX_LOGIN_ATTEMPTS"])

    with app.app_context():
        user = User.query.filter_by(email="a@b.com").one()
        user.lock_until = utcnow() - timedelta(seconds=1)
        db.session.commit()

    _fail_logins(client, 1)

    with app.app_context():
        user = User.query.filter_by(email="a@b.com").one()
        assert user.login_attempts == 1
        assert user.lock_until is None


def test_guard_reports_remaining_minutes_rounded_up(app):
    guard = AccountGuard(max_attempts=3, lockout_window=timedelta(minutes=15))
    now = utcnow()
    user = User(email="x@y.com", name="X", lock_until=now + timedelta(minutes=4, seconds=1))

    assert guard.is_locked(user, now)
    assert guard.minutes_remaining(user, now) == 5
    assert guard.minutes_remaining(user, now + timedelta(minutes=10)) == 0


def test_guard_locks_on_threshold(app):
    guard = AccountGuard(max_attempts=2, lockout_window=timedelta(minutes=1))
    with app.app_context():
        user = User(email="x@y.com", name="X")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()

        assert guard.register_failure(user) is False
        assert user.login_attempts == 1
        assert guard.register_failure(user) is True
        assert user.login_attempts == 2
        assert guard.is_locked(user)

        guard.register_success(user)
        assert user.login_attempts == 0
        assert user.lock_until is None


def test_account_locks_again_after_expired_lock(client, app):
    register(client)
    _fail_logins(client, app.config["MAX_LOGIN_ATTEMPTS"])
    with app.app_context():
        user = User.query.filter_by(email="a@b.com").one()
        user.lock_until = utcnow() - timedelta(seconds=1)
        db.session.commit()

    _fail_logins(client, app.config["MAX_LOGIN_ATTEMPTS"])

    with app.app_context():
        user = User.query.filter_by(email="a@b.com").one()
        assert user.login_attempts == app.config["MAX_LOGIN_ATTEMPTS"]
        assert user.lock_until > utcnow()
    assert "locked" in login(client).get_json()["message"]


def test_guard_leaves_locked_row_untouched(app):
    guard = AccountGuard(max_attempts=2, lockout_window=timedelta(minutes=5))
    with app.app_context():
        user = User(email="x@y.com", name="X")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()
        guard.register_failure(user)
        guard.register_failure(user)
        locked_until = user.lock_until

        assert guard.register_failure(user) is True
        assert user.login_attempts == 2
        assert user.lock_until == locked_until

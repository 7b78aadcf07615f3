"""Compose the account emails from the Jinja templates in ``templates/email``."""

from __future__ import annotations

from flask import current_app, render_template

from .abstract_mailer import OutgoingEmail


def _link(path: str, token: str) -> str:
    base_url = current_app.config["FRONTEND_URL"].rstrip("/")
    return f"{base_url}/{path}/{token}"


def _hours(ttl) -> int:
    return max(1, int(ttl.total_seconds() // 3600))


def verification_email(to: str, name: str, token: str) -> OutgoingEmail:
    context = {
        "name": name,
        "url": _link("verify-email", token),
        "hours": _hours(current_app.config["EMAIL_VERIFICATION_TTL"]),
    }
    return OutgoingEmail(
        to=to,
        subject="Please verify your email address",
        html=render_template("email/verify_email.html", **context),
        text=render_template("email/verify_email.txt", **context),
    )


def password_reset_email(to: str, name: str, token: str) -> OutgoingEmail:
    context = {
        "name": name,
        "url": _link("reset-password", token),
        "hours": _hours(current_app.config["PASSWORD_RESET_TTL"]),
    }
    return OutgoingEmail(
        to=to,
        subject="Password reset request",
        html=render_template("email/reset_password.html", **context),
        text=render_template("email/reset_password.txt", **context),
    )

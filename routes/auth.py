"""Authentication blueprint: registration, login, email verification,
password reset, refresh-token rotation, logout and the profile endpoints."""

from __future__ import annotations

import hmac
import os
import uuid
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_current_user, jwt_required
from sqlalchemy.exc import IntegrityError
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest

from mail.messages import password_reset_email, verification_email
from models import db
from models.user import User
from schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from services.tokens import TokenPair
from utils.errors import (
    AccountLocked,
    EmailAlreadyRegistered,
    InvalidCredentials,
    InvalidOperatorCode,
    InvalidRefreshToken,
    MailDeliveryError,
)
from utils.request_validation import parse_json_request

auth_bp = Blueprint("auth", __name__)

ALLOWED_IMAGE_TYPES_DEFAULT = {"jpeg", "jpg", "png", "gif"}
FORGOT_PASSWORD_MESSAGE = (
    "If an account exists for that email, a password reset link has been sent."
)


def _service(name: str):
    return current_app.extensions[name]


def _auth_payload(user: User, pair: TokenPair, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "token": pair.access_token,
        "refreshToken": pair.refresh_token,
        "data": {"user": user.to_dict()},
    }


def _operator_code_matches(submitted: str | None) -> bool:
    expected = current_app.config.get("OPERATOR_SIGNUP_CODE")
    if not expected or not submitted:
        return False
    return hmac.compare_digest(submitted.encode("utf-8"), expected.encode("utf-8"))


def _email_taken(email: str) -> bool:
    return User.query.filter_by(email=email).first() is not None


def _send_verification_email(user: User, raw_token: str) -> None:
    _service("mailer").send(verification_email(user.email, user.name, raw_token))


@auth_bp.route("/register", methods=["POST"])
def register():
    """Create an account, email a verification link and sign the user in."""

    data = RegisterRequest.from_payload(parse_json_request(request))

    if data.role == "operator" and not _operator_code_matches(data.operator_code):
        raise InvalidOperatorCode()

    if _email_taken(data.email):
        raise EmailAlreadyRegistered()

    user = User(email=data.email, name=data.name, role=data.role)
    user.set_password(data.password)
    raw_token = _service("single_use_tokens").issue_verification_token(user)
    db.session.add(user)
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        raise EmailAlreadyRegistered() from exc

    pair = _service("token_issuer").issue_pair(user)
    db.session.commit()
    current_app.logger.info("Registered user %s with role %s", user.id, user.role)

    try:
        _send_verification_email(user, raw_token)
    except MailDeliveryError:
        current_app.logger.warning(
            "Verification email for user %s was not delivered", user.id
        )

    return (
        jsonify(_auth_payload(user, pair, "Registration successful.")),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login():
    """Authenticate with email and password and return a fresh token pair."""

    data = LoginRequest.from_payload(parse_json_request(request))
    guard = _service("account_guard")

    user = User.query.filter_by(email=data.email).first()
    if user is None:
        raise InvalidCredentials()

    if guard.is_locked(user):
        raise AccountLocked(guard.minutes_remaining(user))

    if not user.check_password(data.password):
        guard.register_failure(user)
        db.session.commit()
        current_app.logger.info(
            "Failed login for user %s (%s attempts)", user.id, user.login_attempts
        )
        raise InvalidCredentials()

    guard.register_success(user)
    pair = _service("token_issuer").issue_pair(user)
    db.session.commit()

    return jsonify(_auth_payload(user, pair, "Login successful.")), HTTPStatus.OK


@auth_bp.route("/verify-email/<token>", methods=["GET"])
def verify_email(token: str):
    """Redeem an email verification link."""

    user = _service("single_use_tokens").redeem_verification_token(token)
    db.session.commit()
    current_app.logger.info("User %s verified their email", user.id)
    return jsonify({"success": True, "message": "Email verified successfully."})


@auth_bp.route("/resend-verification", methods=["POST"])
@jwt_required()
def resend_verification():
    """Send a new verification link, replacing any earlier one."""

    user = get_current_user()
    if user.is_email_verified:
        raise BadRequest("Email is already verified.")

    raw_token = _service("single_use_tokens").issue_verification_token(user)
    db.session.commit()
    _send_verification_email(user, raw_token)
    return jsonify({"success": True, "message": "Verification email sent."})


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """Email a password reset link. The response never reveals whether the account exists."""

    data = ForgotPasswordRequest.from_payload(parse_json_request(request))

    user = User.query.filter_by(email=data.email).first()
    if user is not None:
        raw_token = _service("single_use_tokens").issue_password_reset_token(user)
        db.session.commit()
        current_app.logger.info("Password reset requested for user %s", user.id)
        try:
            _service("mailer").send(password_reset_email(user.email, user.name, raw_token))
        except MailDeliveryError:
            current_app.logger.warning(
                "Password reset email for user %s was not delivered", user.id
            )

    return jsonify({"success": True, "message": FORGOT_PASSWORD_MESSAGE})


@auth_bp.route("/reset-password/<token>", methods=["POST"])
def reset_password(token: str):
    """Set a new password using a reset link."""

    data = ResetPasswordRequest.from_payload(parse_json_request(request))
    user = _service("single_use_tokens").redeem_password_reset_token(token, data.password)
    db.session.commit()
    current_app.logger.info("Password reset completed for user %s", user.id)
    return jsonify({"success": True, "message": "Password reset successfully."})


@auth_bp.route("/refresh-token", methods=["POST"])
def refresh_token():
    """Exchange a refresh token for a new pair; the presented token is retired."""

    data = RefreshRequest.from_payload(parse_json_request(request))
    issuer = _service("token_issuer")

    user_id = issuer.decode_refresh_token(data.refresh_token)
    user = db.session.get(User, user_id)
    if user is None or not issuer.matches_stored(user, data.refresh_token):
        current_app.logger.warning("Rejected stale refresh token for user %s", user_id)
        raise InvalidRefreshToken()

    pair = issuer.issue_pair(user)
    db.session.commit()

    return jsonify(
        {
            "success": True,
            "token": pair.access_token,
            "refreshToken": pair.refresh_token,
        }
    )


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    """Invalidate the stored refresh token of the current user."""

    _service("token_issuer").revoke(get_current_user())
    db.session.commit()
    return jsonify({"success": True, "message": "Logged out successfully."})


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def get_me():
    return jsonify({"success": True, "data": {"user": get_current_user().to_dict()}})


def _allowed_image_types() -> set[str]:
    configured = current_app.config.get("ALLOWED_IMAGE_TYPES")
    if not configured:
        return set(ALLOWED_IMAGE_TYPES_DEFAULT)
    if isinstance(configured, str):
        configured = configured.split(",")
    normalized = {item.strip().lower().lstrip(".") for item in configured if item.strip()}
    if "jpeg" in normalized or "jpg" in normalized:
        normalized |= {"jpeg", "jpg"}
    return normalized or set(ALLOWED_IMAGE_TYPES_DEFAULT)


def _validate_image(file: FileStorage) -> str:
    """Return the lower-cased extension of a valid upload or raise 400."""

    if not file.filename or "." not in file.filename:
        raise BadRequest("Profile image must have a file extension.")

    extension = file.filename.rsplit(".", 1)[-1].lower()
    if extension not in _allowed_image_types():
        allowed = ", ".join(sorted(_allowed_image_types()))
        raise BadRequest(f"File type not allowed. Allowed types: {allowed}.")
    if file.mimetype and not file.mimetype.startswith("image/"):
        raise BadRequest("Please upload an image file.")

    max_size = int(current_app.config.get("MAX_UPLOAD_SIZE", 5 * 1024 * 1024))
    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    if size > max_size:
        raise BadRequest(
            f"File exceeds the maximum upload size of {max_size // (1024 * 1024)}MB."
        )
    return extension


def _profile_changes() -> tuple[ProfileUpdate, FileStorage | None]:
    if request.is_json:
        return ProfileUpdate.from_payload(parse_json_request(request)), None

    image = request.files.get("profileImage")
    return ProfileUpdate.from_payload(request.form.to_dict()), image


@auth_bp.route("/me", methods=["PATCH"])
@jwt_required()
def update_me():
    """Update the display name and/or upload a new profile image."""

    user = get_current_user()
    changes, image = _profile_changes()
    if changes.name is None and image is None:
        raise BadRequest("Provide a name or a profileImage to update.")

    storage = _service("storage")
    previous_image = None
    if image is not None:
        extension = _validate_image(image)
        stored = storage.save(image, f"profile-{uuid.uuid4().hex}.{extension}")
        previous_image = user.profile_image
        user.profile_image = stored

    if changes.name is not None:
        user.name = changes.name

    db.session.commit()

    if previous_image and previous_image != user.profile_image:
        storage.delete(previous_image)

    return jsonify({"success": True, "data": {"user": user.to_dict()}})

"""Application factory."""

import json
import os
import uuid

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from logging_config import setup_logging
from mail import AbstractMailer, MemoryMailer, SmtpMailer
from models import db
from models.user import User
from routes.auth import auth_bp
from services import AccountGuard, SingleUseTokens, TokenIssuer
from storage import AbstractStorage, LocalStorage
from utils.errors import current_request_id, error_payload, error_response

migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(
    config_class: type[Config] = Config,
    *,
    mailer: AbstractMailer | None = None,
    storage: AbstractStorage | None = None,
) -> Flask:
    """Create and configure the Flask application.

    ``mailer`` and ``storage`` default to the backends named in the config.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    if not app.config.get("TESTING"):
        setup_logging(app.config.get("LOG_LEVEL", "INFO"), app.config.get("LOG_DIR"))

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _register_jwt_callbacks(jwt)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Services
    app.extensions["mailer"] = mailer or _build_mailer(app)
    app.extensions["storage"] = storage or LocalStorage(app.config["UPLOAD_DIR"])
    app.extensions["token_issuer"] = TokenIssuer(
        refresh_secret=app.config["JWT_REFRESH_SECRET_KEY"],
        access_expires=app.config["JWT_ACCESS_TOKEN_EXPIRES"],
        refresh_expires=app.config["JWT_REFRESH_TOKEN_EXPIRES"],
        algorithm=app.config.get("JWT_ALGORITHM", "HS256"),
    )
    app.extensions["account_guard"] = AccountGuard(
        max_attempts=int(app.config["MAX_LOGIN_ATTEMPTS"]),
        lockout_window=app.config["LOGIN_LOCKOUT_WINDOW"],
    )
    app.extensions["single_use_tokens"] = SingleUseTokens(
        verification_ttl=app.config["EMAIL_VERIFICATION_TTL"],
        reset_ttl=app.config["PASSWORD_RESET_TTL"],
    )

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        try:
            db.session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            app.logger.exception("Health check could not reach the database")
            return jsonify({"status": "error", "database": "disconnected"}), 503
        return jsonify({"status": "ok", "database": "connected"})

    # Errors
    _register_error_handlers(app)

    return app


def _build_mailer(app: Flask) -> AbstractMailer:
    backend = (app.config.get("MAIL_BACKEND") or "smtp").lower()
    if backend == "memory":
        return MemoryMailer()
    if backend != "smtp":
        raise ValueError(f"Unknown MAIL_BACKEND: {backend}")
    return SmtpMailer(
        host=app.config["SMTP_HOST"],
        port=int(app.config["SMTP_PORT"]),
        sender=app.config["MAIL_SENDER"],
        username=app.config.get("SMTP_USER"),
        password=app.config.get("SMTP_PASS"),
        use_tls=bool(app.config.get("SMTP_USE_TLS", True)),
        timeout=int(app.config.get("SMTP_TIMEOUT", 10)),
    )


def _register_jwt_callbacks(manager: JWTManager) -> None:
    """Load the user behind an access token and render JWT failures as JSON."""

    @manager.user_lookup_loader
    def _load_user(_jwt_header, jwt_data):
        try:
            user_id = int(jwt_data["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        return db.session.get(User, user_id)

    @manager.user_lookup_error_loader
    def _user_not_found(_jwt_header, _jwt_data):
        return error_response(401, "Unauthorized", "The user for this token no longer exists.")

    @manager.unauthorized_loader
    def _missing_token(_reason):
        return error_response(401, "Unauthorized", "Please log in to access this resource.")

    @manager.invalid_token_loader
    def _invalid_token(_reason):
        return error_response(401, "Unauthorized", "Invalid token. Please log in again.")

    @manager.expired_token_loader
    def _expired_token(_jwt_header, _jwt_data):
        return error_response(401, "Unauthorized", "Token has expired. Please log in again.")


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = current_request_id()
        response = error.get_response()
        payload = error_payload(getattr(error, "name", "Error"), error.description)
        payload["request_id"] = request_id
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        db.session.rollback()
        request_id = current_request_id()
        app.logger.exception("Unhandled application error", exc_info=error)
        response = error_response(500, "Internal Server Error", "An unexpected error occurred.")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))

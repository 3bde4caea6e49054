import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from library_api.config import Config
from library_api.errors import ServiceError
from library_api.extensions import db, jwt, mail, migrate


def _error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def register_jwt_handlers():
    @jwt.unauthorized_loader
    def missing_token(reason):
        return _error("Authentication token is missing", 401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _error("Invalid authentication token", 401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _error("Authentication token has expired", 401)


def register_error_handlers(app: Flask):
    @app.errorhandler(ServiceError)
    def handle_service_error(e: ServiceError):
        db.session.rollback()
        if e.status_code >= 500:
            app.logger.error(f"[api] {e.message}")
        return _error(e.message, e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return _error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        db.session.rollback()
        app.logger.exception(f"[api] Unhandled error: {e}")
        message = "Internal server error"
        if app.config.get("DEBUG_ERRORS"):
            message = f"{message}: {e}"
        return _error(message, 500)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    # models must be imported before create_all / migrations
    from library_api import models  # noqa: F401

    register_jwt_handlers()
    register_error_handlers(app)

    from library_api.controllers.auth_controller import auth_bp
    from library_api.controllers.banner_controller import banner_bp
    from library_api.controllers.book_controller import book_bp
    from library_api.controllers.borrow_controller import borrow_bp
    from library_api.controllers.collection_controller import collection_bp
    from library_api.controllers.notification_controller import notif_bp
    from library_api.controllers.user_controller import user_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(book_bp)
    app.register_blueprint(borrow_bp)
    app.register_blueprint(collection_bp)
    app.register_blueprint(banner_bp)
    app.register_blueprint(notif_bp)

    @app.get("/health")
    def health():
        return jsonify({"success": True, "status": "ok", "environment": app.config.get("ENV_NAME")})

    @app.get("/")
    def index():
        return jsonify({
            "success": True,
            "message": "Library Management API",
            "data": {
                "endpoints": {
                    "auth": "/api/auth",
                    "users": "/api/users",
                    "books": "/api/books",
                    "borrow": "/api/borrow",
                    "collections": "/api/collections",
                    "banners": "/api/banners",
                    "notifications": "/api/notifications",
                    "health": "/health",
                }
            },
        })

    from library_api.cli import register_cli
    register_cli(app)

    # Scheduler (notification queue + reminders)
    from library_api.tasks.scheduler import start_scheduler
    start_scheduler(app)

    return app

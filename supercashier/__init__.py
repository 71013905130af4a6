# supercashier/__init__.py
import logging

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import APIError, ValidationError
from .extensions import db, migrate
from .responses import error


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.users import users_bp
    from .routes.stock_additions import stock_additions_bp
    from .routes.payments import payments_bp
    from .routes.sales import sales_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(stock_additions_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)

    register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app


def register_error_handlers(app: Flask) -> None:
    """Render every failure into the {meta, data[, errors]} envelope."""

    @app.errorhandler(APIError)
    def handle_api_error(exc: APIError):
        db.session.rollback()
        if isinstance(exc, ValidationError):
            app.logger.info("Validation failed on %s %s: %s", request.method, request.path, exc.errors)
        else:
            app.logger.info("%s on %s %s: %s", exc.status_code, request.method, request.path, exc.message)
        return error(exc.message, exc.status_code, errors=exc.errors)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        message = "Not Found" if exc.code == 404 else exc.name
        return error(message, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return error("Something went wrong", 500)

import logging
import os

from flask import Flask, current_app, send_from_directory
from flask_cors import CORS
from marshmallow import ValidationError

from .config import CONFIGS, DevelopmentConfig
from .extensions import db, migrate, jwt, ma


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_name=None):
    app = Flask(__name__, instance_relative_config=False)
    env = config_name or os.getenv("FLASK_ENV", "development")
    app.config.from_object(CONFIGS.get(env, DevelopmentConfig))

    configure_logging(app)

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",")]
    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    from donatehub.services.container import init_services
    init_services(app)

    # register blueprints
    from donatehub.routes.auth_routes import bp as auth_bp
    from donatehub.routes.donation_routes import bp as donation_bp
    from donatehub.routes.withdraw_routes import bp as withdraw_bp
    from donatehub.routes.user_routes import bp as user_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(donation_bp)
    app.register_blueprint(withdraw_bp)
    app.register_blueprint(user_bp)

    @app.route("/uploads/<path:filename>")
    def serve_upload(filename):
        return send_from_directory(current_app.config["UPLOADS_FOLDER"], filename)

    # error handlers to match required error format
    from donatehub.utils.exceptions import ServiceError
    from donatehub.utils.response_formatter import error_response

    @app.errorhandler(ServiceError)
    def service_error(e):
        if e.status >= 500:
            app.logger.error("%s: %s", e.code, e.message)
        return error_response(e.code, e.message, e.details, status=e.status)

    @app.errorhandler(ValidationError)
    def validation_error(e):
        return error_response("VALIDATION_ERROR", "Invalid request body", e.messages, status=400)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return error_response("UNAUTHORIZED", reason, status=401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return error_response("UNAUTHORIZED", reason, status=401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_response("TOKEN_EXPIRED", "Token has expired", status=401)

    @app.errorhandler(400)
    def bad_request(e):
        return error_response("BAD_REQUEST", str(e), status=400)

    @app.errorhandler(401)
    def unauthorized(e):
        return error_response("UNAUTHORIZED", str(e), status=401)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(500)
    def server_error(e):
        return error_response("SERVER_ERROR", "Internal server error", status=500)

    return app

from flask import Flask, Blueprint, g
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config, ProductionConfig, DEV_JWT_SECRET, DEV_JWT_REFRESH_SECRET
from .errors import register_error_handlers
from .request_log import register_request_logging
from models import storage  # DBStorage singleton (scoped_session)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "User Auth API",
        "version": "1.0.0",
        "description": "JWT-authenticated user management: registration, login, token refresh, profiles and admin user operations.",
    },
    "basePath": "/",  # Blueprints are mounted under /api
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def _check_production_secrets(app: Flask) -> None:
    if app.config["JWT_SECRET"] == DEV_JWT_SECRET or app.config["JWT_REFRESH_SECRET"] == DEV_JWT_REFRESH_SECRET:
        raise RuntimeError("JWT_SECRET and JWT_REFRESH_SECRET must be set in production")


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    config = get_config(config_name)
    app.config.from_object(config)
    if config is ProductionConfig:
        _check_production_secrets(app)

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Global error handlers return the {status, message} envelope
    register_error_handlers(app)
    register_request_logging(app)

    # deferred: utils imports api.errors
    from utils.decorators import jwt_optional
    from utils.ratelimit import RateLimiter

    app.extensions["rate_limiter"] = RateLimiter()

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    api_bp = Blueprint("api", __name__, url_prefix="/api")
    api_bp.register_blueprint(health_bp)
    api_bp.register_blueprint(auth_bp)
    api_bp.register_blueprint(users_bp)
    app.register_blueprint(api_bp)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    @jwt_optional()
    def root():
        body = {
            "message": "Welcome to User Auth API",
            "docs": "/apidocs/",
            "health": "/api/health",
            "authenticated": g.current_user is not None,
        }
        if g.current_user is not None:
            body["user"] = {"id": g.current_user.id, "email": g.current_user.email, "role": g.current_user.role}
        return body, 200

    return app

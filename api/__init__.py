import logging

import click
from flask import Flask, current_app
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from auth import (
    BearerTokenStrategy,
    PasswordStrategy,
    RefreshTokenStore,
    SessionManager,
    TokenIssuer,
    UserStore,
)
from models import DBStorage
from models.base_model import utcnow

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "User Auth API",
        "version": "1.0.0",
        "description": "User registration, login and refresh-token sessions.",
    },
    "basePath": "/",
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


def get_sessions() -> SessionManager:
    return current_app.extensions["session_manager"]


def init_auth(app: Flask, storage: DBStorage, clock=utcnow) -> SessionManager:
    """
    Wire the session core from app config. A bad signing configuration
    raises ConfigurationError here, at startup.
    """
    tokens = TokenIssuer.from_config(app.config, clock=clock)
    users = UserStore(storage)
    refresh_tokens = RefreshTokenStore(storage, ttl=tokens.refresh_ttl, clock=clock)
    sessions = SessionManager(users, tokens, refresh_tokens, PasswordStrategy(users))

    app.extensions["storage"] = storage
    app.extensions["session_manager"] = sessions
    app.extensions["bearer_strategy"] = BearerTokenStrategy(tokens, users)
    return sessions


def create_app(config_name: str | None = None, storage: DBStorage | None = None, clock=utcnow) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The database handle is created here (or passed in by tests) and opened
    once; nothing is looked up from module-level state.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    if storage is None:
        storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.open()
    init_auth(app, storage, clock=clock)

    from .health import bp as health_bp
    from .auth import bp as auth_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")

    @app.cli.command("purge-tokens")
    def purge_tokens():
        """Delete expired refresh tokens."""
        count = get_sessions().refresh_tokens.purge_expired()
        click.echo(f"Purged {count} expired refresh token(s)")

    @app.route("/")
    def root():
        return {
            "message": "Welcome to User Auth API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app

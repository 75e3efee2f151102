# users_api/main.py
from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from users_api.api.middlewares.error_handler import register_error_handlers
from users_api.api.middlewares.request_context import register_request_context
from users_api.api.routes import register_routes
from users_api.commands import register_commands
from users_api.config.flask_config import configure_app
from users_api.config.settings import Settings, settings as default_settings
from users_api.core.logging import configure_logging, get_logger
from users_api.infrastructure.database.session import create_schema, init_engine

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> Flask:
    settings = settings or default_settings
    configure_logging(settings)

    app = Flask(__name__)

    CORS(
        app,
        resources={rf"{settings.api_prefix}/*": {"origins": settings.cors_origins}},
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    configure_app(app, settings)

    register_request_context(app)
    register_routes(app, api_prefix=settings.api_prefix, app_prefix=settings.app_prefix)
    register_error_handlers(app)
    register_commands(app)

    init_engine(settings.database_url, echo=settings.sql_echo)
    if settings.auto_create_schema:
        create_schema()

    logger.info(
        "Application created",
        environment=settings.environment,
        api_prefix=settings.api_prefix,
    )
    return app


app = create_app()

if __name__ == "__main__":
    # em produção use um servidor WSGI (gunicorn); isto é só para execução direta
    app.run(host="0.0.0.0", port=5000, debug=default_settings.debug)

# backend/layup/__init__.py
import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import LayupError
from .extensions import db, migrate


def create_app(config: dict | None = None) -> Flask:
    """
    Application factory.

    config overrides win over Config/environment values (tests pass an
    in-memory database URI here).
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger("layup").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Role table and event observer are per-app data, not module globals
    from .services.permission_service import install_access_policy
    from .services.event_service import install_observer
    install_access_policy(app, app.config.get("ROLE_PERMISSIONS"))
    install_observer(app, app.config.get("EVENT_OBSERVER"))

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.orders import orders_bp
    from .routes.plans import plans_bp
    from .routes.layouts import layouts_bp
    from .routes.tasks import tasks_bp
    from .routes.logs import logs_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(plans_bp)
    app.register_blueprint(layouts_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(logs_bp)

    @app.errorhandler(LayupError)
    def handle_layup_error(e: LayupError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        # Let Flask render 404/405 and friends
        if isinstance(e, HTTPException):
            return e
        app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app

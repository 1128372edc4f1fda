"""
Application factory for MarketDesk.

MarketDesk serves two JSON APIs from one Flask application: a
storefront (catalogue, cart, Stripe checkout, admin panel) and a
social-media dashboard (account metrics, scheduled posting). All
extensions (SQLAlchemy, Migrate, JWT) are initialised here and each
resource lives in its own blueprint under ``/api``.

Configuration comes from ``marketdesk.config.Config``, which reads
environment variables and optional dotenv files. Tests pass a
``test_config`` mapping that overrides any key.
"""

from __future__ import annotations

import logging

from flask import Flask
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager

# instantiate extensions without binding them to an app yet.  They will
# be bound in create_app().
from .db import db  # use shared db object from db.py
migrate = Migrate()
jwt = JWTManager()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("marketdesk").setLevel(level)


def create_app(test_config: dict | None = None) -> Flask:
    """Create and configure a Flask application.

    Parameters
    ----------
    test_config: dict | None, optional
        Optional configuration overrides used when running tests.

    Returns
    -------
    Flask
        A configured Flask application instance.
    """
    from .config import Config

    app = Flask(__name__)
    app.config.from_object(Config())
    if test_config:
        app.config.update(test_config)

    _configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Initialise extensions with the app
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    from .errors import register_error_handlers, register_jwt_handlers
    register_error_handlers(app)
    register_jwt_handlers(jwt)

    # Register blueprints. Importing here avoids circular imports.
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.cart import cart_bp
    from .routes.checkout import checkout_bp
    from .routes.admin import admin_bp
    from .routes.social import social_bp
    from .routes.posts import posts_bp

    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(products_bp, url_prefix="/api")
    app.register_blueprint(cart_bp, url_prefix="/api")
    app.register_blueprint(checkout_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(social_bp, url_prefix="/api")
    app.register_blueprint(posts_bp, url_prefix="/api")

    @app.route("/api/health")
    def health_check() -> dict[str, str]:
        """Return a simple health check response."""
        return {"status": "ok"}

    if app.config.get("SCHEDULER_ENABLED") and not app.config.get("TESTING"):
        from .services import init_scheduler
        init_scheduler(app)

    return app

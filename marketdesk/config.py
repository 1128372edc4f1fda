"""
Application configuration.

``Config`` reads every setting from the environment. Outside of
testing, a dotenv file is loaded first: ``config.prod.env`` when
``FLASK_ENV`` is ``production``, ``config.env`` otherwise. Values
passed to ``create_app(test_config)`` override anything defined here.
"""

from __future__ import annotations

import os
from datetime import timedelta

from dotenv import load_dotenv


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Environment-driven configuration object."""

    def __init__(self) -> None:
        env = os.getenv("FLASK_ENV", "development")
        if env == "production":
            load_dotenv("config.prod.env")
        elif env != "testing":
            load_dotenv("config.env")

    @property
    def SECRET_KEY(self) -> str:
        return os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        return os.getenv("DATABASE_URL", "sqlite:///marketdesk.db")

    @property
    def SQLALCHEMY_TRACK_MODIFICATIONS(self) -> bool:
        return False

    @property
    def JWT_SECRET_KEY(self) -> str:
        return os.getenv("JWT_SECRET_KEY", "please-change-this-secret-key")

    @property
    def JWT_ACCESS_TOKEN_EXPIRES(self) -> timedelta:
        return timedelta(hours=int(os.getenv("JWT_EXPIRES_HOURS", 24)))

    # Stripe
    @property
    def STRIPE_SECRET_KEY(self) -> str:
        return os.getenv("STRIPE_SECRET_KEY", "")

    @property
    def STRIPE_WEBHOOK_SECRET(self) -> str:
        return os.getenv("STRIPE_WEBHOOK_SECRET", "")

    @property
    def STRIPE_CURRENCY(self) -> str:
        return os.getenv("STRIPE_CURRENCY", "usd")

    @property
    def CHECKOUT_SUCCESS_URL(self) -> str:
        return os.getenv(
            "CHECKOUT_SUCCESS_URL",
            "http://localhost:3000/checkout/success?session_id={CHECKOUT_SESSION_ID}",
        )

    @property
    def CHECKOUT_CANCEL_URL(self) -> str:
        return os.getenv("CHECKOUT_CANCEL_URL", "http://localhost:3000/cart")

    # Twitter
    @property
    def TWITTER_API_BASE(self) -> str:
        return os.getenv("TWITTER_API_BASE", "https://api.twitter.com/2")

    @property
    def TWITTER_BEARER_TOKEN(self) -> str:
        return os.getenv("TWITTER_BEARER_TOKEN", "")

    @property
    def TWITTER_USER_TOKEN(self) -> str:
        """User-context OAuth 2.0 token, required to publish tweets."""
        return os.getenv("TWITTER_USER_TOKEN", "")

    @property
    def TWITTER_USERNAME(self) -> str:
        return os.getenv("TWITTER_USERNAME", "")

    @property
    def TWITTER_TIMEOUT(self) -> float:
        return float(os.getenv("TWITTER_TIMEOUT", 10))

    # Scheduled posting
    @property
    def SCHEDULER_ENABLED(self) -> bool:
        return _env_bool("SCHEDULER_ENABLED")

    @property
    def POST_DISPATCH_INTERVAL(self) -> int:
        return int(os.getenv("POST_DISPATCH_INTERVAL", 60))

    @property
    def POST_MAX_ATTEMPTS(self) -> int:
        return int(os.getenv("POST_MAX_ATTEMPTS", 3))

    @property
    def LOG_LEVEL(self) -> str:
        return os.getenv("LOG_LEVEL", "INFO").upper()

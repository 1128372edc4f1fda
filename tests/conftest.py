"""
Test configuration and shared fixtures for MarketDesk tests.

Every test gets a fresh application bound to an in-memory SQLite
database. Stripe and Twitter are never contacted; tests that reach
those services patch the library call.
"""

import pytest
from flask_jwt_extended import create_access_token

from marketdesk import create_app, db
from marketdesk.models import Product, User


TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "SECRET_KEY": "test-secret-key",
    "JWT_SECRET_KEY": "test-jwt-secret-key-at-least-32-bytes-long",
    "STRIPE_SECRET_KEY": "sk_test_dummy",
    "STRIPE_WEBHOOK_SECRET": "whsec_test_dummy",
    "STRIPE_CURRENCY": "usd",
    "CHECKOUT_SUCCESS_URL": "https://shop.test/success?session_id={CHECKOUT_SESSION_ID}",
    "CHECKOUT_CANCEL_URL": "https://shop.test/cart",
    "TWITTER_API_BASE": "https://api.twitter.test/2",
    "TWITTER_BEARER_TOKEN": "test-bearer",
    "TWITTER_USER_TOKEN": "test-user-token",
    "TWITTER_USERNAME": "marketdesk",
    "TWITTER_TIMEOUT": 5,
    "SCHEDULER_ENABLED": False,
    "POST_MAX_ATTEMPTS": 3,
    "LOG_LEVEL": "WARNING",
}


@pytest.fixture
def app():
    """Create a new app instance with empty tables for each test."""
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory creating committed users."""

    def _make(username="shopper", email=None, password="correct-horse", is_admin=False):
        user = User(username=username, email=email or f"{username}@example.com", is_admin=is_admin)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(username="admin", is_admin=True)


def headers_for(user):
    token = create_access_token(identity=str(user.id), additional_claims={"is_admin": user.is_admin})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(user):
    return headers_for(user)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def make_product(app):
    def _make(name="Enamel Mug", price_cents=1400, stock=10, **kwargs):
        product = Product(name=name, price_cents=price_cents, stock=stock, **kwargs)
        db.session.add(product)
        db.session.commit()
        return product

    return _make


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def auth_headers(app):
    """Return a function building bearer headers for any user."""
    return headers_for

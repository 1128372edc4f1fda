"""Seed script for initial data.

Running this script populates the database with an administrator, a
demo shopper and a small product catalogue. Execute it with
``python -m seed.seed`` from the repository root.
"""
from __future__ import annotations

import logging

from marketdesk import create_app, db
from marketdesk.models import Product, User

logger = logging.getLogger(__name__)

PRODUCTS = [
    ("Canvas Tote Bag", "Heavy cotton tote with inner pocket", 1800, 40),
    ("Enamel Mug", "12oz camping mug, dishwasher safe", 1400, 25),
    ("Sticker Pack", "Five die-cut vinyl stickers", 500, 200),
    ("Hoodie", "Organic cotton pullover hoodie", 5200, 12),
    ("Notebook", "A5 dot-grid notebook, 120 pages", 1200, 0),
]


def run_seeds() -> None:
    """Insert the demo users and products if they are not present."""
    app = create_app()
    with app.app_context():
        db.create_all()
        if User.query.filter_by(email="admin@example.com").first():
            logger.info("Seed data already present, skipping.")
            return
        admin = User(username="admin", email="admin@example.com", is_admin=True)
        admin.set_password("admin-password")
        shopper = User(username="shopper", email="shopper@example.com")
        shopper.set_password("shopper-password")
        db.session.add_all([admin, shopper])
        db.session.add_all(
            Product(name=name, description=description, price_cents=price, stock=stock)
            for name, description, price, stock in PRODUCTS
        )
        db.session.commit()
        logger.info("Seed data inserted successfully.")


if __name__ == "__main__":
    run_seeds()

"""Stripe Checkout wrapper.

The storefront never handles card data. Each checkout attempt creates
one Stripe Checkout Session and the customer is redirected to its URL;
Stripe later reports the outcome through a signed webhook.
"""
from __future__ import annotations

import logging

import stripe
from flask import current_app

from ..errors import ExternalServiceError, ValidationError
from ..models import Order

logger = logging.getLogger(__name__)


def _api_key() -> str:
    key = current_app.config.get("STRIPE_SECRET_KEY")
    if not key:
        raise ExternalServiceError("stripe", "Stripe is not configured.")
    return key


def create_checkout_session(order: Order):
    """Create a Checkout Session for ``order`` and return it.

    Line items are built from the order snapshot, not the live product
    rows, so the amount charged matches ``order.total_cents``.
    """
    line_items = [
        {
            "price_data": {
                "currency": order.currency,
                "product_data": {"name": item.product_name},
                "unit_amount": item.unit_price_cents,
            },
            "quantity": item.quantity,
        }
        for item in order.items
    ]
    try:
        session = stripe.checkout.Session.create(
            api_key=_api_key(),
            mode="payment",
            line_items=line_items,
            success_url=current_app.config["CHECKOUT_SUCCESS_URL"],
            cancel_url=current_app.config["CHECKOUT_CANCEL_URL"],
            client_reference_id=str(order.user_id),
            metadata={"order_id": str(order.id)},
        )
    except stripe.StripeError as exc:
        raise ExternalServiceError("stripe", exc.user_message or "Payment provider error.") from exc
    logger.info("Created checkout session %s for order %s", session.id, order.id)
    return session


def construct_webhook_event(payload: bytes, signature: str | None):
    """Verify a webhook payload against the signing secret."""
    secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not secret:
        raise ExternalServiceError("stripe", "Stripe webhook secret is not configured.")
    try:
        return stripe.Webhook.construct_event(payload, signature or "", secret)
    except ValueError:
        raise ValidationError("Invalid webhook payload.")
    except stripe.SignatureVerificationError:
        logger.warning("Rejected webhook with bad signature")
        raise ValidationError("Invalid webhook signature.")

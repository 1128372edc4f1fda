"""Order creation and fulfilment.

``start_checkout`` turns the cart into a pending order and a Stripe
session. ``fulfil_session`` is driven by the webhook and is idempotent:
an order is marked paid, and stock decremented, at most once.
"""
from __future__ import annotations

import logging
from datetime import datetime

from flask import current_app

from .. import db
from ..errors import NotFoundError, ValidationError
from ..models import Order, OrderItem, OrderStatus, Product
from . import cart_service, payment_service

logger = logging.getLogger(__name__)


def start_checkout(user_id: int) -> tuple[Order, str]:
    """Create a pending order from the user's cart.

    Returns the committed order and the Checkout URL. If Stripe fails,
    the pending order is rolled back and ``ExternalServiceError``
    propagates.
    """
    items = cart_service.get_cart(user_id)
    if not items:
        raise ValidationError("Cart is empty.")
    currency = current_app.config.get("STRIPE_CURRENCY", "usd")
    for item in items:
        if item.product.currency != currency:
            raise ValidationError(f"'{item.product.name}' is not sold in {currency.upper()}.")
        if not item.product.is_active:
            raise ValidationError(f"'{item.product.name}' is no longer available.")
        if item.quantity > item.product.stock:
            raise ValidationError(
                f"Only {item.product.stock} of '{item.product.name}' in stock.",
                fields={"quantity": "Exceeds available stock."},
            )

    order = Order(user_id=user_id, currency=currency)
    for item in items:
        order.items.append(
            OrderItem(
                product_id=item.product_id,
                product_name=item.product.name,
                unit_price_cents=item.product.price_cents,
                quantity=item.quantity,
            )
        )
    order.compute_total()
    db.session.add(order)
    db.session.flush()

    session = payment_service.create_checkout_session(order)
    order.stripe_session_id = session.id
    db.session.commit()
    return order, session.url


def fulfil_session(session_id: str) -> Order | None:
    """Mark the order behind a completed Checkout Session as paid.

    Unknown sessions are logged and ignored, so Stripe does not retry
    events for sessions this deployment did not create.
    """
    order = Order.query.filter_by(stripe_session_id=session_id).first()
    if order is None:
        logger.warning("Webhook for unknown checkout session %s", session_id)
        return None
    if order.status == OrderStatus.CANCELLED:
        logger.warning(
            "Payment completed for cancelled order %s (session %s); refund required",
            order.id,
            session_id,
        )
        return order
    if order.status != OrderStatus.PENDING:
        logger.info("Order %s already %s, ignoring duplicate event", order.id, order.status.value)
        return order

    for item in order.items:
        product = db.session.get(Product, item.product_id)
        # Payment already succeeded; oversell is clamped rather than refused
        product.stock = max(product.stock - item.quantity, 0)
    order.status = OrderStatus.PAID
    order.paid_at = datetime.utcnow()
    cart_service.clear_cart(order.user_id)
    db.session.commit()
    logger.info("Order %s paid (%s %s)", order.id, order.total_cents, order.currency)
    return order


def expire_session(session_id: str) -> Order | None:
    """Cancel the pending order behind an expired Checkout Session."""
    order = Order.query.filter_by(stripe_session_id=session_id).first()
    if order is None or order.status != OrderStatus.PENDING:
        return order
    order.status = OrderStatus.CANCELLED
    db.session.commit()
    logger.info("Order %s cancelled after session expiry", order.id)
    return order


def get_user_order(user_id: int, order_id: int) -> Order:
    order = Order.query.filter_by(id=order_id, user_id=user_id).first()
    if order is None:
        raise NotFoundError("Order not found.")
    return order

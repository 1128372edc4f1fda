"""
Routes for checkout and order history.

``POST /checkout`` turns the cart into a pending order and returns the
Stripe Checkout URL to redirect to. Stripe confirms payment through
``POST /checkout/webhook``; the order is only marked paid there, never
on the strength of a browser redirect.
"""

from __future__ import annotations

import logging

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from ..models import Order
from ..schemas import OrderSchema
from ..services import order_service, payment_service
from ..util.auth import current_user_id
from ..util.params import pagination

logger = logging.getLogger(__name__)

checkout_bp = Blueprint("checkout", __name__)


@checkout_bp.route("/checkout", methods=["POST"])
@jwt_required()
def create_checkout() -> tuple[dict, int]:
    """Start a checkout for the current cart.

    Returns 400 for an empty cart or insufficient stock and 500 when
    the payment provider cannot create a session.
    """
    order, checkout_url = order_service.start_checkout(current_user_id())
    return {
        "order_id": order.id,
        "session_id": order.stripe_session_id,
        "checkout_url": checkout_url,
        "total_cents": order.total_cents,
        "currency": order.currency,
    }, 201


@checkout_bp.route("/checkout/webhook", methods=["POST"])
def stripe_webhook() -> tuple[dict, int]:
    """Receive Stripe events. Unhandled event types are acknowledged."""
    event = payment_service.construct_webhook_event(
        request.get_data(), request.headers.get("Stripe-Signature")
    )
    event_type = event["type"]
    session = event["data"]["object"]
    if event_type == "checkout.session.completed":
        order_service.fulfil_session(session["id"])
    elif event_type == "checkout.session.expired":
        order_service.expire_session(session["id"])
    else:
        logger.debug("Ignoring Stripe event %s", event_type)
    return {"received": True}, 200


@checkout_bp.route("/orders", methods=["GET"])
@jwt_required()
def list_orders() -> tuple[list[dict], int]:
    """List the current user's orders, newest first."""
    limit, offset = pagination()
    orders = (
        Order.query.filter_by(user_id=current_user_id())
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return OrderSchema(many=True).dump(orders), 200


@checkout_bp.route("/orders/<int:order_id>", methods=["GET"])
@jwt_required()
def get_order(order_id: int) -> tuple[dict, int]:
    """Return one of the current user's orders. Other users' orders are 404."""
    return OrderSchema().dump(order_service.get_user_order(current_user_id(), order_id)), 200

"""
Routes for the storefront admin panel.

Every endpoint is guarded by ``admin_required``: a request without a
token is rejected with 401 and a token without the admin claim with
403. Admin rights granted or revoked here take effect on the user's
next login, since the claim lives in the token.
"""

from __future__ import annotations

import logging

from flask import Blueprint, request
from sqlalchemy import func

from .. import db
from ..errors import NotFoundError, ValidationError
from ..models import Order, OrderStatus, Product, User
from ..schemas import OrderSchema, UserSchema
from ..util.auth import admin_required, current_user_id
from ..util.params import json_body, pagination, require_fields

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__)

# Transitions an admin may apply by hand; ``paid`` is set by the webhook only
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: set(),
    OrderStatus.CANCELLED: set(),
}


@admin_bp.route("/users", methods=["GET"])
@admin_required
def list_users() -> tuple[list[dict], int]:
    limit, offset = pagination()
    users = User.query.order_by(User.id.asc()).limit(limit).offset(offset).all()
    return UserSchema(many=True).dump(users), 200


@admin_bp.route("/users/<int:user_id>", methods=["PUT"])
@admin_required
def update_user(user_id: int) -> tuple[dict, int]:
    """Grant or revoke admin rights with ``{"is_admin": bool}``."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    data = json_body()
    require_fields(data, "is_admin")
    if not isinstance(data["is_admin"], bool):
        raise ValidationError("is_admin must be a boolean.", fields={"is_admin": "Not a boolean."})
    if user.id == current_user_id() and not data["is_admin"]:
        raise ValidationError("Administrators cannot revoke their own rights.")
    user.is_admin = data["is_admin"]
    db.session.commit()
    logger.info("User %s admin=%s", user.id, user.is_admin)
    return UserSchema().dump(user), 200


@admin_bp.route("/orders", methods=["GET"])
@admin_required
def list_orders() -> tuple[list[dict], int]:
    """List all orders, optionally filtered by ``status``."""
    limit, offset = pagination()
    query = Order.query
    status = request.args.get("status")
    if status:
        try:
            query = query.filter_by(status=OrderStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'.", fields={"status": "Invalid."})
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset).all()
    return OrderSchema(many=True).dump(orders), 200


@admin_bp.route("/orders/<int:order_id>", methods=["PUT"])
@admin_required
def update_order(order_id: int) -> tuple[dict, int]:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found.")
    data = json_body()
    require_fields(data, "status")
    try:
        new_status = OrderStatus(data["status"])
    except ValueError:
        raise ValidationError(f"Unknown status '{data['status']}'.", fields={"status": "Invalid."})
    if new_status not in ALLOWED_TRANSITIONS[order.status]:
        raise ValidationError(f"Cannot move order from {order.status.value} to {new_status.value}.")
    order.status = new_status
    db.session.commit()
    logger.info("Order %s set to %s", order.id, new_status.value)
    return OrderSchema().dump(order), 200


@admin_bp.route("/stats", methods=["GET"])
@admin_required
def stats() -> tuple[dict, int]:
    """Headline numbers for the admin dashboard."""
    revenue = (
        db.session.query(func.coalesce(func.sum(Order.total_cents), 0))
        .filter(Order.status.in_([OrderStatus.PAID, OrderStatus.SHIPPED]))
        .scalar()
    )
    orders_by_status = {
        status.value: count
        for status, count in db.session.query(Order.status, func.count(Order.id)).group_by(Order.status)
    }
    return {
        "users": User.query.count(),
        "products": Product.query.filter_by(is_active=True).count(),
        "out_of_stock": Product.query.filter_by(is_active=True, stock=0).count(),
        "orders": orders_by_status,
        "revenue_cents": int(revenue),
    }, 200

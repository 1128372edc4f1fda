"""
Routes for the signed-in user's shopping cart.

Every endpoint operates on the cart of the token's user; there is no
way to address another user's cart. Responses always contain the
full cart so the frontend can re-render from a single payload.
"""

from __future__ import annotations

from flask import Blueprint
from flask_jwt_extended import jwt_required

from .. import db
from ..schemas import CartItemSchema
from ..services import cart_service
from ..util.auth import current_user_id
from ..util.params import json_body, positive_int, require_fields

cart_bp = Blueprint("cart", __name__)


def _cart_payload(user_id: int) -> dict:
    items = cart_service.get_cart(user_id)
    return {
        "items": CartItemSchema(many=True).dump(items),
        "total_cents": cart_service.cart_total(items),
    }


@cart_bp.route("/cart", methods=["GET"])
@jwt_required()
def get_cart() -> tuple[dict, int]:
    return _cart_payload(current_user_id()), 200


@cart_bp.route("/cart/items", methods=["POST"])
@jwt_required()
def add_to_cart() -> tuple[dict, int]:
    """Add a product to the cart.

    Accepts ``product_id`` and optional ``quantity`` (default 1). Adding
    a product already in the cart increases its quantity. The resulting
    quantity may not exceed the product's stock.
    """
    data = json_body()
    require_fields(data, "product_id")
    product_id = positive_int(data["product_id"], "product_id")
    quantity = positive_int(data.get("quantity", 1), "quantity")
    user_id = current_user_id()
    cart_service.add_item(user_id, product_id, quantity)
    db.session.commit()
    return _cart_payload(user_id), 201


@cart_bp.route("/cart/items/<int:product_id>", methods=["PUT"])
@jwt_required()
def update_cart_item(product_id: int) -> tuple[dict, int]:
    """Set the quantity of a cart line. A quantity of 0 removes it."""
    data = json_body()
    require_fields(data, "quantity")
    quantity = positive_int(data["quantity"], "quantity", allow_zero=True)
    user_id = current_user_id()
    cart_service.set_quantity(user_id, product_id, quantity)
    db.session.commit()
    return _cart_payload(user_id), 200


@cart_bp.route("/cart/items/<int:product_id>", methods=["DELETE"])
@jwt_required()
def remove_cart_item(product_id: int) -> tuple[dict, int]:
    user_id = current_user_id()
    cart_service.remove_item(user_id, product_id)
    db.session.commit()
    return _cart_payload(user_id), 200


@cart_bp.route("/cart", methods=["DELETE"])
@jwt_required()
def clear_cart() -> tuple[dict, int]:
    user_id = current_user_id()
    cart_service.clear_cart(user_id)
    db.session.commit()
    return _cart_payload(user_id), 200

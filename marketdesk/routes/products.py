"""
Routes for the product catalogue.

Browsing is public. Creating, updating and deleting products is
restricted to administrators. Products that already appear on orders
are deactivated instead of deleted so order history stays intact.
"""

from __future__ import annotations

import logging

from flask import Blueprint, request

from .. import db
from ..errors import NotFoundError, ValidationError
from ..models import CartItem, Product
from ..schemas import ProductSchema
from ..util.auth import admin_required
from ..util.params import json_body, pagination, positive_int, require_fields
from ..util.sanitization import strip_tags

logger = logging.getLogger(__name__)

products_bp = Blueprint("products", __name__)


def _apply_fields(product: Product, data: dict) -> None:
    if "name" in data:
        name = strip_tags(str(data["name"] or ""))
        if not name or len(name) > 120:
            raise ValidationError("name must be 1-120 characters.", fields={"name": "Invalid length."})
        product.name = name
    if "description" in data:
        description = strip_tags(str(data["description"] or ""))
        if len(description) > 1000:
            raise ValidationError("description is too long.", fields={"description": "Max 1000 characters."})
        product.description = description or None
    if "price_cents" in data:
        product.price_cents = positive_int(data["price_cents"], "price_cents", allow_zero=True)
    if "stock" in data:
        product.stock = positive_int(data["stock"], "stock", allow_zero=True)
    if "currency" in data:
        currency = str(data["currency"] or "").strip().lower()
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError("currency must be a 3-letter ISO code.", fields={"currency": "Invalid."})
        product.currency = currency
    if "image_url" in data:
        product.image_url = data["image_url"] or None
    if "is_active" in data:
        product.is_active = bool(data["is_active"])


def _get_product(product_id: int, include_inactive: bool = False) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or (not product.is_active and not include_inactive):
        raise NotFoundError("Product not found.")
    return product


@products_bp.route("/products", methods=["GET"])
def list_products() -> tuple[list[dict], int]:
    """List active products, optionally filtered by a name substring ``q``."""
    limit, offset = pagination()
    query = Product.query.filter_by(is_active=True)
    term = (request.args.get("q") or "").strip()
    if term:
        query = query.filter(Product.name.ilike(f"%{term}%"))
    products = query.order_by(Product.id.asc()).limit(limit).offset(offset).all()
    return ProductSchema(many=True).dump(products), 200


@products_bp.route("/products/<int:product_id>", methods=["GET"])
def get_product(product_id: int) -> tuple[dict, int]:
    return ProductSchema().dump(_get_product(product_id)), 200


@products_bp.route("/products", methods=["POST"])
@admin_required
def create_product() -> tuple[dict, int]:
    """Create a product. Requires ``name`` and ``price_cents``."""
    data = json_body()
    require_fields(data, "name", "price_cents")
    product = Product(stock=0)
    _apply_fields(product, data)
    db.session.add(product)
    db.session.commit()
    logger.info("Created product %s", product.id)
    return ProductSchema().dump(product), 201


@products_bp.route("/products/<int:product_id>", methods=["PUT"])
@admin_required
def update_product(product_id: int) -> tuple[dict, int]:
    product = _get_product(product_id, include_inactive=True)
    _apply_fields(product, json_body())
    db.session.commit()
    return ProductSchema().dump(product), 200


@products_bp.route("/products/<int:product_id>", methods=["DELETE"])
@admin_required
def delete_product(product_id: int) -> tuple[dict, int]:
    """Delete a product, or deactivate it when orders reference it."""
    product = _get_product(product_id, include_inactive=True)
    if product.order_items:
        product.is_active = False
        message = "Product deactivated."
    else:
        CartItem.query.filter_by(product_id=product.id).delete()
        db.session.delete(product)
        message = "Product deleted."
    db.session.commit()
    return {"message": message}, 200

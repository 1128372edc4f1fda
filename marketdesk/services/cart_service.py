"""Cart operations.

All functions work on the current ``db.session`` and leave committing
to the caller, except where noted.
"""
from __future__ import annotations

from typing import List

from .. import db
from ..errors import NotFoundError, ValidationError
from ..models import CartItem, Product


def get_cart(user_id: int) -> List[CartItem]:
    return (
        CartItem.query.filter_by(user_id=user_id)
        .order_by(CartItem.id.asc())
        .all()
    )


def cart_total(items: List[CartItem]) -> int:
    return sum(item.subtotal_cents for item in items)


def _active_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or not product.is_active:
        raise NotFoundError("Product not found.")
    return product


def _check_stock(product: Product, quantity: int) -> None:
    if quantity > product.stock:
        raise ValidationError(
            f"Only {product.stock} of '{product.name}' in stock.",
            fields={"quantity": "Exceeds available stock."},
        )


def add_item(user_id: int, product_id: int, quantity: int = 1) -> CartItem:
    """Add ``quantity`` of a product, merging with an existing line."""
    product = _active_product(product_id)
    item = CartItem.query.filter_by(user_id=user_id, product_id=product_id).first()
    new_quantity = quantity + (item.quantity if item else 0)
    _check_stock(product, new_quantity)
    if item is None:
        item = CartItem(user_id=user_id, product_id=product_id, quantity=new_quantity)
        db.session.add(item)
    else:
        item.quantity = new_quantity
    db.session.flush()
    return item


def set_quantity(user_id: int, product_id: int, quantity: int) -> CartItem | None:
    """Set a line's quantity; zero removes the line and returns ``None``."""
    item = CartItem.query.filter_by(user_id=user_id, product_id=product_id).first()
    if item is None:
        raise NotFoundError("Product is not in the cart.")
    if quantity == 0:
        db.session.delete(item)
        db.session.flush()
        return None
    _check_stock(item.product, quantity)
    item.quantity = quantity
    db.session.flush()
    return item


def remove_item(user_id: int, product_id: int) -> None:
    item = CartItem.query.filter_by(user_id=user_id, product_id=product_id).first()
    if item is None:
        raise NotFoundError("Product is not in the cart.")
    db.session.delete(item)
    db.session.flush()


def clear_cart(user_id: int) -> None:
    CartItem.query.filter_by(user_id=user_id).delete()
    db.session.flush()

"""
Serialization schemas using Marshmallow for MarketDesk.

These schemas convert SQLAlchemy models to JSON-friendly
representations. Password hashes never leave the server. Enum
columns are rendered by value (``"pending"`` rather than
``"PENDING"``).
"""

from __future__ import annotations

from marshmallow import fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from .models import (
    User,
    Product,
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    ScheduledPost,
    PostStatus,
    MetricSnapshot,
)


class UserSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``User`` objects."""

    class Meta:
        model = User
        load_instance = True
        # Exclude password_hash from the serialised output
        exclude = ("password_hash",)


class ProductSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``Product`` objects."""

    name = auto_field(validate=validate.Length(min=1, max=120))
    description = auto_field(validate=validate.Length(max=1000), allow_none=True)
    price_cents = auto_field(validate=validate.Range(min=0))
    stock = auto_field(validate=validate.Range(min=0))

    class Meta:
        model = Product
        load_instance = True


class CartItemSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``CartItem`` objects."""

    product = fields.Nested(ProductSchema, only=("id", "name", "price_cents", "currency", "stock", "image_url"))
    subtotal_cents = fields.Integer(dump_only=True)

    class Meta:
        model = CartItem
        load_instance = True
        include_fk = True


class OrderItemSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = OrderItem
        load_instance = True
        include_fk = True


class OrderSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``Order`` objects with their lines."""

    status = fields.Enum(OrderStatus, by_value=True)
    items = fields.Nested(OrderItemSchema, many=True, exclude=("order_id",))

    class Meta:
        model = Order
        load_instance = True
        include_fk = True


class ScheduledPostSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``ScheduledPost`` objects."""

    status = fields.Enum(PostStatus, by_value=True)
    content = auto_field(validate=validate.Length(min=1, max=280))

    class Meta:
        model = ScheduledPost
        load_instance = True
        include_fk = True


class MetricSnapshotSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = MetricSnapshot
        load_instance = True

"""
Database models for MarketDesk.

The storefront side stores products, per-user cart lines and orders
that are paid through Stripe Checkout. The social side stores posts
waiting to be published by the scheduler and snapshots of account
metrics fetched from the social network APIs. Both sides share the
``User`` table; a single ``is_admin`` flag grants access to the admin
panel.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from werkzeug.security import generate_password_hash, check_password_hash

from . import db


class OrderStatus(enum.Enum):
    """Lifecycle of an order."""
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"


class PostStatus(enum.Enum):
    """Lifecycle of a scheduled post."""
    PENDING = "pending"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


class User(db.Model):
    __allow_unmapped__ = True
    """A registered account.

    Shoppers and dashboard users are the same kind of account. Passwords
    are stored as salted hashes.
    """
    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    username: str = db.Column(db.String(80), unique=True, nullable=False)
    email: str = db.Column(db.String(120), unique=True, nullable=False)
    password_hash: str = db.Column(db.String(256), nullable=False)
    is_admin: bool = db.Column(db.Boolean, nullable=False, default=False)
    created_at: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    cart_items = db.relationship(
        "CartItem", back_populates="user", cascade="all, delete-orphan"
    )
    orders = db.relationship("Order", back_populates="user")
    scheduled_posts = db.relationship(
        "ScheduledPost", back_populates="user", cascade="all, delete-orphan"
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self) -> str:
        return f"<User {self.email}{' (admin)' if self.is_admin else ''}>"


class Product(db.Model):
    __allow_unmapped__ = True
    """An item for sale. Prices are stored in the smallest currency unit."""
    __tablename__ = "products"

    id: int = db.Column(db.Integer, primary_key=True)
    name: str = db.Column(db.String(120), nullable=False)
    description: Optional[str] = db.Column(db.String(1000))
    price_cents: int = db.Column(db.Integer, nullable=False)
    currency: str = db.Column(db.String(3), nullable=False, default="usd")
    stock: int = db.Column(db.Integer, nullable=False, default=0)
    image_url: Optional[str] = db.Column(db.String(500))
    # Inactive products are hidden from the catalogue but kept for order history
    is_active: bool = db.Column(db.Boolean, nullable=False, default=True)
    created_at: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    order_items = db.relationship("OrderItem", back_populates="product")

    __table_args__ = (
        db.CheckConstraint("price_cents >= 0", name="ck_product_price"),
        db.CheckConstraint("stock >= 0", name="ck_product_stock"),
    )

    def __repr__(self) -> str:
        return f"<Product {self.name}>"


class CartItem(db.Model):
    __allow_unmapped__ = True
    """One line of a user's cart. A product appears at most once per cart."""
    __tablename__ = "cart_items"

    id: int = db.Column(db.Integer, primary_key=True)
    user_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    product_id: int = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity: int = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", back_populates="cart_items")
    product = db.relationship("Product")

    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", name="uix_cart_user_product"),
        db.CheckConstraint("quantity > 0", name="ck_cart_quantity"),
    )

    @property
    def subtotal_cents(self) -> int:
        return self.product.price_cents * self.quantity

    def __repr__(self) -> str:
        return f"<CartItem user={self.user_id} product={self.product_id} qty={self.quantity}>"


class Order(db.Model):
    __allow_unmapped__ = True
    """A purchase attempt, paid through a Stripe Checkout Session."""
    __tablename__ = "orders"

    id: int = db.Column(db.Integer, primary_key=True)
    user_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status: OrderStatus = db.Column(db.Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    total_cents: int = db.Column(db.Integer, nullable=False, default=0)
    currency: str = db.Column(db.String(3), nullable=False, default="usd")
    stripe_session_id: Optional[str] = db.Column(db.String(255), unique=True)
    created_at: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    paid_at: Optional[datetime] = db.Column(db.DateTime)

    user = db.relationship("User", back_populates="orders")
    items = db.relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )

    def compute_total(self) -> None:
        """Recalculate ``total_cents`` from the order lines."""
        self.total_cents = sum(item.unit_price_cents * item.quantity for item in self.items)

    def __repr__(self) -> str:
        return f"<Order {self.id} {self.status.value}>"


class OrderItem(db.Model):
    __allow_unmapped__ = True
    """Snapshot of a cart line taken when checkout starts."""
    __tablename__ = "order_items"

    id: int = db.Column(db.Integer, primary_key=True)
    order_id: int = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    product_id: int = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    product_name: str = db.Column(db.String(120), nullable=False)
    unit_price_cents: int = db.Column(db.Integer, nullable=False)
    quantity: int = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product", back_populates="order_items")

    def __repr__(self) -> str:
        return f"<OrderItem order={self.order_id} product={self.product_id} qty={self.quantity}>"


class ScheduledPost(db.Model):
    __allow_unmapped__ = True
    """A post queued for publication at ``scheduled_for`` (UTC, naive).

    The dispatcher claims a due post by moving it to ``sending`` before
    calling the network, so overlapping runs never publish it twice.
    """
    __tablename__ = "scheduled_posts"

    id: int = db.Column(db.Integer, primary_key=True)
    user_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    platform: str = db.Column(db.String(20), nullable=False, default="twitter")
    content: str = db.Column(db.String(280), nullable=False)
    scheduled_for: datetime = db.Column(db.DateTime, nullable=False, index=True)
    status: PostStatus = db.Column(db.Enum(PostStatus), nullable=False, default=PostStatus.PENDING)
    attempts: int = db.Column(db.Integer, nullable=False, default=0)
    last_error: Optional[str] = db.Column(db.String(500))
    external_id: Optional[str] = db.Column(db.String(64))
    posted_at: Optional[datetime] = db.Column(db.DateTime)
    created_at: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    user = db.relationship("User", back_populates="scheduled_posts")

    def __repr__(self) -> str:
        return f"<ScheduledPost {self.id} {self.platform} {self.status.value}>"


class MetricSnapshot(db.Model):
    __allow_unmapped__ = True
    """Public account metrics captured from a social network at one moment."""
    __tablename__ = "metric_snapshots"

    id: int = db.Column(db.Integer, primary_key=True)
    platform: str = db.Column(db.String(20), nullable=False)
    account: str = db.Column(db.String(100), nullable=False)
    followers: int = db.Column(db.Integer, nullable=False, default=0)
    following: int = db.Column(db.Integer, nullable=False, default=0)
    post_count: int = db.Column(db.Integer, nullable=False, default=0)
    listed_count: int = db.Column(db.Integer, nullable=False, default=0)
    captured_at: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<MetricSnapshot {self.platform}:{self.account} followers={self.followers}>"

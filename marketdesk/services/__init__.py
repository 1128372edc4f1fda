"""Service layer for MarketDesk.

This package contains business logic that sits between the Flask
route handlers and the database models, plus the wrappers around
Stripe and the Twitter API.

Nothing in this package performs HTTP request handling. Services
return plain Python data or model instances and raise exceptions
defined in ``marketdesk.errors`` when something goes wrong.
"""

from . import cart_service, order_service, payment_service, twitter_service
from .post_scheduler import dispatch_due_posts, init_scheduler

__all__ = [
    "cart_service",
    "order_service",
    "payment_service",
    "twitter_service",
    "dispatch_due_posts",
    "init_scheduler",
]

"""Authentication guards built on Flask-JWT-Extended.

Tokens carry the user id as their identity and a single boolean
``is_admin`` claim. ``admin_required`` verifies the token and checks
that claim; anything else about the user is loaded from the database
by the handler when needed.
"""
from __future__ import annotations

from functools import wraps

from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from .. import db
from ..errors import AuthenticationError, ForbiddenError
from ..models import User


def current_user_id() -> int:
    """Return the id of the user the current token was issued to."""
    return int(get_jwt_identity())


def is_admin() -> bool:
    return bool(get_jwt().get("is_admin", False))


def load_current_user() -> User:
    """Fetch the token's user, rejecting tokens for deleted accounts."""
    user = db.session.get(User, current_user_id())
    if user is None:
        raise AuthenticationError("User no longer exists.")
    return user


def admin_required(fn):
    """Reject the request unless it carries a valid admin token.

    A missing or invalid token yields 401 (raised by
    ``verify_jwt_in_request``), a valid token without the admin claim
    yields 403.
    """

    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if not is_admin():
            raise ForbiddenError("Administrator privileges required.")
        return fn(*args, **kwargs)

    return wrapper

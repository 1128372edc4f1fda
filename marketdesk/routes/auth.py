"""
Authentication routes for MarketDesk.

Provides endpoints for registering new users and logging in to obtain
JSON Web Tokens (JWTs). Tokens identify the user and carry an
``is_admin`` claim that the admin guard checks.
"""

from __future__ import annotations

import logging

from flask import Blueprint
from flask_jwt_extended import create_access_token, jwt_required

from .. import db
from ..errors import AuthenticationError, ValidationError
from ..models import User
from ..schemas import UserSchema
from ..util.auth import load_current_user
from ..util.params import json_body, require_fields

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

MIN_PASSWORD_LENGTH = 8


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple[dict, int]:
    """Register a new user.

    Expects JSON with ``username``, ``email`` and ``password``. Emails
    and usernames must be unique. New accounts are never admins.
    """
    data = json_body()
    require_fields(data, "username", "email", "password")

    username = str(data["username"]).strip()
    email = str(data["email"]).strip().lower()
    password = str(data["password"])
    if "@" not in email:
        raise ValidationError("Invalid email address.", fields={"email": "Invalid email."})
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
            fields={"password": "Too short."},
        )
    if User.query.filter_by(email=email).first():
        raise ValidationError("A user with that email already exists.", fields={"email": "Already registered."})
    if User.query.filter_by(username=username).first():
        raise ValidationError("That username is taken.", fields={"username": "Already taken."})

    user = User(username=username, email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s", user.id)
    return UserSchema().dump(user), 201


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple[dict, int]:
    """Authenticate a user and return a JWT.

    Expects JSON with ``email`` and ``password``. Invalid credentials
    return 401 without saying which of the two was wrong.
    """
    data = json_body()
    email = str(data.get("email") or "").strip().lower()
    password = str(data.get("password") or "")
    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logger.info("Failed login for %s", email or "<blank>")
        raise AuthenticationError("Invalid email or password.")

    access_token = create_access_token(
        identity=str(user.id), additional_claims={"is_admin": user.is_admin}
    )
    return {"access_token": access_token, "user": UserSchema().dump(user)}, 200


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me() -> tuple[dict, int]:
    """Return the account the token belongs to."""
    return UserSchema().dump(load_current_user()), 200

"""Database setup utilities.

This module exposes the ``db`` object shared by the models of both
the storefront and the social dashboard. The application factory
binds it to the Flask app.

Import ``db`` from ``marketdesk`` rather than from this module
directly.
"""
from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

"""Request parsing helpers.

Each helper raises ``ValidationError`` so route handlers can stay
linear and leave status-code mapping to the error handlers.
"""
from __future__ import annotations

from datetime import datetime, timezone

from dateutil.parser import parse as parse_date  # type: ignore
from flask import request

from ..errors import ValidationError

MAX_PAGE_SIZE = 100


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def require_fields(data: dict, *names: str) -> None:
    """Raise if any of ``names`` is absent or blank in ``data``."""
    missing = sorted(n for n in names if data.get(n) in (None, ""))
    if missing:
        raise ValidationError(
            f"Missing fields: {', '.join(missing)}",
            fields={name: "This field is required." for name in missing},
        )


def pagination(default_limit: int = 25) -> tuple[int, int]:
    """Read ``limit``/``offset`` from the query string."""
    try:
        limit = int(request.args.get("limit", default_limit))
        offset = int(request.args.get("offset", 0))
    except ValueError:
        raise ValidationError("Invalid pagination parameters.")
    if limit < 1 or offset < 0:
        raise ValidationError("Invalid pagination parameters.")
    return min(limit, MAX_PAGE_SIZE), offset


def positive_int(value, field: str, allow_zero: bool = False) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field} must be an integer.", fields={field: "Not an integer."})
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer.", fields={field: "Not an integer."})
    if isinstance(value, bool) or number < 0 or (number == 0 and not allow_zero):
        raise ValidationError(f"{field} must be positive.", fields={field: "Out of range."})
    return number


def parse_utc(value: str, field: str) -> datetime:
    """Parse an ISO 8601 timestamp into a naive UTC ``datetime``.

    Timestamps without an offset are taken to be UTC already.
    """
    try:
        parsed = parse_date(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(
            f"Invalid '{field}'. Use ISO 8601 (YYYY-MM-DDTHH:MM:SSZ).",
            fields={field: "Invalid datetime."},
        )
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

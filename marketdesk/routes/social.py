"""
Routes for the social-media metrics dashboard.

Fetching live metrics forwards one request to the platform API and
stores the result as a ``MetricSnapshot``; the history endpoint
serves those snapshots back for charting.
"""

from __future__ import annotations

from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required

from .. import db
from ..errors import ValidationError
from ..models import MetricSnapshot
from ..schemas import MetricSnapshotSchema
from ..services import twitter_service
from ..util.params import pagination, parse_utc

social_bp = Blueprint("social", __name__)


@social_bp.route("/social/twitter", methods=["GET"])
@social_bp.route("/twitter", methods=["GET"])
@jwt_required()
def twitter_metrics() -> tuple[dict, int]:
    """Return live public metrics for a Twitter account.

    Uses the ``username`` query parameter, or ``TWITTER_USERNAME`` when
    it is absent.
    """
    username = (request.args.get("username") or current_app.config.get("TWITTER_USERNAME") or "").strip()
    username = username.lstrip("@")
    if not username:
        raise ValidationError("username is required.", fields={"username": "Missing."})
    metrics = twitter_service.fetch_account_metrics(username)
    snapshot = MetricSnapshot(
        platform=twitter_service.PLATFORM,
        account=metrics.account,
        followers=metrics.followers,
        following=metrics.following,
        post_count=metrics.post_count,
        listed_count=metrics.listed_count,
    )
    db.session.add(snapshot)
    db.session.commit()
    payload = metrics.to_dict()
    payload["captured_at"] = snapshot.captured_at.isoformat()
    return payload, 200


@social_bp.route("/social/history", methods=["GET"])
@jwt_required()
def metric_history() -> tuple[list[dict], int]:
    """List stored snapshots, newest first.

    Optional filters: ``platform``, ``account``, ``from`` and ``to``
    (ISO 8601, inclusive).
    """
    query = MetricSnapshot.query
    platform = request.args.get("platform")
    account = request.args.get("account")
    if platform:
        query = query.filter_by(platform=platform)
    if account:
        query = query.filter_by(account=account.lstrip("@"))
    if request.args.get("from"):
        query = query.filter(MetricSnapshot.captured_at >= parse_utc(request.args["from"], "from"))
    if request.args.get("to"):
        query = query.filter(MetricSnapshot.captured_at <= parse_utc(request.args["to"], "to"))
    limit, offset = pagination(default_limit=50)
    snapshots = (
        query.order_by(MetricSnapshot.captured_at.desc(), MetricSnapshot.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return MetricSnapshotSchema(many=True).dump(snapshots), 200

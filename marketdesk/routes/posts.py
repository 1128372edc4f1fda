"""
Routes for scheduled social posts.

Users queue posts for a future time; the background scheduler
publishes them. Only ``pending`` posts may be edited or cancelled.
Cancelling keeps the row with status ``cancelled`` for the audit
trail.
"""

from __future__ import annotations

from datetime import datetime

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from .. import db
from ..errors import NotFoundError, ValidationError
from ..models import PostStatus, ScheduledPost
from ..schemas import ScheduledPostSchema
from ..services import dispatch_due_posts
from ..services.post_scheduler import SUPPORTED_PLATFORMS
from ..util.auth import admin_required, current_user_id
from ..util.params import json_body, pagination, parse_utc, require_fields
from ..util.sanitization import clean_text

posts_bp = Blueprint("posts", __name__)

MAX_POST_LENGTH = 280


def _clean_content(raw) -> str:
    content = clean_text(str(raw or ""))
    if not content:
        raise ValidationError("content is required.", fields={"content": "Empty."})
    if len(content) > MAX_POST_LENGTH:
        raise ValidationError(
            f"content exceeds {MAX_POST_LENGTH} characters.", fields={"content": "Too long."}
        )
    return content


def _future_time(raw) -> datetime:
    when = parse_utc(raw, "scheduled_for")
    if when <= datetime.utcnow():
        raise ValidationError("scheduled_for must be in the future.", fields={"scheduled_for": "In the past."})
    return when


def _own_post(post_id: int) -> ScheduledPost:
    post = ScheduledPost.query.filter_by(id=post_id, user_id=current_user_id()).first()
    if post is None:
        raise NotFoundError("Post not found.")
    return post


def _require_pending(post: ScheduledPost) -> None:
    if post.status != PostStatus.PENDING:
        raise ValidationError(f"Post is {post.status.value} and can no longer be changed.")


@posts_bp.route("/posts", methods=["GET"])
@jwt_required()
def list_posts() -> tuple[list[dict], int]:
    """List the user's posts by scheduled time, optionally by ``status``."""
    query = ScheduledPost.query.filter_by(user_id=current_user_id())
    status = request.args.get("status")
    if status:
        try:
            query = query.filter_by(status=PostStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'.", fields={"status": "Invalid."})
    limit, offset = pagination()
    posts = (
        query.order_by(ScheduledPost.scheduled_for.asc(), ScheduledPost.id.asc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return ScheduledPostSchema(many=True).dump(posts), 200


@posts_bp.route("/posts", methods=["POST"])
@jwt_required()
def create_post() -> tuple[dict, int]:
    """Queue a post.

    Accepts ``content``, ``scheduled_for`` (ISO 8601, future) and
    optional ``platform`` (default ``twitter``).
    """
    data = json_body()
    require_fields(data, "content", "scheduled_for")
    platform = str(data.get("platform") or "twitter").lower()
    if platform not in SUPPORTED_PLATFORMS:
        raise ValidationError(f"Unsupported platform '{platform}'.", fields={"platform": "Unsupported."})
    post = ScheduledPost(
        user_id=current_user_id(),
        platform=platform,
        content=_clean_content(data["content"]),
        scheduled_for=_future_time(data["scheduled_for"]),
        status=PostStatus.PENDING,
        attempts=0,
    )
    db.session.add(post)
    db.session.commit()
    return ScheduledPostSchema().dump(post), 201


@posts_bp.route("/posts/<int:post_id>", methods=["GET"])
@jwt_required()
def get_post(post_id: int) -> tuple[dict, int]:
    return ScheduledPostSchema().dump(_own_post(post_id)), 200


@posts_bp.route("/posts/<int:post_id>", methods=["PUT"])
@jwt_required()
def update_post(post_id: int) -> tuple[dict, int]:
    """Edit ``content`` and/or ``scheduled_for`` of a pending post."""
    post = _own_post(post_id)
    _require_pending(post)
    data = json_body()
    if "content" in data:
        post.content = _clean_content(data["content"])
    if "scheduled_for" in data:
        post.scheduled_for = _future_time(data["scheduled_for"])
        # A rescheduled post gets a fresh retry budget
        post.attempts = 0
        post.last_error = None
    db.session.commit()
    return ScheduledPostSchema().dump(post), 200


@posts_bp.route("/posts/<int:post_id>", methods=["DELETE"])
@jwt_required()
def cancel_post(post_id: int) -> tuple[dict, int]:
    post = _own_post(post_id)
    _require_pending(post)
    post.status = PostStatus.CANCELLED
    db.session.commit()
    return ScheduledPostSchema().dump(post), 200


@posts_bp.route("/posts/dispatch", methods=["POST"])
@admin_required
def dispatch_now() -> tuple[dict, int]:
    """Run one dispatch tick immediately."""
    return dispatch_due_posts(), 200

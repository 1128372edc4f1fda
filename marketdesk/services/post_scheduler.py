"""Scheduled post dispatching.

``ScheduledPost`` rows form the job queue. On every tick the
dispatcher selects due ``pending`` posts and, for each one:

1. claims it with a conditional ``pending -> sending`` update and
   commits, so a concurrent tick skips it;
2. publishes it through the platform client;
3. marks it ``sent``, or puts it back to ``pending`` with the error
   recorded. After ``POST_MAX_ATTEMPTS`` failures it becomes ``failed``.

The APScheduler job that drives ticks runs with ``max_instances=1``
and ``coalesce=True``, so ticks never overlap inside one process.
"""
from __future__ import annotations

import atexit
import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from flask import current_app

from .. import db
from ..errors import ExternalServiceError
from ..models import ScheduledPost, PostStatus
from . import twitter_service

logger = logging.getLogger(__name__)

JOB_ID = "dispatch_due_posts"
SUPPORTED_PLATFORMS = ("twitter",)


def _publisher(platform: str):
    if platform == "twitter":
        return twitter_service.publish_post
    raise ExternalServiceError(platform, f"Unsupported platform '{platform}'.")


def _claim(post_id: int) -> bool:
    claimed = (
        ScheduledPost.query
        .filter_by(id=post_id, status=PostStatus.PENDING)
        .update({"status": PostStatus.SENDING}, synchronize_session=False)
    )
    db.session.commit()
    return claimed == 1


def _record_failure(post: ScheduledPost, max_attempts: int, message: str) -> None:
    post.last_error = message[:500]
    if post.attempts >= max_attempts:
        post.status = PostStatus.FAILED
        logger.error("Post %s failed permanently after %s attempts: %s", post.id, post.attempts, message)
    else:
        post.status = PostStatus.PENDING
        logger.warning("Post %s attempt %s failed: %s", post.id, post.attempts, message)


def _send(post: ScheduledPost, max_attempts: int) -> PostStatus:
    post.attempts += 1
    try:
        post.external_id = _publisher(post.platform)(post.content)
    except ExternalServiceError as exc:
        _record_failure(post, max_attempts, exc.message)
    except Exception as exc:
        # A claimed post must never stay in ``sending``, whatever the publisher raised
        logger.exception("Unexpected error publishing post %s", post.id)
        _record_failure(post, max_attempts, f"{type(exc).__name__}: {exc}")
    else:
        post.status = PostStatus.SENT
        post.posted_at = datetime.utcnow()
        post.last_error = None
        logger.info("Post %s sent to %s as %s", post.id, post.platform, post.external_id)
    db.session.commit()
    return post.status


def dispatch_due_posts(now: datetime | None = None) -> dict[str, int]:
    """Publish every pending post whose time has come.

    Must run inside an application context. Returns counts of posts
    ``sent``, put back for ``retry`` and ``failed`` during this tick.
    """
    now = now or datetime.utcnow()
    max_attempts = current_app.config.get("POST_MAX_ATTEMPTS", 3)
    due_ids = [
        post_id
        for (post_id,) in db.session.query(ScheduledPost.id)
        .filter(ScheduledPost.status == PostStatus.PENDING, ScheduledPost.scheduled_for <= now)
        .order_by(ScheduledPost.scheduled_for.asc(), ScheduledPost.id.asc())
        .all()
    ]
    summary = {"sent": 0, "retry": 0, "failed": 0}
    for post_id in due_ids:
        if not _claim(post_id):
            continue
        status = _send(db.session.get(ScheduledPost, post_id), max_attempts)
        if status == PostStatus.SENT:
            summary["sent"] += 1
        elif status == PostStatus.FAILED:
            summary["failed"] += 1
        else:
            summary["retry"] += 1
    if due_ids:
        logger.info("Dispatch tick: %s", summary)
    return summary


def _run_in_context(app) -> None:
    with app.app_context():
        dispatch_due_posts()


def init_scheduler(app) -> BackgroundScheduler:
    """Start the background scheduler that drives ``dispatch_due_posts``."""
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        _run_in_context,
        "interval",
        seconds=app.config["POST_DISPATCH_INTERVAL"],
        args=[app],
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.start()
    atexit.register(lambda: scheduler.shutdown(wait=False))
    app.extensions["post_scheduler"] = scheduler
    logger.info("Post scheduler started (every %ss)", app.config["POST_DISPATCH_INTERVAL"])
    return scheduler

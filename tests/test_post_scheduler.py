"""Dispatcher tests: due posts are sent once and failures are retried."""
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from marketdesk import db
from marketdesk.errors import ExternalServiceError
from marketdesk.models import PostStatus, ScheduledPost
from marketdesk.services import dispatch_due_posts, init_scheduler, twitter_service
from marketdesk.services.post_scheduler import JOB_ID


@pytest.fixture
def make_post(user):
    def _make(minutes=-1, status=PostStatus.PENDING, content="Hello"):
        post = ScheduledPost(
            user_id=user.id,
            content=content,
            scheduled_for=datetime.utcnow() + timedelta(minutes=minutes),
            status=status,
        )
        db.session.add(post)
        db.session.commit()
        return post

    return _make


def test_due_post_is_sent_once(app, make_post):
    post = make_post()
    with patch("marketdesk.services.twitter_service.publish_post", return_value="1789") as publish:
        assert dispatch_due_posts() == {"sent": 1, "retry": 0, "failed": 0}
        assert dispatch_due_posts() == {"sent": 0, "retry": 0, "failed": 0}

    publish.assert_called_once_with("Hello")
    assert post.status == PostStatus.SENT
    assert post.external_id == "1789"
    assert post.posted_at is not None
    assert post.attempts == 1


def test_future_and_non_pending_posts_are_skipped(app, make_post):
    make_post(minutes=30)
    make_post(status=PostStatus.SENDING)
    make_post(status=PostStatus.CANCELLED)
    with patch("marketdesk.services.twitter_service.publish_post") as publish:
        assert dispatch_due_posts()["sent"] == 0
    publish.assert_not_called()


def test_failed_post_is_retried_until_limit(app, make_post):
    post = make_post()
    error = ExternalServiceError("twitter", "Twitter API returned 503")
    with patch("marketdesk.services.twitter_service.publish_post", side_effect=error) as publish:
        assert dispatch_due_posts() == {"sent": 0, "retry": 1, "failed": 0}
        assert post.status == PostStatus.PENDING
        assert post.attempts == 1
        assert post.last_error == "Twitter API returned 503"

        dispatch_due_posts()
        assert dispatch_due_posts() == {"sent": 0, "retry": 0, "failed": 1}
        assert dispatch_due_posts() == {"sent": 0, "retry": 0, "failed": 0}

    assert publish.call_count == 3
    assert post.status == PostStatus.FAILED
    assert post.attempts == 3


def test_posts_dispatched_in_schedule_order(app, make_post):
    make_post(minutes=-1, content="second")
    make_post(minutes=-10, content="first")
    with patch("marketdesk.services.twitter_service.publish_post", return_value="1") as publish:
        dispatch_due_posts()
    assert [c.args[0] for c in publish.call_args_list] == ["first", "second"]


def test_dispatch_endpoint_for_admin(client, admin_headers, make_post):
    make_post()
    with patch("marketdesk.services.twitter_service.publish_post", return_value="42"):
        response = client.post("/api/posts/dispatch", headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["sent"] == 1


def test_publish_post_calls_tweets_endpoint(app):
    response = MagicMock(status_code=201, text="")
    response.json.return_value = {"data": {"id": "555", "text": "Hello"}}
    with patch("marketdesk.services.twitter_service.requests.request", return_value=response) as req:
        assert twitter_service.publish_post("Hello") == "555"
    assert req.call_args.args == ("POST", "https://api.twitter.test/2/tweets")
    assert req.call_args.kwargs["json"] == {"text": "Hello"}
    assert req.call_args.kwargs["headers"] == {"Authorization": "Bearer test-user-token"}


def test_init_scheduler_registers_single_instance_job(app):
    app.config["POST_DISPATCH_INTERVAL"] = 30
    with patch("marketdesk.services.post_scheduler.BackgroundScheduler") as scheduler_cls:
        scheduler = init_scheduler(app)
    scheduler.start.assert_called_once()
    kwargs = scheduler.add_job.call_args.kwargs
    assert kwargs["id"] == JOB_ID
    assert kwargs["seconds"] == 30
    assert kwargs["max_instances"] == 1
    assert kwargs["coalesce"] is True
    assert app.extensions["post_scheduler"] is scheduler_cls.return_value


def test_unexpected_publisher_error_does_not_strand_post(app, make_post):
    broken = make_post(minutes=-10, content="first")
    healthy = make_post(minutes=-1, content="second")
    with patch(
        "marketdesk.services.twitter_service.publish_post",
        side_effect=[RuntimeError("boom"), "77"],
    ):
        assert dispatch_due_posts() == {"sent": 1, "retry": 1, "failed": 0}

    assert broken.status == PostStatus.PENDING
    assert broken.attempts == 1
    assert broken.last_error == "RuntimeError: boom"
    assert healthy.status == PostStatus.SENT
    assert ScheduledPost.query.filter_by(status=PostStatus.SENDING).count() == 0


def test_success_response_without_data_is_retried(app, make_post):
    first, second = make_post(minutes=-10), make_post(minutes=-1)
    response = MagicMock(status_code=201, text="")
    response.json.return_value = {}
    with patch("marketdesk.services.twitter_service.requests.request", return_value=response):
        for _ in range(3):
            dispatch_due_posts()

    for post in (first, second):
        assert post.status == PostStatus.FAILED
        assert post.attempts == 3
        assert "no data" in post.last_error
    assert ScheduledPost.query.filter_by(status=PostStatus.SENDING).count() == 0


def test_publish_post_requires_tweet_id(app):
    response = MagicMock(status_code=201, text="")
    response.json.return_value = {"data": {"text": "Hello"}}
    with patch("marketdesk.services.twitter_service.requests.request", return_value=response):
        with pytest.raises(ExternalServiceError):
            twitter_service.publish_post("Hello")

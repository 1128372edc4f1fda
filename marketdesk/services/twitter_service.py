"""Twitter API v2 client.

Two calls are needed: reading an account's public metrics with the
app bearer token, and publishing a tweet with a user-context token.
Both are a single ``requests`` call whose failures are turned into
``ExternalServiceError``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import requests
from flask import current_app

from ..errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

PLATFORM = "twitter"
HANDLE_RE = re.compile(r"[A-Za-z0-9_]{1,15}")


@dataclass
class AccountMetrics:
    account: str
    followers: int
    following: int
    post_count: int
    listed_count: int
    name: str | None = None
    account_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "platform": PLATFORM,
            "account": self.account,
            "account_id": self.account_id,
            "name": self.name,
            "followers": self.followers,
            "following": self.following,
            "post_count": self.post_count,
            "listed_count": self.listed_count,
        }


def _request(method: str, path: str, token: str, **kwargs) -> dict:
    config = current_app.config
    url = f"{config['TWITTER_API_BASE'].rstrip('/')}{path}"
    try:
        response = requests.request(
            method,
            url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=config.get("TWITTER_TIMEOUT", 10),
            **kwargs,
        )
    except requests.RequestException as exc:
        raise ExternalServiceError(PLATFORM, f"Twitter API unreachable: {exc}") from exc

    if response.status_code >= 400:
        raise ExternalServiceError(
            PLATFORM, f"Twitter API returned {response.status_code}: {response.text[:200]}"
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise ExternalServiceError(PLATFORM, "Twitter API returned invalid JSON.") from exc
    if not isinstance(payload, dict):
        raise ExternalServiceError(PLATFORM, "Twitter API returned an unexpected payload.")
    if isinstance(payload.get("data"), dict):
        return payload
    # v2 reports some failures (e.g. unknown user) with HTTP 200 and an errors list
    errors = payload.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        detail = errors[0].get("detail") or errors[0].get("title")
        raise ExternalServiceError(PLATFORM, f"Twitter API error: {detail}")
    raise ExternalServiceError(PLATFORM, "Twitter API response has no data.")


def fetch_account_metrics(username: str) -> AccountMetrics:
    """Return follower/following/tweet counts for ``username``."""
    if not HANDLE_RE.fullmatch(username or ""):
        raise ValidationError(
            "username must be 1-15 letters, digits or underscores.", fields={"username": "Invalid handle."}
        )
    token = current_app.config.get("TWITTER_BEARER_TOKEN")
    if not token:
        raise ExternalServiceError(PLATFORM, "Twitter bearer token is not configured.")
    payload = _request(
        "GET",
        f"/users/by/username/{username}",
        token,
        params={"user.fields": "public_metrics"},
    )
    data = payload["data"]
    metrics = data.get("public_metrics", {})
    return AccountMetrics(
        account=data.get("username", username),
        account_id=data.get("id"),
        name=data.get("name"),
        followers=metrics.get("followers_count", 0),
        following=metrics.get("following_count", 0),
        post_count=metrics.get("tweet_count", 0),
        listed_count=metrics.get("listed_count", 0),
    )


def publish_post(text: str) -> str:
    """Publish a tweet and return its id."""
    token = current_app.config.get("TWITTER_USER_TOKEN")
    if not token:
        raise ExternalServiceError(PLATFORM, "Twitter user token is not configured.")
    payload = _request("POST", "/tweets", token, json={"text": text})
    tweet_id = payload["data"].get("id")
    if not tweet_id:
        raise ExternalServiceError(PLATFORM, "Twitter API did not return a tweet id.")
    logger.info("Published tweet %s", tweet_id)
    return tweet_id

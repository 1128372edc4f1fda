"""Sanitisation helpers.

Product descriptions and post content are free-form text supplied by
users. Tags are stripped before storage so the values are safe to
render in the dashboard frontend.
"""
import re

TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"[ \t]+")


def strip_tags(text: str) -> str:
    """Remove HTML tags from the given string and trim whitespace."""
    if not text:
        return ""
    no_tags = TAG_RE.sub("", text)
    return no_tags.strip()


def clean_text(text: str) -> str:
    """Strip tags and collapse runs of spaces, keeping line breaks.

    Used for post content, where the length limit is counted after
    cleaning.
    """
    return WHITESPACE_RE.sub(" ", strip_tags(text))

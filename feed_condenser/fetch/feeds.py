"""
Feed fetching and parsing.

A feed is downloaded with a single httpx request (no retries) and parsed
with feedparser. Any failure along the way is reported as FeedFetchError
so the orchestrator can isolate it to the one feed.
"""

from __future__ import annotations

from typing import Any

import feedparser
import httpx

from ..config import FetchConfig
from ..core.errors import FeedFetchError
from ..core.types import ArticleItem
from .extractor import html_to_text


def fetch_feed(
    url: str,
    cfg: FetchConfig,
    transport: httpx.BaseTransport | None = None,
) -> list[ArticleItem]:
    """Download and parse a feed into ArticleItems, preserving feed order.

    Args:
        url: The feed URL
        cfg: Fetch settings (timeout, user agent, proxy handling)
        transport: Optional httpx transport, used by tests

    Returns:
        Items in the order the feed lists them

    Raises:
        FeedFetchError: On transport errors, non-2xx responses, or a document
            feedparser cannot make sense of
    """
    headers = {"User-Agent": cfg.user_agent}
    try:
        with httpx.Client(
            timeout=cfg.timeout_seconds,
            headers=headers,
            follow_redirects=True,
            trust_env=cfg.trust_env,
            transport=transport,
        ) as client:
            resp = client.get(url)
            resp.raise_for_status()
            content = resp.content
    except httpx.HTTPStatusError as exc:
        raise FeedFetchError(url, f"HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise FeedFetchError(url, f"{type(exc).__name__}: {exc}") from exc

    return parse_feed(url, content)


def parse_feed(url: str, content: bytes | str) -> list[ArticleItem]:
    """Parse raw feed content into ArticleItems."""
    parsed = feedparser.parse(content)
    if parsed.get("bozo") and not parsed.entries:
        reason = parsed.get("bozo_exception") or "unrecognized feed format"
        raise FeedFetchError(url, f"Malformed feed: {reason}")
    # well-formed HTML or arbitrary XML parses cleanly but has no feed version
    if not parsed.get("version") and not parsed.entries:
        raise FeedFetchError(url, "Malformed feed: unrecognized feed format")
    return [_to_item(entry) for entry in parsed.entries]


def _to_item(entry: Any) -> ArticleItem:
    summary = entry.get("summary") or None
    return ArticleItem(
        guid=(entry.get("id") or "").strip() or None,
        title=(entry.get("title") or "").strip(),
        link=(entry.get("link") or "").strip() or None,
        body=_content_value(entry) or summary,
        snippet=html_to_text(summary),
        published_at=entry.get("published"),
    )


def _content_value(entry: Any) -> str | None:
    content = entry.get("content") or []
    for part in content:
        value = part.get("value")
        if value:
            return value
    return None

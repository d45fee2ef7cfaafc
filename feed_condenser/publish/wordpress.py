"""
WordPress REST publishing.

Posts a title/content pair to `<site>/wp-json/wp/v2/posts` using HTTP Basic
authentication with an application password. Every failure, remote or
local, comes back as a PublishResult; nothing is raised to the caller.
"""

from __future__ import annotations

import logging

import httpx

from ..config import PublishConfig
from ..core.types import PublishResult, PublishTarget

logger = logging.getLogger(__name__)

POSTS_PATH = "wp-json/wp/v2/posts"


class WordPressPublisher:
    """Publish client bound to one PublishTarget."""

    def __init__(
        self,
        target: PublishTarget,
        cfg: PublishConfig,
        transport: httpx.BaseTransport | None = None,
    ):
        self.target = target
        self.cfg = cfg
        self.transport = transport

    @property
    def posts_url(self) -> str:
        site = self.target.site_url
        if not site.endswith("/"):
            site += "/"
        return site + POSTS_PATH

    def publish(self, title: str, content: str, status: str | None = None) -> PublishResult:
        if not (self.target.site_url and self.target.username and self.target.credential):
            return PublishResult(success=False, error="WordPress configuration is incomplete.")

        payload = {
            "title": title,
            "content": content,
            "status": status or self.cfg.post_status,
        }
        auth = httpx.BasicAuth(self.target.username, self.target.credential)
        try:
            with httpx.Client(
                timeout=self.cfg.timeout_seconds,
                auth=auth,
                transport=self.transport,
            ) as client:
                resp = client.post(self.posts_url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("WordPress request failed: %s", exc)
            return PublishResult(success=False, error=str(exc) or type(exc).__name__)

        if not resp.is_success:
            message = _error_message(resp)
            logger.warning("WordPress API error %s: %s", resp.status_code, message)
            return PublishResult(
                success=False,
                error=f"Failed to post to WordPress (Status {resp.status_code}): {message}",
            )

        try:
            data = resp.json()
        except ValueError:
            data = {}
        post_url = data.get("link") if isinstance(data, dict) else None
        return PublishResult(success=True, post_url=post_url)


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return "Unknown error"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return "Unknown error"

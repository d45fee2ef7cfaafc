"""
Core data types for the feed condenser.

This module defines the fundamental data structures used throughout the pipeline:
- FeedSource: A configured syndication feed
- PublishTarget: Credentials and endpoint for republishing summaries
- ArticleItem: One entry from a feed poll
- ProcessingLogEntry: One recorded outcome in the processing log
- SummaryResult / PublishResult: Replies from the external capabilities
- RunResult: Aggregate outcome of a pipeline run
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any
from urllib.parse import urlparse

from .errors import ValidationError


STATUS_PENDING = "pending"
STATUS_UNSUITABLE = "unsuitable"
STATUS_SUMMARIZED = "summarized"
STATUS_POSTED = "posted"
STATUS_ERROR = "error"

LOG_STATUSES = (
    STATUS_PENDING,
    STATUS_UNSUITABLE,
    STATUS_SUMMARIZED,
    STATUS_POSTED,
    STATUS_ERROR,
)


def _url_problems(value: str | None) -> list[str]:
    if not value or not str(value).strip():
        return ["is required"]
    parsed = urlparse(str(value).strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return ["must be an http(s) URL"]
    return []


@dataclass
class FeedSource:
    """Represents a configured syndication feed.

    Attributes:
        id: Stable identifier generated when the feed is added
        url: The feed URL
        display_name: Optional human-readable name
        last_fetched_at: ISO 8601 timestamp of the last successful fetch
    """

    id: str
    url: str
    display_name: str | None = None
    last_fetched_at: str | None = None

    def __post_init__(self) -> None:
        problems = _url_problems(self.url)
        if problems:
            raise ValidationError({"url": problems})
        self.url = self.url.strip()
        if self.display_name is not None:
            self.display_name = self.display_name.strip() or None

    @property
    def label(self) -> str:
        return self.display_name or self.url

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeedSource:
        return cls(
            id=str(data["id"]),
            url=data.get("url", ""),
            display_name=data.get("display_name"),
            last_fetched_at=data.get("last_fetched_at"),
        )


@dataclass(frozen=True)
class PublishTarget:
    """Credentials and endpoint for a WordPress site.

    Construction validates every field and raises a single ValidationError
    listing all problems, so an instance is always complete.

    Attributes:
        site_url: Base URL of the WordPress site
        username: WordPress user name
        credential: Application password for the user
    """

    site_url: str
    username: str
    credential: str

    def __post_init__(self) -> None:
        errors: dict[str, list[str]] = {}
        url_problems = _url_problems(self.site_url)
        if url_problems:
            errors["site_url"] = url_problems
        if not self.username or not str(self.username).strip():
            errors["username"] = ["is required"]
        if not self.credential or not str(self.credential).strip():
            errors["credential"] = ["is required"]
        if errors:
            raise ValidationError(errors)
        object.__setattr__(self, "site_url", self.site_url.strip())
        object.__setattr__(self, "username", self.username.strip())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PublishTarget:
        return cls(
            site_url=data.get("site_url", ""),
            username=data.get("username", ""),
            credential=data.get("credential", ""),
        )


@dataclass
class ArticleItem:
    """One item from a feed poll.

    Attributes:
        guid: Identifier supplied by the feed, may be empty
        title: The article headline
        link: URL of the original article
        body: Full content, often HTML
        snippet: Short plain-text excerpt
        published_at: Publication timestamp as given by the feed
    """

    guid: str | None
    title: str
    link: str | None
    body: str | None = None
    snippet: str | None = None
    published_at: str | None = None

    @property
    def identifier(self) -> str | None:
        """Return the dedup identifier: guid, falling back to link."""
        return self.guid or self.link or None

    def text_for_summary(self) -> str:
        """Return the text to summarize: body, else snippet, else title."""
        return self.body or self.snippet or self.title or ""


@dataclass(frozen=True)
class ProcessingLogEntry:
    """One immutable outcome recorded in the processing log.

    Attributes:
        id: Unique identifier of the entry
        article_guid: Article identifier, or a synthetic one for system entries
        article_title: Title shown alongside the entry
        feed_url: Feed the article came from ("N/A" for system entries)
        timestamp: ISO 8601 creation time
        status: One of LOG_STATUSES
        summary: Generated summary, when one exists
        is_suitable: Suitability verdict, when one was made
        posted_to_wordpress: Whether the summary was published
        published_url: URL of the published post
        error_message: Reason for errors and informational notes
    """

    id: str
    article_guid: str
    article_title: str
    feed_url: str
    timestamp: str
    status: str
    summary: str | None = None
    is_suitable: bool | None = None
    posted_to_wordpress: bool | None = None
    published_url: str | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        if self.status not in LOG_STATUSES:
            raise ValidationError({"status": [f"unknown status {self.status!r}"]})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProcessingLogEntry:
        names = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in names})


@dataclass
class SummaryResult:
    """Reply from the summarization provider."""

    summary: str
    is_suitable: bool


@dataclass
class PublishResult:
    """Reply from the publish client. Never raised, always returned."""

    success: bool
    post_url: str | None = None
    error: str | None = None


@dataclass
class RunResult:
    """Aggregate outcome of one pipeline run.

    Attributes:
        success: False only when no feeds are configured
        message: Human-readable summary with feed and article counts
        new_log_entries: Final entry per article plus system entries, in creation order
        feeds_checked: Number of feeds visited
        articles_processed: Number of new (not previously ledgered) articles
    """

    success: bool
    message: str
    new_log_entries: list[ProcessingLogEntry] = field(default_factory=list)
    feeds_checked: int = 0
    articles_processed: int = 0

"""Abstract store contracts used by the pipeline orchestrator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
import uuid

from ..core.types import FeedSource, ProcessingLogEntry, PublishTarget


DEFAULT_LOG_RETENTION = 100


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FeedRegistry(ABC):
    """Ordered collection of feed sources."""

    @abstractmethod
    def add(self, url: str, name: str | None = None) -> FeedSource:
        """Create a feed with a fresh id and append it to the registry."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, feed_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list(self) -> list[FeedSource]:
        """Return feeds in registry order."""
        raise NotImplementedError

    @abstractmethod
    def update(self, feed: FeedSource) -> None:
        """Replace the feed with the same id. Unknown ids are ignored."""
        raise NotImplementedError


class PublishTargetStore(ABC):
    """Singleton publish target configuration."""

    @abstractmethod
    def get(self) -> PublishTarget | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, target: PublishTarget) -> None:
        """Replace the stored target wholesale."""
        raise NotImplementedError


class DedupLedger(ABC):
    """Append-only set of article identifiers that reached a terminal outcome."""

    @abstractmethod
    def get_all(self) -> set[str]:
        raise NotImplementedError

    @abstractmethod
    def add(self, identifier: str) -> None:
        raise NotImplementedError


class ProcessingLog(ABC):
    """Bounded, newest-first log of processing outcomes."""

    retention: int = DEFAULT_LOG_RETENTION

    @abstractmethod
    def list(self) -> list[ProcessingLogEntry]:
        """Return entries newest first, at most `retention` of them."""
        raise NotImplementedError

    @abstractmethod
    def _store(self, entry: ProcessingLogEntry) -> None:
        """Persist a new entry and drop anything beyond the retention window."""
        raise NotImplementedError

    def append(
        self,
        article_guid: str,
        article_title: str,
        feed_url: str,
        status: str,
        summary: str | None = None,
        is_suitable: bool | None = None,
        posted_to_wordpress: bool | None = None,
        published_url: str | None = None,
        error_message: str | None = None,
    ) -> ProcessingLogEntry:
        """Create an entry with a generated id and timestamp and store it."""
        entry = ProcessingLogEntry(
            id=new_id(),
            article_guid=article_guid,
            article_title=article_title,
            feed_url=feed_url,
            timestamp=utc_now_iso(),
            status=status,
            summary=summary,
            is_suitable=is_suitable,
            posted_to_wordpress=posted_to_wordpress,
            published_url=published_url,
            error_message=error_message,
        )
        self._store(entry)
        return entry


@dataclass
class Storage:
    """The four stores a pipeline run reads from and writes to."""

    feeds: FeedRegistry
    publish_target: PublishTargetStore
    ledger: DedupLedger
    log: ProcessingLog

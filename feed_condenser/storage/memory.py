"""In-memory stores with the same contracts as the JSON stores."""

from __future__ import annotations

from dataclasses import replace

from ..core.types import FeedSource, ProcessingLogEntry, PublishTarget
from .base import (
    DEFAULT_LOG_RETENTION,
    DedupLedger,
    FeedRegistry,
    ProcessingLog,
    PublishTargetStore,
    Storage,
    new_id,
)


class MemoryFeedRegistry(FeedRegistry):
    def __init__(self, feeds: list[FeedSource] | None = None):
        self._feeds = list(feeds or [])

    def add(self, url: str, name: str | None = None) -> FeedSource:
        feed = FeedSource(id=new_id(), url=url, display_name=name)
        self._feeds.append(feed)
        return replace(feed)

    def remove(self, feed_id: str) -> None:
        self._feeds = [feed for feed in self._feeds if feed.id != feed_id]

    def list(self) -> list[FeedSource]:
        return [replace(feed) for feed in self._feeds]

    def update(self, feed: FeedSource) -> None:
        for idx, existing in enumerate(self._feeds):
            if existing.id == feed.id:
                self._feeds[idx] = replace(feed)
                return


class MemoryPublishTargetStore(PublishTargetStore):
    def __init__(self, target: PublishTarget | None = None):
        self._target = target

    def get(self) -> PublishTarget | None:
        return self._target

    def save(self, target: PublishTarget) -> None:
        self._target = target


class MemoryDedupLedger(DedupLedger):
    def __init__(self, identifiers: set[str] | None = None):
        self._identifiers = set(identifiers or ())

    def get_all(self) -> set[str]:
        return set(self._identifiers)

    def add(self, identifier: str) -> None:
        self._identifiers.add(identifier)


class MemoryProcessingLog(ProcessingLog):
    def __init__(self, retention: int = DEFAULT_LOG_RETENTION):
        self._entries: list[ProcessingLogEntry] = []
        self.retention = retention

    def list(self) -> list[ProcessingLogEntry]:
        return list(self._entries)

    def _store(self, entry: ProcessingLogEntry) -> None:
        self._entries = ([entry] + self._entries)[: self.retention]


def memory_storage(
    feeds: list[FeedSource] | None = None,
    target: PublishTarget | None = None,
    identifiers: set[str] | None = None,
    log_retention: int = DEFAULT_LOG_RETENTION,
) -> Storage:
    """Build a Storage bundle that lives only for the current process."""
    return Storage(
        feeds=MemoryFeedRegistry(feeds),
        publish_target=MemoryPublishTargetStore(target),
        ledger=MemoryDedupLedger(identifiers),
        log=MemoryProcessingLog(retention=log_retention),
    )

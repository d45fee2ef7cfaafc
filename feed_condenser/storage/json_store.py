"""
JSON-document stores.

Each store owns one JSON file under the data directory and rewrites the
whole document on every mutation. A missing file reads as the store's
default value; a corrupt file or an invalid record is logged and
skipped rather than raised. Writes go through a temporary file in the
same directory followed by an atomic rename.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, Callable, TypeVar

from ..core.errors import ValidationError
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

logger = logging.getLogger(__name__)

T = TypeVar("T")

FEEDS_FILE = "feeds.json"
PUBLISH_TARGET_FILE = "wordpress-config.json"
LEDGER_FILE = "processed-article-guids.json"
PROCESSING_LOG_FILE = "processing-log.json"


class JsonDocument:
    """A single JSON file read and written as a whole.

    An unreadable document, or one whose top-level type differs from the
    default's, reads as the default and is replaced on the next write.
    """

    def __init__(self, path: Path, default: Any):
        self.path = path
        self._default = default

    def default(self) -> Any:
        return json.loads(json.dumps(self._default))

    def read(self) -> Any:
        if not self.path.exists():
            return self.default()
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable data file %s, using default: %s", self.path, exc)
            return self.default()
        if self._default is not None and not isinstance(data, type(self._default)):
            logger.warning(
                "Data file %s holds %s, expected %s; using default",
                self.path,
                type(data).__name__,
                type(self._default).__name__,
            )
            return self.default()
        return data

    def write(self, data: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, ensure_ascii=False)
                handle.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _load_records(doc: JsonDocument, loader: Callable[[dict[str, Any]], T]) -> list[T]:
    """Convert stored records, dropping any that fail validation."""
    records: list[T] = []
    for item in doc.read():
        try:
            if not isinstance(item, dict):
                raise TypeError(f"expected an object, got {type(item).__name__}")
            records.append(loader(item))
        except (ValidationError, KeyError, TypeError) as exc:
            logger.warning("Skipping invalid record in %s: %s", doc.path, exc)
    return records


class JsonFeedRegistry(FeedRegistry):
    def __init__(self, path: Path):
        self._doc = JsonDocument(path, [])

    def add(self, url: str, name: str | None = None) -> FeedSource:
        feed = FeedSource(id=new_id(), url=url, display_name=name)
        feeds = self.list() + [feed]
        self._write(feeds)
        logger.debug("Feed added: %s (%s)", feed.url, feed.id)
        return feed

    def remove(self, feed_id: str) -> None:
        self._write([feed for feed in self.list() if feed.id != feed_id])

    def list(self) -> list[FeedSource]:
        return _load_records(self._doc, FeedSource.from_dict)

    def update(self, feed: FeedSource) -> None:
        feeds = self.list()
        for idx, existing in enumerate(feeds):
            if existing.id == feed.id:
                feeds[idx] = feed
                self._write(feeds)
                return

    def _write(self, feeds: list[FeedSource]) -> None:
        self._doc.write([feed.to_dict() for feed in feeds])


class JsonPublishTargetStore(PublishTargetStore):
    def __init__(self, path: Path):
        self._doc = JsonDocument(path, None)

    def get(self) -> PublishTarget | None:
        raw = self._doc.read()
        if not raw:
            return None
        if not isinstance(raw, dict):
            logger.warning("Ignoring publish target in %s: not an object", self._doc.path)
            return None
        try:
            return PublishTarget.from_dict(raw)
        except ValidationError as exc:
            logger.warning("Ignoring invalid publish target in %s: %s", self._doc.path, exc)
            return None

    def save(self, target: PublishTarget) -> None:
        self._doc.write(target.to_dict())


class JsonDedupLedger(DedupLedger):
    def __init__(self, path: Path):
        self._doc = JsonDocument(path, [])

    def get_all(self) -> set[str]:
        return set(self._identifiers())

    def add(self, identifier: str) -> None:
        identifiers = self._identifiers()
        if identifier in identifiers:
            return
        identifiers.append(identifier)
        self._doc.write(identifiers)

    def _identifiers(self) -> list[str]:
        return [item for item in self._doc.read() if isinstance(item, str) and item]


class JsonProcessingLog(ProcessingLog):
    def __init__(self, path: Path, retention: int = DEFAULT_LOG_RETENTION):
        self._doc = JsonDocument(path, [])
        self.retention = retention

    def list(self) -> list[ProcessingLogEntry]:
        entries = _load_records(self._doc, ProcessingLogEntry.from_dict)
        entries.sort(key=lambda entry: str(entry.timestamp), reverse=True)
        return entries[: self.retention]

    def _store(self, entry: ProcessingLogEntry) -> None:
        entries = [entry] + self.list()
        self._doc.write([item.to_dict() for item in entries[: self.retention]])


def open_json_storage(data_dir: Path, log_retention: int = DEFAULT_LOG_RETENTION) -> Storage:
    """Build a Storage bundle backed by JSON files in `data_dir`."""
    data_dir = Path(data_dir)
    return Storage(
        feeds=JsonFeedRegistry(data_dir / FEEDS_FILE),
        publish_target=JsonPublishTargetStore(data_dir / PUBLISH_TARGET_FILE),
        ledger=JsonDedupLedger(data_dir / LEDGER_FILE),
        log=JsonProcessingLog(data_dir / PROCESSING_LOG_FILE, retention=log_retention),
    )

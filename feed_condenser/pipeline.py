"""
Pipeline orchestration for the feed condenser.

One run walks every configured feed in registry order and every item in
feed order:
1. Fetch and parse the feed
2. Skip items without an identifier or already in the dedup ledger
3. Reject bodies that are too short
4. Ask the summarization provider for a verdict and summary
5. Publish the summary when a publish target is configured
6. Record the outcome in the processing log and the dedup ledger

Feed failures are isolated to their feed and article failures to their
article. The only run-level failure is an empty feed registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Callable, Protocol

from .config import AppConfig
from .core.errors import FeedFetchError
from .core.types import (
    STATUS_ERROR,
    STATUS_PENDING,
    STATUS_POSTED,
    STATUS_SUMMARIZED,
    STATUS_UNSUITABLE,
    ArticleItem,
    FeedSource,
    ProcessingLogEntry,
    PublishResult,
    PublishTarget,
    RunResult,
    SummaryResult,
)
from .fetch.feeds import fetch_feed
from .llm.tracing import set_span_output, start_span
from .logging_utils import log_event
from .publish.wordpress import WordPressPublisher
from .storage.base import Storage, utc_now_iso

NOT_APPLICABLE = "N/A"
UNTITLED = "Untitled Article"

SYSTEM_PUBLISH_CONFIG_GUID = "system-wp-config"
SYSTEM_NO_FEEDS_GUID = "system-no-feeds"
SYSTEM_NO_NEW_ARTICLES_GUID = "system-no-new-articles"


class Summarizer(Protocol):
    def summarize(self, text: str) -> SummaryResult: ...


class Publisher(Protocol):
    def publish(self, title: str, content: str, status: str | None = None) -> PublishResult: ...


Fetcher = Callable[[str], list[ArticleItem]]
PublisherFactory = Callable[[PublishTarget], Publisher]


@dataclass
class _RunState:
    """Mutable bookkeeping for a single run."""

    publisher: Publisher | None
    seen: set[str]
    entries: list[ProcessingLogEntry] = field(default_factory=list)
    articles_processed: int = 0


class PipelineOrchestrator:
    """Drives fetch, dedupe, summarize, publish and log for all feeds.

    Args:
        storage: The four stores, opened by the caller
        summarizer: Summarization capability (see SummarizationProvider)
        cfg: Application configuration
        fetcher: Callable returning the items of a feed URL; defaults to fetch_feed
        publisher_factory: Builds a publish client for a target; defaults to WordPressPublisher
        logger: Logger for structured run events
    """

    def __init__(
        self,
        storage: Storage,
        summarizer: Summarizer,
        cfg: AppConfig | None = None,
        fetcher: Fetcher | None = None,
        publisher_factory: PublisherFactory | None = None,
        logger: logging.Logger | None = None,
    ):
        self.storage = storage
        self.summarizer = summarizer
        self.cfg = cfg or AppConfig()
        self.fetcher = fetcher or (lambda url: fetch_feed(url, self.cfg.fetch))
        self.publisher_factory = publisher_factory or (
            lambda target: WordPressPublisher(target, self.cfg.publish)
        )
        self.logger = logger or logging.getLogger("feed_condenser.pipeline")

    def run(self) -> RunResult:
        """Process every configured feed once and report what happened."""
        with start_span("feed_condenser.run", kind="chain") as run_span:
            result = self._run()
            set_span_output(
                run_span,
                {
                    "success": result.success,
                    "feeds_checked": result.feeds_checked,
                    "articles_processed": result.articles_processed,
                    "entries": len(result.new_log_entries),
                },
            )
        return result

    def _run(self) -> RunResult:
        feeds = self.storage.feeds.list()
        target = self.storage.publish_target.get()
        state = _RunState(publisher=None, seen=self.storage.ledger.get_all())
        log_event(
            self.logger,
            "Pipeline start",
            event="pipeline_start",
            feeds=len(feeds),
            ledger_size=len(state.seen),
            publishing=target is not None,
        )

        suffix = ""
        if target is None:
            self._record(
                state,
                article_guid=SYSTEM_PUBLISH_CONFIG_GUID,
                article_title="WordPress Configuration Info",
                feed_url=NOT_APPLICABLE,
                status=STATUS_PENDING,
                error_message=(
                    "WordPress configuration not found. Articles will be summarized "
                    "but not posted to WordPress."
                ),
            )
            suffix = " WordPress posting was skipped due to missing configuration."

        if not feeds:
            self._record(
                state,
                article_guid=SYSTEM_NO_FEEDS_GUID,
                article_title="No Feeds",
                feed_url=NOT_APPLICABLE,
                status=STATUS_ERROR,
                error_message="No RSS feeds configured. Please add feeds to process.",
            )
            log_event(self.logger, "No feeds configured", logging.WARNING, event="no_feeds")
            return RunResult(
                success=False,
                message="No RSS feeds configured." + suffix,
                new_log_entries=state.entries,
            )

        if target is not None:
            state.publisher = self.publisher_factory(target)

        for feed in feeds:
            self._process_feed(feed, state)

        if state.articles_processed == 0:
            self._record(
                state,
                article_guid=SYSTEM_NO_NEW_ARTICLES_GUID,
                article_title="No New Articles",
                feed_url=NOT_APPLICABLE,
                status=STATUS_PENDING,
                error_message="No new articles found in configured feeds.",
            )
            message = "Processing complete. No new articles found." + suffix
        else:
            message = (
                f"Processing complete. Checked {len(feeds)} feeds. "
                f"Processed {state.articles_processed} new articles." + suffix
            )

        log_event(
            self.logger,
            "Pipeline complete",
            event="pipeline_complete",
            feeds=len(feeds),
            articles_processed=state.articles_processed,
            entries=len(state.entries),
        )
        return RunResult(
            success=True,
            message=message,
            new_log_entries=state.entries,
            feeds_checked=len(feeds),
            articles_processed=state.articles_processed,
        )

    def _process_feed(self, feed: FeedSource, state: _RunState) -> None:
        try:
            items = self.fetcher(feed.url)
            self.storage.feeds.update(replace(feed, last_fetched_at=utc_now_iso()))
            log_event(
                self.logger,
                "Feed fetched",
                event="feed_fetched",
                feed=feed.url,
                items=len(items),
            )
            for item in items:
                self._process_item(feed, item, state)
        except FeedFetchError as exc:
            log_event(
                self.logger,
                "Feed fetch failed",
                logging.WARNING,
                event="feed_fetch_failed",
                feed=feed.url,
                error=exc.reason,
            )
            self._record_feed_error(feed, str(exc), state)
        except Exception as exc:  # noqa: BLE001
            self.logger.exception("Unexpected error processing feed %s", feed.url)
            self._record_feed_error(feed, f"{type(exc).__name__}: {exc}", state)

    def _record_feed_error(self, feed: FeedSource, message: str, state: _RunState) -> None:
        self._record(
            state,
            article_guid=f"feed-error-{feed.id}",
            article_title=f"Error processing feed: {feed.label}",
            feed_url=feed.url,
            status=STATUS_ERROR,
            error_message=message,
        )

    def _process_item(self, feed: FeedSource, item: ArticleItem, state: _RunState) -> None:
        identifier = item.identifier
        if not identifier or identifier in state.seen:
            return

        state.articles_processed += 1
        self._classify(feed, item, identifier, state)
        self.storage.ledger.add(identifier)
        state.seen.add(identifier)

    def _classify(
        self,
        feed: FeedSource,
        item: ArticleItem,
        identifier: str,
        state: _RunState,
    ) -> None:
        """Run one new article through suitability, summary and publishing."""
        title = item.title or UNTITLED
        base = {"article_guid": identifier, "article_title": title, "feed_url": feed.url}
        text = item.text_for_summary()

        if len(text) < self.cfg.summary.min_body_chars:
            self._record(
                state,
                **base,
                status=STATUS_UNSUITABLE,
                is_suitable=False,
                error_message="Article content too short for summarization.",
            )
            return

        try:
            reply = self.summarizer.summarize(text)
        except Exception as exc:  # noqa: BLE001
            log_event(
                self.logger,
                "Summarization failed",
                logging.WARNING,
                event="summarization_failed",
                guid=identifier,
                error=str(exc),
            )
            self._record(
                state,
                **base,
                status=STATUS_ERROR,
                error_message=f"Summarization failed: {exc}",
            )
            return

        if not reply.is_suitable or not reply.summary:
            if reply.is_suitable:
                reason = "AI deemed content suitable but failed to produce summary."
            else:
                reason = "AI deemed content unsuitable for summarization."
            self._record(
                state,
                **base,
                status=STATUS_UNSUITABLE,
                is_suitable=reply.is_suitable,
                summary=reply.summary or None,
                error_message=reason,
            )
            return

        summarized = self._record(
            state,
            **base,
            status=STATUS_SUMMARIZED,
            summary=reply.summary,
            is_suitable=True,
        )
        if state.publisher is None:
            return

        outcome = state.publisher.publish(
            item.title or self.cfg.publish.placeholder_title,
            reply.summary,
            self.cfg.publish.post_status,
        )
        # the summarized entry stays in storage; the batch keeps only the final status
        state.entries.remove(summarized)
        if outcome.success:
            self._record(
                state,
                **base,
                status=STATUS_POSTED,
                summary=reply.summary,
                is_suitable=True,
                posted_to_wordpress=True,
                published_url=outcome.post_url,
            )
        else:
            self._record(
                state,
                **base,
                status=STATUS_ERROR,
                summary=reply.summary,
                is_suitable=True,
                posted_to_wordpress=False,
                error_message=f"WordPress posting failed: {outcome.error}",
            )

    def _record(self, state: _RunState, **fields) -> ProcessingLogEntry:
        entry = self.storage.log.append(**fields)
        state.entries.append(entry)
        log_event(
            self.logger,
            f"{entry.status}: {entry.article_title}",
            event="log_entry",
            status=entry.status,
            guid=entry.article_guid,
            feed=entry.feed_url,
        )
        return entry

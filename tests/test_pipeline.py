"""Tests for the pipeline orchestrator."""

from __future__ import annotations

import json

import pytest

from feed_condenser.config import AppConfig
from feed_condenser.core.errors import FeedFetchError, SummarizationError
from feed_condenser.core.types import ArticleItem, FeedSource, PublishResult, PublishTarget, SummaryResult
from feed_condenser.fetch.feeds import parse_feed
from feed_condenser.pipeline import PipelineOrchestrator
from feed_condenser.storage import memory_storage, open_json_storage
from feed_condenser.storage.json_store import PROCESSING_LOG_FILE, PUBLISH_TARGET_FILE


FEED_A = FeedSource(id="feed-a", url="https://a.example.com/rss", display_name="A")
FEED_B = FeedSource(id="feed-b", url="https://b.example.com/rss")
TARGET = PublishTarget(site_url="https://blog.example.com", username="editor", credential="pw")
LONG_BODY = "b" * 500


class _DummyFetcher:
    """Returns canned items per URL; exceptions are raised."""

    def __init__(self, feeds):
        self.feeds = feeds
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        value = self.feeds.get(url, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


class _DummySummarizer:
    def __init__(self, result=None, error=None):
        self.result = result or SummaryResult(summary="S", is_suitable=True)
        self.error = error
        self.calls = []

    def summarize(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.result


class _DummyPublisher:
    def __init__(self, result=None):
        self.result = result or PublishResult(success=True, post_url="https://x/1")
        self.calls = []

    def publish(self, title, content, status=None):
        self.calls.append((title, content, status))
        return self.result


def _orchestrator(storage, fetcher, summarizer, publisher=None):
    publisher = publisher or _DummyPublisher()
    return PipelineOrchestrator(
        storage,
        summarizer,
        AppConfig(),
        fetcher=fetcher,
        publisher_factory=lambda target: publisher,
    )


def _item(guid="a1", title="T", body=LONG_BODY, link=None):
    return ArticleItem(guid=guid, title=title, link=link, body=body)


def _statuses(entries):
    return [entry.status for entry in entries]


def test_no_feeds_fails_without_ledger_mutation():
    storage = memory_storage(target=TARGET)
    summarizer = _DummySummarizer()

    result = _orchestrator(storage, _DummyFetcher({}), summarizer).run()

    assert result.success is False
    assert result.message == "No RSS feeds configured."
    assert _statuses(result.new_log_entries) == ["error"]
    assert result.new_log_entries[0].article_guid == "system-no-feeds"
    assert storage.ledger.get_all() == set()
    assert summarizer.calls == []


def test_no_feeds_and_no_target_still_notes_missing_target():
    storage = memory_storage()

    result = _orchestrator(storage, _DummyFetcher({}), _DummySummarizer()).run()

    assert result.success is False
    assert _statuses(result.new_log_entries) == ["pending", "error"]
    assert "WordPress posting was skipped" in result.message


def test_too_short_body_is_unsuitable_without_summarizer_call():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    fetcher = _DummyFetcher({FEED_A.url: [_item(body="x" * 30)]})
    summarizer = _DummySummarizer()

    result = _orchestrator(storage, fetcher, summarizer).run()

    assert _statuses(result.new_log_entries) == ["unsuitable"]
    entry = result.new_log_entries[0]
    assert entry.article_guid == "a1"
    assert entry.is_suitable is False
    assert "too short" in entry.error_message
    assert storage.ledger.get_all() == {"a1"}
    assert summarizer.calls == []


def test_summarized_without_target_is_not_published():
    storage = memory_storage(feeds=[FEED_A])
    publisher = _DummyPublisher()
    fetcher = _DummyFetcher({FEED_A.url: [_item()]})

    result = _orchestrator(storage, fetcher, _DummySummarizer(), publisher).run()

    assert result.success is True
    assert _statuses(result.new_log_entries) == ["pending", "summarized"]
    summarized = result.new_log_entries[1]
    assert summarized.summary == "S"
    assert not summarized.posted_to_wordpress
    assert storage.ledger.get_all() == {"a1"}
    assert publisher.calls == []
    assert result.message == (
        "Processing complete. Checked 1 feeds. Processed 1 new articles."
        " WordPress posting was skipped due to missing configuration."
    )


def test_posted_entry_supersedes_summarized_in_batch_only():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    publisher = _DummyPublisher(PublishResult(success=True, post_url="https://x/1"))
    fetcher = _DummyFetcher({FEED_A.url: [_item()]})

    result = _orchestrator(storage, fetcher, _DummySummarizer(), publisher).run()

    assert _statuses(result.new_log_entries) == ["posted"]
    posted = result.new_log_entries[0]
    assert posted.published_url == "https://x/1"
    assert posted.posted_to_wordpress is True
    assert publisher.calls == [("T", "S", "publish")]
    assert _statuses(storage.log.list()) == ["posted", "summarized"]
    assert storage.ledger.get_all() == {"a1"}


def test_publish_failure_records_error_and_keeps_summary():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    publisher = _DummyPublisher(PublishResult(success=False, error="Status 401"))
    fetcher = _DummyFetcher({FEED_A.url: [_item()]})

    result = _orchestrator(storage, fetcher, _DummySummarizer(), publisher).run()

    assert _statuses(result.new_log_entries) == ["error"]
    entry = result.new_log_entries[0]
    assert entry.summary == "S"
    assert entry.posted_to_wordpress is False
    assert entry.error_message == "WordPress posting failed: Status 401"
    assert storage.ledger.get_all() == {"a1"}


def test_untitled_article_uses_placeholder_title_for_publishing():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    publisher = _DummyPublisher()
    fetcher = _DummyFetcher({FEED_A.url: [_item(title="")]})

    result = _orchestrator(storage, fetcher, _DummySummarizer(), publisher).run()

    assert publisher.calls[0][0] == "Summarized Article"
    assert result.new_log_entries[0].article_title == "Untitled Article"


def test_unsuitable_verdict_is_ledgered():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    summarizer = _DummySummarizer(SummaryResult(summary="", is_suitable=False))
    publisher = _DummyPublisher()

    result = _orchestrator(storage, _DummyFetcher({FEED_A.url: [_item()]}), summarizer, publisher).run()

    assert _statuses(result.new_log_entries) == ["unsuitable"]
    assert result.new_log_entries[0].error_message == "AI deemed content unsuitable for summarization."
    assert storage.ledger.get_all() == {"a1"}
    assert publisher.calls == []


def test_suitable_without_summary_is_recorded_as_unsuitable():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    summarizer = _DummySummarizer(SummaryResult(summary="", is_suitable=True))

    result = _orchestrator(storage, _DummyFetcher({FEED_A.url: [_item()]}), summarizer).run()

    entry = result.new_log_entries[0]
    assert entry.status == "unsuitable"
    assert entry.is_suitable is True
    assert "failed to produce summary" in entry.error_message


def test_summarizer_exception_is_isolated_to_article():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    summarizer = _DummySummarizer(error=SummarizationError("HTTPStatusError: 503"))
    fetcher = _DummyFetcher({FEED_A.url: [_item("a1"), _item("a2")]})

    result = _orchestrator(storage, fetcher, summarizer).run()

    assert result.success is True
    assert _statuses(result.new_log_entries) == ["error", "error"]
    assert "Summarization failed" in result.new_log_entries[0].error_message
    assert storage.ledger.get_all() == {"a1", "a2"}
    assert result.articles_processed == 2


def test_feed_fetch_failure_is_isolated():
    storage = memory_storage(feeds=[FEED_A, FEED_B], target=TARGET)
    fetcher = _DummyFetcher(
        {
            FEED_A.url: FeedFetchError(FEED_A.url, "HTTP 500"),
            FEED_B.url: [_item("b1")],
        }
    )

    result = _orchestrator(storage, fetcher, _DummySummarizer()).run()

    assert fetcher.calls == [FEED_A.url, FEED_B.url]
    errors = [entry for entry in result.new_log_entries if entry.status == "error"]
    assert len(errors) == 1
    assert errors[0].article_guid == "feed-error-feed-a"
    assert errors[0].article_title == "Error processing feed: A"
    assert _statuses(result.new_log_entries) == ["error", "posted"]
    assert storage.ledger.get_all() == {"b1"}


def test_unexpected_feed_exception_becomes_error_entry():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    fetcher = _DummyFetcher({FEED_A.url: RuntimeError("boom")})

    result = _orchestrator(storage, fetcher, _DummySummarizer()).run()

    assert result.success is True
    assert result.new_log_entries[0].article_guid == "feed-error-feed-a"
    assert result.new_log_entries[0].error_message == "RuntimeError: boom"


def test_last_fetched_at_updated_only_on_success():
    storage = memory_storage(feeds=[FEED_A, FEED_B], target=TARGET)
    fetcher = _DummyFetcher({FEED_A.url: [], FEED_B.url: FeedFetchError(FEED_B.url, "timeout")})

    _orchestrator(storage, fetcher, _DummySummarizer()).run()

    feeds = {feed.id: feed for feed in storage.feeds.list()}
    assert feeds["feed-a"].last_fetched_at is not None
    assert feeds["feed-b"].last_fetched_at is None


def test_items_without_identifier_are_skipped_silently():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    summarizer = _DummySummarizer()
    fetcher = _DummyFetcher({FEED_A.url: [ArticleItem(guid=None, title="T", link=None, body=LONG_BODY)]})

    result = _orchestrator(storage, fetcher, summarizer).run()

    assert summarizer.calls == []
    assert storage.ledger.get_all() == set()
    assert _statuses(result.new_log_entries) == ["pending"]
    assert result.new_log_entries[0].article_guid == "system-no-new-articles"
    assert result.message == "Processing complete. No new articles found."


def test_link_is_used_when_guid_missing():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    fetcher = _DummyFetcher({FEED_A.url: [_item(guid=None, link="https://a.example.com/post")]})

    _orchestrator(storage, fetcher, _DummySummarizer()).run()

    assert storage.ledger.get_all() == {"https://a.example.com/post"}


def test_ledgered_article_never_reaches_summarizer():
    storage = memory_storage(feeds=[FEED_A], target=TARGET, identifiers={"a1"})
    summarizer = _DummySummarizer()
    fetcher = _DummyFetcher({FEED_A.url: [_item("a1"), _item("a2")]})

    result = _orchestrator(storage, fetcher, summarizer).run()

    assert summarizer.calls == [LONG_BODY]
    assert [entry.article_guid for entry in result.new_log_entries] == ["a2"]


def test_duplicate_identifier_across_feeds_is_processed_once():
    storage = memory_storage(feeds=[FEED_A, FEED_B], target=TARGET)
    summarizer = _DummySummarizer()
    fetcher = _DummyFetcher({FEED_A.url: [_item("shared")], FEED_B.url: [_item("shared")]})

    result = _orchestrator(storage, fetcher, summarizer).run()

    assert len(summarizer.calls) == 1
    assert result.articles_processed == 1


def test_second_run_is_idempotent():
    storage = memory_storage(feeds=[FEED_A, FEED_B])
    fetcher = _DummyFetcher(
        {
            FEED_A.url: [_item("a1"), _item("a2", body="short")],
            FEED_B.url: [_item("b1")],
        }
    )
    summarizer = _DummySummarizer()
    orchestrator = _orchestrator(storage, fetcher, summarizer)

    first = orchestrator.run()
    ledger_after_first = storage.ledger.get_all()
    second = orchestrator.run()

    assert first.articles_processed == 3
    assert ledger_after_first == {"a1", "a2", "b1"}
    assert storage.ledger.get_all() == ledger_after_first
    assert second.articles_processed == 0
    assert set(_statuses(second.new_log_entries)) == {"pending"}
    assert len(summarizer.calls) == 2


def test_body_falls_back_to_snippet_then_title():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    summarizer = _DummySummarizer()
    snippet = "s" * 80
    fetcher = _DummyFetcher(
        {FEED_A.url: [ArticleItem(guid="a1", title="T", link=None, body=None, snippet=snippet)]}
    )

    _orchestrator(storage, fetcher, summarizer).run()

    assert summarizer.calls == [snippet]


@pytest.mark.parametrize("count", [0, 1])
def test_result_reports_feed_count(count):
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    items = [_item(f"a{idx}") for idx in range(count)]

    result = _orchestrator(storage, _DummyFetcher({FEED_A.url: items}), _DummySummarizer()).run()

    assert result.feeds_checked == 1
    assert result.articles_processed == count


def test_html_page_instead_of_feed_is_a_feed_error():
    storage = memory_storage(feeds=[FEED_A], target=TARGET)
    page = b"<html><body><p>hello</p></body></html>"

    result = _orchestrator(storage, lambda url: parse_feed(url, page), _DummySummarizer()).run()

    feed_errors = [entry for entry in result.new_log_entries if entry.status == "error"]
    assert len(feed_errors) == 1
    assert feed_errors[0].article_guid == "feed-error-feed-a"
    assert "unrecognized feed format" in feed_errors[0].error_message
    assert storage.feeds.list()[0].last_fetched_at is None


def test_no_feeds_never_builds_publisher():
    storage = memory_storage(target=TARGET)
    built = []
    orchestrator = PipelineOrchestrator(
        storage,
        _DummySummarizer(),
        AppConfig(),
        fetcher=_DummyFetcher({}),
        publisher_factory=lambda target: built.append(target) or _DummyPublisher(),
    )

    result = orchestrator.run()

    assert result.success is False
    assert built == []


def test_run_tolerates_corrupt_json_stores(tmp_path):
    storage = open_json_storage(tmp_path)
    storage.feeds.add(FEED_A.url, "A")
    (tmp_path / PROCESSING_LOG_FILE).write_text("{not json", encoding="utf-8")
    (tmp_path / PUBLISH_TARGET_FILE).write_text(
        json.dumps({"site_url": "https://blog.example.com", "username": "", "credential": ""}),
        encoding="utf-8",
    )
    publisher = _DummyPublisher()
    fetcher = _DummyFetcher({FEED_A.url: [_item()]})

    result = _orchestrator(storage, fetcher, _DummySummarizer(), publisher).run()

    assert result.success is True
    assert _statuses(result.new_log_entries) == ["pending", "summarized"]
    assert publisher.calls == []
    assert storage.ledger.get_all() == {"a1"}
    assert _statuses(storage.log.list()) == ["summarized", "pending"]

"""Tests for feed fetching and parsing."""

from __future__ import annotations

import httpx
import pytest

from feed_condenser.config import FetchConfig
from feed_condenser.core.errors import FeedFetchError
from feed_condenser.fetch.extractor import html_to_text
from feed_condenser.fetch.feeds import fetch_feed, parse_feed


RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Example</title>
    <link>https://example.com/</link>
    <description>Example feed</description>
    <item>
      <title>First post</title>
      <link>https://example.com/first</link>
      <guid>urn:example:first</guid>
      <description>&lt;p&gt;Short &lt;b&gt;teaser&lt;/b&gt;&lt;/p&gt;</description>
      <content:encoded><![CDATA[<p>The full body of the first post.</p>]]></content:encoded>
      <pubDate>Sat, 17 Oct 2026 08:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second post</title>
      <link>https://example.com/second</link>
      <description>Plain description only</description>
    </item>
  </channel>
</rss>
"""


def test_parse_feed_maps_items_in_order():
    items = parse_feed("https://example.com/rss", RSS)

    assert [item.title for item in items] == ["First post", "Second post"]
    first, second = items
    assert first.guid == "urn:example:first"
    assert first.link == "https://example.com/first"
    assert "full body of the first post" in first.body
    assert first.snippet == "Short\nteaser"
    assert first.published_at
    assert second.identifier
    assert second.body == "Plain description only"


def test_parse_feed_rejects_garbage():
    with pytest.raises(FeedFetchError, match="Malformed feed"):
        parse_feed("https://example.com/rss", b"this is not a feed at all")


def test_parse_feed_rejects_html_page():
    with pytest.raises(FeedFetchError, match="unrecognized feed format"):
        parse_feed("https://example.com/", b"<html><body><p>hello</p></body></html>")


def test_parse_feed_rejects_non_feed_xml():
    with pytest.raises(FeedFetchError, match="unrecognized feed format"):
        parse_feed("https://example.com/note.xml", b'<?xml version="1.0"?><note><to>x</to></note>')


def test_parse_feed_accepts_empty_channel():
    empty = b'<?xml version="1.0"?><rss version="2.0"><channel><title>Empty</title></channel></rss>'

    assert parse_feed("https://example.com/rss", empty) == []


def test_fetch_feed_uses_single_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, content=RSS, headers={"Content-Type": "application/rss+xml"})

    items = fetch_feed("https://example.com/rss", FetchConfig(), transport=httpx.MockTransport(handler))

    assert len(items) == 2
    assert len(calls) == 1
    assert calls[0].headers["User-Agent"] == FetchConfig().user_agent


def test_fetch_feed_http_error_raises_fetch_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    with pytest.raises(FeedFetchError) as excinfo:
        fetch_feed("https://example.com/rss", FetchConfig(), transport=transport)

    assert excinfo.value.reason == "HTTP 503"


def test_fetch_feed_transport_error_raises_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FeedFetchError, match="ConnectError"):
        fetch_feed("https://example.com/rss", FetchConfig(), transport=httpx.MockTransport(handler))


def test_html_to_text_strips_markup_and_scripts():
    html = "<div><script>alert(1)</script><p>Hello</p><p> world </p></div>"

    assert html_to_text(html) == "Hello\nworld"
    assert html_to_text("plain text ") == "plain text"
    assert html_to_text("") is None

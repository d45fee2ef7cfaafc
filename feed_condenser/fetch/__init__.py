"""
Feed retrieval.

This package downloads syndication feeds and turns their entries into
ArticleItem objects.
"""

from .extractor import html_to_text
from .feeds import fetch_feed, parse_feed

__all__ = ["fetch_feed", "parse_feed", "html_to_text"]

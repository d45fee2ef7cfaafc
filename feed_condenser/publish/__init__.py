"""Republishing of summaries to an external content system."""

from .wordpress import WordPressPublisher

__all__ = ["WordPressPublisher"]

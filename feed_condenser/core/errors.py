"""Exception types raised across the pipeline."""

from __future__ import annotations


class FeedCondenserError(Exception):
    """Base class for all feed-condenser errors."""


class ConfigError(FeedCondenserError):
    """Raised for unusable runtime configuration (unknown provider, missing key)."""


class ValidationError(FeedCondenserError):
    """Raised when a value object is constructed from invalid input.

    Attributes:
        field_errors: Mapping of field name to the list of problems found
    """

    def __init__(self, field_errors: dict[str, list[str]]):
        self.field_errors = field_errors
        details = "; ".join(
            f"{name}: {', '.join(problems)}" for name, problems in field_errors.items()
        )
        super().__init__(f"Invalid input ({details})")


class FeedFetchError(FeedCondenserError):
    """Raised when a feed cannot be downloaded or parsed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch feed {url}: {reason}")


class SummarizationError(FeedCondenserError):
    """Raised when the summarization provider fails to return a usable reply."""

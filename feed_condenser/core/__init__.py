"""
Core domain models and errors.

This package contains data types that are independent of any
specific storage backend or external service.
"""

from .errors import (
    ConfigError,
    FeedCondenserError,
    FeedFetchError,
    SummarizationError,
    ValidationError,
)
from .types import (
    LOG_STATUSES,
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

__all__ = [
    "ArticleItem",
    "ConfigError",
    "FeedCondenserError",
    "FeedFetchError",
    "FeedSource",
    "LOG_STATUSES",
    "ProcessingLogEntry",
    "PublishResult",
    "PublishTarget",
    "RunResult",
    "STATUS_ERROR",
    "STATUS_PENDING",
    "STATUS_POSTED",
    "STATUS_SUMMARIZED",
    "STATUS_UNSUITABLE",
    "SummarizationError",
    "SummaryResult",
    "ValidationError",
]

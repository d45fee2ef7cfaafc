"""
Persistence for feeds, the publish target, the dedup ledger and the processing log.

The orchestrator depends only on the abstract contracts in `base`;
`json_store` and `memory` provide interchangeable implementations.
"""

from .base import (
    DEFAULT_LOG_RETENTION,
    DedupLedger,
    FeedRegistry,
    ProcessingLog,
    PublishTargetStore,
    Storage,
)
from .json_store import open_json_storage
from .memory import memory_storage

__all__ = [
    "DEFAULT_LOG_RETENTION",
    "DedupLedger",
    "FeedRegistry",
    "ProcessingLog",
    "PublishTargetStore",
    "Storage",
    "memory_storage",
    "open_json_storage",
]

"""
Feed Condenser - summarize new syndication feed articles and republish them.

The package polls configured feeds, skips articles it has already handled,
asks an LLM whether each new article is worth condensing, and posts the
summary to a WordPress site when one is configured.

Main entry point is the CLI via the `feed-condenser run` command.

Example:
    $ feed-condenser feeds add https://example.com/feed.xml
    $ feed-condenser run
"""

__all__ = ["__version__", "PipelineOrchestrator", "AppConfig", "load_config"]
__version__ = "0.1.0"

from .config import AppConfig, load_config
from .pipeline import PipelineOrchestrator

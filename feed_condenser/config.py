"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- ProviderConfig: LLM provider settings
- FetchConfig: Feed fetching settings
- SummaryConfig: Suitability thresholds and prompt sizing
- PublishConfig: WordPress publishing settings
- StorageConfig: Location of the JSON data documents
- LoggingConfig: Logging behavior
- LangfuseConfig: Langfuse tracing settings
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


@dataclass
class ProviderConfig:
    """Configuration for the summarization provider.

    Attributes:
        name: Provider name ("gemini", "openai", "openai_compatible")
        model: Model identifier
        api_key_env: Environment variable name containing the API key
        base_url: Base URL for the provider API
        api_key: Optional inline API key (overrides env var)
        trust_env: Whether to respect system proxy settings for API requests
        timeout_seconds: Request timeout for a single summarization call
    """

    name: str = "gemini"
    model: str = "gemini-2.5-flash"
    api_key_env: str = "GOOGLE_API_KEY"
    base_url: str = "https://generativelanguage.googleapis.com"
    api_key: str | None = None
    trust_env: bool = True
    timeout_seconds: float = 30.0


@dataclass
class FetchConfig:
    """Configuration for feed fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 20.0
    trust_env: bool = True
    user_agent: str = "feed-condenser/0.1 (RSS reader)"


@dataclass
class SummaryConfig:
    """Configuration for suitability checks and summarization.

    Attributes:
        min_body_chars: Bodies shorter than this are rejected before the provider is called
        suitable_min_chars: Provider heuristic lower bound (exclusive)
        suitable_max_chars: Provider heuristic upper bound (exclusive)
        max_chars: Maximum characters of article text to send to the LLM
        max_summary_words: Target length of the generated summary
    """

    min_body_chars: int = 50
    suitable_min_chars: int = 200
    suitable_max_chars: int = 10000
    max_chars: int = 12000
    max_summary_words: int = 120


@dataclass
class PublishConfig:
    """Configuration for publishing summaries.

    Attributes:
        post_status: WordPress post status ("publish", "pending", "draft")
        timeout_seconds: HTTP request timeout
        placeholder_title: Title used when an article has none
    """

    post_status: str = "publish"
    timeout_seconds: float = 30.0
    placeholder_title: str = "Summarized Article"


@dataclass
class StorageConfig:
    """Configuration for persisted state.

    Attributes:
        data_dir: Directory holding the JSON documents
        log_retention: Number of processing log entries kept
    """

    data_dir: str = "data"
    log_retention: int = 100


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
        log_dir: Directory for log files
        llm_log_enabled: Whether to enable separate LLM interaction logging
        llm_log_detail: LLM log detail level ("response_only", "prompt_response")
        llm_log_redaction: Redaction mode for LLM logs ("none", "redact_content", "redact_urls_authors")
        llm_log_file: Name of the LLM log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "run.jsonl"
    log_dir: str = "logs"
    llm_log_enabled: bool = False
    llm_log_detail: str = "response_only"
    llm_log_redaction: str = "redact_urls_authors"
    llm_log_file: str = "llm.jsonl"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse tracing.

    Attributes:
        enabled: Whether to enable Langfuse tracing
        public_key: Langfuse public key (optional)
        secret_key: Langfuse secret key (optional)
        host: Langfuse host URL (optional)
        environment: Langfuse environment label (optional)
        release: Langfuse release identifier (optional)
        redaction: Redaction mode for prompt/response payloads
        max_text_chars: Maximum characters for prompt/response payloads
    """

    enabled: bool = False
    public_key: str | None = None
    secret_key: str | None = None
    host: str | None = None
    environment: str | None = None
    release: str | None = None
    redaction: str = "redact_urls_authors"
    max_text_chars: int = 20000


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        provider=ProviderConfig(**data["provider"]),
        fetch=FetchConfig(**data["fetch"]),
        summary=SummaryConfig(**data["summary"]),
        publish=PublishConfig(**data["publish"]),
        storage=StorageConfig(**data["storage"]),
        logging=LoggingConfig(**data["logging"]),
        langfuse=LangfuseConfig(**data.get("langfuse", {})),
    )


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    return os.getenv(cfg.api_key_env)

"""OpenAI-compatible chat completions provider."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import LoggingConfig, ProviderConfig, SummaryConfig
from ...core.errors import ConfigError
from .base import SummarizationProvider


class OpenAICompatibleProvider(SummarizationProvider):
    """Calls any `/chat/completions` endpoint speaking the OpenAI wire format."""

    name = "openai_compatible"

    def __init__(
        self,
        cfg: ProviderConfig,
        summary_cfg: SummaryConfig,
        api_key: str | None,
        log_cfg: LoggingConfig,
        llm_logger: logging.Logger | None,
        transport: httpx.BaseTransport | None = None,
    ):
        if not api_key:
            raise ConfigError("Missing API key for OpenAI-compatible provider")
        super().__init__(cfg, summary_cfg, api_key, log_cfg, llm_logger, transport)

    def _complete(self, prompt: str) -> str:
        payload = {
            "model": self.cfg.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        }
        url = f"{self.cfg.base_url.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        with self._client() as client:
            resp = client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
            return _extract_text(resp.json())


def _extract_text(data: dict[str, Any]) -> str:
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        return ""

"""Google Gemini summarization provider."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import LoggingConfig, ProviderConfig, SummaryConfig
from ...core.errors import ConfigError
from .base import SummarizationProvider


class GeminiProvider(SummarizationProvider):
    """Calls the Generative Language `generateContent` REST endpoint."""

    name = "gemini"

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
            raise ConfigError("Missing Google API key")
        super().__init__(cfg, summary_cfg, api_key, log_cfg, llm_logger, transport)

    def _complete(self, prompt: str) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.2,
                "maxOutputTokens": 1024,
                "responseMimeType": "application/json",
            },
        }
        url = f"{self.cfg.base_url.rstrip('/')}/v1beta/models/{self.cfg.model}:generateContent"
        with self._client() as client:
            resp = client.post(url, params={"key": self.api_key}, json=payload)
            resp.raise_for_status()
            return _extract_text(resp.json())


def _extract_text(data: dict[str, Any]) -> str:
    """Join the text parts of the first candidate, skipping thought parts when possible."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    answer = [part.get("text", "") for part in parts if not part.get("thought")]
    if any(answer):
        return "".join(answer)
    return "".join(part.get("text", "") for part in parts)

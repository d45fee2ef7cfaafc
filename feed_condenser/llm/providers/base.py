"""Summarization provider interface and shared response handling."""

from __future__ import annotations

from abc import ABC, abstractmethod
import json
import logging
from typing import Any

import httpx

from ...config import LoggingConfig, ProviderConfig, SummaryConfig
from ...core.errors import SummarizationError
from ...core.types import SummaryResult
from ...logging_utils import log_event, redact_text, truncate_text
from ..prompts import build_summary_prompt
from ..tracing import record_span_error, set_span_output, start_span


class SummarizationProvider(ABC):
    """Classifies suitability and condenses article text.

    Subclasses only implement `_complete`, the raw prompt-to-text call.
    Text outside the configured length window is rejected locally without
    a remote call.
    """

    name = "base"

    def __init__(
        self,
        cfg: ProviderConfig,
        summary_cfg: SummaryConfig,
        api_key: str | None,
        log_cfg: LoggingConfig,
        llm_logger: logging.Logger | None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.cfg = cfg
        self.summary_cfg = summary_cfg
        self.api_key = api_key
        self.log_cfg = log_cfg
        self.llm_logger = llm_logger
        self.transport = transport

    def is_suitable(self, text: str) -> bool:
        length = len(text)
        return self.summary_cfg.suitable_min_chars < length < self.summary_cfg.suitable_max_chars

    def summarize(self, text: str) -> SummaryResult:
        """Return a summary for `text`, or an unsuitable verdict.

        Raises:
            SummarizationError: On transport failures or unparseable replies
        """
        if not self.is_suitable(text):
            return SummaryResult(summary="", is_suitable=False)

        prompt = build_summary_prompt(text, self.summary_cfg)
        with start_span(
            f"{self.name}.summarize",
            kind="llm",
            input_value=prompt,
            attributes={"llm.model": self.cfg.model, "llm.provider": self.name},
        ) as span:
            try:
                content = self._complete(prompt)
            except httpx.HTTPError as exc:
                record_span_error(span, exc)
                self._log_llm_response("provider_error", str(exc), prompt)
                raise SummarizationError(f"{type(exc).__name__}: {exc}") from exc
            set_span_output(span, content)

            try:
                obj = parse_json_response(content)
            except json.JSONDecodeError as exc:
                record_span_error(span, exc)
                self._log_llm_response("parse_error", content, prompt)
                raise SummarizationError(f"Unparseable provider response: {exc.msg}") from exc

        self._log_llm_response("ok", content, prompt)
        return _to_summary_result(obj)

    @abstractmethod
    def _complete(self, prompt: str) -> str:
        """Send the prompt and return the model's text reply."""
        raise NotImplementedError

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.cfg.timeout_seconds,
            trust_env=self.cfg.trust_env,
            transport=self.transport,
        )

    def _log_llm_response(self, status: str, content: str, prompt: str) -> None:
        if self.llm_logger is None:
            return
        redaction = self.log_cfg.llm_log_redaction
        payload = {
            "event": "llm_summary_response",
            "status": status,
            "provider": self.name,
            "model": self.cfg.model,
            "raw_response": truncate_text(redact_text(content, redaction)),
        }
        if self.log_cfg.llm_log_detail == "prompt_response":
            payload["raw_prompt"] = truncate_text(redact_text(prompt, redaction))
        log_event(self.llm_logger, "LLM response", **payload)


def _to_summary_result(obj: dict[str, Any]) -> SummaryResult:
    if "is_suitable" in obj:
        suitable = obj["is_suitable"]
    elif "isSuitable" in obj:
        suitable = obj["isSuitable"]
    else:
        raise SummarizationError("Provider response is missing 'is_suitable'")
    if isinstance(suitable, str):
        suitable = suitable.strip().lower() == "true"
    summary = obj.get("summary") or ""
    if not isinstance(summary, str):
        summary = str(summary)
    summary = summary.strip()
    if not suitable:
        summary = ""
    return SummaryResult(summary=summary, is_suitable=bool(suitable))


def parse_json_response(content: str) -> dict[str, Any]:
    if not content:
        raise json.JSONDecodeError("Empty content", content or "", 0)
    try:
        obj = json.loads(content)
    except json.JSONDecodeError:
        obj = json.loads(_extract_json_snippet(content))
    if not isinstance(obj, dict):
        raise json.JSONDecodeError("Expected a JSON object", content, 0)
    return obj


def _extract_json_snippet(content: str) -> str:
    fence = _extract_fenced_json(content)
    if fence:
        return fence
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise json.JSONDecodeError("No JSON object found", content, 0)
    return content[start : end + 1]


def _extract_fenced_json(content: str) -> str | None:
    lines = content.splitlines()
    start_idx = None
    for idx, line in enumerate(lines):
        if line.strip().startswith("```") and "json" in line.lower():
            start_idx = idx + 1
            break
    if start_idx is None:
        return None
    for idx in range(start_idx, len(lines)):
        if lines[idx].strip().startswith("```"):
            snippet = "\n".join(lines[start_idx:idx]).strip()
            return snippet or None
    return None

"""Prompt loading and rendering helpers for LLM providers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from ..config import SummaryConfig
from ..fetch.extractor import html_to_text


_PROMPT_DIR = Path(__file__).resolve().parent.parent / "prompts"


@lru_cache(maxsize=None)
def _load_template(name: str) -> str:
    path = _PROMPT_DIR / f"{name}.md"
    return path.read_text(encoding="utf-8").strip()


def _render_template(name: str, **values: str) -> str:
    template = _load_template(name)
    return template.format(**values)


def build_summary_prompt(text: str, cfg: SummaryConfig) -> str:
    plain = html_to_text(text) or ""
    return _render_template(
        "summarize",
        max_words=str(cfg.max_summary_words),
        content=plain[: cfg.max_chars],
    )

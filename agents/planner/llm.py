"""LLM provider selection for the planner.

Anthropic is used when ``ANTHROPIC_API_KEY`` is set, otherwise OpenAI when
``OPENAI_API_KEY`` is set. Without either key the planner falls back to
templates and keyword replies.
"""

import os
from typing import Any, Optional, Tuple

import anthropic
import openai

ANTHROPIC = "anthropic"
OPENAI = "openai"

ANTHROPIC_MODEL = os.environ.get("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")


def select_provider(api_key: Optional[str] = None,
                    provider: Optional[str] = None) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(provider, api_key)``, or ``(None, None)`` when no key is configured.

    An explicit ``api_key`` is for ``provider`` (Anthropic by default).
    """
    if api_key:
        return provider or ANTHROPIC, api_key
    if os.environ.get("ANTHROPIC_API_KEY"):
        return ANTHROPIC, os.environ["ANTHROPIC_API_KEY"]
    if os.environ.get("OPENAI_API_KEY"):
        return OPENAI, os.environ["OPENAI_API_KEY"]
    return None, None


def default_model(provider: Optional[str]) -> str:
    return OPENAI_MODEL if provider == OPENAI else ANTHROPIC_MODEL


def create_client(provider: Optional[str], api_key: Optional[str]) -> Any:
    if provider == ANTHROPIC:
        return anthropic.Anthropic(api_key=api_key)
    if provider == OPENAI:
        return openai.OpenAI(api_key=api_key)
    return None


def provider_name() -> str:
    """Which generation backend the environment selects, for the startup banner."""
    provider, _ = select_provider()
    if provider == ANTHROPIC:
        return "Anthropic"
    if provider == OPENAI:
        return "OpenAI"
    return "templates (no ANTHROPIC_API_KEY or OPENAI_API_KEY)"

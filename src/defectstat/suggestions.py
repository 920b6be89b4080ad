"""AI-assisted defect reduction suggestions."""
from __future__ import annotations

import logging
from typing import Any, Optional

from openai import OpenAI

from .config import Config

LOGGER = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are an experienced manufacturing engineer specialising in defect "
    "reduction. Based on the statistical analysis provided, suggest concrete "
    "defect reduction strategies and process improvements."
)

DEFAULT_USER_PROMPT = (
    "Statistical analysis:\n"
    "---\n{analysis}\n---\n"
    "Provide clear, actionable suggestions to lower repair costs and improve "
    "product quality. Use bullet lists where helpful."
)

MAX_CONTEXT_CHARS = 15000


def build_prompt(analysis_summary: str) -> str:
    return DEFAULT_USER_PROMPT.format(analysis=analysis_summary[:MAX_CONTEXT_CHARS])


def _extract_response_text(response: object) -> Optional[str]:
    text: Any = None
    if hasattr(response, "output_text"):
        text = getattr(response, "output_text")
    elif hasattr(response, "choices"):
        choices = getattr(response, "choices")
        if choices:
            message = getattr(choices[0], "message", None)
            if isinstance(message, dict):
                text = message.get("content")
            elif message is not None:
                text = getattr(message, "content", None)
    if isinstance(text, list):
        text = "\n".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in text)
    return text.strip() if text else None


def suggest_reduction_strategies(
    analysis_summary: str,
    config: Config,
    client: Optional[Any] = None,
) -> Optional[str]:
    """Ask the language model for defect reduction ideas.

    Returns ``None`` when suggestions are disabled, no API key is configured
    or the request fails; the analysis itself never depends on this call.
    """

    if config.disable_ai:
        LOGGER.debug("AI suggestions disabled in configuration")
        return None
    if not analysis_summary.strip():
        LOGGER.debug("Skipping AI suggestions because the analysis summary is empty")
        return None

    if client is None:
        if not config.openai_api_key:
            LOGGER.warning("AI suggestions enabled but OPENAI_API_KEY is not set")
            return None
        try:
            client = OpenAI(api_key=config.openai_api_key)
        except Exception as exc:  # pragma: no cover
            LOGGER.error("Failed to initialise OpenAI client: %s", exc)
            return None

    try:
        response = client.responses.create(
            model=config.openai_model,
            input=[
                {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(analysis_summary)},
            ],
        )
    except Exception as exc:  # pragma: no cover - network errors
        LOGGER.error("AI suggestion request failed: %s", exc)
        return None

    suggestions = _extract_response_text(response)
    if not suggestions:
        LOGGER.warning("AI response did not contain text output")
    return suggestions


__all__ = ["build_prompt", "suggest_reduction_strategies"]

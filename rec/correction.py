"""Claude-based correction of raw transcripts."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from anthropic import Anthropic, APIStatusError

from rec.config import CONTEXT_WINDOW, CORRECTION_MAX_TOKENS, CORRECTION_TIMEOUT, DEFAULT_CLAUDE_MODEL
from rec.errors import ConfigError, ProviderError
from rec.history import HistoryEntry
from rec.status import StatusChannel

logger = logging.getLogger(__name__)

TOOL_NAME = "report_correction"

CORRECTION_TOOL: dict[str, Any] = {
    "name": TOOL_NAME,
    "description": "Report the corrected transcription with optional explanation",
    "input_schema": {
        "type": "object",
        "properties": {
            "corrected": {
                "type": "string",
                "description": "The corrected transcription text, or empty string if no correction needed",
            },
            "explanation": {
                "type": "string",
                "description": "Brief explanation of changes made, or empty string if no changes",
            },
        },
        "required": ["corrected", "explanation"],
    },
}

NO_CUSTOM_WORDS = "(no custom words configured)"

CORRECTION_PROMPT = """Correct this voice transcription taking into account the following technical terms:
{custom_words}
{context}Rules:
- Only correct obvious mistakes and mistranscribed words
- Preserve the original punctuation and sentence structure
- Don't translate, don't rephrase, just correct
- If a word sounds like one from the list, use it
- Use the context from previous corrections to understand recurring style and terms

Original transcription:
{text}

Use the '{tool}' tool:
- If correction is needed: provide 'corrected' with the corrected text and 'explanation' with a brief reason
- If no correction is needed: call the tool with empty strings for both fields"""


@dataclass(frozen=True)
class CorrectionResult:
    """Outcome of one correction request.

    ``corrected_text`` is None when the model reported that nothing needed
    fixing. ``provider_detail`` holds the raw tool input returned by the model.
    """

    corrected_text: str | None
    explanation: str | None = None
    provider_detail: dict[str, Any] = field(default_factory=dict)


def format_context(entries: Sequence[HistoryEntry]) -> str:
    """Render previous corrections as few-shot examples."""

    if not entries:
        return ""
    lines = ["", "Context (previous corrections):"]
    for entry in entries:
        lines.append(f'- Original: "{entry.original_text}"')
        lines.append(f'  Corrected: "{entry.corrected_text}"')
    return "\n".join(lines) + "\n\n"


def build_correction_prompt(
    text: str,
    vocabulary: Sequence[str],
    context_entries: Sequence[HistoryEntry] = (),
) -> str:
    """Assemble the user message sent to Claude."""

    custom_words = ", ".join(vocabulary) if vocabulary else NO_CUSTOM_WORDS
    return CORRECTION_PROMPT.format(
        custom_words=custom_words,
        context=format_context(list(context_entries)[-CONTEXT_WINDOW:]),
        text=text,
        tool=TOOL_NAME,
    )


def _tool_input(response: Any) -> dict[str, Any]:
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "tool_use":
            tool_input = getattr(block, "input", None)
            if isinstance(tool_input, dict):
                return tool_input
            raise ProviderError("Claude returned a malformed tool_use block")
    raise ProviderError("No tool_use in Claude response")


def _non_empty(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class CorrectionClient:
    """Sends transcripts to Claude for vocabulary-aware correction."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_CLAUDE_MODEL,
        status: StatusChannel | None = None,
        timeout: float = CORRECTION_TIMEOUT,
        max_tokens: int = CORRECTION_MAX_TOKENS,
        debug_logging: bool = False,
    ):
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY not set (required for --correct)")
        self.api_key = api_key
        self.model = model
        self.status = status or StatusChannel()
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.debug_logging = debug_logging
        self._client: Anthropic | None = None

    def _get_client(self) -> Anthropic:
        if self._client is None:
            self._client = Anthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def correct(
        self,
        text: str,
        vocabulary: Sequence[str],
        context_entries: Sequence[HistoryEntry] = (),
    ) -> CorrectionResult:
        """
        Ask Claude to fix recognition errors in ``text``.

        Args:
            text: Raw transcript
            vocabulary: Custom words the model should prefer
            context_entries: Recent corrections, oldest first; only the last
                five are used

        Returns:
            CorrectionResult

        Raises:
            ProviderError: If the request fails or the response cannot be parsed
        """
        self.status.show("Correcting with Claude...")
        prompt = build_correction_prompt(text, vocabulary, context_entries)

        if self.debug_logging:
            logger.info("Correction prompt payload: model=%s prompt=%s", self.model, prompt)

        start_time = time.perf_counter()
        try:
            response = self._get_client().messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
                tools=[CORRECTION_TOOL],
                tool_choice={"type": "tool", "name": TOOL_NAME},
            )
        except APIStatusError as e:
            raise ProviderError(
                f"Claude API error ({e.status_code}): {e.message}",
                status=e.status_code,
                body=getattr(e.response, "text", None),
            ) from e
        except Exception as e:
            raise ProviderError(f"Claude correction failed: {e}") from e

        tool_input = _tool_input(response)
        result = CorrectionResult(
            corrected_text=_non_empty(tool_input.get("corrected")),
            explanation=_non_empty(tool_input.get("explanation")),
            provider_detail=dict(tool_input),
        )

        usage = getattr(response, "usage", None)
        logger.info(
            "Correction statistics: model=%s total_time=%.3fs input_tokens=%s output_tokens=%s changed=%s",
            self.model,
            time.perf_counter() - start_time,
            getattr(usage, "input_tokens", "?"),
            getattr(usage, "output_tokens", "?"),
            result.corrected_text is not None,
        )
        if self.debug_logging:
            logger.info("Correction response: %s", tool_input)
        return result

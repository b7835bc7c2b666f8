"""Fallback Selector — picks an alternate destination when the primary is unreachable.

Invariants:
    - choose() returns a member of candidates or raises FallbackSelectionError
    - The whole call is bounded by timeout_seconds and is cancellable
    - The heuristic is advisory: its answer is checked, never trusted
    - Candidates must be non-empty (caller handles the empty case as Failed)

Design Decisions:
    - Anthropic chooser prompt: model sees primary URL, reason and ordered
      candidates, answers JSON {"chosenUrl": ...}
    - _parse_model_json tolerates markdown wrapping and preambles (2 levels),
      then gives up — an unparseable answer is a selector failure
    - FirstCandidateChooser for deployments without an API key
"""

import asyncio
import json
import logging
import re
from collections.abc import Sequence

from pydantic import ValidationError

from qr_redirect.core.errors import FallbackSelectionError
from qr_redirect.core.repository_protocols import FallbackChooser
from qr_redirect.infrastructure.anthropic_client import ResilientAnthropicClient
from qr_redirect.schemas.fallback import FallbackChoice

logger = logging.getLogger(__name__)


_SYSTEM_PROMPT = """<role>
You route visitors of a QR code to the best alternative page when the
original destination is down.
</role>

<rules>
1. Pick exactly ONE URL from the candidate list. Copy it character for character.
2. Never invent, shorten, or modify a URL.
3. Prefer the candidate whose content most likely matches what the visitor
   wanted from the primary URL (same product, event, or topic beats a homepage).
4. When nothing is clearly more relevant, pick the first candidate.
</rules>

<output_format>
Return ONLY a JSON object. No markdown, no preamble.
{"chosenUrl": "<one candidate URL>", "reasoning": "<one sentence>"}
</output_format>"""


def _build_user_message(
    primary_url: str, candidates: Sequence[str], reason: str,
) -> str:
    lines = [
        f"The primary URL {primary_url} is unavailable because {reason}.",
        "Choose the most relevant fallback URL from this list:",
    ]
    lines.extend(f"- {url}" for url in candidates)
    return "\n".join(lines)


def _parse_model_json(text: str) -> dict | None:
    """Extract a JSON object from model text. None when no object can be parsed."""
    text = text.strip()
    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else None
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        try:
            parsed = json.loads(match.group())
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            pass
    return None


class AnthropicFallbackChooser:
    """FallbackChooser that asks a Claude model to rank candidates."""

    def __init__(
        self, anthropic_client: ResilientAnthropicClient,
        model: str = "claude-haiku-4-5-20251001",
        max_tokens: int = 300,
    ) -> None:
        self.client = anthropic_client
        self.model = model
        self.max_tokens = max_tokens

    async def choose(
        self, primary_url: str, candidates: Sequence[str], reason: str,
    ) -> str:
        response = await self.client.create_message(
            model=self.model,
            max_tokens=self.max_tokens,
            system=_SYSTEM_PROMPT,
            messages=[{
                "role": "user",
                "content": _build_user_message(primary_url, candidates, reason),
            }],
        )
        text = "\n".join(
            b.text for b in response.content
            if getattr(b, "type", None) == "text"
        )
        payload = _parse_model_json(text)
        if payload is None:
            raise FallbackSelectionError(
                "Model answer was not JSON", "malformed_response",
            )
        try:
            return FallbackChoice.model_validate(payload).chosen_url
        except ValidationError as e:
            raise FallbackSelectionError(
                f"Model answer failed validation: {e.error_count()} error(s)",
                "malformed_response",
            )


class FirstCandidateChooser:
    """Deterministic chooser: always the first candidate."""

    async def choose(
        self, primary_url: str, candidates: Sequence[str], reason: str,
    ) -> str:
        return candidates[0]


class FallbackSelector:
    """Enforces the choose() contract around an advisory chooser."""

    def __init__(self, chooser: FallbackChooser, timeout_seconds: float = 3.0):
        self.chooser = chooser
        self.timeout_seconds = timeout_seconds

    async def choose(
        self, primary_url: str, candidates: Sequence[str], reason: str,
    ) -> str:
        if not candidates:
            raise ValueError("candidates must be non-empty")
        try:
            async with asyncio.timeout(self.timeout_seconds):
                chosen = await self.chooser.choose(
                    primary_url, tuple(candidates), reason,
                )
        except TimeoutError:
            raise FallbackSelectionError(
                f"No answer within {self.timeout_seconds}s", "timeout",
            )
        except FallbackSelectionError:
            raise
        except Exception as e:
            raise FallbackSelectionError(str(e), "chooser_error") from e

        if not isinstance(chosen, str) or chosen.strip() not in candidates:
            raise FallbackSelectionError(
                "Chooser answered outside the candidate list", "not_a_candidate",
            )
        return chosen.strip()

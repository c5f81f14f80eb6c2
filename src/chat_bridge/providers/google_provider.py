"""Google provider: native-family adapter for Gemini models."""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..conversation import (
    MODEL,
    BinaryPart,
    CallResult,
    ConversationTurn,
    Part,
    UsageReport,
)
from ..cost.calculator import CostCalculator
from ..exceptions import ConfigError, ProviderError
from ..registry import NATIVE_FAMILY
from .base import BaseProvider

logger = logging.getLogger(__name__)

EMPTY_GENERATION_TEXT = "No response generated."


def _default_client_factory(api_key: str) -> Any:
    try:
        from google import genai as google_genai
    except ImportError as exc:
        raise ImportError(
            "The 'google-genai' package is required for the native provider. "
            "Install it with: pip install google-genai"
        ) from exc
    return google_genai.Client(api_key=api_key)


def part_to_google(part: Part) -> Dict[str, Any]:
    if isinstance(part, BinaryPart):
        return {"inline_data": {"mime_type": part.mime_type, "data": part.raw}}
    return {"text": part.text}


def build_contents(
    history: Sequence[ConversationTurn], current_parts: Sequence[Part]
) -> List[Dict[str, Any]]:
    """Map history plus the new user parts to google-genai contents."""
    contents = [
        {
            "role": "model" if turn.role == MODEL else "user",
            "parts": [part_to_google(p) for p in turn.parts],
        }
        for turn in history
    ]
    contents.append({"role": "user", "parts": [part_to_google(p) for p in current_parts]})
    return contents


def usage_from_response(response: Any) -> UsageReport:
    """Read usage_metadata token counts, treating anything missing as zero."""
    metadata = getattr(response, "usage_metadata", None)
    if metadata is None:
        return UsageReport.empty()

    prompt_tokens = getattr(metadata, "prompt_token_count", None) or 0
    completion_tokens = getattr(metadata, "candidates_token_count", None) or 0
    total_tokens = getattr(metadata, "total_token_count", None) or 0
    return UsageReport(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
    )


class GoogleProvider(BaseProvider):
    """Adapter for Google Gemini models via the google-genai SDK.

    The API key comes from process-wide configuration. A per-call
    credential is only used when no process-wide key was configured;
    this is how the sensory pre-processing pass forwards a user's own
    Gemini key.

    Cost is a flat per-token rate over total_token_count, with a higher
    rate for "pro" model ids (see CostCalculator).
    """

    family = NATIVE_FAMILY

    def __init__(
        self,
        api_key: Optional[str] = None,
        calculator: Optional[CostCalculator] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        """Initialize GoogleProvider.

        Args:
            api_key: Process-wide Gemini API key
            calculator: CostCalculator to price calls with
            client_factory: Builds a google.genai.Client for an API key.
                           Defaults to google.genai.Client(api_key=...).
        """
        self._api_key = api_key or None
        self._calculator = calculator if calculator is not None else CostCalculator()
        self._client_factory = client_factory or _default_client_factory
        self._clients: Dict[str, Any] = {}

    def _resolve_api_key(self, credential: Optional[str]) -> str:
        if self._api_key:
            return self._api_key
        forwarded = (credential or "").strip()
        if forwarded:
            return forwarded
        raise ConfigError("Gemini API key is not configured.")

    def _client_for(self, api_key: str) -> Any:
        # One client per key, reused across calls until close_async()
        client = self._clients.get(api_key)
        if client is None:
            client = self._client_factory(api_key)
            self._clients[api_key] = client
        return client

    async def close_async(self) -> None:
        """Close every cached client's async transport."""
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.aio.aclose()

    async def generate(
        self,
        model: str,
        history: Sequence[ConversationTurn],
        current_parts: Sequence[Part],
        credential: Optional[str] = None,
    ) -> CallResult:
        api_key = self._resolve_api_key(credential)
        contents = build_contents(history, current_parts)

        logger.debug("Gemini generate_content: model=%s turns=%d", model, len(contents))
        try:
            client = self._client_for(api_key)
            response = await client.aio.models.generate_content(model=model, contents=contents)
        except Exception as exc:
            logger.error("Gemini generation failed for %s: %s", model, exc)
            raise ProviderError(
                str(exc) or "Communication with Gemini failed.",
                provider="google",
                status_code=getattr(exc, "code", None),
            ) from exc

        text = getattr(response, "text", None)
        if not text:
            raise ProviderError(EMPTY_GENERATION_TEXT, provider="google")

        usage = usage_from_response(response)
        cost = self._calculator.calculate_cost(self.family, model, usage)

        logger.debug("Gemini usage for %s: %s (cost $%.6f)", model, usage, cost)
        return CallResult(text=text, cost=cost)

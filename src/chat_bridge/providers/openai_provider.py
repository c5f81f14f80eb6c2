"""OpenAI-compatible provider: chat-completions adapter (OpenRouter by default)."""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import openai

from ..conversation import (
    MODEL,
    BinaryPart,
    CallResult,
    ConversationTurn,
    Part,
    TextPart,
    UsageReport,
)
from ..cost.calculator import CostCalculator
from ..exceptions import CredentialError, ProviderError
from ..registry import COMPATIBLE_FAMILY
from ..settings import DEFAULT_APP_TITLE, DEFAULT_BASE_URL
from .base import BaseProvider

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "OpenRouter API key is missing. Please update it in your profile."
EMPTY_RESPONSE_MESSAGE = "AI returned an empty response."

Content = Union[str, List[Dict[str, Any]]]


def part_to_openai(part: Part) -> Dict[str, Any]:
    if isinstance(part, BinaryPart):
        return {"type": "image_url", "image_url": {"url": part.data_url}}
    return {"type": "text", "text": part.text}


def turn_content(parts: Sequence[Part]) -> Content:
    """Content for a history turn.

    A turn made of exactly one text part is sent as a bare string; any
    other shape is sent as a list of typed content blocks.
    """
    if len(parts) == 1 and isinstance(parts[0], TextPart):
        return parts[0].text
    return [part_to_openai(p) for p in parts]


def build_messages(
    history: Sequence[ConversationTurn], current_parts: Sequence[Part]
) -> List[Dict[str, Any]]:
    """Map history plus the new user parts to chat-completions messages.

    The new user turn is always sent as a structured list.
    """
    messages: List[Dict[str, Any]] = [
        {
            "role": "assistant" if turn.role == MODEL else "user",
            "content": turn_content(turn.parts),
        }
        for turn in history
    ]
    messages.append({"role": "user", "content": [part_to_openai(p) for p in current_parts]})
    return messages


def error_message_from_body(status_code: int, body: Optional[str]) -> str:
    """Extract a readable message from a non-2xx response body.

    Prefers the JSON "error.message" field, then the raw body text, then
    a generic "HTTP Error <status>".
    """
    fallback = f"HTTP Error {status_code}"
    if not body:
        return fallback
    try:
        payload = json.loads(body)
    except ValueError:
        return body
    if not isinstance(payload, dict):
        return body

    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return fallback


def usage_from_response(response: Any) -> UsageReport:
    usage = getattr(response, "usage", None)
    if usage is None:
        return UsageReport.empty()

    prompt_tokens = getattr(usage, "prompt_tokens", None) or 0
    completion_tokens = getattr(usage, "completion_tokens", None) or 0
    total_tokens = getattr(usage, "total_tokens", None) or prompt_tokens + completion_tokens
    return UsageReport(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
    )


class OpenAIProvider(BaseProvider):
    """Adapter for models reached through an OpenAI-compatible endpoint.

    Every call needs the user's own API key; an empty key fails with
    CredentialError before any client is created. SDK retries are
    disabled so a transient upstream failure surfaces immediately.

    Cost is prompt/completion tokens priced per 1k, with a premium tier
    for full gpt-4o models (see CostCalculator). When the upstream omits
    usage the call is free.
    """

    family = COMPATIBLE_FAMILY

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        app_title: str = DEFAULT_APP_TITLE,
        temperature: float = 0.7,
        top_p: float = 1.0,
        calculator: Optional[CostCalculator] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        """Initialize OpenAIProvider.

        Args:
            base_url: Root of the chat-completions API
            app_title: Value of the X-Title header
            temperature: Sampling temperature sent with every request
            top_p: Nucleus sampling value sent with every request
            calculator: CostCalculator to price calls with
            client_factory: Builds an AsyncOpenAI-like client for an API key.
                           Defaults to openai.AsyncOpenAI against base_url.
        """
        self._base_url = base_url
        self._app_title = app_title
        self._temperature = temperature
        self._top_p = top_p
        self._calculator = calculator if calculator is not None else CostCalculator()
        self._client_factory = client_factory or self._build_client
        self._clients: Dict[str, Any] = {}

    def _build_client(self, api_key: str) -> Any:
        return openai.AsyncOpenAI(
            api_key=api_key,
            base_url=self._base_url,
            default_headers={"X-Title": self._app_title},
            max_retries=0,
        )

    def _client_for(self, api_key: str) -> Any:
        # One client per key, reused across calls until close_async()
        client = self._clients.get(api_key)
        if client is None:
            client = self._client_factory(api_key)
            self._clients[api_key] = client
        return client

    async def close_async(self) -> None:
        """Close every cached client to release its connections."""
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.close()

    async def generate(
        self,
        model: str,
        history: Sequence[ConversationTurn],
        current_parts: Sequence[Part],
        credential: Optional[str] = None,
    ) -> CallResult:
        api_key = (credential or "").strip()
        if not api_key:
            raise CredentialError(MISSING_KEY_MESSAGE, provider="openai")

        messages = build_messages(history, current_parts)

        logger.debug("Chat completion: model=%s messages=%d", model, len(messages))
        try:
            client = self._client_for(api_key)
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=self._temperature,
                top_p=self._top_p,
            )
        except openai.APIStatusError as exc:
            message = error_message_from_body(exc.status_code, exc.response.text)
            logger.error("Chat completion for %s returned %s: %s", model, exc.status_code, message)
            raise ProviderError(message, provider="openai", status_code=exc.status_code) from exc
        except openai.APIError as exc:
            logger.error("Chat completion request for %s failed: %s", model, exc)
            raise ProviderError(str(exc), provider="openai") from exc

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = getattr(message, "content", None)
        if text is None:
            raise ProviderError(EMPTY_RESPONSE_MESSAGE, provider="openai")

        usage = usage_from_response(response)
        cost = self._calculator.calculate_cost(self.family, model, usage)

        logger.debug("Chat completion usage for %s: %s (cost $%.6f)", model, usage, cost)
        return CallResult(text=text, cost=cost)

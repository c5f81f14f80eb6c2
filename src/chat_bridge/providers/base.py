"""Abstract base class for LLM provider adapters."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..conversation import CallResult, ConversationTurn, Part


class BaseProvider(ABC):
    """Abstract interface shared by both provider families.

    Each provider implementation handles:
    - Translating the normalized conversation into its wire format
    - Executing exactly one upstream call (no retries)
    - Converting reported token usage into a cost estimate
    """

    #: Provider family served by this adapter ("native" or "compatible")
    family: str = ""

    @abstractmethod
    async def generate(
        self,
        model: str,
        history: Sequence[ConversationTurn],
        current_parts: Sequence[Part],
        credential: Optional[str] = None,
    ) -> CallResult:
        """Generate a reply to the current user parts.

        Args:
            model: Model id as sent upstream
            history: Turns preceding this exchange, oldest first
            current_parts: Parts of the new user turn (not yet in history)
            credential: Per-user API key, if the family uses one

        Returns:
            CallResult with the generated text and its estimated cost

        Raises:
            ProviderError: If the upstream call fails or returns nothing usable
        """
        ...

    async def close_async(self) -> None:
        """Release any clients the adapter keeps between calls."""

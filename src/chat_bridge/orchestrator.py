"""Main entry point: route one exchange to the right provider."""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from .conversation import CallResult, ConversationTurn, Part
from .cost.calculator import CostCalculator
from .cost.pricing import PricingTable
from .exceptions import ConfigError, PreprocessingError
from .preprocessing import SensoryPreprocessor, has_sensory_media
from .providers.base import BaseProvider
from .providers.google_provider import GoogleProvider
from .providers.openai_provider import OpenAIProvider
from .registry import COMPATIBLE_FAMILY, NATIVE_FAMILY, ModelDescriptor, ModelRegistry
from .settings import BridgeConfig

logger = logging.getLogger(__name__)


class ResponseOrchestrator:
    """Produces the model's reply and its total cost for one user action.

    For every respond() call:

    1. The model id is resolved in the registry; its family picks the
       provider adapter.
    2. If the current parts carry audio or video, the sensory preprocessor
       transcribes/describes them through the native provider and those
       parts are replaced by text. Its cost is added to the total.
    3. If that analysis fails, the failure is logged and the original
       parts are sent instead; the analysis cost is not billed.
    4. The final call's errors are not caught.

    The user's credential goes to compatible-family calls and to the
    analysis call for a native target. A native final call always runs on
    the process-wide Gemini key.

    The orchestrator keeps no per-call state, so concurrent respond()
    calls for different users or chats do not interfere.

    Quick start:
        >>> from chat_bridge import BridgeConfig, ResponseOrchestrator, TextPart
        >>>
        >>> orchestrator = ResponseOrchestrator.from_config(BridgeConfig.from_env())
        >>> result = await orchestrator.respond(
        ...     "openai/gpt-4o-mini",
        ...     history=[],
        ...     current_parts=[TextPart("Hello!")],
        ...     credential="sk-or-...",
        ... )
        >>> print(result.text, result.cost)
    """

    def __init__(
        self,
        registry: ModelRegistry,
        providers: Mapping[str, BaseProvider],
        preprocessor: SensoryPreprocessor,
    ) -> None:
        """Initialize a ResponseOrchestrator.

        Args:
            registry: Model registry used to resolve model ids
            providers: Family name -> adapter; must cover "native" and
                      "compatible"
            preprocessor: Sensory preprocessor for audio/video parts

        Raises:
            ConfigError: If an adapter for either family is missing
        """
        missing = [f for f in (NATIVE_FAMILY, COMPATIBLE_FAMILY) if f not in providers]
        if missing:
            raise ConfigError(f"No provider configured for: {', '.join(missing)}")

        self._registry = registry
        self._providers: Dict[str, BaseProvider] = dict(providers)
        self._preprocessor = preprocessor

    @classmethod
    def from_config(cls, config: BridgeConfig, **overrides: Any) -> "ResponseOrchestrator":
        """Wire the registry, pricing and both adapters from a BridgeConfig.

        Args:
            config: Runtime configuration
            **overrides: Optional "registry", "calculator",
                        "native_client_factory" or "compatible_client_factory"
                        replacing the defaults built from config.
        """
        registry = overrides.get("registry") or ModelRegistry(config.models_config)
        calculator = overrides.get("calculator") or CostCalculator(
            PricingTable(config.pricing_config)
        )

        native = GoogleProvider(
            api_key=config.native_api_key,
            calculator=calculator,
            client_factory=overrides.get("native_client_factory"),
        )
        compatible = OpenAIProvider(
            base_url=config.compatible_base_url,
            app_title=config.app_title,
            temperature=config.temperature,
            top_p=config.top_p,
            calculator=calculator,
            client_factory=overrides.get("compatible_client_factory"),
        )

        return cls(
            registry=registry,
            providers={NATIVE_FAMILY: native, COMPATIBLE_FAMILY: compatible},
            preprocessor=SensoryPreprocessor(native, model=config.sensory_model_id),
        )

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    def provider_for(self, descriptor: ModelDescriptor) -> BaseProvider:
        return self._providers[descriptor.family]

    async def close_async(self) -> None:
        """Close the adapters' cached clients.

        Call before the event loop shuts down so no connection is left
        open.
        """
        closed = set()
        for provider in self._providers.values():
            if id(provider) not in closed:
                closed.add(id(provider))
                await provider.close_async()

    async def respond(
        self,
        model: str,
        history: Sequence[ConversationTurn],
        current_parts: Sequence[Part],
        credential: Optional[str] = None,
    ) -> CallResult:
        """Generate the reply to one user action.

        Args:
            model: Registry id of the model the user selected
            history: Turns preceding this exchange, oldest first
            current_parts: Parts of the new user turn, at least one
            credential: The user's API key. Compatible-family calls and
                the sensory analysis for a native target receive it;
                native final calls use the process-wide key.

        Returns:
            CallResult whose cost includes the sensory analysis when it
            was used

        Raises:
            ConfigError: If the model id is unknown
            ValueError: If current_parts is empty
            ProviderError: If the final call fails (including CredentialError)
        """
        descriptor = self._registry.resolve(model)
        if not current_parts:
            raise ValueError("current_parts must contain at least one part")

        provider = self.provider_for(descriptor)
        parts = list(current_parts)
        # Native final calls never see the user's key
        final_credential = None if descriptor.is_native else credential

        if not has_sensory_media(parts):
            return await provider.generate(descriptor.id, history, parts, final_credential)

        try:
            augmented, preprocessing_cost = await self._preprocessor.process(
                parts, descriptor, credential
            )
        except PreprocessingError as exc:
            logger.warning(
                "Pre-processing failed, falling back to direct request for %s: %s",
                descriptor.id, exc,
            )
            return await provider.generate(descriptor.id, history, parts, final_credential)

        result = await provider.generate(descriptor.id, history, augmented, final_credential)
        return CallResult(text=result.text, cost=result.cost + preprocessing_cost)

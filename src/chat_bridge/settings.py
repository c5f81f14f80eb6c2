"""Explicit runtime configuration for the orchestration core."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_SENSORY_MODEL = "gemini-3-flash-preview"
DEFAULT_APP_TITLE = "MultiChatWinter"


@dataclass(frozen=True)
class BridgeConfig:
    """Values the core needs that are not per-user.

    The native provider's API key is threaded through here instead of
    being read from the environment at call time, so the core can be
    exercised without touching os.environ.

    Attributes:
        native_api_key: Process-wide key for the native (Gemini) provider
        compatible_base_url: Chat-completions endpoint root for the
            OpenAI-compatible family
        sensory_model_id: Fast multimodal model used for sensory analysis
        app_title: Sent as the X-Title header on compatible-family calls
        temperature: Sampling temperature for compatible-family calls
        top_p: Nucleus sampling value for compatible-family calls
        starting_balance: Balance granted to newly opened ledger accounts
        pricing_config: Optional path overriding the bundled pricing.json
        models_config: Optional path overriding the bundled models.json
    """

    native_api_key: Optional[str] = None
    compatible_base_url: str = DEFAULT_BASE_URL
    sensory_model_id: str = DEFAULT_SENSORY_MODEL
    app_title: str = DEFAULT_APP_TITLE
    temperature: float = 0.7
    top_p: float = 1.0
    starting_balance: float = 0.05
    pricing_config: Optional[str] = None
    models_config: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "BridgeConfig":
        """Build a config from environment variables.

        Reads GEMINI_API_KEY (falling back to API_KEY), CHAT_BRIDGE_BASE_URL,
        CHAT_BRIDGE_SENSORY_MODEL, CHAT_BRIDGE_PRICING and CHAT_BRIDGE_MODELS.
        Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ

        values = {
            "native_api_key": env.get("GEMINI_API_KEY") or env.get("API_KEY") or None,
            "compatible_base_url": env.get("CHAT_BRIDGE_BASE_URL") or DEFAULT_BASE_URL,
            "sensory_model_id": env.get("CHAT_BRIDGE_SENSORY_MODEL") or DEFAULT_SENSORY_MODEL,
            "pricing_config": env.get("CHAT_BRIDGE_PRICING") or None,
            "models_config": env.get("CHAT_BRIDGE_MODELS") or None,
        }
        values.update(overrides)
        return cls(**values)

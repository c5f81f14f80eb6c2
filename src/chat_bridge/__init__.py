"""Chat Bridge - one chat interface over several LLM providers.

Routes each user message to either the native Gemini provider or an
OpenAI-compatible endpoint (OpenRouter by default), transcribes audio
and video attachments through a fast Gemini model first, and estimates
the cost of every exchange so it can be charged against a per-user
balance.

Example:
    >>> from chat_bridge import BridgeConfig, ResponseOrchestrator, TextPart
    >>>
    >>> orchestrator = ResponseOrchestrator.from_config(BridgeConfig.from_env())
    >>> result = await orchestrator.respond(
    ...     "gemini-3-pro-preview",
    ...     history=[],
    ...     current_parts=[TextPart("Hello!")],
    ... )
    >>> print(result.text, result.cost)
"""

from .conversation import (
    BinaryPart,
    CallResult,
    ConversationTurn,
    Part,
    TextPart,
    UsageReport,
    build_user_parts,
)
from .cost.calculator import CostCalculator
from .cost.pricing import PricingTable
from .exceptions import (
    AccountNotFoundError,
    BalanceExhaustedError,
    ChatBridgeError,
    ConfigError,
    CredentialError,
    PreprocessingError,
    PricingDataError,
    ProviderError,
)
from .orchestrator import ResponseOrchestrator
from .preprocessing import SensoryPreprocessor
from .registry import ModelDescriptor, ModelRegistry
from .session import ChatService, ChatSession, ChatStore
from .settings import BridgeConfig
from .tracking.ledger import BalanceLedger, InMemoryBalanceLedger

__version__ = "0.1.0"

__all__ = [
    "AccountNotFoundError",
    "BalanceExhaustedError",
    "BalanceLedger",
    "BinaryPart",
    "BridgeConfig",
    "CallResult",
    "ChatBridgeError",
    "ChatService",
    "ChatSession",
    "ChatStore",
    "ConfigError",
    "ConversationTurn",
    "CostCalculator",
    "CredentialError",
    "InMemoryBalanceLedger",
    "ModelDescriptor",
    "ModelRegistry",
    "Part",
    "PreprocessingError",
    "PricingDataError",
    "PricingTable",
    "ProviderError",
    "ResponseOrchestrator",
    "SensoryPreprocessor",
    "TextPart",
    "UsageReport",
    "build_user_parts",
]

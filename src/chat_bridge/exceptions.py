"""Custom exceptions for the chat-bridge library."""


class ChatBridgeError(Exception):
    """Base exception for all chat-bridge errors."""

    pass


class ConfigError(ChatBridgeError):
    """Raised when required configuration is missing or invalid.

    This typically occurs when:
    - A model id is not present in the model registry
    - The native provider has no API key configured
    - A bundled JSON config file cannot be loaded
    """

    pass


class PricingDataError(ConfigError):
    """Raised when pricing data is missing or malformed."""

    pass


class ProviderError(ChatBridgeError):
    """Raised when an upstream provider call fails.

    Covers network failures, non-2xx responses, malformed payloads and
    empty generations. The message is meant to be shown to the user as is.

    Attributes:
        provider: Provider tag of the adapter that failed (e.g. "google")
        status_code: HTTP status of the upstream response, if any
    """

    def __init__(self, message: str, provider: str = "", status_code=None) -> None:
        """Initialize ProviderError.

        Args:
            message: Human-readable error message
            provider: Provider tag of the failing adapter
            status_code: Upstream HTTP status code, when one was received
        """
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class CredentialError(ProviderError):
    """Raised when a required per-user credential is empty or missing.

    This is raised BEFORE any network call is attempted.
    """

    pass


class PreprocessingError(ProviderError):
    """Raised when the sensory analysis sub-call fails.

    The orchestrator always absorbs this error and falls back to sending
    the original parts, so it never reaches the caller of respond().
    """

    pass


class AccountNotFoundError(ChatBridgeError):
    """Raised when a ledger operation targets an unknown user."""

    pass


class BalanceExhaustedError(ChatBridgeError):
    """Raised when a user with no remaining balance starts an exchange.

    Attributes:
        user_id: The user whose balance is exhausted
        balance: The balance at the time of the check
    """

    def __init__(self, message: str, user_id: str, balance: float) -> None:
        super().__init__(message)
        self.user_id = user_id
        self.balance = balance

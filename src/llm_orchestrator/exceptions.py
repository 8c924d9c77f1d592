"""Custom exception hierarchy for the orchestration engine.

This module defines all custom exceptions used throughout the engine,
organized into two categories: client errors (provider selection and
provider calls) and tool errors.

Tool execution failures and user cancellations are not exceptions: the
agent loop turns them into ordinary tool-result text.
"""


class AgentError(Exception):
    """Base exception for all engine errors."""


# =============================================================================
# Client Errors - Issues with provider selection and LLM API interactions
# =============================================================================

class ClientError(AgentError):
    """Base class for LLM client errors."""


class ProviderUnavailableError(ClientError):
    """No adapter can serve the call.

    Raised when an explicitly forced provider is not registered, or when no
    provider is registered at all. Fatal to the current call.
    """

    def __init__(self, message: str = "No providers available", provider: str | None = None):
        self.provider = provider
        super().__init__(message)


class ProviderCallError(ClientError):
    """Transport or API level failure reported by an adapter."""

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(message)


class AuthenticationError(ProviderCallError):
    """API key is invalid or missing."""


class RateLimitError(ProviderCallError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: float | None = None,
        provider: str | None = None,
    ):
        self.retry_after = retry_after
        if retry_after:
            message = f"{message}. Retry after: {retry_after}s"
        super().__init__(message, provider=provider)


class ProviderConnectionError(ProviderCallError):
    """Provider API could not be reached."""


class InvalidResponseError(ProviderCallError):
    """Response from provider could not be parsed."""


# =============================================================================
# Tool Errors - Issues with tool calls produced by a model
# =============================================================================

class ToolError(AgentError):
    """Base class for tool call errors."""


class ToolCallParseError(ToolError):
    """Streamed tool call arguments are not valid JSON.

    Adapters catch this per tool call and drop only the offending call.
    """

    def __init__(self, tool_name: str | None, raw_arguments: str, cause: Exception | str):
        self.tool_name = tool_name
        self.raw_arguments = raw_arguments
        self.cause = cause
        super().__init__(f"Could not parse arguments for tool '{tool_name}': {cause}")

"""
Error taxonomy for completion providers.

WHAT: Domain-specific exceptions raised by providers, the store and the configure flow
WHY: Callers can tell a missing config from a backend failure from a cancellation
HOW: Exception classes with error codes, messages and structured details
"""

from typing import Any, Optional


class InfillError(Exception):
    """Base class for all provider-layer exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class ConfigNotFoundError(InfillError):
    """Raised when no model configuration is stored for a nickname."""

    def __init__(self, nickname: str, provider_id: Optional[str] = None):
        super().__init__(
            message=f"Model configuration not found for {nickname}",
            code="CONFIG_NOT_FOUND",
            details={"nickname": nickname, "provider_id": provider_id}
        )


class InvalidConfigError(InfillError):
    """Raised when a stored configuration record fails validation."""

    def __init__(self, nickname: str, provider_id: str, errors: list):
        super().__init__(
            message=f"Invalid model configuration for {nickname}",
            code="INVALID_CONFIG",
            details={"nickname": nickname, "provider_id": provider_id, "errors": errors}
        )


# Configuration flow errors

class ConfigurationError(InfillError):
    """Base class for failures while configuring a model."""
    pass


class UserCancelledError(ConfigurationError):
    """Raised when the user abandons an interactive prompt."""

    def __init__(self, what: str):
        super().__init__(
            message=f"User cancelled {what}",
            code="USER_CANCELLED",
            details={"input": what}
        )


class InvalidInputError(ConfigurationError):
    """Raised when an interactive prompt returns an unusable value."""

    def __init__(self, message: str, field: str):
        super().__init__(
            message=message,
            code="INVALID_INPUT",
            details={"field": field}
        )


class ConnectivityTestFailedError(ConfigurationError):
    """Raised when the probe request made during configuration fails."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        super().__init__(
            message=f"Connection test failed: {reason}",
            code="CONNECTIVITY_TEST_FAILED",
            details={"url": url, "status_code": status_code}
        )
        self.status_code = status_code


class MetadataNotFoundError(ConfigurationError):
    """Raised when the model catalog has no entry for a required model."""

    def __init__(self, model_id: str):
        super().__init__(
            message=f"Unable to find model metadata for {model_id}",
            code="METADATA_NOT_FOUND",
            details={"model_id": model_id}
        )


class NoModelsFoundError(ConfigurationError):
    """Raised when a server hosts no model the catalog recognizes."""

    def __init__(self, base_url: str, available: Optional[list[str]] = None):
        super().__init__(
            message="No models found for the given configuration",
            code="NO_MODELS_FOUND",
            details={"base_url": base_url, "available": available or []}
        )


# Runtime errors

class ProviderError(InfillError):
    """Base class for failures while talking to a backend."""
    pass


class NetworkError(ProviderError):
    """Backend is not reachable or the request timed out."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(
            message=message,
            code="NETWORK_ERROR",
            details={"url": url}
        )


class BackendError(ProviderError):
    """Backend answered with a non-2xx status or an unreadable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(
            message=message,
            code="BACKEND_ERROR",
            details={"status_code": status_code, "body": body}
        )
        self.status_code = status_code
        self.body = body


class CancellationError(ProviderError):
    """The caller's cancellation signal fired before the request completed."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            message=f"Request cancelled: {reason}" if reason else "Request cancelled",
            code="CANCELLED",
            details={"reason": reason}
        )


class ProviderNotInitializedError(ProviderError):
    """Raised when a provider is used before initialize() was awaited."""

    def __init__(self, nickname: str):
        super().__init__(
            message=f"Provider for {nickname} used before initialize()",
            code="PROVIDER_NOT_INITIALIZED",
            details={"nickname": nickname}
        )


class UnknownProviderError(ProviderError):
    """Raised when a config names a provider id nothing is registered for."""

    def __init__(self, provider_id: str):
        super().__init__(
            message=f"Unknown completion provider: {provider_id}",
            code="UNKNOWN_PROVIDER",
            details={"provider_id": provider_id}
        )

"""Error types for LLM providers.

Every expected failure of a provider surfaces as a ProviderError subclass:
- SetupError: initialize() could not complete, or the provider is not set up
- InvalidRequestError: caller-supplied parameters are invalid
- BackendError: the backend failed, rejected the call, or answered garbage
"""

from __future__ import annotations

from typing import Optional


class ProviderError(RuntimeError):
    """Base exception for provider failures."""

    def __init__(self, message: str, provider_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider_id = provider_id


class SetupError(ProviderError):
    """Raised when a provider cannot be initialized or is used before it is."""

    pass


class InvalidRequestError(ProviderError, ValueError):
    """Raised when generate() arguments are invalid. Not retryable as-is."""

    pass


class BackendError(ProviderError):
    """Raised when the underlying backend fails.

    ``retryable`` is the provider's hint: True for transient failures
    (network, 429, 5xx), False for permanent rejections, None if unknown.
    """

    def __init__(
        self,
        message: str,
        provider_id: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
    ) -> None:
        super().__init__(message, provider_id)
        self.status_code = status_code
        self.retryable = retryable


__all__ = [
    "ProviderError",
    "SetupError",
    "InvalidRequestError",
    "BackendError",
]

"""LLM module - The provider contract for text generation.

This module defines what flows between callers and generation backends:
- LLM: Protocol every provider satisfies (id, name, initialize, generate)
- Tokens/Generation: Immutable result types with optional token detail
- ProviderError and subclasses: The failure taxonomy
- validate_request/truncate_at_stop: Helpers providers share
- LLMConfig: Settings for HTTP providers
"""

from .config import LLMConfig
from .errors import BackendError, InvalidRequestError, ProviderError, SetupError
from .provider import LLM
from .request import GenerationRequest, split_tokens, truncate_at_stop, validate_request
from .types import Generation, Tokens

__all__ = [
    "LLM",
    "LLMConfig",
    "Tokens",
    "Generation",
    "GenerationRequest",
    "ProviderError",
    "SetupError",
    "InvalidRequestError",
    "BackendError",
    "validate_request",
    "truncate_at_stop",
    "split_tokens",
]

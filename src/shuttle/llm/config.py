"""LLM Configuration - Settings for HTTP providers.

This module defines configuration for OpenAI-compatible API connections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class LLMConfig:
    """Configuration for an HTTP provider.

    Attributes:
        base_url: API base URL (e.g., "https://api.openai.com/v1")
        model: Model name to use
        api_key: API key for authentication (optional for local models)
        max_tokens: Tokens per completion when the caller passes None
        timeout_ms: Request timeout in milliseconds
        logprobs: Top-k log-probabilities to request (None disables token detail)
        provider_id: Identifier reported in results (defaults to "openai")
    """

    base_url: str
    model: str
    api_key: Optional[str] = None
    max_tokens: int = 256
    timeout_ms: int = 30000
    logprobs: Optional[int] = 0
    provider_id: str = "openai"


__all__ = ["LLMConfig"]

"""Providers - Concrete backends implementing the LLM contract.

- EchoProvider: Deterministic in-process backend for tests and dry runs
- OpenAIProvider: OpenAI-compatible /completions endpoint over HTTP

Providers do not share a base class; each satisfies ``shuttle.llm.LLM``.
"""

from .echo import EchoProvider
from .openai import OpenAIProvider

__all__ = [
    "EchoProvider",
    "OpenAIProvider",
]

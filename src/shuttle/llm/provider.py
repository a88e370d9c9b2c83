"""LLM Provider - The contract every generation backend implements.

A provider is anything with ``id``, ``name``, ``initialize`` and ``generate``.
Backends do not inherit from a shared base; they satisfy the ``LLM``
protocol structurally. Shared request logic lives in ``shuttle.llm.request``.

Lifecycle:
    provider = SomeProvider(...)
    await provider.initialize()          # once, raises SetupError
    result = await provider.generate(    # any number of times, concurrently
        "Once upon a time",
        max_tokens=32,
        temperature=0.0,
        n=2,
        stop=["\\n"],
    )
    result.completions  # exactly n Tokens records
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from .types import Generation


@runtime_checkable
class LLM(Protocol):
    """Interface for text-generation backends."""

    def id(self) -> str:
        """Stable, non-empty identifier for this instance.

        Deterministic for the instance's lifetime and callable before
        initialize(). Used as a routing and cache key.
        """
        ...

    def name(self) -> str:
        """Human-readable label."""
        ...

    async def initialize(self) -> None:
        """One-time setup: credentials, connections, model loading.

        Call exactly once before the first generate(). Calling it again is
        not guaranteed to be safe.

        Raises:
            SetupError: If setup cannot complete
        """
        ...

    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.0,
        n: int = 1,
        stop: Optional[Sequence[str]] = None,
    ) -> Generation:
        """Generate ``n`` independent completions of ``prompt``.

        Args:
            prompt: Non-empty text to complete
            max_tokens: Upper bound per completion (None = provider default)
            temperature: Non-negative sampling temperature (0 = greedy)
            n: Number of completions, at least 1
            stop: Stop sequences; each completion ends before the first one

        Returns:
            Generation with exactly ``n`` completions

        Raises:
            InvalidRequestError: If the arguments are invalid
            SetupError: If the provider was not initialized
            BackendError: If the backend fails or returns a partial batch
        """
        ...


__all__ = ["LLM"]

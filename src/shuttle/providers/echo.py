"""Echo provider - Deterministic in-process backend.

Used for tests and dry runs. It never touches the network: the prompt is
echoed back tokenized, and completions are either the prompt itself or a
fixed list of texts cycled to fill ``n``.

Policies:
    - generate() before initialize() raises SetupError (no lazy setup).
    - Any valid temperature is accepted; output does not depend on it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from ..llm.errors import BackendError, SetupError
from ..llm.request import split_tokens, truncate_at_stop, validate_request
from ..llm.types import Generation, Tokens


class EchoProvider:
    """In-process provider returning predictable completions.

    Example:
        provider = EchoProvider(completions=["yes", "no"])
        await provider.initialize()
        result = await provider.generate("Answer:", n=3)
        result.texts  # ["yes", "no", "yes"]
    """

    def __init__(
        self,
        provider_id: str = "echo",
        model: str = "echo-1",
        completions: Optional[Sequence[str]] = None,
        fail_initialize: Optional[str] = None,
        latency_ms: int = 0,
        display_name: Optional[str] = None,
    ) -> None:
        """Initialize echo provider.

        Args:
            provider_id: Identifier reported by id() and in results
            model: Model name reported in results
            completions: Fixed completion texts (default: echo the prompt)
            fail_initialize: If set, initialize() raises SetupError with it
            latency_ms: Simulated backend latency per generate() call
            display_name: Label returned by name()
        """
        if not provider_id:
            raise ValueError("provider_id must not be empty")
        if completions is not None and len(completions) == 0:
            raise ValueError("completions must hold at least one text when given")

        self._id = provider_id
        self._model = model
        self._completions = tuple(completions) if completions is not None else None
        self._fail_initialize = fail_initialize
        self._latency_ms = latency_ms
        self._display_name = display_name or f"Echo ({model})"
        self._initialized = False
        self._error_message: Optional[str] = None
        self._call_count = 0

    def id(self) -> str:
        return self._id

    def name(self) -> str:
        return self._display_name

    async def initialize(self) -> None:
        if self._fail_initialize:
            logging.warning("[shuttle] Provider %s failed to initialize: %s", self._id, self._fail_initialize)
            raise SetupError(self._fail_initialize, self._id)
        self._initialized = True
        logging.info("[shuttle] Provider %s initialized (model=%s)", self._id, self._model)

    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.0,
        n: int = 1,
        stop: Optional[Sequence[str]] = None,
    ) -> Generation:
        request = validate_request(prompt, max_tokens, temperature, n, stop, provider_id=self._id)
        if not self._initialized:
            raise SetupError(f"provider {self._id} is not initialized; call initialize() first", self._id)

        self._call_count += 1

        if self._latency_ms:
            await asyncio.sleep(self._latency_ms / 1000)

        if self._error_message:
            raise BackendError(self._error_message, self._id, retryable=True)

        texts = self._completions or (request.prompt,)
        completions = [
            truncate_at_stop(_completion_record(texts[i % len(texts)], request.max_tokens), request.stop)
            for i in range(request.n)
        ]

        return Generation(
            provider=self._id,
            model=self._model,
            completions=tuple(completions),
            prompt=_prompt_record(request.prompt),
        )

    def set_error(self, message: str) -> None:
        """Make subsequent generate() calls raise BackendError."""
        self._error_message = message

    def clear(self) -> None:
        """Reset injected errors and the call counter."""
        self._error_message = None
        self._call_count = 0

    @property
    def model(self) -> str:
        return self._model

    @property
    def call_count(self) -> int:
        """Number of generate() calls that passed validation."""
        return self._call_count

    @property
    def is_initialized(self) -> bool:
        return self._initialized


def _prompt_record(prompt: str) -> Tokens:
    # Echo backends do not score the first prompt token.
    tokens = split_tokens(prompt)
    logprobs = [None] + [0.0] * (len(tokens) - 1) if tokens else []
    return Tokens(text=prompt, tokens=tokens, logprobs=logprobs)


def _completion_record(text: str, max_tokens: Optional[int]) -> Tokens:
    tokens = split_tokens(text)
    if max_tokens is not None:
        tokens = tokens[:max_tokens]
    return Tokens(text="".join(tokens), tokens=tokens, logprobs=[0.0] * len(tokens))


__all__ = ["EchoProvider"]

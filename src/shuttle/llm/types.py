"""LLM Types - Data structures for generation results.

This module defines the values that flow out of a provider:
- Tokens: decoded text with optional per-token detail
- Generation: one prompt plus its batch of completions
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Tokens:
    """Decoded text with optional tokenization and log-probabilities.

    ``tokens`` and ``logprobs`` are ``None`` when the provider cannot expose
    them. A ``None`` element inside ``logprobs`` means the token is known but
    was not scored.

    Attributes:
        text: Full decoded string
        tokens: Token strings in emission order
        logprobs: Natural-log probability per token
    """

    text: str
    tokens: Optional[tuple[str, ...]] = None
    logprobs: Optional[tuple[Optional[float], ...]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError(f"text must be a str, got {type(self.text).__name__}")

        if self.tokens is not None:
            if isinstance(self.tokens, (str, bytes)):
                raise TypeError("tokens must be a sequence of strings, not a single string")
            tokens = tuple(self.tokens)
            for tok in tokens:
                if not isinstance(tok, str):
                    raise TypeError(f"tokens must be str, got {type(tok).__name__}")
            object.__setattr__(self, "tokens", tokens)

        if self.logprobs is not None:
            if isinstance(self.logprobs, (str, bytes)):
                raise TypeError("logprobs must be a sequence of numbers")
            logprobs = []
            for lp in self.logprobs:
                if lp is not None and (isinstance(lp, bool) or not isinstance(lp, (int, float))):
                    raise TypeError(f"logprobs must be numbers or None, got {type(lp).__name__}")
                logprobs.append(None if lp is None else float(lp))
            object.__setattr__(self, "logprobs", tuple(logprobs))

        if self.logprobs is not None:
            if self.tokens is None:
                raise ValueError("logprobs given without tokens")
            if len(self.logprobs) != len(self.tokens):
                raise ValueError(
                    f"logprobs length {len(self.logprobs)} does not match "
                    f"tokens length {len(self.tokens)}"
                )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict (absent values stay None)."""
        return {
            "text": self.text,
            "tokens": list(self.tokens) if self.tokens is not None else None,
            "logprobs": list(self.logprobs) if self.logprobs is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Tokens:
        return cls(
            text=data["text"],
            tokens=data.get("tokens"),
            logprobs=data.get("logprobs"),
        )


@dataclass(frozen=True)
class Generation:
    """Result of one generate call.

    Attributes:
        provider: Identifier of the provider that produced the result
        model: Model or checkpoint used
        completions: One Tokens record per requested completion
        prompt: The prompt as tokenized/scored by the provider
    """

    provider: str
    model: str
    completions: tuple[Tokens, ...]
    prompt: Tokens

    def __post_init__(self) -> None:
        completions = tuple(self.completions)
        if not completions:
            raise ValueError("a generation must hold at least one completion")
        for item in completions:
            if not isinstance(item, Tokens):
                raise TypeError(f"completions must be Tokens, got {type(item).__name__}")
        object.__setattr__(self, "completions", completions)

    @property
    def texts(self) -> list[str]:
        """Completion texts in order."""
        return [c.text for c in self.completions]

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "completions": [c.to_dict() for c in self.completions],
            "prompt": self.prompt.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Generation:
        return cls(
            provider=data["provider"],
            model=data["model"],
            completions=tuple(Tokens.from_dict(c) for c in data["completions"]),
            prompt=Tokens.from_dict(data["prompt"]),
        )


__all__ = [
    "Tokens",
    "Generation",
]

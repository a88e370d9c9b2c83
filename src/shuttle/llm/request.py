"""Request helpers shared by providers.

Providers call these as plain functions instead of inheriting them:
- validate_request: reject bad generate() arguments before any I/O
- truncate_at_stop: cut a Tokens record at its first stop sequence
- split_tokens: whitespace-preserving tokenization
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .errors import InvalidRequestError
from .types import Tokens

_TOKEN_RE = re.compile(r"\s*\S+|\s+")


@dataclass(frozen=True)
class GenerationRequest:
    """Validated arguments of one generate() call."""

    prompt: str
    max_tokens: Optional[int]
    temperature: float
    n: int
    stop: Optional[tuple[str, ...]] = None

    def span_attributes(self) -> dict[str, Any]:
        """Tracing attributes describing this request."""
        return {
            "llm.prompt.length": len(self.prompt),
            "llm.max_tokens": self.max_tokens if self.max_tokens is not None else -1,
            "llm.temperature": self.temperature,
            "llm.n": self.n,
            "llm.stop.count": len(self.stop) if self.stop else 0,
        }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_request(
    prompt: str,
    max_tokens: Optional[int],
    temperature: float,
    n: int,
    stop: Optional[Sequence[str]],
    provider_id: Optional[str] = None,
) -> GenerationRequest:
    """Check generate() arguments and freeze them into a GenerationRequest.

    Raises:
        InvalidRequestError: If any argument is outside the contract
    """

    def fail(message: str) -> InvalidRequestError:
        return InvalidRequestError(message, provider_id)

    if not isinstance(prompt, str):
        raise fail(f"prompt must be a str, got {type(prompt).__name__}")
    if not prompt:
        raise fail("prompt must not be empty")

    if not _is_int(n) or n < 1:
        raise fail(f"n must be a positive integer, got {n!r}")

    if max_tokens is not None and (not _is_int(max_tokens) or max_tokens < 1):
        raise fail(f"max_tokens must be a positive integer or None, got {max_tokens!r}")

    if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
        raise fail(f"temperature must be a number, got {temperature!r}")
    try:
        temp = float(temperature)
    except OverflowError:
        raise fail("temperature must be a non-negative finite number, got an out-of-range int") from None
    if not math.isfinite(temp) or temp < 0:
        raise fail(f"temperature must be a non-negative finite number, got {temperature!r}")

    stops: Optional[tuple[str, ...]] = None
    if stop is not None:
        if isinstance(stop, (str, bytes)):
            raise fail("stop must be a sequence of strings, not a single string")
        seen: list[str] = []
        for item in stop:
            if not isinstance(item, str) or not item:
                raise fail(f"stop sequences must be non-empty strings, got {item!r}")
            if item not in seen:
                seen.append(item)
        stops = tuple(seen) or None

    return GenerationRequest(
        prompt=prompt,
        max_tokens=max_tokens,
        temperature=temp,
        n=n,
        stop=stops,
    )


def stop_index(text: str, stop: Optional[Sequence[str]]) -> Optional[int]:
    """Offset of the earliest stop sequence in ``text``, or None."""
    if not stop:
        return None
    hits = [i for i in (text.find(s) for s in stop) if i >= 0]
    return min(hits) if hits else None


def truncate_at_stop(record: Tokens, stop: Optional[Sequence[str]]) -> Tokens:
    """Return ``record`` cut just before its first stop sequence.

    Tokens past the cut are dropped; a token straddling the cut is trimmed and
    keeps its log-probability. If the tokens do not spell out the text exactly,
    the offsets cannot be mapped and the result carries no token detail.
    """
    cut = stop_index(record.text, stop)
    if cut is None:
        return record

    text = record.text[:cut]
    if record.tokens is None or "".join(record.tokens) != record.text:
        return Tokens(text=text)

    kept: list[str] = []
    kept_lps: list[Optional[float]] = []
    pos = 0
    for i, tok in enumerate(record.tokens):
        if pos >= cut:
            break
        end = pos + len(tok)
        kept.append(tok if end <= cut else tok[: cut - pos])
        if record.logprobs is not None:
            kept_lps.append(record.logprobs[i])
        pos = end

    return Tokens(
        text=text,
        tokens=tuple(kept),
        logprobs=tuple(kept_lps) if record.logprobs is not None else None,
    )


def split_tokens(text: str) -> tuple[str, ...]:
    """Split text into word tokens that keep their leading whitespace."""
    return tuple(_TOKEN_RE.findall(text))


__all__ = [
    "GenerationRequest",
    "validate_request",
    "stop_index",
    "truncate_at_stop",
    "split_tokens",
]

"""OpenAI-compatible provider - Legacy ``/completions`` endpoint over HTTP.

Works with OpenAI and with local servers exposing the same API (vLLM,
llama.cpp server, LM Studio). The prompt is requested back with ``echo`` so
the result carries the prompt as the backend tokenized and scored it; the
first prompt token's ``null`` log-probability maps to None.

Policies:
    - generate() before initialize() raises SetupError (no lazy setup).
    - Temperatures above 2.0 are rejected, not clamped.
    - At most 4 stop sequences are accepted.
    - A token straddling the prompt/completion boundary drops token detail
      from both records.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Optional, Sequence

import httpx
from opentelemetry import trace
from pydantic import BaseModel, ValidationError

from ..llm.config import LLMConfig
from ..llm.errors import BackendError, InvalidRequestError, ProviderError, SetupError
from ..llm.request import GenerationRequest, truncate_at_stop, validate_request
from ..llm.types import Generation, Tokens

if TYPE_CHECKING:
    from ..config import LLMProviderConfig

# Get tracer for LLM operation spans
tracer = trace.get_tracer(__name__)

MAX_TEMPERATURE = 2.0
MAX_STOP_SEQUENCES = 4


# ============================================================================
# Response schema
# ============================================================================


class _ChoiceLogprobs(BaseModel):
    tokens: list[str]
    token_logprobs: list[Optional[float]]
    text_offset: Optional[list[int]] = None


class _Choice(BaseModel):
    index: int = 0
    text: str
    logprobs: Optional[_ChoiceLogprobs] = None
    finish_reason: Optional[str] = None


class _CompletionResponse(BaseModel):
    model: Optional[str] = None
    choices: list[_Choice]


# ============================================================================
# Provider
# ============================================================================


class OpenAIProvider:
    """Provider for OpenAI-compatible completion APIs."""

    def __init__(self, config: LLMConfig, display_name: Optional[str] = None):
        """Initialize OpenAI provider.

        Args:
            config: Connection settings
            display_name: Label returned by name()
        """
        self.config = config
        self._display_name = display_name or f"OpenAI-compatible ({config.model})"
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_name(cls, provider_name: str) -> OpenAIProvider:
        """Create provider from a built-in preset.

        Args:
            provider_name: One of "openai", "local"

        Returns:
            Configured OpenAIProvider instance
        """
        presets = {
            "openai": LLMConfig(
                base_url="https://api.openai.com/v1",
                model="gpt-3.5-turbo-instruct",
                api_key=os.getenv("OPENAI_API_KEY"),
                logprobs=None,
            ),
            "local": LLMConfig(
                base_url="http://localhost:8000/v1",
                model="qwen2.5-0.5b-instruct",
                provider_id="local",
            ),
        }
        config = presets.get(provider_name.lower())
        if not config:
            raise ValueError(
                f"Unknown provider: {provider_name}. Choose from: {list(presets.keys())}"
            )
        return cls(config)

    @classmethod
    def from_config(cls, provider_cfg: LLMProviderConfig) -> OpenAIProvider:
        """Create provider from a [llm.<name>] table of shuttle.toml.

        Example shuttle.toml:
            [llm.local]
            type = "openai"
            api_key = "${LOCAL_API_KEY}"
            api_base = "http://localhost:8000/v1"
            model = "qwen2.5-0.5b-instruct"
            max_tokens = 256
            timeout_sec = 30
            logprobs = 1
        """
        llm_config = LLMConfig(
            base_url=provider_cfg.api_base or "http://localhost:8000/v1",
            model=provider_cfg.model or "unknown",
            api_key=provider_cfg.api_key,
            max_tokens=provider_cfg.max_tokens,
            timeout_ms=provider_cfg.timeout_sec * 1000,
            logprobs=provider_cfg.logprobs,
            provider_id=provider_cfg.name,
        )
        logging.info("[shuttle.llm] Loaded provider '%s' from shuttle.toml", provider_cfg.name)
        return cls(llm_config)

    def id(self) -> str:
        return self.config.provider_id

    def name(self) -> str:
        return self._display_name

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    async def initialize(self) -> None:
        """Open the HTTP client and check that the API answers.

        A second call is a no-op.

        Raises:
            SetupError: If the API is unreachable or rejects the credentials
        """
        if self._client is not None:
            return

        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        client = httpx.AsyncClient(timeout=self.config.timeout_ms / 1000.0, headers=headers)
        try:
            response = await client.get(self._url("models"))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            await client.aclose()
            status = e.response.status_code
            if status in (401, 403):
                msg = f"Invalid credentials for {self.config.base_url} (HTTP {status})"
            else:
                msg = f"Setup check failed for {self.config.base_url}: HTTP {status}"
            logging.warning("[shuttle] Provider %s failed to initialize: %s", self.id(), msg)
            raise SetupError(msg, self.id()) from e
        except httpx.HTTPError as e:
            await client.aclose()
            msg = f"Cannot reach {self.config.base_url}: {e}"
            logging.warning("[shuttle] Provider %s failed to initialize: %s", self.id(), msg)
            raise SetupError(msg, self.id()) from e

        self._client = client
        logging.info("[shuttle] Provider %s initialized (model=%s)", self.id(), self.config.model)

    async def aclose(self) -> None:
        """Release the HTTP client. The provider must be initialized again to be used."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.0,
        n: int = 1,
        stop: Optional[Sequence[str]] = None,
    ) -> Generation:
        """Generate completions via the /completions endpoint.

        Raises:
            InvalidRequestError: If arguments are invalid for this backend
            SetupError: If initialize() has not completed
            BackendError: On HTTP errors, malformed or partial responses
        """
        request = validate_request(prompt, max_tokens, temperature, n, stop, provider_id=self.id())
        if request.temperature > MAX_TEMPERATURE:
            raise InvalidRequestError(
                f"temperature {request.temperature} exceeds {MAX_TEMPERATURE}", self.id()
            )
        if request.stop and len(request.stop) > MAX_STOP_SEQUENCES:
            raise InvalidRequestError(
                f"at most {MAX_STOP_SEQUENCES} stop sequences are supported, got {len(request.stop)}",
                self.id(),
            )
        if self._client is None:
            raise SetupError(f"provider {self.id()} is not initialized; call initialize() first", self.id())

        attributes = {
            "llm.provider": self.id(),
            "llm.base_url": self.config.base_url,
            "llm.model": self.config.model,
            **request.span_attributes(),
        }

        # Start LLM generation span
        with tracer.start_as_current_span("llm.generate", attributes=attributes) as span:
            try:
                data = await self._post_completions(request)
                result = self._to_generation(request, data)
            except ProviderError as e:
                span.set_attribute("llm.status", "error")
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                span.record_exception(e)
                raise

            span.set_attribute("llm.status", "success")
            span.set_attribute("llm.completions.count", len(result.completions))
            span.set_status(trace.Status(trace.StatusCode.OK))
            return result

    # ------------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path}"

    def _payload(self, request: GenerationRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "prompt": request.prompt,
            "max_tokens": request.max_tokens or self.config.max_tokens,
            "temperature": request.temperature,
            "n": request.n,
            "echo": True,
        }
        if request.stop:
            payload["stop"] = list(request.stop)
        if self.config.logprobs is not None:
            payload["logprobs"] = self.config.logprobs
        return payload

    async def _post_completions(self, request: GenerationRequest) -> dict[str, Any]:
        assert self._client is not None
        try:
            response = await self._client.post(self._url("completions"), json=self._payload(request))
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error_msg = f"LLM HTTP error {status}: {e.response.text}"
            logging.warning("[shuttle] Provider %s: %s", self.id(), error_msg)
            raise BackendError(
                error_msg,
                self.id(),
                status_code=status,
                retryable=status == 429 or status >= 500,
            ) from e
        except httpx.HTTPError as e:
            logging.warning("[shuttle] Provider %s: request failed: %s", self.id(), e)
            raise BackendError(f"LLM request failed: {e}", self.id(), retryable=True) from e
        except ValueError as e:
            raise BackendError(f"Malformed response: body is not JSON ({e})", self.id(), retryable=False) from e

    def _to_generation(self, request: GenerationRequest, data: Any) -> Generation:
        try:
            parsed = _CompletionResponse.model_validate(data)
        except ValidationError as e:
            raise BackendError(f"Malformed response: {e}", self.id(), retryable=False) from e

        choices = sorted(parsed.choices, key=lambda c: c.index)
        if len(choices) != request.n or [c.index for c in choices] != list(range(request.n)):
            raise BackendError(
                f"Backend returned {len(choices)} of {request.n} completions",
                self.id(),
                retryable=True,
            )

        prompt_record: Optional[Tokens] = None
        completions: list[Tokens] = []
        for choice in choices:
            prompt_part, completion_part = self._split_echo(request.prompt, choice)
            if prompt_record is None:
                prompt_record = prompt_part
            completions.append(truncate_at_stop(completion_part, request.stop))

        assert prompt_record is not None
        return Generation(
            provider=self.id(),
            model=parsed.model or self.config.model,
            completions=tuple(completions),
            prompt=prompt_record,
        )

    def _split_echo(self, prompt: str, choice: _Choice) -> tuple[Tokens, Tokens]:
        """Separate the echoed prompt from the generated text of one choice."""
        if not choice.text.startswith(prompt):
            raise BackendError(
                "Malformed response: choice does not start with the echoed prompt",
                self.id(),
                retryable=False,
            )
        completion_text = choice.text[len(prompt) :]

        lp = choice.logprobs
        if lp is None:
            return Tokens(text=prompt), Tokens(text=completion_text)

        if len(lp.token_logprobs) != len(lp.tokens):
            raise BackendError(
                "Malformed response: tokens and token_logprobs differ in length",
                self.id(),
                retryable=False,
            )

        offsets = lp.text_offset
        if offsets is None or len(offsets) != len(lp.tokens):
            offsets = []
            pos = 0
            for tok in lp.tokens:
                offsets.append(pos)
                pos += len(tok)

        # Tokens starting inside the prompt belong to the prompt.
        k = sum(1 for off in offsets if off < len(prompt))
        if k and offsets[k - 1] + len(lp.tokens[k - 1]) > len(prompt):
            # A token spans the prompt/completion boundary; its score belongs to neither side.
            logging.debug("[shuttle] Provider %s: token straddles prompt boundary, dropping token detail", self.id())
            return Tokens(text=prompt), Tokens(text=completion_text)

        prompt_record = Tokens(text=prompt, tokens=lp.tokens[:k], logprobs=lp.token_logprobs[:k])
        completion_record = Tokens(
            text=completion_text,
            tokens=lp.tokens[k:],
            logprobs=lp.token_logprobs[k:],
        )
        return prompt_record, completion_record


__all__ = ["OpenAIProvider"]

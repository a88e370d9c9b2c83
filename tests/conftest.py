"""Test fixtures and configuration for shuttle tests.

Test Structure:
    tests/
    ├── conftest.py                  # Shared fixtures
    ├── test_config.py               # shuttle.toml loading
    ├── test_cli.py                  # Command line interface
    ├── test_telemetry.py            # Span export from provider calls
    └── unit/                        # Unit tests (no network, httpx is mocked)
        ├── test_types.py
        ├── test_request.py
        ├── test_echo_provider.py
        ├── test_openai_provider.py
        └── test_provider_contract.py

Running tests:
    pytest tests/unit -v                    # Unit tests only
    pytest -v                               # Everything
"""

from __future__ import annotations

from typing import Any, Iterator, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from shuttle.llm.config import LLMConfig
from shuttle.llm.request import split_tokens

BASE_URL = "http://test.local/v1"


def _response(
    status_code: int = 200,
    json_data: Optional[Any] = None,
    text: str = "",
    method: str = "POST",
    path: str = "completions",
) -> httpx.Response:
    request = httpx.Request(method, f"{BASE_URL}/{path}")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, request=request)
    return httpx.Response(status_code, text=text, request=request)


def _completion_payload(
    prompt: str,
    completions: list[str],
    model: str = "test-model",
    logprobs: bool = True,
) -> dict[str, Any]:
    """Build an OpenAI-style /completions body with echo enabled."""
    choices = []
    for i, text in enumerate(completions):
        choice: dict[str, Any] = {"index": i, "text": prompt + text, "finish_reason": "stop"}
        if logprobs:
            prompt_tokens = list(split_tokens(prompt))
            completion_tokens = list(split_tokens(text))
            tokens = prompt_tokens + completion_tokens
            offsets = []
            pos = 0
            for tok in tokens:
                offsets.append(pos)
                pos += len(tok)
            choice["logprobs"] = {
                "tokens": tokens,
                "token_logprobs": [None]
                + [-0.5] * (len(prompt_tokens) - 1)
                + [-0.25] * len(completion_tokens),
                "text_offset": offsets,
                "top_logprobs": None,
            }
        choices.append(choice)
    return {"id": "cmpl-test", "object": "text_completion", "model": model, "choices": choices}


@pytest.fixture
def make_response():
    """Factory for real httpx.Response objects bound to a request."""
    return _response


@pytest.fixture
def completion_payload():
    """Factory for echoed /completions response bodies."""
    return _completion_payload


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(base_url=BASE_URL, model="test-model", api_key="sk-test")


@pytest.fixture
def mock_http() -> Iterator[MagicMock]:
    """Patch httpx.AsyncClient; the instance answers GET /models with 200.

    Yields the patched class; ``mock_http.return_value`` is the client.
    """
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(
            return_value=_response(200, {"object": "list", "data": []}, method="GET", path="models")
        )
        mock_client_class.return_value = mock_client
        yield mock_client_class

"""Contract tests run against every provider implementation.

The OpenAI-compatible provider answers from a fake /completions endpoint
that echoes the prompt and returns exactly the requested number of choices.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from shuttle.llm import LLM, Generation, InvalidRequestError, Tokens
from shuttle.providers import EchoProvider, OpenAIProvider


@pytest_asyncio.fixture(params=["echo", "openai"])
async def provider(request, llm_config, mock_http, make_response, completion_payload):
    """An initialized provider of each kind."""
    if request.param == "echo":
        instance = EchoProvider(completions=["a reply"])
    else:

        async def fake_post(url, json):
            return make_response(200, completion_payload(json["prompt"], [" a reply"] * json["n"]))

        mock_http.return_value.post = AsyncMock(side_effect=fake_post)
        instance = OpenAIProvider(llm_config)

    await instance.initialize()
    return instance


class TestProviderContract:
    """Behavior every LLM implementation must share."""

    @pytest.mark.asyncio
    async def test_is_llm(self, provider):
        assert isinstance(provider, LLM)

    @pytest.mark.asyncio
    async def test_id_stable_and_non_empty(self, provider):
        ids = {provider.id() for _ in range(3)}
        assert len(ids) == 1
        assert ids.pop()
        assert provider.name()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("n", [1, 2, 5])
    async def test_exactly_n_completions(self, provider, n):
        result = await provider.generate("Tell me something", n=n)

        assert isinstance(result, Generation)
        assert len(result.completions) == n
        assert all(isinstance(c, Tokens) for c in result.completions)

    @pytest.mark.asyncio
    async def test_prompt_and_provider_reported(self, provider):
        result = await provider.generate("What now")

        assert result.prompt.text == "What now"
        assert result.provider == provider.id()
        assert result.model

    @pytest.mark.asyncio
    async def test_first_prompt_token_has_no_logprob(self, provider):
        result = await provider.generate("several words here")

        assert result.prompt.tokens is not None
        assert result.prompt.logprobs[0] is None
        assert len(result.prompt.logprobs) == len(result.prompt.tokens)

    @pytest.mark.asyncio
    async def test_stop_sequence_respected(self, provider):
        result = await provider.generate("Answer", stop=["ply"])

        for completion in result.completions:
            assert "ply" not in completion.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"n": 0},
            {"n": -2},
            {"max_tokens": 0},
            {"temperature": -1.0},
            {"stop": ["ok", ""]},
        ],
    )
    async def test_invalid_requests_rejected(self, provider, kwargs):
        with pytest.raises(InvalidRequestError):
            await provider.generate("hello", **kwargs)

    @pytest.mark.asyncio
    async def test_empty_prompt_rejected(self, provider):
        with pytest.raises(InvalidRequestError):
            await provider.generate("")

    @pytest.mark.asyncio
    async def test_repeated_calls_are_independent(self, provider):
        first = await provider.generate("one", n=2)
        second = await provider.generate("two", n=3)

        assert first.prompt.text == "one"
        assert second.prompt.text == "two"
        assert len(first.completions) == 2
        assert len(second.completions) == 3

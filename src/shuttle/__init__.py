"""shuttle - One contract for every text-generation backend.

shuttle defines the boundary between code that orchestrates text generation
and the backends that do it: hosted APIs, local models, or test doubles.
Every backend exposes the same four operations and returns the same
immutable result, including token-level log-probabilities when the backend
can provide them.

Quick Start:
    ```python
    from shuttle import EchoProvider

    provider = EchoProvider(completions=["Paris"])
    await provider.initialize()

    result = await provider.generate("The capital of France is", n=2)
    result.completions[0].text   # "Paris"
    result.prompt.logprobs       # (None, 0.0, ...)
    ```

Against an OpenAI-compatible server:
    ```python
    from shuttle import LLMConfig, OpenAIProvider

    provider = OpenAIProvider(LLMConfig(base_url="http://localhost:8000/v1", model="qwen2.5"))
    await provider.initialize()
    result = await provider.generate("def fib(n):", max_tokens=64, stop=["\\n\\n"])
    ```

Module structure:
    - llm/: Contract (LLM protocol), result types, errors, request helpers
    - providers/: EchoProvider, OpenAIProvider
    - config: shuttle.toml loading
    - telemetry/: OpenTelemetry tracing
    - cli: Command line interface
"""

__version__ = "0.1.0"

# Contract
from .llm import (
    LLM,
    BackendError,
    Generation,
    GenerationRequest,
    InvalidRequestError,
    LLMConfig,
    ProviderError,
    SetupError,
    Tokens,
    truncate_at_stop,
    validate_request,
)

# Providers
from .providers import EchoProvider, OpenAIProvider

# Config
from .config import ProjectConfig, load_project_config

# Telemetry
from .telemetry import init_telemetry, shutdown_telemetry

__all__ = [
    # Contract
    "LLM",
    "Tokens",
    "Generation",
    "GenerationRequest",
    "ProviderError",
    "SetupError",
    "InvalidRequestError",
    "BackendError",
    "validate_request",
    "truncate_at_stop",
    # Providers
    "EchoProvider",
    "OpenAIProvider",
    "LLMConfig",
    # Config
    "ProjectConfig",
    "load_project_config",
    # Telemetry
    "init_telemetry",
    "shutdown_telemetry",
]

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .config import LLMProviderConfig, ProjectConfig, load_project_config
from .llm.errors import InvalidRequestError, ProviderError
from .providers import EchoProvider, OpenAIProvider
from .telemetry import init_telemetry, shutdown_telemetry

Provider = Union[EchoProvider, OpenAIProvider]


def _load_config(args) -> ProjectConfig:
    if args.config:
        return ProjectConfig.load(Path(args.config))
    return load_project_config()


def _provider_from_config(provider_cfg: LLMProviderConfig) -> Provider:
    ptype = provider_cfg.type.lower()
    if ptype == "echo":
        return EchoProvider(
            provider_id=provider_cfg.name,
            model=provider_cfg.model or "echo-1",
            completions=provider_cfg.extra.get("completions"),
        )
    if ptype == "openai":
        return OpenAIProvider.from_config(provider_cfg)
    raise ValueError(f"Unsupported provider type: {provider_cfg.type}")


def _resolve_provider(name: str, config: ProjectConfig) -> Provider:
    if name in config.llm_providers:
        return _provider_from_config(config.llm_providers[name])
    if name == "echo":
        return EchoProvider()
    return OpenAIProvider.from_name(name)


async def _run_generate(provider: Provider, args, temperature: float) -> int:
    try:
        await provider.initialize()
        result = await provider.generate(
            args.prompt,
            max_tokens=args.max_tokens,
            temperature=temperature,
            n=args.n,
            stop=args.stop,
        )
    except InvalidRequestError as e:
        print(f"[shuttle] invalid request: {e}", file=sys.stderr)
        return 2
    except ProviderError as e:
        print(f"[shuttle] error: {e}", file=sys.stderr)
        return 1
    finally:
        if isinstance(provider, OpenAIProvider):
            await provider.aclose()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    print(f"[shuttle] {result.provider} / {result.model}")
    for i, completion in enumerate(result.completions):
        if len(result.completions) > 1:
            print(f"--- completion {i + 1} ---")
        print(completion.text)
    return 0


def cmd_generate(args) -> int:
    """Run one generation against a configured or built-in provider."""
    config = _load_config(args)
    try:
        provider = _resolve_provider(args.provider, config)
    except ValueError as e:
        print(f"[shuttle] {e}", file=sys.stderr)
        return 2

    temperature = args.temperature
    if temperature is None:
        provider_cfg = config.llm_providers.get(args.provider)
        temperature = provider_cfg.temperature if provider_cfg else 0.0

    if config.telemetry.enabled:
        init_telemetry(config.telemetry)
    try:
        return asyncio.run(_run_generate(provider, args, temperature))
    finally:
        shutdown_telemetry()


def cmd_providers(args) -> int:
    """List providers configured in shuttle.toml."""
    config = _load_config(args)
    if not config.llm_providers:
        print("[shuttle] No providers configured. Built-in: echo, openai, local")
        return 0
    for name, provider_cfg in config.llm_providers.items():
        model = provider_cfg.model or "-"
        base = provider_cfg.api_base or "-"
        print(f"{name}\ttype={provider_cfg.type}\tmodel={model}\tapi_base={base}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shuttle", description="Text generation through one provider contract")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sg = sub.add_parser("generate", help="Generate completions for a prompt")
    sg.add_argument("prompt", help="Prompt text")
    sg.add_argument("--provider", "-p", default="echo", help="Provider name from shuttle.toml or a preset (default echo)")
    sg.add_argument("--config", help="Path to shuttle.toml (default: search upward from cwd)")
    sg.add_argument("-n", type=int, default=1, help="Number of completions (default 1)")
    sg.add_argument("--max-tokens", type=int, default=None, help="Maximum tokens per completion")
    sg.add_argument("--temperature", "-t", type=float, default=None, help="Sampling temperature")
    sg.add_argument("--stop", action="append", default=None, help="Stop sequence (repeatable)")
    sg.add_argument("--json", action="store_true", help="Print the full result as JSON")
    sg.set_defaults(func=cmd_generate)

    sp = sub.add_parser("providers", help="List configured providers")
    sp.add_argument("--config", help="Path to shuttle.toml (default: search upward from cwd)")
    sp.set_defaults(func=cmd_providers)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

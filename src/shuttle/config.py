"""Configuration management for shuttle projects.

Parses shuttle.toml files with support for:
- Project metadata
- LLM provider configuration
- Telemetry settings

Example shuttle.toml structure:

    name = "my-project"

    [llm.local]
    type = "openai"
    api_base = "http://localhost:8000/v1"
    api_key = "${LOCAL_API_KEY}"
    model = "qwen2.5-0.5b-instruct"

    [llm.dry]
    type = "echo"
    model = "echo-1"

    [telemetry]
    enabled = true
    otlp_endpoint = "http://localhost:4317"

Note: Use proper TOML tables (not string-encoded Python dictionaries).
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib as toml
else:
    import tomli as toml

CONFIG_FILENAME = "shuttle.toml"


def _load_env_file(env_path: Path) -> None:
    """Load environment variables from .env file."""
    if not env_path.exists():
        return

    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                # Skip empty lines and comments
                if not line or line.startswith("#"):
                    continue

                # Parse KEY=VALUE or KEY='VALUE' or KEY="VALUE"
                if "=" in line:
                    key, _, value = line.partition("=")
                    key = key.strip()
                    value = value.strip()

                    if value and value[0] in ('"', "'") and value[-1] == value[0]:
                        value = value[1:-1]

                    # Only set if not already in environment
                    if key and key not in os.environ:
                        os.environ[key] = value
    except (OSError, UnicodeDecodeError) as e:
        logging.warning("[shuttle.config] Failed to load %s: %s", env_path, e)


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} and $VAR environment variable references."""
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        pattern = r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)"
        return re.sub(pattern, replace_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class LLMProviderConfig:
    """LLM provider configuration."""

    name: str  # e.g., "local", "openai", "dry"
    type: str  # "openai" or "echo"
    api_key: Optional[str] = None
    api_base: Optional[str] = None
    model: Optional[str] = None
    max_tokens: int = 256
    temperature: float = 0.0
    timeout_sec: int = 30
    logprobs: Optional[int] = 0
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TelemetryConfig:
    """OpenTelemetry export settings."""

    enabled: bool = False
    service_name: str = "shuttle"
    otlp_endpoint: Optional[str] = None
    max_queue_size: int = 2048
    schedule_delay_ms: int = 1000
    max_export_batch_size: int = 512


@dataclass
class ProjectConfig:
    """Complete shuttle project configuration."""

    # Project metadata
    name: Optional[str] = None
    version: str = "0.1.0"
    description: Optional[str] = None

    # LLM providers (key = provider name, value = config)
    llm_providers: dict[str, LLMProviderConfig] = field(default_factory=dict)

    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)

    @classmethod
    def load(cls, path: Path = Path(CONFIG_FILENAME)) -> ProjectConfig:
        """Load configuration from shuttle.toml file.

        Loads the first .env file found in:
        1. Same directory as shuttle.toml
        2. Current working directory
        3. Parent directories of shuttle.toml

        Expands ${VAR} environment variable references in the config.
        """
        if not path.exists():
            return cls()

        env_search_paths = [
            path.parent / ".env",
            Path.cwd() / ".env",
        ]

        current = path.parent
        while current != current.parent:
            env_search_paths.append(current / ".env")
            current = current.parent

        for env_path in env_search_paths:
            if env_path.exists():
                _load_env_file(env_path)
                break

        try:
            raw_data = toml.loads(path.read_text(encoding="utf-8"))
            data = _expand_env_vars(raw_data)
        except (OSError, toml.TOMLDecodeError) as e:
            raise RuntimeError(f"Failed to parse {path}: {e}") from e

        config = cls()

        config.name = data.get("name")
        config.version = data.get("version", "0.1.0")
        config.description = data.get("description")

        # LLM providers - expect proper TOML tables
        if "llm" in data:
            for provider_name, provider_data in data["llm"].items():
                if not isinstance(provider_data, dict):
                    logging.warning(
                        "[shuttle.config] Skipping [llm.%s]: expected a table", provider_name
                    )
                    continue

                config.llm_providers[provider_name] = LLMProviderConfig(
                    name=provider_name,
                    type=provider_data.get("type", "openai"),
                    api_key=provider_data.get("api_key"),
                    api_base=provider_data.get("api_base"),
                    model=provider_data.get("model"),
                    max_tokens=provider_data.get("max_tokens", 256),
                    temperature=provider_data.get("temperature", 0.0),
                    timeout_sec=provider_data.get("timeout_sec", 30),
                    logprobs=provider_data.get("logprobs", 0),
                    extra=provider_data.get("extra", {}),
                )

        if "telemetry" in data:
            tel_data = data["telemetry"]
            config.telemetry = TelemetryConfig(
                enabled=tel_data.get("enabled", False),
                service_name=tel_data.get("service_name", "shuttle"),
                otlp_endpoint=tel_data.get("otlp_endpoint"),
                max_queue_size=tel_data.get("max_queue_size", 2048),
                schedule_delay_ms=tel_data.get("schedule_delay_ms", 1000),
                max_export_batch_size=tel_data.get("max_export_batch_size", 512),
            )

        return config


def load_project_config(start_dir: Path = Path(".")) -> ProjectConfig:
    """Load project configuration, searching up from start_dir."""
    current = start_dir.resolve()
    while current != current.parent:
        config_path = current / CONFIG_FILENAME
        if config_path.exists():
            return ProjectConfig.load(config_path)
        current = current.parent

    # No config found, return defaults
    return ProjectConfig()


__all__ = [
    "LLMProviderConfig",
    "TelemetryConfig",
    "ProjectConfig",
    "load_project_config",
]

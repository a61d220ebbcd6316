"""
Configuration for the topic explorer.

Values resolve in this order, highest first:

1. explicit overrides (CLI flags),
2. environment variables,
3. the TOML config file (same key names as the environment variables),
4. built-in defaults.

Numeric values that do not parse, and timeouts that are not positive, fall back to
their defaults instead of failing.
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .exceptions import ConfigError

logger = logging.getLogger("topic_explorer")

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama3:8b"
DEFAULT_TEMPERATURE = 0.6
DEFAULT_TOP_P = 0.9
DEFAULT_MAX_OUTPUT_TOKENS = 2048
DEFAULT_REQUEST_TIMEOUT_SECONDS = 600.0
DEFAULT_STREAM_TIMEOUT_SECONDS = 900.0
DEFAULT_NOTES_PATH = Path("~/.topic_explorer/notes.txt")
DEFAULT_CONFIG_PATH = Path("~/.config/topic-explorer/config.toml")

CONFIG_PATH_ENV = "TOPIC_EXPLORER_CONFIG"


@dataclass(frozen=True)
class SamplingOptions:
    """Sampling knobs sent with every request."""

    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS

    def to_payload(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "num_predict": self.max_output_tokens,
        }


@dataclass(frozen=True)
class ExplorerConfig:
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    sampling: SamplingOptions = field(default_factory=SamplingOptions)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    stream_timeout: float = DEFAULT_STREAM_TIMEOUT_SECONDS
    notes_path: Path = DEFAULT_NOTES_PATH
    source: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        """Flat, JSON-friendly view used by ``topic-explorer config``."""
        return {
            "base_url": self.base_url,
            "model": self.model,
            "temperature": self.sampling.temperature,
            "top_p": self.sampling.top_p,
            "max_output_tokens": self.sampling.max_output_tokens,
            "request_timeout": self.request_timeout,
            "stream_timeout": self.stream_timeout,
            "notes_path": str(self.notes_path),
            "config_file": str(self.source) if self.source else None,
        }


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    # A [topic_explorer] table is accepted as well as top-level keys.
    table = data.get("topic_explorer")
    if isinstance(table, dict):
        return {**data, **table}
    return data


def _resolve_config_path(path: str | Path | None, environ: Mapping[str, str]) -> Path | None:
    if path is not None:
        resolved = Path(path).expanduser()
        if not resolved.is_file():
            raise ConfigError(f"Config file not found: {resolved}")
        return resolved
    from_env = environ.get(CONFIG_PATH_ENV)
    if from_env:
        resolved = Path(from_env).expanduser()
        if not resolved.is_file():
            raise ConfigError(f"Config file not found: {resolved} (from {CONFIG_PATH_ENV})")
        return resolved
    default = DEFAULT_CONFIG_PATH.expanduser()
    return default if default.is_file() else None


class _Lookup:
    """Environment-first lookup over the environment and the config file."""

    def __init__(self, environ: Mapping[str, str], file_values: Mapping[str, Any]) -> None:
        self.environ = environ
        self.file_values = file_values

    def raw(self, key: str) -> Any:
        value = self.environ.get(key)
        if value is not None and value != "":
            return value
        return self.file_values.get(key)

    def text(self, key: str, default: str) -> str:
        value = self.raw(key)
        if value is None or str(value).strip() == "":
            return default
        return str(value).strip()

    def number(self, key: str, default: float) -> float:
        value = self.raw(key)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(
                "[TopicExplorer Config] Ignoring invalid %s=%r; using %s.", key, value, default
            )
            return default

    def positive_number(self, key: str, default: float) -> float:
        value = self.number(key, default)
        if value <= 0:
            logger.warning(
                "[TopicExplorer Config] Ignoring non-positive %s=%r; using %s.", key, value, default
            )
            return default
        return value

    def integer(self, key: str, default: int) -> int:
        value = self.raw(key)
        if value is None:
            return default
        try:
            return int(str(value).strip())
        except (TypeError, ValueError):
            logger.warning(
                "[TopicExplorer Config] Ignoring invalid %s=%r; using %s.", key, value, default
            )
            return default


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> ExplorerConfig:
    """Build an ``ExplorerConfig`` from overrides, environment, config file and defaults.

    Args:
        path: Explicit config file. Falls back to ``$TOPIC_EXPLORER_CONFIG`` and then
            ``~/.config/topic-explorer/config.toml`` (which may be absent).
        environ: Environment mapping, ``os.environ`` when omitted.
        **overrides: ``ExplorerConfig`` field values that win over everything else.
            ``None`` values are ignored.

    Raises:
        ConfigError: The config file is missing (when named explicitly) or invalid.
    """
    env = os.environ if environ is None else environ
    source = _resolve_config_path(path, env)
    file_values = _read_config_file(source) if source else {}
    lookup = _Lookup(env, file_values)

    config = ExplorerConfig(
        base_url=lookup.text("OLLAMA_BASE_URL", DEFAULT_BASE_URL),
        model=lookup.text("OLLAMA_MODEL", DEFAULT_MODEL),
        sampling=SamplingOptions(
            temperature=lookup.number("OLLAMA_TEMPERATURE", DEFAULT_TEMPERATURE),
            top_p=lookup.number("OLLAMA_TOP_P", DEFAULT_TOP_P),
            max_output_tokens=lookup.integer("OLLAMA_NUM_PREDICT", DEFAULT_MAX_OUTPUT_TOKENS),
        ),
        request_timeout=lookup.positive_number("OLLAMA_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS),
        stream_timeout=lookup.positive_number(
            "OLLAMA_STREAM_TIMEOUT", DEFAULT_STREAM_TIMEOUT_SECONDS
        ),
        notes_path=Path(lookup.text("TOPIC_EXPLORER_NOTES", str(DEFAULT_NOTES_PATH))).expanduser(),
        source=source,
    )

    applied = {key: value for key, value in overrides.items() if value is not None}
    if "notes_path" in applied:
        applied["notes_path"] = Path(applied["notes_path"]).expanduser()
    if applied:
        config = replace(config, **applied)
    return config

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


class ConfigurationError(RuntimeError):
    pass


class MissingCredentialError(ConfigurationError):
    pass


ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"
ELEVENLABS_API_KEY_ENV = "ELEVENLABS_API_KEY"

_COMPLETION_BACKENDS = ("anthropic", "cli")


@dataclass(frozen=True)
class CompletionSettings:
    backend: str = "anthropic"
    model: str = "claude-3-5-sonnet-20241022"
    base_url: str = "https://api.anthropic.com"
    timeout_seconds: float = 120.0
    max_tokens: int = 4096
    command: str = "claude"
    args: tuple[str, ...] = ("-p",)
    source: str | None = None


@dataclass(frozen=True)
class SpeechSettings:
    model: str = "eleven_multilingual_v2"
    base_url: str = "https://api.elevenlabs.io"
    timeout_seconds: float = 120.0
    source: str | None = None


@dataclass(frozen=True)
class Settings:
    completion: CompletionSettings
    speech: SpeechSettings


def global_config_path() -> Path:
    override = os.environ.get("VENTURE_BRIEF_CONFIG")
    if override:
        return Path(override).expanduser()
    root = os.environ.get("XDG_CONFIG_HOME")
    if root:
        base = Path(root)
    else:
        base = Path.home() / ".config"
    return base / "venture-brief" / "config.yaml"


def load_settings(*, path: Path | None = None) -> Settings:
    config_path = path or global_config_path()
    data = _load_yaml_mapping(config_path)
    source = str(config_path)
    return Settings(
        completion=_parse_completion(_extract_section(data, "completion", source=source), source=source),
        speech=_parse_speech(_extract_section(data, "speech", source=source), source=source),
    )


def require_credential(env_var: str, *, provider: str) -> str:
    value = os.environ.get(env_var, "").strip()
    if not value:
        raise MissingCredentialError(
            f"{provider} API key not configured. Please add {env_var} to your environment variables.",
        )
    return value


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML at {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected mapping YAML at {path}")
    return dict(loaded)


def _extract_section(data: Mapping[str, Any], key: str, *, source: str) -> Mapping[str, Any]:
    raw = data.get(key)
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Expected mapping for {key} in {source}")
    return raw


def _parse_completion(raw: Mapping[str, Any], *, source: str) -> CompletionSettings:
    fallback = CompletionSettings()
    if not raw:
        return fallback

    backend = _parse_str(raw.get("backend"), fallback.backend, source=source, key="completion.backend")
    if backend not in _COMPLETION_BACKENDS:
        allowed = ", ".join(_COMPLETION_BACKENDS)
        raise ConfigurationError(f"completion.backend must be one of {allowed} in {source}")

    command = _parse_str(raw.get("command"), fallback.command, source=source, key="completion.command")
    if any(ch.isspace() for ch in command):
        raise ConfigurationError(
            f"completion.command must not contain whitespace; use completion.args in {source}",
        )

    return CompletionSettings(
        backend=backend,
        model=_parse_str(raw.get("model"), fallback.model, source=source, key="completion.model"),
        base_url=_parse_str(raw.get("base_url"), fallback.base_url, source=source, key="completion.base_url"),
        timeout_seconds=_parse_positive_number(
            raw.get("timeout_seconds"),
            fallback.timeout_seconds,
            source=source,
            key="completion.timeout_seconds",
        ),
        max_tokens=int(
            _parse_positive_number(
                raw.get("max_tokens"),
                fallback.max_tokens,
                source=source,
                key="completion.max_tokens",
            ),
        ),
        command=command,
        args=_parse_args(raw.get("args"), fallback=fallback.args, source=source),
        source=source,
    )


def _parse_speech(raw: Mapping[str, Any], *, source: str) -> SpeechSettings:
    fallback = SpeechSettings()
    if not raw:
        return fallback
    return SpeechSettings(
        model=_parse_str(raw.get("model"), fallback.model, source=source, key="speech.model"),
        base_url=_parse_str(raw.get("base_url"), fallback.base_url, source=source, key="speech.base_url"),
        timeout_seconds=_parse_positive_number(
            raw.get("timeout_seconds"),
            fallback.timeout_seconds,
            source=source,
            key="speech.timeout_seconds",
        ),
        source=source,
    )


def _parse_str(value: object, fallback: str, *, source: str, key: str) -> str:
    if value is None:
        return fallback
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{key} must be a non-empty string in {source}")
    return value.strip()


def _parse_positive_number(value: object, fallback: float, *, source: str, key: str) -> float:
    if value is None:
        return fallback
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"{key} must be a positive number in {source}")
    return float(value)


def _parse_args(value: object, *, fallback: tuple[str, ...], source: str) -> tuple[str, ...]:
    if value is None:
        return fallback
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list):
        if not all(isinstance(item, str) and item for item in value):
            raise ConfigurationError(f"completion.args must be a list of strings in {source}")
        return tuple(value)
    raise ConfigurationError(f"completion.args must be a list of strings in {source}")

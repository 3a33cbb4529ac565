from __future__ import annotations

from pathlib import Path

import pytest

from venture_brief.settings import (
    ANTHROPIC_API_KEY_ENV,
    CompletionSettings,
    ConfigurationError,
    MissingCredentialError,
    SpeechSettings,
    global_config_path,
    load_settings,
    require_credential,
)


def test_global_config_path_prefers_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VENTURE_BRIEF_CONFIG", str(tmp_path / "custom.yaml"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    assert global_config_path() == tmp_path / "custom.yaml"


def test_global_config_path_uses_xdg_config_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("VENTURE_BRIEF_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert global_config_path() == tmp_path / "venture-brief" / "config.yaml"


def test_load_settings_defaults_when_file_missing(tmp_path: Path) -> None:
    settings = load_settings(path=tmp_path / "missing.yaml")

    assert settings.completion == CompletionSettings()
    assert settings.speech == SpeechSettings()
    assert settings.completion.model == "claude-3-5-sonnet-20241022"
    assert settings.speech.model == "eleven_multilingual_v2"


def test_load_settings_reads_sections(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "\n".join(
            [
                "completion:",
                "  backend: cli",
                "  command: claude",
                "  args: ['-p', '--output-format', 'text']",
                "  timeout_seconds: 30",
                "speech:",
                "  model: eleven_turbo_v2",
                "  base_url: https://eleven.test",
                "",
            ],
        ),
        encoding="utf-8",
    )

    settings = load_settings(path=path)

    assert settings.completion.backend == "cli"
    assert settings.completion.args == ("-p", "--output-format", "text")
    assert settings.completion.timeout_seconds == 30.0
    assert settings.completion.source == str(path)
    assert settings.speech.model == "eleven_turbo_v2"
    assert settings.speech.base_url == "https://eleven.test"


def test_load_settings_uses_env_override_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "override.yaml"
    path.write_text("completion:\n  model: claude-test\n", encoding="utf-8")
    monkeypatch.setenv("VENTURE_BRIEF_CONFIG", str(path))

    assert load_settings().completion.model == "claude-test"


def test_load_settings_rejects_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("completion: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_settings(path=path)


def test_load_settings_rejects_non_mapping_section(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("completion: 3\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Expected mapping for completion"):
        load_settings(path=path)


def test_load_settings_rejects_unknown_backend(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("completion:\n  backend: openai\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="completion.backend"):
        load_settings(path=path)


def test_load_settings_rejects_command_with_whitespace(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("completion:\n  command: claude -p\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="completion.args"):
        load_settings(path=path)


def test_load_settings_rejects_non_positive_timeout(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("speech:\n  timeout_seconds: 0\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="speech.timeout_seconds"):
        load_settings(path=path)


def test_require_credential_reports_missing_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ANTHROPIC_API_KEY_ENV, raising=False)

    with pytest.raises(MissingCredentialError) as excinfo:
        require_credential(ANTHROPIC_API_KEY_ENV, provider="Anthropic")

    assert isinstance(excinfo.value, ConfigurationError)
    assert "Anthropic API key not configured" in str(excinfo.value)
    assert ANTHROPIC_API_KEY_ENV in str(excinfo.value)


def test_require_credential_strips_whitespace(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ANTHROPIC_API_KEY_ENV, "  sk-test  ")

    assert require_credential(ANTHROPIC_API_KEY_ENV, provider="Anthropic") == "sk-test"

"""Tests for runtime settings validation."""

from __future__ import annotations

import pytest

from rmd_render.config import AppSettings, SettingsLoadError, config_load_settings


def test_config_settings_defaults_match_render_command() -> None:
    """Expose the default interpreter invocation and mount.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when defaults drift.
    """

    settings = AppSettings(_env_file=None)

    assert settings.interpreter_args == ["--slave", "--no-save", "--no-restore"]
    assert settings.render_command_template == "rmarkdown::render('{filename}', encoding='{encoding}');"
    assert settings.output_mount == "rmd_output"
    assert settings.program_mode == "server"


def test_config_settings_normalizes_values() -> None:
    """Normalize log level, program mode and mount text.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when values are not normalized.
    """

    settings = AppSettings(
        _env_file=None,
        log_level="debug",
        program_mode=" Desktop ",
        output_mount="/preview/",
        pandoc_path="  ",
    )

    assert settings.log_level == "DEBUG"
    assert settings.program_mode == "desktop"
    assert settings.output_mount == "preview"
    assert settings.pandoc_path is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"log_level": "verbose"},
        {"program_mode": "cloud"},
        {"output_mount": "a/b"},
        {"render_command_template": "rmarkdown::render()"},
        {"render_command_template": "local({ rmarkdown::render('{filename}') })"},
        {"render_command_template": "rmarkdown::render('{filename}', quiet={quiet})"},
        {"api_event_default_limit": 50, "api_event_max_limit": 10},
    ],
)
def test_config_settings_rejects_invalid_values(overrides: dict[str, object]) -> None:
    """Reject invalid settings values.

    Args:
        overrides: Invalid settings values.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when invalid values are accepted.
    """

    with pytest.raises(ValueError):
        AppSettings(_env_file=None, **overrides)


def test_config_load_settings_wraps_validation_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Wrap environment validation failures in the startup error type.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when the raw validation error escapes.
    """

    monkeypatch.setenv("PROGRAM_MODE", "cloud")

    with pytest.raises(SettingsLoadError):
        config_load_settings()


def test_config_settings_accepts_escaped_braces_in_template() -> None:
    """Accept render templates whose literal R braces are doubled.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when an escaped template is rejected or altered.
    """

    template = "local({{ rmarkdown::render('{filename}', encoding='{encoding}') }})"

    settings = AppSettings(_env_file=None, render_command_template=template)

    assert settings.render_command_template == template
    assert settings.render_command_template.format(filename="abc.Rmd", encoding="UTF-8") == (
        "local({ rmarkdown::render('abc.Rmd', encoding='UTF-8') })"
    )

from __future__ import annotations

import pytest

from beacon.config import (
    DEFAULT_LOGS_ENABLED,
    DEFAULT_LOGS_FORMAT,
    DEFAULT_LOGS_MAX_FILE_BYTES,
    DEFAULT_LOGS_MAX_FILES,
    DEFAULT_LOGS_REDACTION,
    ProjectConfigError,
    initialize_project_config,
    load_project_config,
    load_settings,
    save_project_config,
)


def test_init_config_contains_defaults(tmp_path):
    config_root = initialize_project_config(workspace_dir=tmp_path)
    config = load_project_config(workspace_dir=tmp_path)
    config_text = (config_root / "config.toml").read_text(encoding="utf-8")

    assert "[registry]" in config_text
    assert "strict_types = false" in config_text
    assert "[channels]" in config_text
    assert "[runtime.logs]" in config_text
    assert "max_file_bytes = 10485760" in config_text
    assert 'redaction = "default"' in config_text
    assert (config_root / "logs").is_dir()

    assert config.strict_types is False
    assert config.trace_delivery is False
    assert config.observers == []
    assert config.signals == []
    assert config.logs_enabled is DEFAULT_LOGS_ENABLED
    assert config.logs_format == DEFAULT_LOGS_FORMAT
    assert config.logs_max_file_bytes == DEFAULT_LOGS_MAX_FILE_BYTES
    assert config.logs_max_files == DEFAULT_LOGS_MAX_FILES
    assert config.logs_redaction == DEFAULT_LOGS_REDACTION


def test_init_refuses_existing_directory_without_force(tmp_path):
    initialize_project_config(workspace_dir=tmp_path)

    with pytest.raises(ProjectConfigError):
        initialize_project_config(workspace_dir=tmp_path)

    assert initialize_project_config(workspace_dir=tmp_path, force=True).is_dir()


def test_missing_config_raises(tmp_path):
    with pytest.raises(ProjectConfigError):
        load_settings(workspace_dir=tmp_path)


def test_unparsable_config_raises(tmp_path):
    config_root = initialize_project_config(workspace_dir=tmp_path)
    (config_root / "config.toml").write_text("[registry\n", encoding="utf-8")

    with pytest.raises(ProjectConfigError):
        load_project_config(workspace_dir=tmp_path)


def test_invalid_values_fallback_to_defaults(tmp_path):
    config_root = initialize_project_config(workspace_dir=tmp_path)
    (config_root / "config.toml").write_text(
        "\n".join(
            [
                "[registry]",
                'strict_types = "maybe"',
                "trace_delivery = 1",
                "",
                "[channels]",
                'observers = ["client.example", "", 3, "client.example"]',
                'signals = "not-a-list"',
                "",
                "[runtime.logs]",
                'enabled = "maybe"',
                'format = "xml"',
                "max_file_bytes = -1",
                "max_files = 0",
                'redaction = "unknown"',
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(workspace_dir=tmp_path)
    assert settings.strict_types is False
    assert settings.trace_delivery is True
    assert settings.observers == ["client.example"]
    assert settings.signals == []
    assert settings.logs_enabled is DEFAULT_LOGS_ENABLED
    assert settings.logs_format == DEFAULT_LOGS_FORMAT
    assert settings.logs_max_file_bytes == DEFAULT_LOGS_MAX_FILE_BYTES
    assert settings.logs_max_files == DEFAULT_LOGS_MAX_FILES
    assert settings.logs_redaction == DEFAULT_LOGS_REDACTION
    assert settings.logs_dir == config_root / "logs"


def test_save_round_trips_declared_channels(tmp_path):
    initialize_project_config(workspace_dir=tmp_path)
    config = load_project_config(workspace_dir=tmp_path)
    config.observers = ["client.example", "server.state"]
    config.signals = ["ui.clicked"]
    config.strict_types = True

    save_project_config(config, workspace_dir=tmp_path)
    reloaded = load_project_config(workspace_dir=tmp_path)

    assert reloaded.observers == ["client.example", "server.state"]
    assert reloaded.signals == ["ui.clicked"]
    assert reloaded.strict_types is True


def test_save_round_trips_backslashes_and_quotes(tmp_path):
    initialize_project_config(workspace_dir=tmp_path)
    config = load_project_config(workspace_dir=tmp_path)
    config.observers = ["a\\q", "b\\tab", 'say "hi"']
    config.signals = ["c:\\ui\\clicked"]

    save_project_config(config, workspace_dir=tmp_path)
    reloaded = load_project_config(workspace_dir=tmp_path)

    assert reloaded.observers == ["a\\q", "b\\tab", 'say "hi"']
    assert reloaded.signals == ["c:\\ui\\clicked"]

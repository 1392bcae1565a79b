"""Configuration loading and directory resolution for beacon."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

CONFIG_DIR_NAME = ".beacon_config"
CONFIG_FILE_NAME = "config.toml"
LOGS_DIR_NAME = "logs"

DEFAULT_STRICT_TYPES = False
DEFAULT_TRACE_DELIVERY = False
DEFAULT_LOGS_ENABLED = True
DEFAULT_LOGS_FORMAT = "jsonl"
DEFAULT_LOGS_MAX_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 5
DEFAULT_LOGS_REDACTION = "default"
ALLOWED_LOG_FORMATS = ("jsonl",)
ALLOWED_LOG_REDACTION = ("default", "none", "strict")


class ProjectConfigError(RuntimeError):
    """Raised when project configuration is missing or invalid."""


@dataclass
class ProjectConfig:
    strict_types: bool = DEFAULT_STRICT_TYPES
    trace_delivery: bool = DEFAULT_TRACE_DELIVERY
    observers: List[str] = field(default_factory=list)
    signals: List[str] = field(default_factory=list)
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_format: str = DEFAULT_LOGS_FORMAT
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION


@dataclass
class Settings:
    """Resolved settings for one process."""

    project_root: Path
    config_root: Path
    strict_types: bool = DEFAULT_STRICT_TYPES
    trace_delivery: bool = DEFAULT_TRACE_DELIVERY
    observers: List[str] = field(default_factory=list)
    signals: List[str] = field(default_factory=list)
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_format: str = DEFAULT_LOGS_FORMAT
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION

    @property
    def config_file(self) -> Path:
        return self.config_root / CONFIG_FILE_NAME

    @property
    def logs_dir(self) -> Path:
        return self.config_root / LOGS_DIR_NAME


def resolve_project_root(workspace_dir: Optional[Path] = None) -> Path:
    return (workspace_dir or Path.cwd()).resolve()


def resolve_project_config_root(workspace_dir: Optional[Path] = None) -> Path:
    return resolve_project_root(workspace_dir) / CONFIG_DIR_NAME


def project_config_exists(workspace_dir: Optional[Path] = None) -> bool:
    config_root = resolve_project_config_root(workspace_dir)
    return config_root.is_dir() and (config_root / CONFIG_FILE_NAME).is_file()


def _safe_positive_int_or_default(value: object, default: int) -> int:
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0:
        return default
    return converted


def _safe_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_choice(value: object, allowed: Sequence[str], default: str) -> str:
    normalized = str(value or default).strip().lower()
    if normalized not in allowed:
        return default
    return normalized


def _safe_channel_names(value: object) -> List[str]:
    if not isinstance(value, list):
        return []
    result: List[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        text = item.strip()
        if not text or text in result:
            continue
        result.append(text)
    return result


def _section(data: Dict[str, object], key: str) -> Dict[str, object]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _parse_project_config_data(data: Dict[str, object]) -> ProjectConfig:
    registry = _section(data, "registry")
    channels = _section(data, "channels")
    logs = _section(_section(data, "runtime"), "logs")

    return ProjectConfig(
        strict_types=_safe_bool(registry.get("strict_types"), DEFAULT_STRICT_TYPES),
        trace_delivery=_safe_bool(registry.get("trace_delivery"), DEFAULT_TRACE_DELIVERY),
        observers=_safe_channel_names(channels.get("observers")),
        signals=_safe_channel_names(channels.get("signals")),
        logs_enabled=_safe_bool(logs.get("enabled"), DEFAULT_LOGS_ENABLED),
        logs_format=_safe_choice(logs.get("format"), ALLOWED_LOG_FORMATS, DEFAULT_LOGS_FORMAT),
        logs_max_file_bytes=_safe_positive_int_or_default(
            logs.get("max_file_bytes"),
            DEFAULT_LOGS_MAX_FILE_BYTES,
        ),
        logs_max_files=_safe_positive_int_or_default(
            logs.get("max_files"),
            DEFAULT_LOGS_MAX_FILES,
        ),
        logs_redaction=_safe_choice(logs.get("redaction"), ALLOWED_LOG_REDACTION, DEFAULT_LOGS_REDACTION),
    )


def _render_project_config(config: ProjectConfig) -> str:
    def _toml_bool(value: bool) -> str:
        return "true" if value else "false"

    def _toml_array(values: Sequence[str]) -> str:
        escaped = [item.replace("\\", "\\\\").replace('"', '\\"') for item in values]
        return "[{0}]".format(", ".join('"{0}"'.format(item) for item in escaped))

    lines = [
        "[registry]",
        "strict_types = {0}".format(_toml_bool(config.strict_types)),
        "trace_delivery = {0}".format(_toml_bool(config.trace_delivery)),
        "",
        "[channels]",
        "observers = {0}".format(_toml_array(config.observers)),
        "signals = {0}".format(_toml_array(config.signals)),
        "",
        "[runtime.logs]",
        "enabled = {0}".format(_toml_bool(config.logs_enabled)),
        'format = "{0}"'.format(config.logs_format),
        "max_file_bytes = {0}".format(int(config.logs_max_file_bytes)),
        "max_files = {0}".format(int(config.logs_max_files)),
        'redaction = "{0}"'.format(config.logs_redaction),
        "",
    ]
    return "\n".join(lines)


def initialize_project_config(workspace_dir: Optional[Path] = None, force: bool = False) -> Path:
    config_root = resolve_project_config_root(workspace_dir)
    config_file = config_root / CONFIG_FILE_NAME

    if config_root.exists():
        if not force:
            raise ProjectConfigError(
                "configuration directory already exists: {0}".format(config_root)
            )
        shutil.rmtree(config_root)

    (config_root / LOGS_DIR_NAME).mkdir(parents=True, exist_ok=True)
    config_file.write_text(_render_project_config(ProjectConfig()), encoding="utf-8")
    return config_root


def load_project_config(config_root: Optional[Path] = None, workspace_dir: Optional[Path] = None) -> ProjectConfig:
    resolved_root = (config_root or resolve_project_config_root(workspace_dir)).resolve()
    config_file = resolved_root / CONFIG_FILE_NAME
    if not resolved_root.is_dir() or not config_file.is_file():
        raise ProjectConfigError(
            "missing project config directory: {0}, run `beacon init` first".format(resolved_root)
        )

    try:
        parsed = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ProjectConfigError("invalid config file: {0}".format(config_file)) from exc

    return _parse_project_config_data(parsed)


def save_project_config(
    config: ProjectConfig,
    config_root: Optional[Path] = None,
    workspace_dir: Optional[Path] = None,
) -> Path:
    resolved_root = (config_root or resolve_project_config_root(workspace_dir)).resolve()
    if not resolved_root.is_dir():
        raise ProjectConfigError(
            "missing project config directory: {0}, run `beacon init` first".format(resolved_root)
        )
    config_file = resolved_root / CONFIG_FILE_NAME
    config_file.write_text(_render_project_config(config), encoding="utf-8")
    return config_file


def load_settings(workspace_dir: Optional[Path] = None) -> Settings:
    """Resolve settings from the project config file."""

    project_root = resolve_project_root(workspace_dir)
    config_root = resolve_project_config_root(project_root)
    project_config = load_project_config(config_root=config_root)

    return Settings(
        project_root=project_root,
        config_root=config_root,
        strict_types=project_config.strict_types,
        trace_delivery=project_config.trace_delivery,
        observers=list(project_config.observers),
        signals=list(project_config.signals),
        logs_enabled=project_config.logs_enabled,
        logs_format=project_config.logs_format,
        logs_max_file_bytes=project_config.logs_max_file_bytes,
        logs_max_files=project_config.logs_max_files,
        logs_redaction=project_config.logs_redaction,
    )

"""Settings management for atcompile.

Simple, scope-aware YAML settings. Each scope is an optional YAML file;
more specific scopes override less specific ones key by key.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from typing import Literal

import yaml

from .transclusion.models import CompileOptions

logger = logging.getLogger(__name__)

Scope = Literal["local", "project", "global"]

# Settable keys and how to coerce a command-line string into their value
SETTING_KEYS: dict[str, str] = {
    "compile.try_extensions": "list",
    "compile.write_output": "bool",
    "compile.output_suffix": "str",
    "logging.path": "str",
    "logging.level": "str",
}

LOG_PATH_ENV = "ATCOMPILE_LOG_PATH"
LOG_LEVEL_ENV = "ATCOMPILE_LOG_LEVEL"


@dataclass
class SettingsPaths:
    """Standard paths for settings files."""

    global_settings: Path
    project_settings: Path
    local_settings: Path

    @classmethod
    def default(cls) -> SettingsPaths:
        """Create default paths for the standard .atcompile layout."""
        return cls(
            global_settings=Path.home() / ".atcompile" / "settings.yaml",
            project_settings=Path.cwd() / ".atcompile" / "settings.yaml",
            local_settings=Path.cwd() / ".atcompile" / "settings.local.yaml",
        )


def coerce_setting(key: str, value: str) -> Any:
    """Convert a command-line string into the typed value for key.

    Raises:
        ValueError: If the key is unknown or the value cannot be converted
    """
    kind = SETTING_KEYS.get(key)
    if kind is None:
        raise ValueError(f"Unknown setting '{key}'. Known settings: {', '.join(SETTING_KEYS)}")

    if kind == "list":
        return [item.strip() for item in value.split(",") if item.strip()]
    if kind == "bool":
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Expected a boolean for '{key}', got '{value}'")
    return value


class AppSettings:
    """Settings manager with scope-aware merging.

    Scope priority (most specific wins):
    1. local (.atcompile/settings.local.yaml) - machine-specific
    2. project (.atcompile/settings.yaml) - committed, team-shared
    3. global (~/.atcompile/settings.yaml) - user defaults

    Usage:
        settings = AppSettings()
        options = settings.compile_options(write_output=False)
        settings.set_value("compile.try_extensions", [".md"], scope="project")
    """

    def __init__(self, paths: SettingsPaths | None = None) -> None:
        self.paths = paths or SettingsPaths.default()

    def get_merged_settings(self) -> dict[str, Any]:
        """Load and merge settings from all scopes."""
        result: dict[str, Any] = {}
        for path in [self.paths.global_settings, self.paths.project_settings, self.paths.local_settings]:
            if path.exists():
                try:
                    with open(path) as f:
                        content = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(f"Skipping malformed settings file {path}: {e}")
                    continue
                if not isinstance(content, dict):
                    logger.warning(f"Skipping settings file {path}: top level must be a mapping")
                    continue
                result = self._deep_merge(result, content)
        return result

    # ----- Compile settings -----

    def get_compile_settings(self) -> dict[str, Any]:
        """Get the merged compile section."""
        return self._get_section("compile")

    def compile_options(self, **overrides: Any) -> CompileOptions:
        """Build CompileOptions from settings, with explicit overrides winning.

        Overrides whose value is None are ignored so callers can pass
        unset command-line options straight through.
        """
        compile_settings = self.get_compile_settings()
        extensions = compile_settings.get("try_extensions") or []
        if isinstance(extensions, str):
            extensions = [extensions]
        elif not isinstance(extensions, list):
            logger.warning(f"Ignoring compile.try_extensions: expected a list, got {type(extensions).__name__}")
            extensions = []
        values: dict[str, Any] = {
            "try_extensions": [str(ext) for ext in extensions],
            "write_output": bool(compile_settings.get("write_output", True)),
            "output_suffix": str(compile_settings.get("output_suffix") or ".built"),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return CompileOptions(**values)

    # ----- Logging settings -----

    def get_log_path(self) -> str | None:
        """Log file path: environment first, then settings. None disables file logging."""
        return os.environ.get(LOG_PATH_ENV) or self._get_section("logging").get("path")

    def get_log_level(self) -> str:
        """Log level: environment first, then settings, then INFO."""
        level = os.environ.get(LOG_LEVEL_ENV) or self._get_section("logging").get("level")
        return str(level or "INFO").upper()

    # ----- Generic access -----

    def set_value(self, dotted_key: str, value: Any, scope: Scope = "global") -> None:
        """Set a dotted key (e.g. ``compile.write_output``) at the given scope."""
        settings = self._read_scope(scope)
        section, _, name = dotted_key.partition(".")
        section_values = settings.get(section) or {}
        section_values[name] = value
        settings[section] = section_values
        self._write_scope(scope, settings)

    def remove_value(self, dotted_key: str, scope: Scope = "global") -> None:
        """Remove a dotted key from the given scope."""
        settings = self._read_scope(scope)
        section, _, name = dotted_key.partition(".")
        if name in (settings.get(section) or {}):
            del settings[section][name]
            if not settings[section]:
                del settings[section]
            self._write_scope(scope, settings)

    # ----- Scope utilities -----

    def _get_section(self, name: str) -> dict[str, Any]:
        """Get a merged top-level section, ignoring one that is not a mapping."""
        section = self.get_merged_settings().get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            logger.warning(f"Ignoring '{name}' settings: expected a mapping, got {type(section).__name__}")
            return {}
        return section

    def get_scope_path(self, scope: Scope) -> Path:
        """Get settings file path for scope."""
        return {
            "local": self.paths.local_settings,
            "project": self.paths.project_settings,
            "global": self.paths.global_settings,
        }[scope]

    def _read_scope(self, scope: Scope) -> dict[str, Any]:
        """Read settings from a specific scope."""
        path = self.get_scope_path(scope)
        if not path.exists():
            return {}
        with open(path) as f:
            content = yaml.safe_load(f) or {}
        return content if isinstance(content, dict) else {}

    def _write_scope(self, scope: Scope, settings: dict[str, Any]) -> None:
        """Write settings to a specific scope."""
        path = self.get_scope_path(scope)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(settings, f, default_flow_style=False)

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dicts, overlay wins."""
        result = base.copy()
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


def get_settings() -> AppSettings:
    """Get a settings instance with default paths."""
    return AppSettings()

"""Settings management for flowcanvas."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from flowcanvas.exceptions import ConfigError

CONFIG_ENV = "FLOWCANVAS_CONFIG"
CONFIG_DIR = "flowcanvas"
CONFIG_FILE = "config.json"
SUPPORTED_KINDS = ("flowchart",)


class IPCConfig(BaseModel):
    """Canvas socket settings."""

    socket_template: str = "/tmp/flowcanvas-{id}.sock"
    connect_timeout: float = 5.0

    def socket_path(self, canvas_id: str) -> str:
        return self.socket_template.format(id=canvas_id)


class PaneConfig(BaseModel):
    """Pane lifecycle settings."""

    state_file: str = "/tmp/flowcanvas-pane-id"
    settle_delay: float = 0.15
    split_size: str = "40%"
    tmux_binary: str = "tmux"


class CanvasConfig(BaseModel):
    """Canvas process settings."""

    log_file_template: str = "/tmp/flowcanvas-{id}.log"
    log_level: str = "INFO"

    def log_file(self, canvas_id: str) -> str:
        return self.log_file_template.format(id=canvas_id)


class Settings(BaseModel):
    """Full user settings."""

    ipc: IPCConfig = Field(default_factory=IPCConfig)
    pane: PaneConfig = Field(default_factory=PaneConfig)
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)


def settings_path() -> Path:
    """Location of the settings file ($FLOWCANVAS_CONFIG or XDG config dir)."""
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / CONFIG_DIR / CONFIG_FILE


def load_settings(path: Path | None = None) -> Settings:
    """Load settings, falling back to defaults when the file is absent."""
    config_path = path or settings_path()
    if not config_path.exists():
        return Settings()
    try:
        data = json.loads(config_path.read_text())
        return Settings(**data)
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid settings file {config_path}: {e}") from e


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Write settings as JSON and return the path written."""
    config_path = path or settings_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(settings.model_dump(), indent=2))
    return config_path


def set_settings_value(settings: Settings, key: str, value: Any) -> Settings:
    """Set a nested settings value using dot notation (e.g., 'pane.settle_delay')."""
    parts = key.split(".")
    data = settings.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid settings key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid settings key: {key}")
    target[parts[-1]] = value
    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e

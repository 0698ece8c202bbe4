"""Configuration defaults, config file handling, and todo path resolution."""

from __future__ import annotations

import datetime as _dt
import os
from dataclasses import asdict, dataclass
from pathlib import Path

import yaml

from tdfile.errors import ConfigError
from tdfile.io_utils import open_text


VERSION = "0.3.0"

# Sentinel line that opens and closes a managed block.
MARKER = ":td"

# Leading spaces per nesting level when the tree is written back.
INDENT_STEP = 2

DATE_PLACEHOLDER = "{YYYY-MM-DD}"
DEFAULT_FILE_PATTERN = f"todos-{DATE_PLACEHOLDER}.md"


@dataclass
class Config:
    """User configuration stored in ``config.yaml``."""

    file_path: str = ""
    file_pattern: str = ""
    base_directory: str = ""


def default_config() -> Config:
    return Config(
        base_directory=str(Path.home() / "Documents" / "todos"),
        file_pattern=DEFAULT_FILE_PATTERN,
    )


def config_path() -> Path:
    """Return the config file location, preferring ``$XDG_CONFIG_HOME``."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "td-file" / "config.yaml"
    return Path.home() / ".config" / "td-file" / "config.yaml"


def save_config(cfg: Config, path: Path | None = None) -> Path:
    target = path or config_path()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open_text(target, "w") as fh:
            yaml.safe_dump(asdict(cfg), fh, sort_keys=False)
    except OSError as e:
        raise ConfigError(f"failed to write config {target}: {e}") from e
    return target


def load_config(path: Path | None = None) -> Config:
    """Load the config, writing the defaults first when no file exists yet."""
    source = path or config_path()
    if not source.exists():
        cfg = default_config()
        save_config(cfg, source)
        return cfg

    try:
        with open_text(source) as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as e:
        raise ConfigError(f"failed to open config file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"failed to parse config: expected a mapping in {source}")

    return Config(
        file_path=str(data.get("file_path") or ""),
        file_pattern=str(data.get("file_pattern") or ""),
        base_directory=str(data.get("base_directory") or ""),
    )


def resolve_todo_path(cfg: Config, today: _dt.date | None = None) -> Path:
    """Return the todo file named by *cfg*.

    ``file_path`` wins. Otherwise ``file_pattern`` has its date placeholder
    filled with *today* and is joined to ``base_directory`` when one is set.
    """
    if cfg.file_path:
        return Path(cfg.file_path).expanduser()
    if cfg.file_pattern:
        day = today or _dt.date.today()
        filename = cfg.file_pattern.replace(DATE_PLACEHOLDER, day.isoformat())
        if cfg.base_directory:
            return Path(cfg.base_directory).expanduser() / filename
        return Path(filename)
    raise ConfigError("no file_path or file_pattern specified in config")

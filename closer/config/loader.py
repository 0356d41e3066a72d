"""Layered TOML configuration files.

config/default.toml is required. config/{CLOSER_ENV}.toml, when present, is
merged over it table by table. CLOSER_* environment variables are applied
afterwards by Settings.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "CLOSER_CONFIG_DIR"
ENVIRONMENT_ENV = "CLOSER_ENV"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_FILE = "default.toml"

# Directories searched for config/, starting at the working directory
SEARCH_DEPTH = 5


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def get_config_dir() -> Path:
    """Locate the config directory.

    CLOSER_CONFIG_DIR wins and must exist. Otherwise the nearest config/
    folder from the working directory upwards is used.
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_ENV} points to a missing directory: {explicit}")
        return path

    cwd = Path.cwd()
    for candidate in [cwd, *cwd.parents][:SEARCH_DEPTH]:
        if (candidate / "config").is_dir():
            return candidate / "config"
    return Path("config")


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If file_path does not exist
        tomllib.TOMLDecodeError: On invalid syntax
    """
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise FileNotFoundError(f"Configuration file not found: {file_path}") from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return base with override applied. Tables merge; other values replace."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def config_layers(config_dir: Path, env: str) -> list[Path]:
    """Files to merge, lowest precedence first."""
    default_path = config_dir / DEFAULT_FILE
    if not default_path.is_file():
        raise FileNotFoundError(
            f"{DEFAULT_FILE} not found in {config_dir}; "
            f"set {CONFIG_DIR_ENV} to the directory holding it"
        )

    layers = [default_path]
    env_path = config_dir / f"{env}.toml"
    if env != "default" and env_path.is_file():
        layers.append(env_path)
    return layers


def load_config(config_dir: Path | None = None, env: str | None = None) -> dict[str, Any]:
    """Merge the TOML layers for env (default: CLOSER_ENV) into one dictionary."""
    config: dict[str, Any] = {}
    for path in config_layers(config_dir or get_config_dir(), env or get_environment()):
        config = deep_merge(config, load_toml(path))
    return config

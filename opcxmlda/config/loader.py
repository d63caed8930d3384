"""Layered TOML configuration for the CLI.

Layers are read from one directory, later layers winning key by key:

    default.toml            base, required once the directory exists
    <OPCXMLDA_ENV>.toml     optional overlay, e.g. "lab.toml"

The directory is OPCXMLDA_CONFIG_DIR when set, otherwise ./config. With
no directory at all the client runs on model defaults and flags.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "OPCXMLDA_CONFIG_DIR"
ENV_VAR = "OPCXMLDA_ENV"
BASE_LAYER = "default"


def config_dir() -> Path | None:
    """Directory holding the TOML layers, or None when there is none.

    Raises:
        FileNotFoundError: If OPCXMLDA_CONFIG_DIR names a missing directory
    """
    explicit = os.environ.get(CONFIG_DIR_VAR)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_VAR} is not a directory: {explicit}")
        return path

    local = Path.cwd() / "config"
    return local if local.is_dir() else None


def overlay_name() -> str | None:
    """Name of the environment overlay layer, from OPCXMLDA_ENV."""
    name = os.environ.get(ENV_VAR, "").strip()
    if not name or name == BASE_LAYER:
        return None
    return name


def read_layer(path: Path) -> dict[str, Any]:
    """Parse one TOML layer.

    Raises:
        FileNotFoundError: If the file is missing
        ValueError: If the file is not valid TOML; the message names the file
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"{path}: {e}") from e


def overlay(base: dict[str, Any], top: dict[str, Any]) -> dict[str, Any]:
    """Return base with top laid over it. Shared tables merge recursively."""
    merged = dict(base)
    for key, value in top.items():
        below = merged.get(key)
        if isinstance(below, dict) and isinstance(value, dict):
            merged[key] = overlay(below, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Merge the base layer and the optional overlay into one dict."""
    directory = config_dir()
    if directory is None:
        return {}

    base_path = directory / f"{BASE_LAYER}.toml"
    if not base_path.is_file():
        raise FileNotFoundError(
            f"{base_path} not found; add it or point {CONFIG_DIR_VAR} elsewhere"
        )
    config = read_layer(base_path)

    name = overlay_name()
    if name is not None:
        overlay_path = directory / f"{name}.toml"
        if overlay_path.is_file():
            config = overlay(config, read_layer(overlay_path))

    return config

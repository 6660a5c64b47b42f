"""XDG-compliant path management for flatmirror.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and cache storage.

XDG defaults:
- Config: ~/.config/flatmirror/
- Cache: ~/.cache/flatmirror/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "flatmirror"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/flatmirror/ (or XDG_CONFIG_HOME/flatmirror/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_cache_dir() -> Path:
    """Get the cache directory path.

    Cache data includes downloaded remote catalogs that can be fetched again.

    Returns:
        Path to ~/.cache/flatmirror/ (or XDG_CACHE_HOME/flatmirror/).
    """
    return _get_xdg_dir("XDG_CACHE_HOME", ".cache")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/flatmirror/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_catalog_cache_dir() -> Path:
    """Get the directory holding the last downloaded remote catalogs.

    Returns:
        Path to ~/.cache/flatmirror/catalogs/.
    """
    return get_cache_dir() / "catalogs"

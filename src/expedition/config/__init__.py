"""Configuration management for Expedition."""
from __future__ import annotations

from expedition.config.paths import ExpeditionPaths, get_paths, reset_paths
from expedition.config.settings import Settings, get_settings_path, settings

__all__ = [
    "ExpeditionPaths",
    "Settings",
    "get_paths",
    "get_settings_path",
    "reset_paths",
    "settings",
]

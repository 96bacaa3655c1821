"""Centralized path management for Expedition.

Follows XDG Base Directory Specification for global files:
- Config: $XDG_CONFIG_HOME/expedition (default: ~/.config/expedition)

Route data is workspace-local, under ``<workspace>/.expedition/``.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _xdg_config_home() -> Path:
    """Get XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


@dataclass
class ExpeditionPaths:
    """Centralized path management following XDG spec."""

    workspace: Path  # Current working directory

    _config_home: Path = field(default_factory=_xdg_config_home)

    # === WORKSPACE PATHS ===

    @property
    def workspace_config(self) -> Path:
        """Workspace .expedition/ directory."""
        return self.workspace / ".expedition"

    @property
    def expeditions_dir(self) -> Path:
        """Workspace expeditions directory."""
        return self.workspace_config / "expeditions"

    @property
    def debug_log(self) -> Path:
        """Debug log: .expedition/debug.log"""
        return self.workspace_config / "debug.log"

    @property
    def activity_log(self) -> Path:
        """Activity log shared by every expedition: .expedition/activity.jsonl"""
        return self.workspace_config / "activity.jsonl"

    # === GLOBAL PATHS (XDG compliant) ===

    @property
    def global_config_dir(self) -> Path:
        """Global config: ~/.config/expedition/"""
        return self._config_home / "expedition"

    @property
    def global_settings(self) -> Path:
        """Global settings file: ~/.config/expedition/settings.json"""
        return self.global_config_dir / "settings.json"

    # === DIRECTORY CREATION ===

    def ensure_workspace_dirs(self) -> None:
        """Create the workspace .expedition/ directory and its expeditions/."""
        self.expeditions_dir.mkdir(parents=True, exist_ok=True)


# Singleton instance
_paths: ExpeditionPaths | None = None


def get_paths(workspace: Path | None = None) -> ExpeditionPaths:
    """Get the paths singleton.

    On first call, optionally set the workspace directory.
    Subsequent calls return the same instance.

    Args:
        workspace: The workspace directory. If not provided on first call,
                   defaults to current working directory.
    """
    global _paths
    if _paths is None:
        _paths = ExpeditionPaths(workspace=workspace or Path.cwd())
    return _paths


def reset_paths() -> None:
    """Reset paths singleton (for testing)."""
    global _paths
    _paths = None

"""Configuration and settings persistence."""

import json
import logging
from pathlib import Path
from typing import Any

from expedition.config.paths import get_paths
from expedition.models.waypoint import DEFAULT_BRANCH

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the expedition config directory, creating if needed.

    Returns XDG-compliant path: ~/.config/expedition/
    """
    config_dir = get_paths().global_config_dir
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_settings_path() -> Path:
    """Get the path to the settings file."""
    return get_paths().global_settings


class Settings:
    """Persistent settings for Expedition."""

    _defaults: dict[str, Any] = {
        "default_branch": DEFAULT_BRANCH,
    }

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load settings from disk."""
        path = get_settings_path()
        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                data = {}
            self._data = data if isinstance(data, dict) else {}
        else:
            self._data = {}

    def _save(self) -> None:
        """Save settings to disk."""
        try:
            path = get_config_dir() / "settings.json"
            path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
            logger.info("Saved settings to %s", path)
        except OSError as e:
            logger.error("Failed to save settings: %s", e)

    def get(self, key: str) -> Any:
        """Get a setting value, falling back to default."""
        return self._data.get(key, self._defaults.get(key))

    def set(self, key: str, value: Any) -> None:
        """Set a setting value and persist to disk."""
        self._data[key] = value
        self._save()

    @property
    def default_branch(self) -> str:
        """Branch that every expedition starts on."""
        saved = self._data.get("default_branch")
        if isinstance(saved, str) and saved.strip():
            return saved.strip()
        return DEFAULT_BRANCH

    @default_branch.setter
    def default_branch(self, value: str) -> None:
        self.set("default_branch", value)

    @property
    def data_directory(self) -> Path:
        """Get the expeditions directory path.

        Returns the configured directory, or defaults to the workspace
        expeditions directory.
        """
        saved = self._data.get("data_directory")
        if saved:
            return Path(saved).expanduser().resolve()
        return get_paths().expeditions_dir

    @data_directory.setter
    def data_directory(self, value: str | Path) -> None:
        """Set the expeditions directory."""
        self.set("data_directory", str(value))

    # --- Activity log ---

    @property
    def log_enabled(self) -> bool:
        """Whether route events are appended to the activity log."""
        log = self._data.get("log", {})
        if not isinstance(log, dict):
            return True
        enabled = log.get("enabled", True)
        return enabled if isinstance(enabled, bool) else True

    @log_enabled.setter
    def log_enabled(self, value: bool) -> None:
        log = self._data.get("log", {})
        if not isinstance(log, dict):
            log = {}
        log["enabled"] = bool(value)
        self.set("log", log)

    # --- CLI context ---

    @property
    def active_expedition(self) -> str | None:
        """Id of the expedition the CLI uses when none is given."""
        saved = self._data.get("active_expedition")
        return saved if isinstance(saved, str) and saved else None

    @active_expedition.setter
    def active_expedition(self, value: str | None) -> None:
        self.set("active_expedition", value)

    @property
    def active_branches(self) -> dict[str, str]:
        """Remembered branch per expedition id."""
        saved = self._data.get("active_branches", {})
        if not isinstance(saved, dict):
            return {}
        return {
            str(k): v for k, v in saved.items() if isinstance(v, str) and v.strip()
        }

    def branch_for(self, expedition_id: str) -> str | None:
        """Get the remembered branch for one expedition."""
        return self.active_branches.get(expedition_id)

    def remember_branch(self, expedition_id: str, branch: str) -> None:
        """Persist the CLI's branch choice for one expedition."""
        branches = self.active_branches
        branches[expedition_id] = branch
        self.set("active_branches", branches)


# Global settings instance
settings = Settings()

"""Configuration management for vsqlite."""
from __future__ import annotations
from typing import Dict, Any, Mapping, Optional
import os
import json
import logging

from vsqlite.core.errors import ConfigError
from vsqlite.utils.constants import DEFAULT_HISTORY_FILE, PROMPT, SUPPORTED_ENGINES, LOG_LEVELS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.vsqlite_config.json"

# Default configuration
DEFAULT_CONFIG = {
    "history_file": DEFAULT_HISTORY_FILE,
    "prompt": PROMPT,
    "log_level": "WARNING",
    "engine": None,
}

# Environment overrides (read at startup if set)
ENV_OVERRIDES = {
    "VSQLITE_HISTORY_FILE": "history_file",
    "VSQLITE_PROMPT": "prompt",
    "VSQLITE_LOG_LEVEL": "log_level",
    "VSQLITE_ENGINE": "engine",
}


class Config:
    """Configuration manager for vsqlite settings."""

    def __init__(self, config_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        self.settings: Dict[str, Any] = DEFAULT_CONFIG.copy()
        self.config_file = os.path.expanduser(config_file or DEFAULT_CONFIG_FILE)
        self._load_config()
        self._apply_env(os.environ if environ is None else environ)

    def _load_config(self) -> None:
        """Load configuration from file if exists."""
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ConfigError(f"{self.config_file} must hold a JSON object")
                self.settings.update(data)
        except (OSError, ValueError, ConfigError) as e:
            logger.warning(f"Failed to load config: {e}")

    def _apply_env(self, environ: Mapping[str, str]) -> None:
        for var, key in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                self.settings[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self.settings[key] = value

    def validate(self) -> None:
        """Reject values the client cannot start with."""
        engine = self.settings.get("engine")
        if engine and engine not in SUPPORTED_ENGINES:
            raise ConfigError(f"Unsupported engine '{engine}' (choose from {', '.join(SUPPORTED_ENGINES)})")
        level = str(self.settings.get("log_level", "")).upper()
        if level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.settings.get('log_level')}")


def load_config(config_file: Optional[str] = None) -> Config:
    return Config(config_file)

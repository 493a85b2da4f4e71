"""
Configuration Loader Service

Loads engine configuration from sequential_thinking.json in the project root.
Environment variables always take precedence over config file values.

Config file location (in order of precedence):
1. SEQTHINK_PROJECT_ROOT/sequential_thinking.json (if SEQTHINK_PROJECT_ROOT is set)
2. CWD/sequential_thinking.json

Supported settings in sequential_thinking.json:
{
    "max_thoughts_per_session": 100,     // -> SEQTHINK_MAX_THOUGHTS
    "max_branches_per_session": 10,      // -> SEQTHINK_MAX_BRANCHES
    "session_timeout_seconds": 3600,     // -> SEQTHINK_SESSION_TIMEOUT
    "max_sessions": 100,                 // -> SEQTHINK_MAX_SESSIONS
    "cleanup_interval_seconds": 300,     // -> SEQTHINK_CLEANUP_INTERVAL
    "auto_cleanup": true,                // -> SEQTHINK_AUTO_CLEANUP
    "max_thought_length": 10000,         // -> SEQTHINK_MAX_THOUGHT_LENGTH
    "enable_thought_logging": true,      // -> SEQTHINK_THOUGHT_LOGGING
    "default_export_format": "structured",  // -> SEQTHINK_EXPORT_FORMAT
    "log_dir": ".sequential_thinking",   // -> SEQTHINK_LOG_DIR
    "debug_log": ""                      // -> SEQTHINK_DEBUG_LOG ("" disables file logs)
}
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..logging_config import configure_logger_for_debug_trace

logger = configure_logger_for_debug_trace(__name__)


class ConfigLoader:
    """
    Loads configuration from sequential_thinking.json file.

    Priority: Environment variables > sequential_thinking.json > defaults
    """

    CONFIG_FILENAME = "sequential_thinking.json"

    # Mapping from sequential_thinking.json keys to environment variable names
    CONFIG_KEY_TO_ENV = {
        "max_thoughts_per_session": "SEQTHINK_MAX_THOUGHTS",
        "max_branches_per_session": "SEQTHINK_MAX_BRANCHES",
        "session_timeout_seconds": "SEQTHINK_SESSION_TIMEOUT",
        "max_sessions": "SEQTHINK_MAX_SESSIONS",
        "cleanup_interval_seconds": "SEQTHINK_CLEANUP_INTERVAL",
        "auto_cleanup": "SEQTHINK_AUTO_CLEANUP",
        "max_thought_length": "SEQTHINK_MAX_THOUGHT_LENGTH",
        "enable_thought_logging": "SEQTHINK_THOUGHT_LOGGING",
        "default_export_format": "SEQTHINK_EXPORT_FORMAT",
        "log_dir": "SEQTHINK_LOG_DIR",
        "debug_log": "SEQTHINK_DEBUG_LOG",
    }

    def __init__(self):
        self._config: Dict[str, Any] = {}
        self._config_path: Optional[Path] = None
        self._loaded = False

    def load(self, project_root: Optional[Path] = None) -> bool:
        """
        Load configuration from sequential_thinking.json.

        Args:
            project_root: Project root directory. If None, uses SEQTHINK_PROJECT_ROOT or CWD.

        Returns:
            True if config file was found and loaded, False otherwise.
        """
        if self._loaded:
            return self._config_path is not None

        if project_root is None:
            env_root = os.getenv("SEQTHINK_PROJECT_ROOT")
            project_root = Path(env_root) if env_root else Path.cwd()

        config_path = Path(project_root) / self.CONFIG_FILENAME
        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    self._config = json.load(f)
                self._config_path = config_path
                logger.info("Loaded config from: %s", config_path)
                self._apply_config()
            except json.JSONDecodeError as e:
                logger.warning("Invalid JSON in %s: %s", config_path, e)
            except OSError as e:
                logger.warning("Error loading %s: %s", config_path, e)

        self._loaded = True
        return self._config_path is not None

    def _apply_config(self) -> None:
        """
        Apply config values as environment variables (only if not already set).
        This allows env vars to override config file values.
        """
        for config_key, env_var in self.CONFIG_KEY_TO_ENV.items():
            if config_key not in self._config:
                continue
            if os.getenv(env_var) is not None:
                continue

            value = self._config[config_key]
            # bool before int: bool is an int subclass
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif isinstance(value, (int, float)):
                value = str(value)
            elif value is None:
                value = ""

            os.environ[env_var] = str(value)
            logger.debug("%s=%s (from %s)", env_var, value, self.CONFIG_FILENAME)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value."""
        return self._config.get(key, default)

    @property
    def config_path(self) -> Optional[Path]:
        """Path to the loaded config file, or None if not loaded."""
        return self._config_path

    @property
    def config(self) -> Dict[str, Any]:
        """The loaded configuration dictionary."""
        return self._config.copy()


# Global singleton instance
_config_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Get the global config loader instance."""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_config(project_root: Optional[Path] = None) -> bool:
    """
    Load configuration from sequential_thinking.json.

    This should be called early in server startup, before ThinkingConfig
    reads the environment.

    Args:
        project_root: Project root directory. If None, auto-detects.

    Returns:
        True if config was loaded, False otherwise.
    """
    return get_config_loader().load(project_root)

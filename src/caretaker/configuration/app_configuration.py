from __future__ import annotations
import os
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from caretaker.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path(os.getenv("CARETAKER_CONFIG", "./config/app_config.yml")).resolve()

DEFAULT_DATABASE_PATH = "./data/caretaker.db"
DEFAULT_BROADCAST_CAPACITY = 64
DEFAULT_ACTION_QUEUE_SIZE = 128
DEFAULT_LOG_LEVEL = "DEBUG"
DEFAULT_SHUTDOWN_GRACE_SECONDS = 10.0


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed shortcuts with defaults for every key the runtime reads. Uses fcntl
    shared locks so a file being rewritten is never read half-way.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping, using defaults.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    def _positive_int(self, section: str, key: str, default: int) -> int:
        value = self._section(section).get(key, default)
        try:
            value = int(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] %s.%s=%r is not an integer, using %d", section, key, value, default)
            return default
        if value <= 0:
            logger.warning("[APP CONFIGURATION] %s.%s must be positive, using %d", section, key, default)
            return default
        return value

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def database_path(self) -> Path:
        """Location of the SQLite database file."""
        value = self._section("database").get("path") or DEFAULT_DATABASE_PATH
        return Path(str(value)).resolve()

    @property
    def broadcast_capacity(self) -> int:
        """Per-subscriber buffer size of the message broadcast.

        A matcher that falls further behind than this loses the oldest
        messages and is told how many it missed.
        """
        return self._positive_int("dispatch", "broadcast_capacity", DEFAULT_BROADCAST_CAPACITY)

    @property
    def action_queue_size(self) -> int:
        """Bound of the queue between the matchers and the action pipeline."""
        return self._positive_int("dispatch", "action_queue_size", DEFAULT_ACTION_QUEUE_SIZE)

    @property
    def shutdown_grace_seconds(self) -> float:
        """How long shutdown waits for in-flight actions to finish."""
        value = self._section("dispatch").get("shutdown_grace_seconds", DEFAULT_SHUTDOWN_GRACE_SECONDS)
        try:
            return max(0.0, float(value))
        except (TypeError, ValueError):
            return DEFAULT_SHUTDOWN_GRACE_SECONDS

    @property
    def log_level(self) -> str:
        """Level name applied to every Caretaker logger."""
        value = self._section("logging").get("level", DEFAULT_LOG_LEVEL)
        return str(value or DEFAULT_LOG_LEVEL).upper()


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)

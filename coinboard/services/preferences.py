"""Persistent user preference storage (dark mode only)."""

import json
import threading
from pathlib import Path

from coinboard.utils.config import config
from coinboard.utils.logger import StructuredLogger


class PreferenceStore:
    """Stores the dark mode flag in a small JSON file."""

    def __init__(self, path: str | None = None, key: str | None = None):
        """
        Initialize the store.

        Args:
            path: JSON file holding preferences
            key: Name the dark mode flag is stored under
        """
        self.path = Path(path or config.preferences.path)
        self.key = key or config.preferences.dark_mode_key
        self._lock = threading.RLock()
        self.logger = StructuredLogger.from_config("PreferenceStore")

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(
                "Preference file unreadable, using defaults",
                context={"path": str(self.path)},
                exception=e,
            )
            return {}
        return data if isinstance(data, dict) else {}

    def dark_mode(self) -> bool:
        """Return the saved dark mode flag (False when never set)."""
        with self._lock:
            return self._load().get(self.key) is True

    def set_dark_mode(self, enabled: bool) -> bool:
        """Persist the dark mode flag and return it."""
        with self._lock:
            data = self._load()
            data[self.key] = bool(enabled)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data))
        self.logger.info("Dark mode preference saved", context={"dark_mode": bool(enabled)})
        return bool(enabled)

    def toggle_dark_mode(self) -> bool:
        """Flip the dark mode flag and return the new value."""
        with self._lock:
            enabled = not (self._load().get(self.key) is True)
            return self.set_dark_mode(enabled)

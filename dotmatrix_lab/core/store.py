"""Settings persistence for the dot-matrix renderer.

Settings are stored as a flat JSON record. Writes coming from interactive
editing go through a trailing-edge debounce so that dragging a value does not
hammer the disk.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

from .settings import Settings

log = logging.getLogger(__name__)

# Bump the version suffix when the record layout changes incompatibly
STORAGE_VERSION = 'v1.4'
SETTINGS_FILE = Path.home() / '.dotmatrix_lab_settings.json'
SAVE_DELAY = 0.5  # seconds


class Debouncer:
    """Coalesce rapid calls into one call after a quiet period.

    Every ``trigger`` restarts the timer; the callback fires once with the
    arguments of the most recent trigger.
    """

    def __init__(self, delay: float, callback: Callable[..., Any]):
        self.delay = delay
        self.callback = callback
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._args: Tuple[Any, ...] = ()

    def trigger(self, *args: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._args = args
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            args = self._args
        self.callback(*args)

    def flush(self) -> None:
        """Run a pending call now instead of waiting for the timer."""
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
            self._timer = None
            args = self._args
        self.callback(*args)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class SettingsStore:
    """Handles loading and saving of renderer settings."""

    def __init__(self, path: Path = SETTINGS_FILE, delay: float = SAVE_DELAY):
        """Initialize the store.

        Args:
            path: Path to the settings file (defaults to ~/.dotmatrix_lab_settings.json)
            delay: Quiet period for debounced saves, in seconds
        """
        self.path = Path(path)
        self._debouncer = Debouncer(delay, self._save_quietly)

    def load(self) -> Settings:
        """Load settings, merging the stored record over the defaults.

        Returns:
            Settings with stored or default values
        """
        if not self.path.exists():
            return Settings()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if data.get('version') != STORAGE_VERSION:
                log.info("Settings file %s has version %r, merging over defaults",
                         self.path, data.get('version'))
            settings = Settings.from_dict(data.get('settings', {}))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            log.warning("Failed to load settings from %s: %s", self.path, e)
            return Settings()

        log.debug("Loaded settings from %s", self.path)
        return settings

    def save(self, settings: Settings) -> Tuple[bool, Optional[str]]:
        """Save settings to file.

        Returns:
            Tuple of (success, error_message)
        """
        record = {'version': STORAGE_VERSION, 'settings': settings.to_dict()}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
        except OSError as e:
            return False, str(e)
        return True, None

    def save_debounced(self, settings: Settings) -> None:
        self._debouncer.trigger(settings)

    def flush(self) -> None:
        """Write any pending debounced save immediately."""
        self._debouncer.flush()

    def reset(self) -> Settings:
        """Drop the stored record and return the defaults."""
        self._debouncer.cancel()
        if self.path.exists():
            self.path.unlink()
        return Settings()

    def _save_quietly(self, settings: Settings) -> None:
        ok, error = self.save(settings)
        if not ok:
            log.warning("Failed to save settings to %s: %s", self.path, error)

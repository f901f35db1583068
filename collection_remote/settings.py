"""
Persistent key-value settings for Collection Remote.

The session only needs ``get(key)`` and ``set(key, value)``; the desktop app
backs them with QSettings, the command-line client with a plain dict.
"""

from typing import Dict, Optional

from PyQt6.QtCore import QSettings

ORGANIZATION = "CollectionRemote"
APPLICATION = "collection_remote"


class SettingsStore:
    """Minimal settings interface."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class QtSettingsStore(SettingsStore):
    """Settings persisted through QSettings (native per-user storage)."""

    def __init__(self, settings: Optional[QSettings] = None):
        self._settings = settings if settings is not None else QSettings(ORGANIZATION, APPLICATION)

    def get(self, key: str) -> Optional[str]:
        value = self._settings.value(key)
        if value is None:
            return None
        return str(value)

    def set(self, key: str, value: str) -> None:
        self._settings.setValue(key, value)
        self._settings.sync()


class MemorySettingsStore(SettingsStore):
    """In-memory settings, used by the CLI where nothing is persisted."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

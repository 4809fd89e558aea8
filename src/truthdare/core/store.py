"""Local persistence for the running session and front-end settings."""

from __future__ import annotations

import os
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

import structlog

from .schemas import (
    SessionSnapshot,
    Settings,
    SnapshotDecodeError,
    decode_settings,
    decode_snapshot,
    encode_model,
)
from .session import Session

LOGGER = structlog.get_logger(__name__)

SESSION_KEY = "session"
SETTINGS_KEY = "settings"
DEFAULT_TTL_DAYS = 7.0
MS_PER_DAY = 24 * 60 * 60 * 1000

Clock = Callable[[], float]


class KeyValueStore(ABC):
    """Byte-oriented key-value slots scoped to one user."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes or ``None`` when the slot is empty."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Overwrite the slot."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the slot; missing slots are ignored."""


class MemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store for embedding hosts and tests."""

    def __init__(self) -> None:
        self.data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileKeyValueStore(KeyValueStore):
    """Stores each key as ``<key>.json`` inside a directory."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class SessionStore:
    """Saves and restores the session snapshot with a time-based expiry."""

    def __init__(
        self,
        backend: KeyValueStore,
        *,
        ttl_days: float = DEFAULT_TTL_DAYS,
        clock: Clock = time.time,
        key: str = SESSION_KEY,
    ) -> None:
        self.backend = backend
        self.ttl_ms = int(ttl_days * MS_PER_DAY)
        self.clock = clock
        self.key = key

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def save(self, session: Session) -> bool:
        """Overwrite the slot with the current session.

        Returns ``False`` when the backend refused the write.
        """
        snapshot = session.to_snapshot(self.now_ms())
        try:
            self.backend.set(self.key, encode_model(snapshot))
        except OSError as exc:
            LOGGER.error("store.write_failed", key=self.key, error=str(exc))
            return False
        LOGGER.debug("session.saved", round=snapshot.current_round, packages=snapshot.selected_package_ids)
        return True

    def load(self) -> Optional[SessionSnapshot]:
        """Return the saved snapshot, or ``None`` if absent, corrupt or expired."""
        try:
            raw = self.backend.get(self.key)
        except OSError as exc:
            LOGGER.warning("store.read_failed", key=self.key, error=str(exc))
            return None
        if raw is None:
            return None

        try:
            snapshot = decode_snapshot(raw)
        except SnapshotDecodeError as exc:
            LOGGER.warning("store.corrupt", key=self.key, error=str(exc))
            return None

        age_ms = self.now_ms() - snapshot.timestamp
        if age_ms > self.ttl_ms:
            LOGGER.info("store.expired", key=self.key, age_days=round(age_ms / MS_PER_DAY, 2))
            self.clear()
            return None
        return snapshot

    def clear(self) -> None:
        try:
            self.backend.delete(self.key)
        except OSError as exc:
            LOGGER.warning("store.delete_failed", key=self.key, error=str(exc))
        else:
            LOGGER.debug("session.cleared", key=self.key)


class SettingsStore:
    """Dark-mode flag and the last package selection."""

    def __init__(self, backend: KeyValueStore, *, key: str = SETTINGS_KEY) -> None:
        self.backend = backend
        self.key = key

    def load(self) -> Settings:
        try:
            raw = self.backend.get(self.key)
        except OSError as exc:
            LOGGER.warning("settings.read_failed", error=str(exc))
            return Settings()
        if raw is None:
            return Settings()
        try:
            return decode_settings(raw)
        except SnapshotDecodeError as exc:
            LOGGER.warning("settings.corrupt", error=str(exc))
            return Settings()

    def save(self, settings: Settings) -> None:
        self.backend.set(self.key, encode_model(settings))

    def set_dark_mode(self, enabled: bool) -> Settings:
        settings = self.load().model_copy(update={"dark_mode": bool(enabled)})
        self.save(settings)
        return settings

    def set_selected(self, package_ids: Iterable[int]) -> Settings:
        unique = list(dict.fromkeys(int(package_id) for package_id in package_ids))
        settings = self.load().model_copy(update={"selected_package_ids": unique})
        self.save(settings)
        return settings
